import argparse
import logging
import os

from .config import DbConfig, DisplayConfig, parse_reading_order
from .date_key import DateKey
from .display import render_entry
from .errors import InvalidDateError, RetrievalError, StoreError
from .logging_setup import setup_logging
from .store import LectionaryStore, init_store

logger = logging.getLogger("lectio-diei")

EXIT_OK = 0
EXIT_BAD_ARGUMENT = 3
EXIT_DATABASE = 4
EXIT_RETRIEVAL = 5


def _client():
    from .scrapers.usccb_client import UsccbClient

    return UsccbClient()


def cmd_display(args) -> None:
    from .orchestration import retrieve_entry

    if args.date:
        key = DateKey.parse(args.date)
    else:
        key = DateKey.today()
        logger.info("No date specified. Using '%s'", key)

    config = DisplayConfig.from_env()
    if args.day_only:
        order = []
    elif args.all:
        order = None
    else:
        order = args.readings if args.readings is not None else config.reading_order

    max_width = config.max_width if args.max_width is None else args.max_width
    original = args.original_linebreaks or (
        config.original_linebreaks and args.max_width is None
    )

    entry = retrieve_entry(key)
    print(render_entry(entry, order, original_linebreaks=original, max_width=max_width))


def cmd_init() -> None:
    init_store()
    print("ok")


def cmd_db_count(store: LectionaryStore) -> None:
    print(store.count())


def cmd_db_show(store: LectionaryStore) -> None:
    for key, name in sorted(store.list_entries(), key=lambda row: row[0]):
        print(f"{key} {name}")


def cmd_db_remove(store: LectionaryStore, dates: list[str]) -> None:
    keys = []
    for raw in dates:
        try:
            keys.append(DateKey.parse(raw))
        except InvalidDateError:
            logger.warning("'%s' is not a valid date id. Skipping...", raw)

    removed = 0
    for key in keys:
        try:
            if store.remove(key):
                logger.info("Successfully removed entry '%s'", key)
                removed += 1
            else:
                logger.info("Tried to remove entry '%s' but it was not present", key)
        except StoreError as exc:
            logger.error("Failed to remove entry '%s': %s", key, exc)
    print(removed)


def cmd_db_purge(store: LectionaryStore) -> None:
    print(store.remove_all())


def cmd_db_clean(store: LectionaryStore, include_future: bool) -> None:
    from .orchestration import clean

    print(clean(store, DbConfig.from_env(), include_future=include_future))


def cmd_db_update(store: LectionaryStore) -> None:
    from .orchestration import ensure_range_stored

    config = DbConfig.from_env()
    print(
        ensure_range_stored(
            store,
            _client(),
            config.past_entries,
            config.future_entries,
            workers=config.workers,
        )
    )


def cmd_db_refresh(store: LectionaryStore) -> None:
    from .orchestration import refresh

    result = refresh(store, _client(), DbConfig.from_env())
    print(result.removed)
    print(result.added)


def _reading_order(raw: str):
    try:
        return parse_reading_order(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        prog="lectio",
        description="Display the daily Catholic readings from the USCCB site",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    display = sub.add_parser("display", help="Print the readings to STDOUT")
    display.add_argument(
        "-d", "--date", help="Date to retrieve as MMDDYY (default: today)"
    )
    which = display.add_mutually_exclusive_group()
    which.add_argument(
        "-r",
        "--readings",
        type=_reading_order,
        default=None,
        help="Comma-separated readings in display order (reading1,reading2,psalm,gospel,alleluia)",
    )
    which.add_argument(
        "-a", "--all", action="store_true", help="Display all readings"
    )
    which.add_argument(
        "--day-only", action="store_true", help="Only display the name of the day"
    )
    display.add_argument(
        "-w",
        "--max-width",
        type=int,
        default=None,
        help="Wrap width for readings; 0 removes line breaks",
    )
    display.add_argument(
        "--original-linebreaks",
        action="store_true",
        help="Keep the line breaks of the USCCB site",
    )

    db = sub.add_parser("db", help="Manage the local database")
    db_sub = db.add_subparsers(dest="db_command", required=True)
    db_sub.add_parser("count", help="Print the number of stored days")
    db_sub.add_parser("show", help="Print every stored day, oldest first")
    remove = db_sub.add_parser("remove", help="Remove the given days; prints the number removed")
    remove.add_argument("dates", nargs="+", help="Days in MMDDYY format")
    db_sub.add_parser("purge", help="Remove every stored day")
    clean = db_sub.add_parser("clean", help="Remove days older than the configured window")
    clean.add_argument(
        "--all",
        dest="include_future",
        action="store_true",
        help="Also remove days past the end of the window",
    )
    db_sub.add_parser("update", help="Fetch and store every day of the configured window")
    db_sub.add_parser("refresh", help="clean, then update")

    sub.add_parser("init", help="Create the database and apply migrations")
    return ap.parse_args(argv)


def _run_db_command(args) -> None:
    store = init_store()
    if args.db_command == "count":
        cmd_db_count(store)
    elif args.db_command == "show":
        cmd_db_show(store)
    elif args.db_command == "remove":
        cmd_db_remove(store, args.dates)
    elif args.db_command == "purge":
        cmd_db_purge(store)
    elif args.db_command == "clean":
        cmd_db_clean(store, include_future=args.include_future)
    elif args.db_command == "update":
        cmd_db_update(store)
    elif args.db_command == "refresh":
        cmd_db_refresh(store)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(os.getenv("LOG_LEVEL", "WARNING"))

    try:
        if args.command == "display":
            cmd_display(args)
        elif args.command == "db":
            _run_db_command(args)
        elif args.command == "init":
            cmd_init()
    except InvalidDateError as exc:
        logger.error("Bad argument: %s", exc)
        return EXIT_BAD_ARGUMENT
    except RetrievalError as exc:
        logger.error("Can't display readings: %s", exc)
        return EXIT_RETRIEVAL
    except StoreError as exc:
        logger.error("Fatal database error: %s", exc)
        return EXIT_DATABASE
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
