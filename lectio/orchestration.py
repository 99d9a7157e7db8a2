"""Read-through cache policy and bulk maintenance of the local store.

Single-day requests try the store first and fall back to the web, writing
the fetched entry back on a best-effort basis. Bulk operations (backfill,
prune, refresh) never stop on a single failed day: each failure is logged
and reported, and the counts cover everything else.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .config import DbConfig
from .date_key import DateKey
from .errors import (
    BackfillError,
    EntryNotFoundError,
    FetchError,
    RetrievalError,
    StoreError,
    StoreInitError,
)
from .scraper_observability import StepTimer, log_event, new_run_id
from .scrapers.usccb_client import UsccbClient
from .store import LectionaryStore, init_store
from .types import Entry

logger = logging.getLogger("lectio-diei")

DEFAULT_WORKERS = 8


@dataclass(frozen=True)
class WriteResult:
    key: DateKey
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def write_through(store: LectionaryStore, entry: Entry) -> WriteResult:
    """Store a freshly fetched entry.

    The failure is returned instead of raised: callers log it and carry on,
    since the entry itself is still good.
    """
    try:
        store.insert(entry)
    except StoreError as exc:
        return WriteResult(key=entry.key, error=exc)
    return WriteResult(key=entry.key)


def retrieve_and_store(
    key: DateKey, store: LectionaryStore, client: UsccbClient
) -> Entry:
    store_error: Optional[StoreError] = None
    try:
        entry = store.get(key)
    except EntryNotFoundError:
        logger.info("Entry '%s' not in database; retrieving from web", key)
    except StoreError as exc:
        # A broken store is not a miss; remember it in case the web fails too.
        logger.warning(
            "Could not read entry '%s' from database (%s); retrieving from web", key, exc
        )
        store_error = exc
    else:
        logger.info("Entry '%s' present in database", key)
        return entry

    try:
        entry = client.fetch(key)
    except FetchError as exc:
        logger.error(
            "Failed to retrieve '%s' from web (%s) after failing to retrieve from database",
            key,
            exc,
        )
        raise RetrievalError(key, store_error=store_error, fetch_error=exc) from exc

    result = write_through(store, entry)
    if result.ok:
        logger.info("Retrieved entry '%s' and added it to database", key)
    else:
        logger.warning("Failed to store entry '%s' in database: %s", key, result.error)
    return entry


def retrieve_entry(
    key: DateKey,
    store_factory: Callable[[], LectionaryStore] = init_store,
    client: Optional[UsccbClient] = None,
) -> Entry:
    """Entry for ``key`` from the store, else from the web (stored on the way)."""
    try:
        store = store_factory()
    except StoreInitError as exc:
        raise RetrievalError(key, store_error=exc) from exc
    return retrieve_and_store(key, store, client or UsccbClient())


def ensure_stored(key: DateKey, store: LectionaryStore, client: UsccbClient) -> bool:
    """Fetch and store ``key`` unless already present. True if newly added."""
    try:
        present = store.exists(key)
    except StoreError as exc:
        logger.warning(
            "Could not check whether '%s' is stored (%s); will attempt web retrieval",
            key,
            exc,
        )
        present = False
    if present:
        logger.info("Entry '%s' is already present in the database", key)
        return False

    logger.debug("Retrieving entry '%s' from web", key)
    try:
        entry = client.fetch(key)
    except FetchError as exc:
        raise BackfillError(key, exc) from exc
    try:
        store.insert(entry)
    except StoreError as exc:
        raise BackfillError(key, exc) from exc
    logger.info("Stored new entry '%s'", key)
    return True


@dataclass
class BackfillReport:
    run_id: str
    added: List[DateKey] = field(default_factory=list)
    present: List[DateKey] = field(default_factory=list)
    failed: Dict[DateKey, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "added": len(self.added),
            "present": len(self.present),
            "failed": len(self.failed),
        }


def backfill(
    keys: Sequence[DateKey],
    store: LectionaryStore,
    client: UsccbClient,
    workers: int = DEFAULT_WORKERS,
) -> BackfillReport:
    """Run ``ensure_stored`` for every key on at most ``workers`` threads.

    Tasks finish in any order; the report only aggregates outcomes.
    """
    report = BackfillReport(run_id=new_run_id())
    timer = StepTimer()
    log_event("START", run_id=report.run_id, keys=len(keys), workers=workers)

    if keys:
        with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
            futures = {pool.submit(ensure_stored, key, store, client): key for key in keys}
            for future in as_completed(futures):
                key = futures[future]
                try:
                    added = future.result()
                except BackfillError as exc:
                    logger.error("Failed to store an entry: %s", exc)
                    report.failed[key] = str(exc)
                    continue
                except Exception as exc:  # any crash counts as a failed key
                    logger.exception("Backfill task for '%s' crashed", key)
                    report.failed[key] = f"{type(exc).__name__}: {exc}"
                    continue
                if added:
                    report.added.append(key)
                else:
                    report.present.append(key)

    log_event("END", duration_ms=timer.elapsed_ms(), **report.to_dict())
    return report


def ensure_range_stored(
    store: LectionaryStore,
    client: UsccbClient,
    past_days: int,
    future_days: int,
    workers: int = DEFAULT_WORKERS,
) -> int:
    """Backfill ``DateKey.range(past_days, future_days)``; returns the number added."""
    keys = DateKey.range(past_days, future_days)
    return len(backfill(keys, store, client, workers=workers).added)


def clean(store: LectionaryStore, config: DbConfig, include_future: bool = False) -> int:
    """Prune entries older than the configured window.

    With ``include_future`` entries dated after ``today + future_entries`` go
    too.
    """
    earliest = DateKey.offset_from_today(-config.past_entries)
    latest = (
        DateKey.offset_from_today(config.future_entries) if include_future else None
    )
    return store.remove_outside(earliest, latest)


@dataclass(frozen=True)
class RefreshResult:
    removed: int
    added: int

    @property
    def total(self) -> int:
        return self.removed + self.added


def refresh(store: LectionaryStore, client: UsccbClient, config: DbConfig) -> RefreshResult:
    """Prune, then backfill the configured window."""
    try:
        removed = clean(store, config)
    except StoreError as exc:
        logger.error("Encountered error removing entries during refresh: %s", exc)
        removed = 0
    added = ensure_range_stored(
        store,
        client,
        config.past_entries,
        config.future_entries,
        workers=config.workers,
    )
    return RefreshResult(removed=removed, added=added)
