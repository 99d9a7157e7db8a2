"""SQLite-backed cache of daily entries.

One ``entry`` row per day and one ``passage`` row per reading, deleted
together through the foreign key cascade. The SQLAlchemy engine owns the
connection pool, so one store is safe to share across backfill threads;
every operation checks a connection out for a single transaction.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .date_key import DateKey
from .db import check_db_connectivity, foreign_keys_enabled, get_engine
from .errors import (
    DatabaseOpenError,
    EntryNotFoundError,
    ForeignKeysError,
    InvalidDateError,
    MigrationError,
    StoreError,
    StoreQueryError,
    StoreWriteError,
)
from .migrations import apply_migrations
from .types import Entry, Passage, PassageSlot

logger = logging.getLogger("lectio-diei")


class LectionaryStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def insert(self, entry: Entry) -> None:
        """Upsert ``entry`` and replace its passages in one transaction."""
        key = str(entry.key)
        rows = [
            {
                "eid": key,
                "ptype": slot.db_value,
                "loc": passage.location,
                "content": passage.text,
            }
            for slot, passage in entry.passages()
        ]
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    sql_text(
                        """
                        INSERT INTO entry (id, name) VALUES (:id, :name)
                        ON CONFLICT (id) DO UPDATE SET name = excluded.name
                        """
                    ),
                    {"id": key, "name": entry.day_name},
                )
                conn.execute(
                    sql_text("DELETE FROM passage WHERE entry_id = :id"), {"id": key}
                )
                conn.execute(
                    sql_text(
                        """
                        INSERT INTO passage (entry_id, passage_type, location, content)
                        VALUES (:eid, :ptype, :loc, :content)
                        """
                    ),
                    rows,
                )
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to store entry {key}: {exc}") from exc

    def get(self, key: DateKey) -> Entry:
        try:
            with self.engine.begin() as conn:
                row = (
                    conn.execute(
                        sql_text("SELECT id, name FROM entry WHERE id = :id LIMIT 1"),
                        {"id": str(key)},
                    )
                    .mappings()
                    .first()
                )
                if row is None:
                    raise EntryNotFoundError(key)
                passage_rows = (
                    conn.execute(
                        sql_text(
                            """
                            SELECT passage_type, location, content
                            FROM passage
                            WHERE entry_id = :id
                            """
                        ),
                        {"id": str(key)},
                    )
                    .mappings()
                    .all()
                )
        except SQLAlchemyError as exc:
            raise StoreQueryError(f"Select query for {key} failed: {exc}") from exc

        passages: Dict[PassageSlot, Passage] = {}
        for prow in passage_rows:
            try:
                slot = PassageSlot.from_db_value(prow["passage_type"])
            except ValueError as exc:
                raise StoreQueryError(f"Entry {key}: {exc}") from exc
            passages[slot] = Passage(location=prow["location"], text=prow["content"])

        for slot in PassageSlot:
            if slot.required and slot not in passages:
                raise StoreQueryError(
                    f"Entry {key} is stored without its '{slot.heading}' passage"
                )

        return Entry(
            key=key,
            day_name=row["name"],
            reading_1=passages[PassageSlot.READING_1],
            reading_2=passages.get(PassageSlot.READING_2),
            psalm=passages[PassageSlot.PSALM],
            gospel=passages[PassageSlot.GOSPEL],
            alleluia=passages[PassageSlot.ALLELUIA],
        )

    def exists(self, key: DateKey) -> bool:
        try:
            with self.engine.begin() as conn:
                found = conn.execute(
                    sql_text("SELECT 1 FROM entry WHERE id = :id LIMIT 1"),
                    {"id": str(key)},
                ).first()
        except SQLAlchemyError as exc:
            raise StoreQueryError(f"Presence check for {key} failed: {exc}") from exc
        return found is not None

    def remove(self, key: DateKey) -> bool:
        """Delete one entry and its passages. False if it was not stored."""
        try:
            with self.engine.begin() as conn:
                removed = conn.execute(
                    sql_text("DELETE FROM entry WHERE id = :id"), {"id": str(key)}
                ).rowcount
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to remove entry {key}: {exc}") from exc

        if removed == 0:
            return False
        if removed > 1:
            logger.warning("Removing %s should have deleted 1 row but deleted %s", key, removed)
        return True

    def remove_all(self) -> int:
        try:
            with self.engine.begin() as conn:
                removed = conn.execute(sql_text("DELETE FROM entry")).rowcount
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to remove all entries: {exc}") from exc
        return removed

    def remove_outside(self, earliest: DateKey, latest: Optional[DateKey] = None) -> int:
        """Remove entries before ``earliest`` and, if given, after ``latest``.

        Best effort: a failed removal is logged and the sweep carries on.
        """
        doomed = [
            key
            for key, _ in self.list_entries()
            if key < earliest or (latest is not None and key > latest)
        ]
        removed = 0
        for key in doomed:
            try:
                if self.remove(key):
                    removed += 1
            except StoreError as exc:
                logger.error("Failed to remove entry %s: %s", key, exc)
        logger.info("Removed %s of %s entries outside [%s, %s]", removed, len(doomed), earliest, latest)
        return removed

    def count(self) -> int:
        try:
            with self.engine.begin() as conn:
                return int(conn.execute(sql_text("SELECT COUNT(*) FROM entry")).scalar_one())
        except SQLAlchemyError as exc:
            raise StoreQueryError(f"Count query failed: {exc}") from exc

    def list_entries(self) -> List[Tuple[DateKey, str]]:
        """``(key, name)`` for every stored entry, in no particular order."""
        try:
            with self.engine.begin() as conn:
                rows = conn.execute(sql_text("SELECT id, name FROM entry")).all()
        except SQLAlchemyError as exc:
            raise StoreQueryError(f"Listing entries failed: {exc}") from exc

        out: List[Tuple[DateKey, str]] = []
        for entry_id, name in rows:
            try:
                out.append((DateKey(entry_id), name))
            except InvalidDateError:
                logger.warning("Ignoring stored entry with malformed id %r", entry_id)
        return out


def init_store(db_url: Optional[str] = None) -> LectionaryStore:
    """Open the database, enforce foreign keys and bring the schema up to date.

    Raises a ``StoreInitError`` subclass naming the step that failed.
    Storage path failures surface as ``StoragePathError`` from path
    resolution.
    """
    try:
        engine = get_engine(db_url)
        check_db_connectivity(engine)
    except SQLAlchemyError as exc:
        raise DatabaseOpenError(f"Cannot create or open database: {exc}") from exc

    try:
        enabled = foreign_keys_enabled(engine)
    except SQLAlchemyError as exc:
        raise ForeignKeysError(f"Failed to enable foreign keys: {exc}") from exc
    if not enabled:
        raise ForeignKeysError("Foreign key enforcement is still off after PRAGMA")

    try:
        applied = apply_migrations(engine)
    except (SQLAlchemyError, OSError) as exc:
        raise MigrationError(f"Failed to run migration scripts: {exc}") from exc
    if applied:
        logger.info("Applied migrations: %s", applied)

    return LectionaryStore(engine)
