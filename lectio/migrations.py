"""Versioned schema migrations.

Migrations are the ``NNNN_name.sql`` files under ``lectio/sql``. Each file is
applied once, in version order, and recorded in ``schema_migrations`` so
re-running is a no-op. pysqlite only opens a transaction at the first DML
statement, so DDL ahead of it commits at once and a migration that fails part
way may leave its tables behind. Every ``CREATE`` uses ``IF NOT EXISTS`` so
the file can be rerun.

Statements are split on ``;`` outside of quoted strings and ``--`` comments.
SQLite migrations here never need more than that.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Set

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger("lectio-diei")

SQL_DIR = Path(__file__).parent / "sql"

_MIGRATION_FILE_RE = re.compile(r"^(\d{4})_([A-Za-z0-9_]+)\.sql$")


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    path: Path

    def statements(self) -> List[str]:
        return split_sql_statements(self.path.read_text(encoding="utf-8"))


def split_sql_statements(sql: str) -> List[str]:
    stmts: List[str] = []
    buf: List[str] = []
    quote: Optional[str] = None
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]
        if quote is not None:
            buf.append(ch)
            if ch == quote:
                # doubled quote is an escaped quote character
                if i + 1 < n and sql[i + 1] == quote:
                    buf.append(quote)
                    i += 1
                else:
                    quote = None
        elif ch == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end
            continue
        elif ch in ("'", '"'):
            quote = ch
            buf.append(ch)
        elif ch == ";":
            stmt = "".join(buf).strip()
            if stmt:
                stmts.append(stmt)
            buf.clear()
        else:
            buf.append(ch)
        i += 1

    stmt = "".join(buf).strip()
    if stmt:
        stmts.append(stmt)
    return stmts


def discover_migrations(sql_dir: Path = SQL_DIR) -> List[Migration]:
    found: List[Migration] = []
    for path in sql_dir.glob("*.sql"):
        m = _MIGRATION_FILE_RE.match(path.name)
        if not m:
            logger.warning("Ignoring non-migration file %s", path.name)
            continue
        found.append(Migration(version=int(m.group(1)), name=m.group(2), path=path))
    found.sort(key=lambda mig: mig.version)
    return found


def _ensure_migrations_table(conn: Connection) -> None:
    conn.execute(
        sql_text(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
              version INTEGER PRIMARY KEY,
              name TEXT NOT NULL,
              applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
    )


def applied_versions(engine: Engine) -> Set[int]:
    with engine.begin() as conn:
        _ensure_migrations_table(conn)
        return set(
            conn.execute(sql_text("SELECT version FROM schema_migrations")).scalars()
        )


def apply_migrations(
    engine: Engine, migrations: Optional[Sequence[Migration]] = None
) -> List[int]:
    """Apply pending migrations; returns the versions applied by this call."""
    if migrations is None:
        migrations = discover_migrations()
    done = applied_versions(engine)

    applied: List[int] = []
    for migration in migrations:
        if migration.version in done:
            continue
        logger.info("Applying migration %04d_%s", migration.version, migration.name)
        with engine.begin() as conn:
            for stmt in migration.statements():
                conn.exec_driver_sql(stmt)
            conn.execute(
                sql_text(
                    "INSERT INTO schema_migrations (version, name) VALUES (:v, :n)"
                ),
                {"v": migration.version, "n": migration.name},
            )
        applied.append(migration.version)
    return applied
