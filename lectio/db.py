import logging
import os
from pathlib import Path

from sqlalchemy import create_engine, event, text as sql_text
from sqlalchemy.engine import Engine, make_url

from .config import env_seconds
from .paths import create_and_get_db_path

logger = logging.getLogger("lectio-diei")

_DB_URL_ALIASES = (
    "LECTIO_DATABASE_URL",
    "LECTIO_DB_URL",
)


def resolve_database_url() -> str:
    for key in _DB_URL_ALIASES:
        value = os.getenv(key)
        if value:
            return value
    return f"sqlite+pysqlite:///{create_and_get_db_path()}"


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite enforces foreign keys per connection and defaults to off.
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


def get_engine(db_url: str | None = None) -> Engine:
    url = make_url(db_url or resolve_database_url())
    if url.drivername == "sqlite":
        url = url.set(drivername="sqlite+pysqlite")

    kwargs: dict = {"pool_pre_ping": True, "future": True}
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:" and not Path(url.database).exists():
            logger.info("Creating new database at %s", url.database)
        # backfill threads share the pool
        kwargs["connect_args"] = {
            "timeout": env_seconds("LECTIO_DB_BUSY_TIMEOUT", 30.0),
            "check_same_thread": False,
        }

    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def check_db_connectivity(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.execute(sql_text("SELECT 1"))


def foreign_keys_enabled(engine: Engine) -> bool:
    if engine.dialect.name != "sqlite":
        return True
    with engine.begin() as conn:
        return bool(conn.execute(sql_text("PRAGMA foreign_keys")).scalar())
