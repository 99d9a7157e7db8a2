import logging
import os
import sys
from pathlib import Path

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from lectio.date_key import DateKey  # noqa: E402
from lectio.store import init_store  # noqa: E402
from lectio.types import Entry, Passage  # noqa: E402

FIXTURES = Path(__file__).resolve().parent / "fixtures"

_ENV_VARS = (
    "LECTIO_DATABASE_URL",
    "LECTIO_DB_URL",
    "LECTIO_PAST_ENTRIES",
    "LECTIO_FUTURE_ENTRIES",
    "LECTIO_BACKFILL_WORKERS",
    "LECTIO_HTTP_TIMEOUT",
    "LECTIO_DB_BUSY_TIMEOUT",
    "LECTIO_READING_ORDER",
    "LECTIO_MAX_WIDTH",
    "LECTIO_ORIGINAL_LINEBREAKS",
    "APP_TZ",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LECTIO_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.setenv("LECTIO_LOG_FILE", str(tmp_path / "debug.log"))
    yield
    logger = logging.getLogger("lectio-diei")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture()
def db_url(tmp_path):
    return f"sqlite+pysqlite:///{tmp_path / 'lectio.db'}"


@pytest.fixture()
def store(db_url):
    return init_store(db_url)


@pytest.fixture()
def load_fixture():
    def _load(name: str) -> str:
        return (FIXTURES / name).read_text(encoding="utf-8")

    return _load


@pytest.fixture()
def make_entry():
    def _make(raw_key: str, second_reading: bool = True, day_name: str | None = None) -> Entry:
        key = DateKey(raw_key)
        return Entry(
            key=key,
            day_name=day_name or f"Day {raw_key}",
            reading_1=Passage(location="Is 1:1", text=f"First reading for {raw_key}"),
            reading_2=(
                Passage(location="Rom 1:1", text=f"Second reading for {raw_key}")
                if second_reading
                else None
            ),
            psalm=Passage(location="Ps 1:1", text="R. Blessed the man.\nWho walks not."),
            gospel=Passage(location="Mt 1:1", text=f"Gospel for {raw_key}"),
            alleluia=Passage(location="Jn 1:1", text="R. Alleluia, alleluia."),
        )

    return _make
