import pytest

from lectio.config import DbConfig, DisplayConfig, env_seconds, parse_reading_order
from lectio.types import PassageSlot


def test_db_config_defaults():
    config = DbConfig.from_env()
    assert (config.past_entries, config.future_entries, config.workers) == (0, 30, 8)


def test_db_config_reads_env(monkeypatch):
    monkeypatch.setenv("LECTIO_PAST_ENTRIES", "3")
    monkeypatch.setenv("LECTIO_FUTURE_ENTRIES", "10")
    monkeypatch.setenv("LECTIO_BACKFILL_WORKERS", "2")

    assert DbConfig.from_env() == DbConfig(past_entries=3, future_entries=10, workers=2)


def test_db_config_rejects_bad_values(monkeypatch, caplog):
    monkeypatch.setenv("LECTIO_PAST_ENTRIES", "-4")
    monkeypatch.setenv("LECTIO_FUTURE_ENTRIES", "lots")
    monkeypatch.setenv("LECTIO_BACKFILL_WORKERS", "0")

    config = DbConfig.from_env()

    assert config == DbConfig(past_entries=0, future_entries=30, workers=1)
    assert "LECTIO_FUTURE_ENTRIES" in caplog.text


def test_parse_reading_order():
    assert parse_reading_order("gospel, reading1,,psalm") == [
        PassageSlot.GOSPEL,
        PassageSlot.READING_1,
        PassageSlot.PSALM,
    ]
    with pytest.raises(ValueError):
        parse_reading_order("reading1,homily")


def test_display_config_from_env(monkeypatch):
    monkeypatch.setenv("LECTIO_READING_ORDER", "alleluia")
    monkeypatch.setenv("LECTIO_MAX_WIDTH", "0")
    monkeypatch.setenv("LECTIO_ORIGINAL_LINEBREAKS", "true")

    config = DisplayConfig.from_env()

    assert config.reading_order == [PassageSlot.ALLELUIA]
    assert config.max_width == 0
    assert config.original_linebreaks is True


def test_display_config_ignores_bad_order(monkeypatch):
    monkeypatch.setenv("LECTIO_READING_ORDER", "sermon")
    assert DisplayConfig.from_env().reading_order == [
        PassageSlot.READING_1,
        PassageSlot.READING_2,
        PassageSlot.GOSPEL,
    ]


@pytest.mark.parametrize("raw", ["abc", "0", "-3", "nan"])
def test_env_seconds_rejects_bad_values(monkeypatch, caplog, raw):
    monkeypatch.setenv("LECTIO_HTTP_TIMEOUT", raw)

    assert env_seconds("LECTIO_HTTP_TIMEOUT", 20.0) == 20.0
    assert "LECTIO_HTTP_TIMEOUT" in caplog.text


def test_env_seconds_reads_value(monkeypatch):
    assert env_seconds("LECTIO_HTTP_TIMEOUT", 20.0) == 20.0
    monkeypatch.setenv("LECTIO_HTTP_TIMEOUT", "2.5")
    assert env_seconds("LECTIO_HTTP_TIMEOUT", 20.0) == 2.5
