from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

from .types import PassageSlot

logger = logging.getLogger("lectio-diei")

# Names accepted for --readings and LECTIO_READING_ORDER.
READING_ARGS = {
    "reading1": PassageSlot.READING_1,
    "reading2": PassageSlot.READING_2,
    "psalm": PassageSlot.PSALM,
    "gospel": PassageSlot.GOSPEL,
    "alleluia": PassageSlot.ALLELUIA,
}

DEFAULT_READING_ORDER = "reading1,reading2,gospel"


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_count(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("%s=%s is negative; using %s", name, value, default)
        return default
    return value


def env_seconds(name: str, default: float) -> float:
    """Positive number of seconds from ``name``; warns and uses ``default`` otherwise."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("%s=%r is not a number; using %s", name, raw, default)
        return default
    if not value > 0:
        logger.warning("%s=%s must be positive; using %s", name, raw, default)
        return default
    return value


def parse_reading_order(raw: str) -> List[PassageSlot]:
    """``"reading1,gospel"`` -> slots. Raises ValueError on unknown names."""
    order: List[PassageSlot] = []
    for name in (part.strip().lower() for part in raw.split(",")):
        if not name:
            continue
        if name not in READING_ARGS:
            raise ValueError(
                f"unknown reading {name!r} (choose from {', '.join(READING_ARGS)})"
            )
        order.append(READING_ARGS[name])
    return order


@dataclass
class DbConfig:
    past_entries: int = 0
    future_entries: int = 30
    workers: int = 8

    @classmethod
    def from_env(cls) -> "DbConfig":
        workers = _env_count("LECTIO_BACKFILL_WORKERS", 8)
        if workers == 0:
            logger.warning("LECTIO_BACKFILL_WORKERS must be at least 1; using 1")
            workers = 1
        return cls(
            past_entries=_env_count("LECTIO_PAST_ENTRIES", 0),
            future_entries=_env_count("LECTIO_FUTURE_ENTRIES", 30),
            workers=workers,
        )


@dataclass
class DisplayConfig:
    reading_order: List[PassageSlot] = field(
        default_factory=lambda: parse_reading_order(DEFAULT_READING_ORDER)
    )
    original_linebreaks: bool = False
    max_width: int = 140

    @classmethod
    def from_env(cls) -> "DisplayConfig":
        raw_order = os.getenv("LECTIO_READING_ORDER", DEFAULT_READING_ORDER)
        try:
            order = parse_reading_order(raw_order)
        except ValueError as exc:
            logger.warning("LECTIO_READING_ORDER ignored: %s", exc)
            order = parse_reading_order(DEFAULT_READING_ORDER)
        return cls(
            reading_order=order,
            original_linebreaks=_env_flag("LECTIO_ORIGINAL_LINEBREAKS"),
            max_width=_env_count("LECTIO_MAX_WIDTH", 140),
        )
