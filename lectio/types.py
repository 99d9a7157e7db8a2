from __future__ import annotations

import html
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from .date_key import DateKey


class PassageSlot(Enum):
    """The five labelled passages of a day, with their stored type names."""

    READING_1 = ("first_reading", "Reading I")
    READING_2 = ("second_reading", "Reading II")
    PSALM = ("psalm", "Responsorial Psalm")
    GOSPEL = ("gospel", "Gospel")
    ALLELUIA = ("alleluia", "Alleluia")

    def __init__(self, db_value: str, heading: str) -> None:
        self.db_value = db_value
        self.heading = heading

    @property
    def required(self) -> bool:
        return self is not PassageSlot.READING_2

    @classmethod
    def from_db_value(cls, value: str) -> "PassageSlot":
        for slot in cls:
            if slot.db_value == value:
                return slot
        raise ValueError(f"unknown passage type: {value!r}")


# Normalised label text -> slot. Keys are case-folded.
LABEL_SYNONYMS: Dict[str, PassageSlot] = {
    "reading i": PassageSlot.READING_1,
    "reading 1": PassageSlot.READING_1,
    "first reading": PassageSlot.READING_1,
    "reading ii": PassageSlot.READING_2,
    "reading 2": PassageSlot.READING_2,
    "second reading": PassageSlot.READING_2,
    "responsorial psalm": PassageSlot.PSALM,
    "gospel": PassageSlot.GOSPEL,
    "alleluia": PassageSlot.ALLELUIA,
    "alleluia see": PassageSlot.ALLELUIA,
    "verse before the gospel": PassageSlot.ALLELUIA,
    "acclamation before the gospel": PassageSlot.ALLELUIA,
}

_WS_RE = re.compile(r"\s+")


def normalize_label(text: str) -> str:
    text = html.unescape(text or "").replace("\u00a0", " ")
    return _WS_RE.sub(" ", text).strip()


def classify_label(text: str) -> Optional[PassageSlot]:
    """Map a passage heading such as ``Reading 1`` to its slot, or None."""
    return LABEL_SYNONYMS.get(normalize_label(text).casefold())


@dataclass(frozen=True)
class Passage:
    location: str
    text: str


@dataclass(frozen=True)
class Entry:
    """All readings for one day."""

    key: DateKey
    day_name: str
    reading_1: Passage
    reading_2: Optional[Passage]
    psalm: Passage
    gospel: Passage
    alleluia: Passage

    def passage(self, slot: PassageSlot) -> Optional[Passage]:
        return {
            PassageSlot.READING_1: self.reading_1,
            PassageSlot.READING_2: self.reading_2,
            PassageSlot.PSALM: self.psalm,
            PassageSlot.GOSPEL: self.gospel,
            PassageSlot.ALLELUIA: self.alleluia,
        }[slot]

    def passages(self) -> Iterator[Tuple[PassageSlot, Passage]]:
        """Present passages in slot order; a missing second reading is skipped."""
        for slot in PassageSlot:
            passage = self.passage(slot)
            if passage is not None:
                yield slot, passage
