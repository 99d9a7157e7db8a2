"""Plain-text rendering of an Entry for the terminal."""

from __future__ import annotations

import textwrap
from typing import List, Optional, Sequence

from .types import Entry, Passage, PassageSlot

# The psalm and the acclamation are verse; their breaks are never reflowed.
_VERSE_SLOTS = (PassageSlot.PSALM, PassageSlot.ALLELUIA)


def format_text(text: str, original_linebreaks: bool, max_width: int) -> str:
    if original_linebreaks:
        return text
    flat = " ".join(line.strip() for line in text.splitlines() if line.strip())
    if max_width <= 0:
        return flat
    return textwrap.fill(flat, width=max_width)


def render_entry(
    entry: Entry,
    order: Optional[Sequence[PassageSlot]],
    original_linebreaks: bool = False,
    max_width: int = 140,
) -> str:
    """Banner with the day name, then each passage in ``order``.

    ``order=None`` means every passage. A missing second reading is skipped.
    """
    dashes = "-" * (len(entry.day_name) + 4)
    lines: List[str] = [dashes, f"  {entry.day_name}  ", dashes]
    slots = list(PassageSlot) if order is None else list(order)
    for slot in slots:
        passage = entry.passage(slot)
        if passage is None:
            continue
        lines.extend(_render_passage(slot, passage, dashes, original_linebreaks, max_width))
    return "\n".join(lines)


def _render_passage(
    slot: PassageSlot,
    passage: Passage,
    dashes: str,
    original_linebreaks: bool,
    max_width: int,
) -> List[str]:
    heading = f"{slot.heading} {passage.location}".strip()
    if slot in _VERSE_SLOTS:
        body = passage.text
    else:
        body = format_text(passage.text, original_linebreaks, max_width)
    return ["", heading, dashes, body, dashes]
