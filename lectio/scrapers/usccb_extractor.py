"""Turn a USCCB daily readings page into an Entry.

The page is externally controlled and loosely structured, so the extractor
is strict only about what a usable Entry needs: the main container, the day
name and the four mandatory passages. Anything else that looks wrong is
logged and skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import soupsieve
from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from ..date_key import DateKey
from ..errors import MissingReadingError, NoContainerError, NoDayNameError
from ..types import Entry, Passage, PassageSlot, classify_label

logger = logging.getLogger("lectio-diei")

# Everything after this marker in a passage body is an alternate reading.
ALTERNATE_MARKER = "OR:\n"


def _compiled(pattern: str) -> soupsieve.SoupSieve:
    return soupsieve.compile(pattern)


@dataclass(frozen=True)
class PageSelectors:
    """CSS selectors for one page layout, compiled once at construction."""

    container: soupsieve.SoupSieve = field(
        default_factory=lambda: _compiled("div.page-container")
    )
    day_name: soupsieve.SoupSieve = field(
        default_factory=lambda: _compiled("div.b-lectionary div.innerblock > h2")
    )
    passage_block: soupsieve.SoupSieve = field(
        default_factory=lambda: _compiled("div.b-verse div.innerblock")
    )
    label: soupsieve.SoupSieve = field(
        default_factory=lambda: _compiled("div.content-header > h3.name")
    )
    citation: soupsieve.SoupSieve = field(
        default_factory=lambda: _compiled("div.content-header > div.address a")
    )
    body: soupsieve.SoupSieve = field(
        default_factory=lambda: _compiled("div.content-body")
    )
    holiday_link: soupsieve.SoupSieve = field(
        default_factory=lambda: _compiled(
            'div.b-lectionary div.innerblock a[href$="-Day.cfm"]'
        )
    )


USCCB_SELECTORS = PageSelectors()


def parse_document(markup: Union[str, bytes]) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def element_to_plain_text(element: Tag) -> str:
    """Flatten ``element`` to text, keeping the source's line breaks.

    ``<br>`` becomes a newline, ``<p>`` starts a new line, every other tag
    contributes only its children. Newlines at the edges of each text node
    are formatting whitespace from the source and are dropped.
    """
    return _flatten(element).strip()


def _flatten(element: Tag) -> str:
    parts = []
    for child in element.children:
        if isinstance(child, Tag):
            if child.name == "br":
                parts.append("\n")
            elif child.name == "p":
                parts.append("\n")
                parts.append(_flatten(child))
            else:
                parts.append(_flatten(child))
        elif isinstance(child, NavigableString) and not isinstance(
            child, PreformattedString
        ):
            parts.append(str(child).strip("\n"))
    return "".join(parts)


def truncate_alternate(text: str) -> str:
    head, marker, _ = text.partition(ALTERNATE_MARKER)
    if not marker:
        return text
    return head.rstrip()


class LectionaryExtractor:
    def __init__(self, selectors: PageSelectors = USCCB_SELECTORS) -> None:
        self.selectors = selectors

    def holiday_link(self, soup: BeautifulSoup) -> Optional[str]:
        """Link to the daytime Mass on holiday pages that list several Masses."""
        container = self.selectors.container.select_one(soup)
        if container is None:
            return None
        link = self.selectors.holiday_link.select_one(container)
        if link is None:
            return None
        href = str(link.get("href") or "").strip()
        return href or None

    def extract(self, soup: BeautifulSoup, key: DateKey) -> Entry:
        container = self.selectors.container.select_one(soup)
        if container is None:
            raise NoContainerError(key)

        day_element = self.selectors.day_name.select_one(container)
        if day_element is None:
            raise NoDayNameError(key)
        day_name = element_to_plain_text(day_element).split("\n", 1)[0].strip()
        if not day_name:
            raise NoDayNameError(key)

        found: Dict[PassageSlot, Passage] = {}
        for block in self.selectors.passage_block.select(container):
            self._read_block(block, key, found)

        for slot in PassageSlot:
            if slot.required and slot not in found:
                raise MissingReadingError(slot, key)

        return Entry(
            key=key,
            day_name=day_name,
            reading_1=found[PassageSlot.READING_1],
            reading_2=found.get(PassageSlot.READING_2),
            psalm=found[PassageSlot.PSALM],
            gospel=found[PassageSlot.GOSPEL],
            alleluia=found[PassageSlot.ALLELUIA],
        )

    def _read_block(
        self, block: Tag, key: DateKey, found: Dict[PassageSlot, Passage]
    ) -> None:
        label = self.selectors.label.select_one(block)
        if label is None:
            logger.warning("Passage block without a label on %s; skipping", key)
            return
        label_text = label.get_text(" ", strip=True)
        slot = classify_label(label_text)
        if slot is None:
            logger.warning("Unrecognised passage label %r on %s; skipping", label_text, key)
            return
        if slot in found:
            logger.warning("Second '%s' block on %s; keeping the first", slot.heading, key)
            return

        citation = self.selectors.citation.select_one(block)
        if citation is None:
            logger.warning("No citation for '%s' on %s", slot.heading, key)
            location = ""
        else:
            location = citation.get_text(" ", strip=True)

        body = self.selectors.body.select_one(block)
        if body is None:
            logger.warning("No body for '%s' on %s; skipping block", slot.heading, key)
            return

        found[slot] = Passage(
            location=location,
            text=truncate_alternate(element_to_plain_text(body)),
        )
