from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from ..config import env_seconds
from ..date_key import DateKey
from ..errors import (
    ExtractionError,
    FetchClientError,
    FetchParseError,
    FetchResponseError,
    FetchStatusError,
)
from ..scraper_observability import StepTimer, log_event
from ..types import Entry
from .usccb_extractor import LectionaryExtractor, parse_document

logger = logging.getLogger("lectio-diei")

USCCB_ORIGIN = "https://bible.usccb.org"

HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def default_timeout() -> float:
    return env_seconds("LECTIO_HTTP_TIMEOUT", 20.0)


class UsccbClient:
    """Fetches and extracts one day of readings from bible.usccb.org."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = USCCB_ORIGIN,
        timeout: Optional[float] = None,
        extractor: Optional[LectionaryExtractor] = None,
    ) -> None:
        if session is None:
            session = requests.Session()
            session.headers.update(HEADERS)
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = default_timeout() if timeout is None else timeout
        self.extractor = extractor or LectionaryExtractor()

    def url_for_key(self, key: DateKey) -> str:
        return f"{self.base_url}/bible/readings/{key}.cfm"

    def url_for_link(self, link: str) -> str:
        # Holiday pages link either absolutely or relative to the site root.
        if urlparse(link).scheme:
            return link
        return urljoin(self.base_url + "/", link)

    def fetch(self, key: DateKey) -> Entry:
        document = self._get_document(self.url_for_key(key))

        endpoint = self.extractor.holiday_link(document)
        if endpoint is not None:
            logger.info("%s seems to be a holiday; using the link for the daytime Mass", key)
            document = self._get_document(self.url_for_link(endpoint))

        try:
            return self.extractor.extract(document, key)
        except ExtractionError as exc:
            raise FetchParseError(f"Error creating entry from html: {exc}") from exc

    def _get_document(self, url: str) -> BeautifulSoup:
        logger.debug("Sending GET request to %s", url)
        timer = StepTimer()
        try:
            response = self.session.get(url, timeout=self.timeout, stream=True)
        except requests.RequestException as exc:
            log_event("FETCH", url=url, status=None, bytes=0, latency_ms=timer.elapsed_ms())
            raise FetchClientError(f"Web client error on GET {url}: {exc}") from exc

        try:
            if not 200 <= response.status_code < 300:
                log_event(
                    "FETCH",
                    url=url,
                    status=response.status_code,
                    bytes=0,
                    latency_ms=timer.elapsed_ms(),
                )
                raise FetchStatusError(response.status_code, url)
            # bytes; bs4 decodes using the page's <meta charset>
            try:
                body = response.content
            except requests.RequestException as exc:
                raise FetchResponseError(f"Error reading response from {url}: {exc}") from exc
        finally:
            response.close()

        log_event(
            "FETCH",
            url=url,
            status=response.status_code,
            bytes=len(body),
            latency_ms=timer.elapsed_ms(),
        )
        return parse_document(body)
