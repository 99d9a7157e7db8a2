import pytest
import requests

from lectio.date_key import DateKey
from lectio.errors import (
    FetchClientError,
    FetchParseError,
    FetchResponseError,
    FetchStatusError,
    NoContainerError,
)
from lectio.scrapers.usccb_client import HEADERS, UsccbClient


class FakeResponse:
    def __init__(self, status_code, body="", read_error=None):
        self.status_code = status_code
        self._body = body
        self._read_error = read_error
        self.closed = False

    @property
    def content(self):
        if self._read_error is not None:
            raise self._read_error
        return self._body.encode("utf-8")

    @property
    def text(self):
        # requests falls back to ISO-8859-1 for text/html without a charset
        return self.content.decode("iso-8859-1")

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []
        self.responses = []

    def get(self, url, timeout=None, stream=False):
        self.calls.append((url, timeout))
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        if page is None:
            response = FakeResponse(404, "<html>Not Found</html>")
        else:
            response = page if isinstance(page, FakeResponse) else FakeResponse(200, page)
        self.responses.append(response)
        return response


def _url(key):
    return f"https://bible.usccb.org/bible/readings/{key}.cfm"


def test_url_for_key():
    client = UsccbClient(session=FakeSession({}), timeout=1)
    assert client.url_for_key(DateKey("070224")) == _url("070224")


def test_url_for_link_resolves_relative_and_keeps_absolute():
    client = UsccbClient(session=FakeSession({}), timeout=1)
    assert (
        client.url_for_link("/bible/readings/122524-Day.cfm")
        == "https://bible.usccb.org/bible/readings/122524-Day.cfm"
    )
    assert (
        client.url_for_link("https://example.org/bible/readings/122524-Day.cfm")
        == "https://example.org/bible/readings/122524-Day.cfm"
    )


def test_default_session_sends_browser_headers():
    client = UsccbClient(timeout=1)
    assert client.session.headers["User-Agent"] == HEADERS["User-Agent"]


def test_timeout_comes_from_env(monkeypatch):
    monkeypatch.setenv("LECTIO_HTTP_TIMEOUT", "7.5")
    client = UsccbClient(session=FakeSession({}))
    assert client.timeout == 7.5


def test_fetch_regular_day(load_fixture):
    session = FakeSession({_url("102724"): load_fixture("sunday.html")})
    client = UsccbClient(session=session, timeout=3)

    entry = client.fetch(DateKey("102724"))

    assert entry.day_name == "Thirtieth Sunday in Ordinary Time"
    assert session.calls == [(_url("102724"), 3)]
    assert all(response.closed for response in session.responses)


def test_fetch_follows_holiday_link_once(load_fixture):
    session = FakeSession(
        {
            _url("122524"): load_fixture("holiday.html"),
            _url("122524-Day"): load_fixture("christmas_day.html"),
        }
    )
    client = UsccbClient(session=session, timeout=3)

    entry = client.fetch(DateKey("122524"))

    assert entry.key == DateKey("122524")
    assert entry.day_name == "The Nativity of the Lord (Christmas) - Mass during the Day"
    assert entry.gospel.location == "Jn 1:1-18"
    assert [url for url, _ in session.calls] == [_url("122524"), _url("122524-Day")]


def test_fetch_error_status():
    client = UsccbClient(session=FakeSession({}), timeout=1)

    with pytest.raises(FetchStatusError) as excinfo:
        client.fetch(DateKey("070224"))

    assert excinfo.value.status == 404
    assert excinfo.value.url == _url("070224")


def test_fetch_client_error():
    session = FakeSession({_url("070224"): requests.ConnectionError("refused")})
    client = UsccbClient(session=session, timeout=1)

    with pytest.raises(FetchClientError):
        client.fetch(DateKey("070224"))


def test_fetch_unreadable_body():
    response = FakeResponse(200, read_error=requests.exceptions.ChunkedEncodingError("cut"))
    client = UsccbClient(session=FakeSession({_url("070224"): response}), timeout=1)

    with pytest.raises(FetchResponseError):
        client.fetch(DateKey("070224"))
    assert response.closed


def test_fetch_wraps_extraction_failures():
    session = FakeSession({_url("070224"): "<html><body>maintenance</body></html>"})
    client = UsccbClient(session=session, timeout=1)

    with pytest.raises(FetchParseError) as excinfo:
        client.fetch(DateKey("070224"))

    assert isinstance(excinfo.value.__cause__, NoContainerError)


def test_fetch_follows_at_most_one_holiday_link(load_fixture):
    holiday = load_fixture("holiday.html")
    session = FakeSession({_url("122524"): holiday, _url("122524-Day"): holiday})
    client = UsccbClient(session=session, timeout=1)

    with pytest.raises(FetchParseError):
        client.fetch(DateKey("122524"))

    assert [url for url, _ in session.calls] == [_url("122524"), _url("122524-Day")]


def test_fetch_decodes_with_page_charset(load_fixture):
    page = load_fixture("sunday.html").replace(
        "Thirtieth Sunday in Ordinary Time<br>",
        "Thirtieth Sunday – “Ordinary Time”<br>",
    )
    client = UsccbClient(session=FakeSession({_url("102724"): page}), timeout=1)

    entry = client.fetch(DateKey("102724"))

    assert entry.day_name == "Thirtieth Sunday – “Ordinary Time”"


def test_malformed_timeout_env_falls_back(monkeypatch, caplog):
    monkeypatch.setenv("LECTIO_HTTP_TIMEOUT", "abc")

    client = UsccbClient(session=FakeSession({}))

    assert client.timeout == 20.0
    assert "LECTIO_HTTP_TIMEOUT" in caplog.text
