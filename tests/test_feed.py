from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
import requests

from newsglobe import feed as feed_module
from newsglobe.config import FeedConfig
from newsglobe.feed import FeedError, NewsFeedClient


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        *,
        headers: dict[str, str] | None = None,
        invalid_json: bool = False,
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json
        self.headers = headers or {}
        self.url = "http://backend.test/news"
        self.closed = False

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("not json")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, responses: list[Any]) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[dict[str, Any]] = []
        self._responses = list(responses)
        self.closed = False

    def get(self, url: str, *, params: Any = None, timeout: float | None = None) -> FakeResponse:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    delays: list[float] = []
    monkeypatch.setattr(feed_module.time, "sleep", delays.append)
    return delays


def _cfg(**overrides: Any) -> FeedConfig:
    values: dict[str, Any] = {"base_url": "http://backend.test", "max_retries": 2, "retry_backoff_s": 0.5}
    values.update(overrides)
    return FeedConfig(**values)


def test_fetch_articles_returns_items() -> None:
    rows = [{"id": "a", "country": "Japan"}, "junk", {"id": "b", "country": "India"}]
    session = FakeSession([FakeResponse(payload={"items": rows, "total": 2})])
    client = NewsFeedClient(_cfg(), session=session)  # type: ignore[arg-type]

    articles = client.fetch_articles(query="flood", language="en")

    assert articles == [{"id": "a", "country": "Japan"}, {"id": "b", "country": "India"}]
    assert session.headers["User-Agent"] == "NewsGlobe/Proxy"
    call = session.calls[0]
    assert call["url"] == "http://backend.test/news"
    assert call["params"] == {"q": "flood", "language": "en", "page_size": "200", "speed": "balanced"}
    assert call["timeout"] == 20.0


def test_build_params_includes_cache_key_and_page_size() -> None:
    client = NewsFeedClient(_cfg(), session=FakeSession([]))  # type: ignore[arg-type]
    params = client.build_params(cache_key="k1", category="world", page_size=50)
    assert params == {"cache_key": "k1", "category": "world", "page_size": "50", "speed": "balanced"}


def test_missing_items_gives_empty_list() -> None:
    session = FakeSession([FakeResponse(payload={"events": []})])
    client = NewsFeedClient(_cfg(), session=session)  # type: ignore[arg-type]
    assert client.fetch_articles() == []


def test_retries_retryable_status_then_succeeds(no_sleep: list[float]) -> None:
    busy = FakeResponse(503, headers={"Retry-After": "2"})
    session = FakeSession([busy, FakeResponse(payload={"items": [{"id": "a"}]})])
    client = NewsFeedClient(_cfg(), session=session)  # type: ignore[arg-type]

    assert client.fetch_articles() == [{"id": "a"}]
    assert no_sleep == [2.0]
    assert busy.closed
    assert len(session.calls) == 2


def test_retries_exhausted_raise_feed_error(no_sleep: list[float]) -> None:
    session = FakeSession([FakeResponse(429), FakeResponse(429), FakeResponse(429)])
    client = NewsFeedClient(_cfg(), session=session)  # type: ignore[arg-type]
    with pytest.raises(FeedError, match="429"):
        client.fetch_articles()
    assert no_sleep == [0.5, 1.0]


def test_non_retryable_status_fails_fast(no_sleep: list[float]) -> None:
    session = FakeSession([FakeResponse(404)])
    client = NewsFeedClient(_cfg(), session=session)  # type: ignore[arg-type]
    with pytest.raises(FeedError, match="404"):
        client.fetch_articles()
    assert no_sleep == []


def test_connection_error_is_wrapped() -> None:
    session = FakeSession([requests.ConnectionError("refused")])
    client = NewsFeedClient(_cfg(), session=session)  # type: ignore[arg-type]
    with pytest.raises(FeedError, match="refused"):
        client.fetch_articles()


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(payload=None, invalid_json=True),
        FakeResponse(payload=["not", "an", "object"]),
        FakeResponse(payload={"items": "nope"}),
    ],
)
def test_malformed_payloads_raise(response: FakeResponse) -> None:
    client = NewsFeedClient(_cfg(), session=FakeSession([response]))  # type: ignore[arg-type]
    with pytest.raises(FeedError):
        client.fetch_articles()


def test_close_closes_session() -> None:
    session = FakeSession([])
    NewsFeedClient(_cfg(), session=session).close()  # type: ignore[arg-type]
    assert session.closed


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 0.0),
        ("  ", 0.0),
        ("7", 7.0),
        ("-3", 0.0),
        ("Wed, 21 Oct 2026 07:28:30 GMT", 30.0),
        ("Wed, 21 Oct 2026 07:27:00 GMT", 0.0),
        ("soon", 0.0),
    ],
)
def test_parse_retry_after_seconds(raw: str | None, expected: float) -> None:
    now = datetime(2026, 10, 21, 7, 28, 0, tzinfo=timezone.utc)
    assert feed_module._parse_retry_after_seconds(raw, now=now) == pytest.approx(expected)


def test_retry_delay_is_capped(no_sleep: list[float]) -> None:
    busy = FakeResponse(503, headers={"Retry-After": "9999"})
    session = FakeSession([busy, FakeResponse(payload={"items": []})])
    client = NewsFeedClient(_cfg(), session=session)  # type: ignore[arg-type]
    assert client.fetch_articles() == []
    assert no_sleep == [300.0]
