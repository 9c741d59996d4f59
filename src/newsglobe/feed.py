"""Client for the news backend that feeds article records to the globe."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping

import requests

from .config import FeedConfig

_RETRYABLE_HTTP_STATUS = {429, 500, 502, 503, 504}
_MAX_RETRY_DELAY_S = 300.0

_LOGGER = logging.getLogger("newsglobe.feed")


class FeedError(RuntimeError):
    """Raised when the news backend cannot produce a usable article list."""


class NewsFeedClient:
    """Fetch article rows from the backend `/news` endpoint."""

    def __init__(self, cfg: FeedConfig, session: requests.Session | None = None) -> None:
        self.cfg = cfg
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"User-Agent": cfg.user_agent})
        self._max_retries = max(int(cfg.max_retries), 0)
        self._retry_backoff_s = max(float(cfg.retry_backoff_s), 0.01)

    def build_params(
        self,
        *,
        query: str | None = None,
        category: str | None = None,
        language: str | None = None,
        page_size: int | None = None,
        cache_key: str | None = None,
    ) -> dict[str, str]:
        params: dict[str, str] = {}
        if cache_key:
            params["cache_key"] = cache_key
        if query:
            params["q"] = query
        if category:
            params["category"] = category
        if language:
            params["language"] = language
        params["page_size"] = str(page_size if page_size is not None else self.cfg.page_size)
        params["speed"] = self.cfg.speed
        return params

    def fetch_articles(
        self,
        *,
        query: str | None = None,
        category: str | None = None,
        language: str | None = None,
        page_size: int | None = None,
        cache_key: str | None = None,
    ) -> list[dict[str, Any]]:
        params = self.build_params(
            query=query,
            category=category,
            language=language,
            page_size=page_size,
            cache_key=cache_key,
        )
        response = self._request_get(f"{self.cfg.base_url}/news", params=params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise FeedError(f"News backend returned invalid JSON from {response.url}") from exc
        if not isinstance(payload, Mapping):
            raise FeedError(f"Expected JSON object from {response.url}")
        items = payload.get("items")
        if items is None:
            return []
        if not isinstance(items, list):
            raise FeedError(f"Expected 'items' list from {response.url}")
        articles = [dict(item) for item in items if isinstance(item, Mapping)]
        _LOGGER.info("Fetched %d articles from %s", len(articles), response.url)
        return articles

    def close(self) -> None:
        self._session.close()

    def _request_get(self, url: str, *, params: Mapping[str, Any] | None = None) -> requests.Response:
        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.get(url, params=params, timeout=self.cfg.request_timeout_s)
            except requests.RequestException as exc:
                raise FeedError(f"Request to {url} failed: {exc}") from exc
            if response.status_code not in _RETRYABLE_HTTP_STATUS or attempt >= self._max_retries:
                try:
                    response.raise_for_status()
                except requests.HTTPError as exc:
                    raise FeedError(f"News backend error {response.status_code} for {url}") from exc
                return response
            delay_s = self._compute_retry_delay_s(response=response, attempt=attempt)
            _LOGGER.warning(
                "Retryable response %s for %s; retrying in %.1fs (%d/%d)",
                response.status_code,
                url,
                delay_s,
                attempt + 1,
                self._max_retries,
            )
            response.close()
            time.sleep(delay_s)
        raise RuntimeError("Unreachable retry loop in news feed client")

    def _compute_retry_delay_s(self, *, response: requests.Response, attempt: int) -> float:
        # the backend may ask for longer than our own backoff, never shorter
        delay_s = max(
            self._retry_backoff_s * (2**attempt),
            _parse_retry_after_seconds(response.headers.get("Retry-After")),
        )
        return min(delay_s, _MAX_RETRY_DELAY_S)


def _parse_retry_after_seconds(raw: str | None, now: datetime | None = None) -> float:
    """Seconds to wait from a `Retry-After` header (delta-seconds or HTTP-date)."""
    if raw is None or not raw.strip():
        return 0.0
    value = raw.strip()
    try:
        return max(float(value), 0.0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return 0.0
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now if now is not None else datetime.now(timezone.utc)
    return max((when - now).total_seconds(), 0.0)
