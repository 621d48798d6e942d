"""Retrieval of the station feed document over HTTP or from disk."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

import httpx

from ..config import Settings
from ..exceptions import FeedError
from ..redaction import sanitize_text


class FeedClient:
    """Fetches the latest station feed JSON document from a URL."""

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        *,
        url: str | None = None,
        retry_delay_seconds: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        resolved_url = url or (str(settings.feed_url) if settings.feed_url else None)
        if not resolved_url:
            raise FeedError(
                "No feed URL configured: set FEED_URL or pass --url.",
                category="config",
            )
        self.url = resolved_url
        self.settings = settings
        self.logger = logger
        self._max_retries = settings.feed_max_retries
        self._retry_delay = retry_delay_seconds
        self._client = httpx.Client(
            timeout=settings.feed_timeout_seconds,
            headers={
                "Accept": "application/json",
                "Cache-Control": "no-store",
                "User-Agent": settings.feed_user_agent,
            },
            transport=transport,
        )

    def __enter__(self) -> FeedClient:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch_latest(self) -> dict[str, Any]:
        """Fetch the feed document, bypassing intermediate caches."""
        params = {"cb": str(int(time.time() * 1000))}
        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                response = self._client.get(self.url, params=params)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                # 4xx other than 429 will not fix itself on retry.
                if 400 <= status < 500 and status != 429:
                    raise FeedError(
                        f"Feed fetch failed with status {status} at "
                        f"{sanitize_text(self.url)}",
                        category="http_status",
                        status_code=status,
                    ) from exc
                last_error = exc
                if attempt < self._max_retries:
                    self.logger.warning("Feed fetch failed (HTTP %d); retrying", status)
                    time.sleep(self._retry_delay)
                    continue
                raise FeedError(
                    f"Feed fetch failed with status {status} at {sanitize_text(self.url)}",
                    category="http_status",
                    status_code=status,
                ) from exc
            except httpx.HTTPError as exc:
                last_error = exc
                if attempt < self._max_retries:
                    self.logger.warning(
                        "Feed request failed (%s); retrying",
                        type(exc).__name__,
                    )
                    time.sleep(self._retry_delay)
                    continue
                raise FeedError(
                    f"Feed request failed at {sanitize_text(self.url)}: "
                    f"{sanitize_text(str(exc))}",
                    category="network",
                ) from exc

            try:
                payload = response.json()
            except ValueError as exc:
                raise FeedError(
                    f"Feed returned non-JSON response at {sanitize_text(self.url)}.",
                    category="decode",
                ) from exc
            if not isinstance(payload, dict):
                raise FeedError(
                    f"Feed returned unexpected payload type {type(payload).__name__}.",
                    category="shape",
                )
            return payload

        raise FeedError(f"Feed fetch failed after retries: {last_error}", category="network")


def load_feed_file(path: Path) -> dict[str, Any]:
    """Load a feed document from a local JSON file."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise FeedError(f"Failed reading feed file {path}: {exc}", category="io") from exc
    except ValueError as exc:
        raise FeedError(f"Feed file {path} is not valid JSON: {exc}", category="decode") from exc
    if not isinstance(payload, dict):
        raise FeedError(
            f"Feed file {path} must contain a JSON object, got {type(payload).__name__}.",
            category="shape",
        )
    return payload
