"""Thin Slack Web API client used by the crawler.

Only the three calls the crawl needs are implemented: conversations.list,
conversations.history and conversations.join. Pages are returned as
`{"channels"|"messages": [...], "next_cursor": str | None}`.

Transient failures (HTTP 429 / `ratelimited`, 5xx, transport errors) are
retried with tenacity; a 429 waits for the server's Retry-After.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from sixdegrees.errors import ChannelAccessDenied, SlackApiError

logger = logging.getLogger(__name__)

SLACK_API_BASE = "https://slack.com/api"


class RateLimited(Exception):
    def __init__(self, retry_after: Optional[float]) -> None:
        self.retry_after = retry_after
        super().__init__(f"rate limited (retry after {retry_after}s)")


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (RateLimited, httpx.TransportError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


_backoff = wait_exponential(multiplier=1, min=1, max=30)


def _wait_retry_after_or_backoff(retry_state) -> float:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    if isinstance(exc, RateLimited) and exc.retry_after:
        return float(exc.retry_after)
    return _backoff(retry_state)


def _next_cursor(data: Dict[str, Any]) -> Optional[str]:
    return ((data.get("response_metadata") or {}).get("next_cursor") or None)


class SlackClient:
    def __init__(
        self,
        token: str,
        *,
        base_url: str = SLACK_API_BASE,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
        max_attempts: int = 5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max(1, int(max_attempts))
        self._sleep = sleep
        self._client = client or httpx.Client(timeout=timeout, headers={"User-Agent": "sixdegrees/0.1"})

    def __enter__(self) -> "SlackClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _call_once(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._client.post(
            f"{self.base_url}/{method}",
            data={k: v for k, v in params.items() if v is not None},
            headers={"Authorization": f"Bearer {self.token}"},
        )
        if resp.status_code == 429:
            retry_after = resp.headers.get("Retry-After")
            raise RateLimited(float(retry_after) if retry_after else None)
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError as exc:
            # Gateway or proxy pages come back as 200 HTML
            raise SlackApiError("invalid_response", method) from exc
        if not isinstance(data, dict):
            raise SlackApiError("invalid_response", method)
        if not data.get("ok"):
            error = data.get("error") or "unknown_error"
            if error == "ratelimited":
                raise RateLimited(None)
            if error == "not_in_channel":
                raise ChannelAccessDenied(error, method)
            raise SlackApiError(error, method)
        return data

    def call(self, method: str, **params: Any) -> Dict[str, Any]:
        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception(_is_transient),
            wait=_wait_retry_after_or_backoff,
            sleep=self._sleep,
            before_sleep=lambda rs: logger.warning(
                "Slack %s failed (%s), retrying (attempt %d/%d)",
                method, rs.outcome.exception(), rs.attempt_number, self.max_attempts,
            ),
            reraise=True,
        )
        return retryer(self._call_once, method, params)

    def list_channels(
        self,
        *,
        types: str = "public_channel,private_channel",
        limit: int = 1000,
        cursor: Optional[str] = None,
        exclude_archived: bool = True,
    ) -> Dict[str, Any]:
        data = self.call(
            "conversations.list",
            types=types,
            limit=limit,
            cursor=cursor,
            exclude_archived="true" if exclude_archived else "false",
        )
        return {"channels": data.get("channels") or [], "next_cursor": _next_cursor(data)}

    def fetch_history(self, channel_id: str, *, limit: int = 1000, cursor: Optional[str] = None) -> Dict[str, Any]:
        # No 'oldest' filter: the API returns newest first and paginates backwards
        data = self.call("conversations.history", channel=channel_id, limit=limit, cursor=cursor)
        return {"messages": data.get("messages") or [], "next_cursor": _next_cursor(data)}

    def join_channel(self, channel_id: str) -> Dict[str, Any]:
        data = self.call("conversations.join", channel=channel_id)
        return data.get("channel") or {}
