from __future__ import annotations

from typing import Optional


class SixDegreesError(Exception):
    """Base class for crawler and graph errors."""


class SlackApiError(SixDegreesError):
    """The Web API answered with ok=false."""

    def __init__(self, error: str, method: Optional[str] = None) -> None:
        self.error = error or "unknown_error"
        self.method = method
        where = f" ({method})" if method else ""
        super().__init__(f"Slack API error{where}: {self.error}")


class ChannelAccessDenied(SlackApiError):
    """The scanning identity is not a member of the channel."""


class DirectoryUnavailable(SixDegreesError):
    """Listing channels failed after retries; no crawl is possible."""


class ChannelScanFailed(SixDegreesError):
    """A single channel could not be scanned; the crawl moves on."""

    def __init__(self, channel_id: str, channel_name: Optional[str], cause: BaseException) -> None:
        self.channel_id = channel_id
        self.channel_name = channel_name
        self.cause = cause
        label = f"#{channel_name} ({channel_id})" if channel_name else channel_id
        super().__init__(f"Failed to scan {label}: {describe_error(cause)}")


class CheckpointCorrupt(SixDegreesError):
    """The checkpoint file exists but cannot be parsed."""


class MalformedEdgeRecord(SixDegreesError, ValueError):
    def __init__(self, reason: str, line_no: Optional[int] = None) -> None:
        self.reason = reason
        self.line_no = line_no
        where = f"line {line_no}: " if line_no is not None else ""
        super().__init__(f"Malformed edge record {where}{reason}")


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, SlackApiError):
        return exc.error
    return str(exc) or type(exc).__name__
