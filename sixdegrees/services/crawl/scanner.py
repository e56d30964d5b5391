from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Mapping, Optional

from sixdegrees.errors import ChannelAccessDenied, ChannelScanFailed, describe_error
from sixdegrees.models.mention import Channel, EdgeRecord

from .base import CHANNEL_MENTION_RE, make_edge, ts_to_iso

logger = logging.getLogger(__name__)


def extract_mentions(text: str) -> Iterator[str]:
    """Yield mentioned channel ids in order of appearance (duplicates included)."""
    for match in CHANNEL_MENTION_RE.finditer(text or ""):
        yield match.group(1)


@dataclass
class ScanResult:
    channel_id: str
    channel_name: str
    messages: int = 0
    edges: int = 0
    pages: int = 0
    joined: bool = False
    error: Optional[ChannelScanFailed] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MentionScanner:
    """Streams one channel's history and emits its distinct outgoing mentions.

    Pages are processed as they arrive and never buffered. For each target
    channel only the first mention encountered (the newest, since history is
    paged newest-first) becomes an edge. Edges are handed to the sink in
    batches of `batch_size` and whatever is pending is flushed when the scan
    ends, including when it ends with an error.
    """

    def __init__(
        self,
        client,
        sink,
        checkpoints,
        *,
        channel_names: Mapping[str, str],
        archive_base: str,
        batch_size: int = 5,
        checkpoint_every: int = 10000,
        page_size: int = 1000,
        page_delay: float = 0.1,
        progress_every_pages: int = 10,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.sink = sink
        self.checkpoints = checkpoints
        self.channel_names = channel_names
        self.archive_base = archive_base
        self.batch_size = max(1, int(batch_size))
        self.checkpoint_every = int(checkpoint_every)
        self.page_size = page_size
        self.page_delay = page_delay
        self.progress_every_pages = max(1, int(progress_every_pages))
        self._sleep = sleep

    def scan(self, channel: Channel, channel_index: int) -> ScanResult:
        """Scan `channel` (at position `channel_index` in the directory).

        A `not_in_channel` answer triggers one join followed by one full rescan.
        Every failure is contained and reported on the returned result.
        """
        logger.info("[SCAN] #%s (%s)", channel.name, channel.id)
        result = ScanResult(channel_id=channel.id, channel_name=channel.name)
        for attempt in range(2):
            try:
                self._scan_once(channel, channel_index, result)
            except ChannelAccessDenied as exc:
                if attempt == 0 and self._join(channel, result):
                    continue
                result.error = ChannelScanFailed(channel.id, channel.name, exc)
                logger.error("Cannot access channel #%s (%s), skipping", channel.name, channel.id)
            except Exception as exc:
                result.error = ChannelScanFailed(channel.id, channel.name, exc)
                logger.error("Failed to scan #%s (%s): %s", channel.name, channel.id, describe_error(exc))
            else:
                logger.info(
                    "[COMPLETE] Scanned %s messages, found %d unique channel links",
                    f"{result.messages:,}", result.edges,
                )
            break
        return result

    def _join(self, channel: Channel, result: ScanResult) -> bool:
        logger.warning("Not in #%s, attempting to join...", channel.name)
        try:
            self.client.join_channel(channel.id)
        except Exception as exc:
            logger.error("Join failed for #%s (%s): %s", channel.name, channel.id, describe_error(exc))
            return False
        logger.info("Joined #%s, retrying scan...", channel.name)
        result.joined = True
        result.messages = result.edges = result.pages = 0
        return True

    def _scan_once(self, channel: Channel, channel_index: int, result: ScanResult) -> None:
        # Insertion-ordered so progress output can show the latest discoveries
        seen: Dict[str, None] = {}
        pending: List[EdgeRecord] = []
        next_checkpoint = self.checkpoint_every
        cursor: Optional[str] = None
        try:
            while True:
                page = self.client.fetch_history(channel.id, limit=self.page_size, cursor=cursor)
                result.pages += 1
                messages = page.get("messages") or []
                if messages and logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        "Page %d: %d messages, %s to %s",
                        result.pages, len(messages),
                        _safe_date(messages[-1].get("ts")), _safe_date(messages[0].get("ts")),
                    )

                for message in messages:
                    text = message.get("text")
                    ts = message.get("ts")
                    if text and ts:
                        for target in extract_mentions(text):
                            if target == channel.id or target in seen:
                                continue
                            seen[target] = None
                            edge = make_edge(
                                from_id=channel.id,
                                to_id=target,
                                from_name=channel.name,
                                to_name=self.channel_names.get(target),
                                ts=ts,
                                archive_base=self.archive_base,
                            )
                            pending.append(edge)
                            result.edges += 1
                            logger.debug("#%s > #%s %s", channel.name, edge.to_name, edge.message_link)
                            if len(pending) >= self.batch_size:
                                self.sink.append(pending)
                                pending = []
                    result.messages += 1

                cursor = page.get("next_cursor")

                if self.checkpoint_every > 0 and result.messages >= next_checkpoint:
                    self.checkpoints.save(channel_index, channel.id, result.messages)
                    while next_checkpoint <= result.messages:
                        next_checkpoint += self.checkpoint_every

                if cursor and result.pages % self.progress_every_pages == 0:
                    self._log_progress(channel, result, seen)

                if not cursor:
                    break
                self._sleep(self.page_delay)
        finally:
            if pending:
                self.sink.append(pending)

    def _log_progress(self, channel: Channel, result: ScanResult, seen: Dict[str, None]) -> None:
        logger.info(
            "[PROGRESS] %s messages scanned, %d unique links found",
            f"{result.messages:,}", result.edges,
        )
        latest = list(seen)[-5:]
        if latest:
            logger.info("[LINKS] Latest discovered:")
            for target in latest:
                logger.info("  #%s > #%s", channel.name, self.channel_names.get(target) or target)


def _safe_date(ts: Optional[str]) -> str:
    try:
        return ts_to_iso(ts) if ts else "?"
    except ValueError:
        return str(ts)
