from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from sixdegrees.models.mention import Channel, Checkpoint

from .base import now_iso
from .pipeline import write_json_atomic
from .scanner import MentionScanner, ScanResult

logger = logging.getLogger(__name__)


@dataclass
class CrawlSummary:
    total_channels: int
    start_index: int
    channels_visited: int = 0
    channels_failed: int = 0
    messages: int = 0
    edges: int = 0
    elapsed_seconds: float = 0.0
    failures: List[str] = field(default_factory=list)


def generate_metadata(
    channels: Sequence[Channel],
    *,
    workspace: str,
    elapsed_seconds: float,
    output_file: str,
) -> Dict[str, Any]:
    return {
        "workspace": workspace,
        "generatedAt": now_iso(),
        "totalChannels": len(channels),
        "processingTimeSeconds": f"{elapsed_seconds:.2f}",
        "outputFile": output_file,
        "channels": {c.id: {"id": c.id, "name": c.name} for c in channels},
    }


def resume_index(checkpoint: Optional[Checkpoint]) -> int:
    """Directory position the next run starts at."""
    if checkpoint is None:
        return 0
    if checkpoint.last_message_count > 0:
        # Interrupted mid-channel
        return checkpoint.last_channel_index
    return checkpoint.last_channel_index + 1


class CrawlOrchestrator:
    """Runs a resumable crawl over every channel in directory order.

    Resumes after the checkpointed channel index, scans each remaining channel,
    and records a checkpoint after every channel whether or not its scan
    succeeded. The after-channel checkpoint carries a message count of 0; a
    non-zero count marks a mid-channel save, and that channel is rescanned
    from the top on resume. Only a run that reaches the end of the directory
    clears the checkpoint and writes the metadata table. Debug mode
    (`metadata_path=None`) skips both.
    """

    def __init__(
        self,
        directory,
        checkpoints,
        scanner_factory: Callable[[Dict[str, str]], MentionScanner],
        *,
        workspace: str = "Hack Club",
        output_file: str = "channel-links.jsonl",
        metadata_path: Optional[str] = None,
        channel_delay: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.directory = directory
        self.checkpoints = checkpoints
        self.scanner_factory = scanner_factory
        self.workspace = workspace
        self.output_file = output_file
        self.metadata_path = metadata_path
        self.channel_delay = channel_delay
        self._sleep = sleep
        self._clock = clock

    def run(self) -> CrawlSummary:
        logger.info("[START] Six Degrees channel mapper")
        started = self._clock()

        checkpoint = self.checkpoints.load()
        start_index = resume_index(checkpoint)

        channels = self.directory.list_all_channels()
        names = {c.id: c.name for c in channels}
        scanner = self.scanner_factory(names)

        summary = CrawlSummary(total_channels=len(channels), start_index=start_index)
        if checkpoint is not None:
            logger.info("Resuming from channel index %d", start_index)

        for i in range(start_index, len(channels)):
            channel = channels[i]
            logger.info("[%d/%d]", i + 1, len(channels))
            result = scanner.scan(channel, i)
            self._record(summary, result)
            self.checkpoints.save(i, channel.id, 0)
            self._sleep(self.channel_delay)

        summary.elapsed_seconds = self._clock() - started

        if self.metadata_path:
            metadata = generate_metadata(
                channels,
                workspace=self.workspace,
                elapsed_seconds=summary.elapsed_seconds,
                output_file=self.output_file,
            )
            write_json_atomic(self.metadata_path, metadata)
            logger.info("Output saved to %s", self.output_file)
            logger.info("Metadata saved to %s", self.metadata_path)
            self.checkpoints.clear()
        else:
            logger.debug("Debug mode complete - no files written")

        logger.info(
            "[DONE] %d channels total, %d scanned (%d failed), %d links in %.2fs",
            summary.total_channels, summary.channels_visited, summary.channels_failed,
            summary.edges, summary.elapsed_seconds,
        )
        return summary

    @staticmethod
    def _record(summary: CrawlSummary, result: ScanResult) -> None:
        summary.channels_visited += 1
        summary.messages += result.messages
        summary.edges += result.edges
        if not result.ok:
            summary.channels_failed += 1
            summary.failures.append(str(result.error))
