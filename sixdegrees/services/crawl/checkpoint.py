from __future__ import annotations

import json
import logging
import os
from typing import Optional

from pydantic import ValidationError

from sixdegrees.errors import CheckpointCorrupt
from sixdegrees.models.mention import Checkpoint

from .base import now_iso
from .pipeline import write_json_atomic

logger = logging.getLogger(__name__)


class CheckpointStore:
    """Single-slot resume marker stored as JSON.

    `load` returns None for "no progress" (missing or unreadable file), so a
    crawl without a checkpoint behaves exactly like a fresh start.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def _read(self) -> Checkpoint:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return Checkpoint.model_validate(data)
        except (json.JSONDecodeError, ValidationError, UnicodeDecodeError) as exc:
            raise CheckpointCorrupt(f"{self.path}: {exc}") from exc

    def load(self) -> Optional[Checkpoint]:
        if not os.path.isfile(self.path):
            logger.info("No checkpoint found, starting fresh")
            return None
        try:
            checkpoint = self._read()
        except (CheckpointCorrupt, OSError) as exc:
            logger.warning("Ignoring unreadable checkpoint, starting fresh: %s", exc)
            return None
        logger.info("Loaded checkpoint, resuming after channel index %d", checkpoint.last_channel_index)
        return checkpoint

    def save(self, channel_index: int, channel_id: Optional[str], message_count: int = 0) -> Checkpoint:
        checkpoint = Checkpoint(
            last_channel_index=channel_index,
            last_channel_id=channel_id,
            last_message_count=message_count,
            timestamp=now_iso(),
        )
        write_json_atomic(self.path, checkpoint.model_dump(by_alias=True))
        logger.debug("[CHECKPOINT] Saved at channel index %d (%d messages)", channel_index, message_count)
        return checkpoint

    def clear(self) -> None:
        try:
            os.unlink(self.path)
            logger.info("Checkpoint file removed")
        except FileNotFoundError:
            pass


class NullCheckpointStore:
    """Debug mode: never reads or writes a checkpoint."""

    def load(self) -> Optional[Checkpoint]:
        logger.debug("Debug mode - skipping checkpoint loading")
        return None

    def save(self, channel_index: int, channel_id: Optional[str], message_count: int = 0) -> None:
        return None

    def clear(self) -> None:
        return None
