from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

import httpx
from tenacity import RetryError

from sixdegrees.errors import DirectoryUnavailable, SlackApiError
from sixdegrees.models.mention import Channel
from sixdegrees.services.slack_client import RateLimited

from .base import now_iso
from .pipeline import write_json_atomic

logger = logging.getLogger(__name__)


class ChannelDirectory:
    """Lists every channel in the workspace, with an all-or-nothing file cache.

    The cache file holds `{cachedAt, totalChannels, channels}` where `channels`
    are the raw API objects. With `clear_cache=True` the cache is deleted before
    a fresh listing.
    """

    def __init__(
        self,
        client,
        *,
        cache_path: Optional[str] = None,
        clear_cache: bool = False,
        page_size: int = 1000,
        types: str = "public_channel,private_channel",
    ) -> None:
        self.client = client
        self.cache_path = cache_path
        self.clear_cache = clear_cache
        self.page_size = page_size
        self.types = types
        self._channels: Optional[List[Channel]] = None

    def list_all_channels(self) -> List[Channel]:
        if self._channels is not None:
            return self._channels

        if self.cache_path and self.clear_cache:
            logger.info("CLEAR_CHANNEL_CACHE flag set, deleting cache...")
            self._delete_cache()
        elif self.cache_path:
            cached = self._read_cache()
            if cached is not None:
                self._channels = cached
                return cached

        raw = self._fetch_all()
        try:
            channels = [Channel.from_api(c) for c in raw]
        except (ValueError, AttributeError) as exc:
            raise DirectoryUnavailable(f"Failed to fetch channels: {exc}") from exc
        if self.cache_path:
            self._write_cache(raw)
        self._channels = channels
        return channels

    def name_map(self) -> Dict[str, str]:
        """Channel id -> display name snapshot for the current listing."""
        return {c.id: c.name for c in self.list_all_channels()}

    def _fetch_all(self) -> List[Dict[str, Any]]:
        logger.info("Fetching all channels...")
        out: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        try:
            while True:
                page = self.client.list_channels(types=self.types, limit=self.page_size, cursor=cursor)
                out.extend(page.get("channels") or [])
                logger.info("Found %d channels", len(out))
                cursor = page.get("next_cursor")
                if not cursor:
                    break
        except (SlackApiError, RateLimited, RetryError, httpx.HTTPError) as exc:
            raise DirectoryUnavailable(f"Failed to fetch channels: {exc}") from exc
        logger.info("Total channels found: %d", len(out))
        return out

    def _read_cache(self) -> Optional[List[Channel]]:
        if not os.path.isfile(self.cache_path):
            logger.info("No channel cache found, fetching from API...")
            return None
        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                cache = json.load(f)
            channels = [Channel.from_api(c) for c in cache["channels"]]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Channel cache unreadable (%s), fetching from API...", exc)
            return None
        logger.info("Loaded %d channels from cache (cached at %s)", len(channels), cache.get("cachedAt"))
        return channels

    def _write_cache(self, raw: List[Dict[str, Any]]) -> None:
        cache = {"cachedAt": now_iso(), "totalChannels": len(raw), "channels": raw}
        write_json_atomic(self.cache_path, cache)
        logger.info("Channels cached to %s", self.cache_path)

    def _delete_cache(self) -> None:
        try:
            os.unlink(self.cache_path)
            logger.info("Channel cache cleared")
        except FileNotFoundError:
            pass
