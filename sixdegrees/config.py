"""Runtime settings for the crawler, the graph tools and the Neo4j export.

Values come from the process environment; a `.env` file at the project root is
read first and only fills variables that are not already set.

Crawl output files default to the current working directory:

- OUTPUT_FILE           append-only edge log (JSONL)
- CHECKPOINT_FILE       resume marker
- CHANNELS_CACHE_FILE   cached channel directory
- METADATA_FILE         channel id -> name table written after a full crawl
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def load_env_from_file(path: Optional[str] = None) -> None:
    """Load environment variables from a .env file if present.

    Only sets variables that aren't already present in the process environment.
    Avoids an external dependency on python-dotenv for this small use case.
    """
    env_path = path or os.path.join(_PROJECT_ROOT, ".env")
    try:
        if not os.path.isfile(env_path):
            return
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                s = line.strip()
                if not s or s.startswith("#"):
                    continue
                if "=" not in s:
                    continue
                key, val = s.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                if key and (key not in os.environ or not os.environ[key]):
                    os.environ[key] = val
    except OSError:
        # Loading .env is best-effort
        pass


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


def _int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


def _float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value not in (None, "") else default
    except ValueError:
        return default


@dataclass
class Settings:
    slack_bot_token: Optional[str] = None
    debug: bool = False
    clear_channel_cache: bool = False

    output_file: str = "channel-links.jsonl"
    checkpoint_file: str = "checkpoint.json"
    channels_cache_file: str = "channels-cache.json"
    metadata_file: str = "channel-metadata.json"

    workspace_name: str = "Hack Club"
    archive_base_url: str = "https://hackclub.slack.com/archives"

    # Rate limiting delays (seconds)
    delay_between_message_pages: float = 0.1
    delay_between_channels: float = 0.2

    checkpoint_every_n_messages: int = 10000
    write_batch_size: int = 5
    channel_page_size: int = 1000
    history_page_size: int = 1000

    def require_token(self) -> str:
        if not self.slack_bot_token:
            raise RuntimeError(
                "SLACK_BOT_TOKEN is not set.\n"
                "Define it in your environment or in a .env file at the project root."
            )
        return self.slack_bot_token


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from `env` (defaults to os.environ after reading .env)."""
    if env is None:
        load_env_from_file()
        env = os.environ
    defaults = Settings()
    return Settings(
        slack_bot_token=env.get("SLACK_BOT_TOKEN") or None,
        debug=_flag(env.get("DEBUG")),
        clear_channel_cache=_flag(env.get("CLEAR_CHANNEL_CACHE")),
        output_file=env.get("OUTPUT_FILE") or defaults.output_file,
        checkpoint_file=env.get("CHECKPOINT_FILE") or defaults.checkpoint_file,
        channels_cache_file=env.get("CHANNELS_CACHE_FILE") or defaults.channels_cache_file,
        metadata_file=env.get("METADATA_FILE") or defaults.metadata_file,
        workspace_name=env.get("WORKSPACE_NAME") or defaults.workspace_name,
        archive_base_url=(env.get("ARCHIVE_BASE_URL") or defaults.archive_base_url).rstrip("/"),
        delay_between_message_pages=_float(
            env.get("DELAY_BETWEEN_MESSAGE_PAGES"), defaults.delay_between_message_pages
        ),
        delay_between_channels=_float(env.get("DELAY_BETWEEN_CHANNELS"), defaults.delay_between_channels),
        checkpoint_every_n_messages=_int(
            env.get("CHECKPOINT_EVERY_N_MESSAGES"), defaults.checkpoint_every_n_messages
        ),
        write_batch_size=_int(env.get("WRITE_BATCH_SIZE"), defaults.write_batch_size),
        channel_page_size=_int(env.get("CHANNEL_PAGE_SIZE"), defaults.channel_page_size),
        history_page_size=_int(env.get("HISTORY_PAGE_SIZE"), defaults.history_page_size),
    )
