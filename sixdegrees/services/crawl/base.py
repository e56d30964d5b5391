from __future__ import annotations

import json
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError

from sixdegrees.errors import MalformedEdgeRecord
from sixdegrees.models.mention import EdgeRecord


# Matches machine-linkified mentions: <#C123456>, <#C123456|channel-name>, <#C123456|>
CHANNEL_MENTION_RE = re.compile(r"<#([A-Z0-9]+)(?:\|[^>]*)?>")


def canonical_json(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def iso_from_epoch_ms(ms: int) -> str:
    """Format epoch milliseconds as 2024-01-02T03:04:05.678Z."""
    seconds, millis = divmod(int(ms), 1000)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return f"{dt:%Y-%m-%dT%H:%M:%S}.{millis:03d}Z"


def now_iso() -> str:
    return iso_from_epoch_ms(int(time.time() * 1000))


def ts_to_iso(ts: str) -> str:
    # Message ts is "<epoch seconds>.<micros>"; sub-millisecond digits are truncated
    seconds, _, frac = str(ts).strip().partition(".")
    if not seconds.isdigit() or (frac and not frac.isdigit()):
        raise ValueError(f"invalid message ts: {ts!r}")
    return iso_from_epoch_ms(int(seconds) * 1000 + int((frac + "000")[:3]))


def build_message_link(archive_base: str, channel_id: str, ts: str) -> str:
    return f"{archive_base.rstrip('/')}/{channel_id}/p{ts.replace('.', '')}"


def make_edge(
    *,
    from_id: str,
    to_id: str,
    from_name: str,
    to_name: Optional[str],
    ts: str,
    archive_base: str,
) -> EdgeRecord:
    return EdgeRecord(
        from_id=from_id,
        to_id=to_id,
        from_name=from_name,
        to_name=to_name or to_id,
        message_ts=ts,
        message_date=ts_to_iso(ts),
        message_link=build_message_link(archive_base, from_id, ts),
    )


def encode_edge(edge: EdgeRecord) -> str:
    """Serialize one edge as a single JSON line (no trailing newline)."""
    return canonical_json(edge.model_dump(by_alias=True))


def decode_edge(line: str, line_no: Optional[int] = None) -> EdgeRecord:
    try:
        data: Dict[str, Any] = json.loads(line)
    except json.JSONDecodeError as exc:
        raise MalformedEdgeRecord(f"invalid JSON ({exc.msg})", line_no) from exc
    if not isinstance(data, dict):
        raise MalformedEdgeRecord("expected a JSON object", line_no)
    try:
        return EdgeRecord.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ())) or "record"
        raise MalformedEdgeRecord(f"{loc}: {first.get('msg', 'invalid')}", line_no) from exc
