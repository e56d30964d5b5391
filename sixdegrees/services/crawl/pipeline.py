from __future__ import annotations

import json
import os
import sys
import tempfile
from typing import Any, Iterable, List, Optional, TextIO

from sixdegrees.models.mention import EdgeRecord

from .base import encode_edge


def ensure_dir(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)


def write_json_atomic(path: str, obj: Any) -> None:
    """Write `obj` as pretty JSON so readers never observe a partial file.

    The payload goes to a temp file in the same directory and is then renamed
    over `path`.
    """
    directory = os.path.dirname(os.path.abspath(path))
    ensure_dir(directory)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(obj, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class EdgeSink:
    """Append-only JSONL writer for mention edges.

    Each `append` call serializes the whole batch and writes it with a single
    write; the file is never truncated or rewritten.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self.written = 0

    def append(self, edges: Iterable[EdgeRecord]) -> int:
        lines: List[str] = [encode_edge(e) for e in edges]
        if not lines:
            return 0
        ensure_dir(os.path.dirname(os.path.abspath(self.path)))
        with open(self.path, "a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        self.written += len(lines)
        return len(lines)


class StreamEdgeSink:
    """Debug-mode sink: prints edge lines to a stream, nothing durable."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream
        self.written = 0

    def append(self, edges: Iterable[EdgeRecord]) -> int:
        out = self.stream or sys.stdout
        count = 0
        for e in edges:
            out.write(encode_edge(e) + "\n")
            count += 1
        out.flush()
        self.written += count
        return count
