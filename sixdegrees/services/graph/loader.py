from __future__ import annotations

import logging
from typing import Iterator, Set, Tuple

from sixdegrees.models.mention import EdgeRecord
from sixdegrees.services.crawl.base import decode_edge

from .mention_graph import MentionGraph

logger = logging.getLogger(__name__)


def iter_edge_records(path: str) -> Iterator[EdgeRecord]:
    """Yield edges from a JSONL edge log, one line at a time.

    Blank lines are skipped; the first unparsable line raises
    MalformedEdgeRecord with its 1-based line number.
    """
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            s = line.strip()
            if not s:
                continue
            yield decode_edge(s, line_no)


def load_graph(path: str, *, dedupe: bool = False) -> MentionGraph:
    """Build a MentionGraph from the edge log at `path`.

    Edge logs written by several crawl runs may repeat a (from, to) pair; with
    `dedupe=True` only the first occurrence is kept.
    """
    logger.info("Loading data from %s...", path)
    graph = MentionGraph()
    seen: Set[Tuple[str, str]] = set()
    skipped = 0
    for edge in iter_edge_records(path):
        if dedupe:
            key = (edge.from_id, edge.to_id)
            if key in seen:
                skipped += 1
                continue
            seen.add(key)
        graph.add_edge(edge)
    if skipped:
        logger.info("Dropped %d duplicate edges", skipped)
    logger.info("Loaded %d channels with %d connections", graph.total_channels, graph.total_edges)
    return graph
