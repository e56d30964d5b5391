"""Export the edge log into Neo4j.

Creates `(:Channel {id, name})` nodes and
`(:Channel)-[:MENTIONS {message_ts, message_date, message_link}]->(:Channel)`
relationships. Relationships are merged on (from, to, message_ts), so exporting
the same log twice leaves the database unchanged.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from sixdegrees.models.mention import EdgeRecord

logger = logging.getLogger(__name__)

CypherRunner = Callable[[str, Optional[dict]], Any]

CHANNEL_CONSTRAINT = "CREATE CONSTRAINT channel_id IF NOT EXISTS FOR (c:Channel) REQUIRE c.id IS UNIQUE"

CHANNEL_UPSERT = (
    "UNWIND $rows AS row "
    "MERGE (c:Channel {id: row.id}) "
    "SET c.name = row.name"
)

MENTION_UPSERT = (
    "UNWIND $rows AS row "
    "MERGE (a:Channel {id: row.from_id}) ON CREATE SET a.name = row.from_name "
    "MERGE (b:Channel {id: row.to_id}) ON CREATE SET b.name = row.to_name "
    "MERGE (a)-[m:MENTIONS {message_ts: row.message_ts}]->(b) "
    "SET m.message_date = row.message_date, m.message_link = row.message_link"
)


def load_channel_table(metadata_path: str) -> Dict[str, str]:
    """Read the id -> name table from a crawl metadata file."""
    with open(metadata_path, "r", encoding="utf-8") as f:
        meta = json.load(f)
    table = meta.get("channels") or {}
    return {cid: (row.get("name") or cid) for cid, row in table.items()}


def _default_runner() -> CypherRunner:
    from sixdegrees.db.neo4j_connector import run_cypher

    return run_cypher


def export_to_neo4j(
    edges: Iterable[EdgeRecord],
    channels: Optional[Dict[str, str]] = None,
    *,
    run: Optional[CypherRunner] = None,
    batch_size: int = 500,
) -> Dict[str, int]:
    """Write channels and mention edges to Neo4j in UNWIND batches.

    `channels` (id -> name, usually the crawl metadata table) is written first
    and is authoritative for names; edge endpoints not in it keep the first
    name seen in the log.
    """
    run = run or _default_runner()
    batch_size = max(1, int(batch_size))
    run(CHANNEL_CONSTRAINT, None)

    channel_rows = [{"id": cid, "name": name} for cid, name in (channels or {}).items()]
    for i in range(0, len(channel_rows), batch_size):
        run(CHANNEL_UPSERT, {"rows": channel_rows[i:i + batch_size]})

    mentions = 0
    batch: List[Dict[str, Any]] = []
    for edge in edges:
        batch.append(edge.model_dump())
        if len(batch) >= batch_size:
            run(MENTION_UPSERT, {"rows": batch})
            mentions += len(batch)
            batch = []
    if batch:
        run(MENTION_UPSERT, {"rows": batch})
        mentions += len(batch)

    logger.info("Exported %d channels and %d mentions to Neo4j", len(channel_rows), mentions)
    return {"channels": len(channel_rows), "mentions": mentions}
