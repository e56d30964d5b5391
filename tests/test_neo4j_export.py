import json
import os

import pytest

from sixdegrees.services.crawl.base import make_edge
from sixdegrees.services.graph.export import (
    CHANNEL_CONSTRAINT,
    CHANNEL_UPSERT,
    MENTION_UPSERT,
    export_to_neo4j,
    load_channel_table,
)


def _edge(a, b, ts):
    return make_edge(
        from_id=a, to_id=b, from_name=a.lower(), to_name=b.lower(), ts=ts,
        archive_base="https://example.slack.com/archives",
    )


class FakeRunner:
    def __init__(self):
        self.calls = []

    def __call__(self, query, params=None):
        self.calls.append((query, params))
        return []


def test_export_batches_channels_then_mentions():
    run = FakeRunner()
    edges = [_edge("CA", "CB", f"1700000000.00000{i}") for i in range(5)]
    summary = export_to_neo4j(edges, {"CA": "alpha", "CB": "beta", "CC": "gamma"}, run=run, batch_size=2)

    assert summary == {"channels": 3, "mentions": 5}
    queries = [q for q, _ in run.calls]
    assert queries[0] == CHANNEL_CONSTRAINT
    assert queries[1:3] == [CHANNEL_UPSERT, CHANNEL_UPSERT]
    assert queries[3:] == [MENTION_UPSERT] * 3
    assert [len(p["rows"]) for q, p in run.calls if q == MENTION_UPSERT] == [2, 2, 1]
    assert run.calls[1][1]["rows"][0] == {"id": "CA", "name": "alpha"}


def test_mention_rows_use_cypher_parameter_names():
    run = FakeRunner()
    export_to_neo4j([_edge("CA", "CB", "1700000000.000001")], run=run)
    row = run.calls[-1][1]["rows"][0]
    assert set(row) == {
        "from_id", "to_id", "from_name", "to_name", "message_ts", "message_date", "message_link",
    }
    for key in row:
        assert f"row.{key}" in MENTION_UPSERT
    assert row["message_link"].endswith("/CA/p1700000000000001")


def test_empty_log_only_creates_constraint():
    run = FakeRunner()
    assert export_to_neo4j([], run=run) == {"channels": 0, "mentions": 0}
    assert run.calls == [(CHANNEL_CONSTRAINT, None)]


def test_load_channel_table_from_metadata(tmp_path):
    meta = tmp_path / "channel-metadata.json"
    meta.write_text(
        json.dumps({"workspace": "Test", "channels": {"CA": {"id": "CA", "name": "alpha"}, "CB": {"id": "CB"}}}),
        encoding="utf-8",
    )
    assert load_channel_table(str(meta)) == {"CA": "alpha", "CB": "CB"}


def neo4j_available():
    return os.getenv("TEST_NEO4J") == "1"


@pytest.mark.skipif(not neo4j_available(), reason="Neo4j not available for integration test")
def test_export_is_idempotent_against_neo4j():
    from sixdegrees.db.neo4j_connector import run_cypher

    edges = [_edge("TESTA", "TESTB", "1700000000.000001"), _edge("TESTB", "TESTC", "1700000000.000002")]
    export_to_neo4j(edges)
    export_to_neo4j(edges)
    rows = run_cypher(
        "MATCH (:Channel {id: $a})-[m:MENTIONS]->(:Channel {id: $b}) RETURN count(m) AS n",
        {"a": "TESTA", "b": "TESTB"},
    )
    assert rows[0]["n"] == 1
    run_cypher("MATCH (c:Channel) WHERE c.id IN ['TESTA', 'TESTB', 'TESTC'] DETACH DELETE c")
