import pytest

from sixdegrees.errors import MalformedEdgeRecord
from sixdegrees.services.crawl.base import encode_edge, make_edge
from sixdegrees.services.graph.loader import iter_edge_records, load_graph


def _line(a, b, ts, an=None, bn=None):
    return encode_edge(
        make_edge(
            from_id=a, to_id=b, from_name=an or a.lower(), to_name=bn or b.lower(), ts=ts,
            archive_base="https://example.slack.com/archives",
        )
    )


def write_log(path, lines):
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


def test_load_graph_reads_log_in_file_order(tmp_path):
    path = write_log(
        tmp_path / "channel-links.jsonl",
        [
            _line("CA", "CB", "1700000000.000001"),
            "",
            _line("CA", "CC", "1700000000.000002"),
            _line("CB", "CC", "1700000000.000003"),
        ],
    )
    graph = load_graph(path)
    assert graph.total_channels == 3
    assert graph.total_edges == 3
    assert [e.to_id for e in graph.outgoing("CA")] == ["CB", "CC"]
    assert graph.shortest_path("CA", "CC").path == ["CA", "CC"]


def test_malformed_line_fails_the_whole_load(tmp_path):
    path = write_log(tmp_path / "channel-links.jsonl", [_line("CA", "CB", "1.000001"), '{"from": "CA"'])
    with pytest.raises(MalformedEdgeRecord) as ei:
        load_graph(path)
    assert ei.value.line_no == 2


def test_iter_edge_records_is_lazy(tmp_path):
    path = write_log(tmp_path / "channel-links.jsonl", [_line("CA", "CB", "1.000001"), "broken"])
    records = iter_edge_records(path)
    first = next(records)
    assert first.to_id == "CB"
    with pytest.raises(MalformedEdgeRecord):
        next(records)


def test_cross_run_duplicates_kept_unless_deduped(tmp_path):
    path = write_log(
        tmp_path / "channel-links.jsonl",
        [
            _line("CA", "CB", "1700000000.000009"),
            _line("CA", "CB", "1700000000.000001"),
        ],
    )
    assert load_graph(path).total_edges == 2
    deduped = load_graph(path, dedupe=True)
    assert deduped.total_edges == 1
    assert deduped.outgoing("CA")[0].message_ts == "1700000000.000009"


def test_missing_log_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_graph(str(tmp_path / "nope.jsonl"))
