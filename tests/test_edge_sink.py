import io
import json

from sixdegrees.services.crawl.base import make_edge
from sixdegrees.services.crawl.pipeline import EdgeSink, StreamEdgeSink, write_json_atomic


def _edge(to_id, ts="1700000000.000100"):
    return make_edge(
        from_id="C1", to_id=to_id, from_name="lounge", to_name=None, ts=ts,
        archive_base="https://example.slack.com/archives",
    )


def test_edge_sink_appends_batches_in_order(tmp_path):
    path = tmp_path / "out" / "channel-links.jsonl"
    sink = EdgeSink(str(path))
    assert sink.append([_edge("C2"), _edge("C3")]) == 2
    assert sink.append([_edge("C4")]) == 1

    with open(path, "r", encoding="utf-8") as f:
        rows = [json.loads(l) for l in f if l.strip()]
    assert [r["to"] for r in rows] == ["C2", "C3", "C4"]
    assert sink.written == 3


def test_edge_sink_never_truncates_existing_log(tmp_path):
    path = tmp_path / "channel-links.jsonl"
    path.write_text('{"existing": true}\n', encoding="utf-8")
    EdgeSink(str(path)).append([_edge("C2")])
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == '{"existing": true}'
    assert json.loads(lines[1])["to"] == "C2"


def test_edge_sink_empty_batch_writes_nothing(tmp_path):
    path = tmp_path / "channel-links.jsonl"
    assert EdgeSink(str(path)).append([]) == 0
    assert not path.exists()


def test_stream_sink_prints_lines_only():
    buf = io.StringIO()
    sink = StreamEdgeSink(buf)
    sink.append([_edge("C2"), _edge("C3")])
    lines = buf.getvalue().splitlines()
    assert [json.loads(l)["to"] for l in lines] == ["C2", "C3"]


def test_write_json_atomic_replaces_file_and_leaves_no_temp(tmp_path):
    path = tmp_path / "state.json"
    write_json_atomic(str(path), {"v": 1})
    write_json_atomic(str(path), {"v": 2})
    assert json.loads(path.read_text(encoding="utf-8")) == {"v": 2}
    assert sorted(p.name for p in tmp_path.iterdir()) == ["state.json"]
