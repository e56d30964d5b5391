from collections import deque
from itertools import count

from sixdegrees.services.crawl.base import make_edge
from sixdegrees.services.graph.mention_graph import MentionGraph


NAMES = {"A": "alpha", "B": "beta", "C": "gamma", "D": "delta", "E": "epsilon", "F": "zeta"}
_ts = count(1)


def e(a, b, *, from_name=None, to_name=None):
    ts = f"1700000000.{next(_ts):06d}"
    return make_edge(
        from_id=a,
        to_id=b,
        from_name=from_name or NAMES.get(a, a),
        to_name=to_name or NAMES.get(b, b),
        ts=ts,
        archive_base="https://example.slack.com/archives",
    )


def graph_of(*pairs):
    return MentionGraph.from_edges(e(a, b) for a, b in pairs)


def bfs_distances(pairs, start):
    adj = {}
    for a, b in pairs:
        adj.setdefault(a, []).append(b)
    dist = {start: 0}
    q = deque([start])
    while q:
        n = q.popleft()
        for m in adj.get(n, []):
            if m not in dist:
                dist[m] = dist[n] + 1
                q.append(m)
    return dist


def all_simple_path_lengths(pairs, start, end):
    adj = {}
    for a, b in pairs:
        adj.setdefault(a, []).append(b)
    lengths = []

    def walk(node, seen):
        for nxt in adj.get(node, []):
            if nxt == end:
                lengths.append(len(seen))
            elif nxt not in seen:
                walk(nxt, seen | {nxt})

    walk(start, {start})
    return lengths


DENSE = [
    ("A", "B"), ("B", "C"), ("C", "D"), ("D", "E"), ("A", "C"),
    ("E", "A"), ("C", "F"), ("F", "E"), ("B", "F"), ("D", "B"),
]


def test_two_hop_path_and_directedness():
    g = graph_of(("A", "B"), ("B", "C"))
    result = g.shortest_path("A", "C")
    assert result.path == ["A", "B", "C"]
    assert result.hops == 2
    assert [(h.from_name, h.to_name) for h in result.details] == [("alpha", "beta"), ("beta", "gamma")]
    assert result.details[0].message_link.startswith("https://example.slack.com/archives/A/p")
    assert g.shortest_path("C", "A") is None


def test_same_start_and_end_is_zero_hops():
    g = graph_of(("A", "B"))
    for cid in ("A", "B"):
        result = g.shortest_path(cid, cid)
        assert result.path == [cid]
        assert result.details == []
        assert result.hops == 0


def test_shortest_path_is_minimal_against_exhaustive_enumeration():
    g = graph_of(*DENSE)
    for start in "ABCDEF":
        for end in "ABCDEF":
            if start == end:
                continue
            lengths = all_simple_path_lengths(DENSE, start, end)
            result = g.shortest_path(start, end)
            if not lengths:
                assert result is None
            else:
                assert result.hops == min(lengths)
                assert len(result.details) == result.hops


def test_max_hops_bound():
    g = graph_of(("A", "B"), ("B", "C"), ("C", "D"))
    assert g.shortest_path("A", "D", max_hops=2) is None
    assert g.shortest_path("A", "D", max_hops=3).path == ["A", "B", "C", "D"]
    assert g.shortest_path("A", "D", max_hops=10).hops == 3
    assert g.shortest_path("A", "B", max_hops=0) is None
    assert g.shortest_path("A", "B", max_hops=1).path == ["A", "B"]


def test_max_hops_returns_same_path_as_unbounded_when_within_bound():
    g = graph_of(*DENSE)
    for end in "BCDEF":
        unbounded = g.shortest_path("A", end)
        for k in range(0, 5):
            bounded = g.shortest_path("A", end, max_hops=k)
            if unbounded.hops <= k:
                assert bounded.path == unbounded.path
            else:
                assert bounded is None


def test_tie_break_follows_edge_log_order():
    g1 = graph_of(("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"))
    assert g1.shortest_path("A", "D").path == ["A", "B", "D"]
    g2 = graph_of(("A", "C"), ("A", "B"), ("B", "D"), ("C", "D"))
    assert g2.shortest_path("A", "D").path == ["A", "C", "D"]


def test_unknown_endpoints_have_no_path():
    g = graph_of(("A", "B"))
    assert "ZZZ" not in g and "A" in g
    assert g.shortest_path("A", "ZZZ") is None
    assert g.shortest_path("ZZZ", "A") is None


def test_reachable_within_diamond():
    g = graph_of(("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"))
    reachable = g.reachable_within("A", 2)
    assert set(reachable) == {"B", "C", "D"}
    assert reachable["D"].path in (["A", "B", "D"], ["A", "C", "D"])
    assert reachable["D"].hops == 2
    assert len(reachable["D"].details) == 2


def test_reachable_within_matches_true_distances():
    g = graph_of(*DENSE)
    for start in "ABCDEF":
        dist = bfs_distances(DENSE, start)
        for k in range(1, 5):
            expected = {n for n, d in dist.items() if 1 <= d <= k}
            reachable = g.reachable_within(start, k)
            assert set(reachable) == expected
            for cid, result in reachable.items():
                assert result.hops == dist[cid]


def test_reachable_excludes_start_even_on_cycles():
    g = graph_of(("A", "B"), ("B", "A"))
    assert set(g.reachable_within("A", 3)) == {"B"}
    assert g.reachable_within("A", 0) == {}


def test_resolve_by_id_then_case_insensitive_name():
    g = graph_of(("A", "B"))
    assert g.resolve("A") == "A"
    assert g.resolve("alpha") == "A"
    assert g.resolve("BETA") == "B"
    assert g.resolve("#beta") == "B"
    assert g.resolve("nope") is None
    assert g.resolve("") is None


def test_resolve_is_consistent_for_id_and_name():
    g = graph_of(*DENSE)
    for cid in "ABCDEF":
        assert g.resolve(cid) == g.resolve(g.channel_name(cid)) == cid


def test_resolve_last_registered_name_wins():
    g = MentionGraph.from_edges([
        e("X1", "A", from_name="dup"),
        e("X2", "A", from_name="Dup"),
    ])
    assert g.resolve("dup") == "X2"


def test_first_observed_name_is_kept():
    g = MentionGraph.from_edges([
        e("A", "B", to_name="beta"),
        e("B", "C", from_name="beta-renamed"),
    ])
    assert g.channel_name("B") == "beta"
    assert g.channel_name("unknown-id") == "unknown-id"


def test_hop_details_use_first_recorded_edge():
    first = e("A", "B")
    second = e("A", "B")
    g = MentionGraph.from_edges([first, second])
    details = g.hop_details(["A", "B"])
    assert len(details) == 1
    assert details[0].message_link == first.message_link
    assert g.total_edges == 2


def test_statistics_for_mutual_pair():
    stats = graph_of(("A", "B"), ("B", "A")).statistics()
    rows = {r["id"]: r for r in stats["channels_by_connections"]}
    assert rows["A"] == {"id": "A", "name": "alpha", "outgoing": 1, "incoming": 1, "total": 2}
    assert rows["B"]["outgoing"] == 1 and rows["B"]["incoming"] == 1 and rows["B"]["total"] == 2
    assert stats["total_channels"] == 2
    assert stats["total_connections"] == 2
    assert stats["average_connections"] == 1.0


def test_statistics_excludes_unresolved_channels_from_ranking():
    g = MentionGraph.from_edges([e("A", "ZPRIVATE"), e("A", "B")])
    stats = g.statistics()
    ids = [r["id"] for r in stats["channels_by_connections"]]
    assert "ZPRIVATE" not in ids
    assert stats["unresolved_channels"] == 1
    assert stats["total_channels"] == 3
    assert stats["total_connections"] == 2
    rows = {r["id"]: r for r in stats["channels_by_connections"]}
    assert rows["A"]["outgoing"] == 2
    assert rows["B"]["incoming"] == 1


def test_statistics_sorted_by_total_descending():
    g = graph_of(("A", "B"), ("C", "B"), ("D", "B"), ("A", "C"))
    totals = [r["total"] for r in g.statistics()["channels_by_connections"]]
    assert totals == sorted(totals, reverse=True)
    assert g.statistics()["channels_by_connections"][0]["id"] == "B"


def test_empty_graph_statistics():
    stats = MentionGraph().statistics()
    assert stats["total_channels"] == 0
    assert stats["average_connections"] is None
    assert stats["channels_by_connections"] == []
