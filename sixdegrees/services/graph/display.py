"""Plain-text rendering of graph query results for the CLI and shell."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .mention_graph import MentionGraph, PathResult


def format_path(result: Optional[PathResult], start_name: str, end_name: str) -> List[str]:
    if result is None:
        return [f"[NOT FOUND] No path exists from #{start_name} to #{end_name}"]
    lines = [f"[PATH FOUND] {result.hops} hop(s) from #{start_name} to #{end_name}:", ""]
    for i, hop in enumerate(result.details, start=1):
        lines.append(f"  {i}. #{hop.from_name} → #{hop.to_name}")
        lines.append(f"     {hop.message_link}")
        lines.append(f"     {hop.message_date}")
        lines.append("")
    return lines


def group_by_hops(reachable: Dict[str, PathResult]) -> Dict[int, List[str]]:
    groups: Dict[int, List[str]] = {}
    for channel_id, result in reachable.items():
        groups.setdefault(result.hops, []).append(channel_id)
    return dict(sorted(groups.items()))


def format_reachable(
    reachable: Dict[str, PathResult],
    start_name: str,
    max_hops: int,
    graph: MentionGraph,
    *,
    show: int = 5,
) -> List[str]:
    if not reachable:
        return [f"[INFO] No channels reachable within {max_hops} hop(s) from #{start_name}"]
    lines = [f"[REACHABLE] {len(reachable)} channel(s) within {max_hops} hop(s) from #{start_name}:", ""]
    for hops, ids in group_by_hops(reachable).items():
        lines.append(f"{hops} hop(s): {len(ids)} channel(s)")
        for cid in ids[:show]:
            lines.append(f"  - #{graph.channel_name(cid)}")
        if len(ids) > show:
            lines.append(f"  ... and {len(ids) - show} more")
        lines.append("")
    return lines


def _degree_line(i: int, row: Dict[str, Any]) -> str:
    return f"    {i}. #{row['name']} - {row['total']} total ({row['outgoing']} out, {row['incoming']} in)"


def format_stats(stats: Dict[str, Any], *, top: int = 10) -> List[str]:
    rows = stats["channels_by_connections"]
    lines = [
        "[STATS] Graph Statistics:",
        f"  Total channels: {stats['total_channels']}",
        f"  Total connections: {stats['total_connections']}",
    ]
    avg = stats.get("average_connections")
    if avg is not None:
        lines.append(f"  Average connections per channel: {avg:.2f}")
    if stats.get("unresolved_channels"):
        lines.append(f"  Unresolved channels (never listed): {stats['unresolved_channels']}")

    lines.extend(["", "  Most Connected Channels:"])
    lines.extend(_degree_line(i, row) for i, row in enumerate(rows[:top], start=1))

    lines.extend(["", "  Least Connected Channels:"])
    least = list(reversed(rows[-top:])) if rows else []
    lines.extend(_degree_line(i, row) for i, row in enumerate(least, start=1))

    isolated = [r for r in rows if r["total"] == 0]
    if isolated:
        lines.extend(["", f"  Isolated Channels (no connections): {len(isolated)}"])
        lines.extend(f"    - #{r['name']}" for r in isolated[:5])
        if len(isolated) > 5:
            lines.append(f"    ... and {len(isolated) - 5} more")
    return lines
