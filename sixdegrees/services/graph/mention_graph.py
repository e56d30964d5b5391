from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterable, List, Optional

from sixdegrees.models.mention import EdgeRecord


@dataclass
class HopDetail:
    from_name: str
    to_name: str
    message_link: str
    message_date: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "from_name": self.from_name,
            "to_name": self.to_name,
            "message_link": self.message_link,
            "message_date": self.message_date,
        }


@dataclass
class PathResult:
    path: List[str]
    details: List[HopDetail]

    @property
    def hops(self) -> int:
        return len(self.path) - 1


@dataclass
class _Node:
    name: str
    edges: List[EdgeRecord] = field(default_factory=list)


class MentionGraph:
    """Directed channel-mention graph held fully in memory.

    Nodes are created lazily from edge endpoints, keeping the first name seen
    for each id. Outgoing edges keep edge-log order, which decides tie-breaks
    between equally short paths.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, _Node] = {}
        self._name_index: Dict[str, str] = {}
        self._edge_count = 0

    @classmethod
    def from_edges(cls, edges: Iterable[EdgeRecord]) -> "MentionGraph":
        graph = cls()
        for e in edges:
            graph.add_edge(e)
        return graph

    def _ensure_node(self, channel_id: str, name: str) -> _Node:
        node = self._nodes.get(channel_id)
        if node is None:
            node = _Node(name=name)
            self._nodes[channel_id] = node
            # Last registered id wins for a duplicated name
            self._name_index[name.lower()] = channel_id
        return node

    def add_edge(self, edge: EdgeRecord) -> None:
        source = self._ensure_node(edge.from_id, edge.from_name)
        self._ensure_node(edge.to_id, edge.to_name)
        source.edges.append(edge)
        self._edge_count += 1

    # -- lookups -----------------------------------------------------------

    def __contains__(self, channel_id: str) -> bool:
        return channel_id in self._nodes

    @property
    def total_channels(self) -> int:
        return len(self._nodes)

    @property
    def total_edges(self) -> int:
        return self._edge_count

    def outgoing(self, channel_id: str) -> List[EdgeRecord]:
        node = self._nodes.get(channel_id)
        return list(node.edges) if node else []

    def resolve(self, name_or_id: str) -> Optional[str]:
        """Map an id or a (case-insensitive) name to a channel id."""
        if not name_or_id:
            return None
        if name_or_id in self._nodes:
            return name_or_id
        return self._name_index.get(name_or_id.lstrip("#").lower())

    def channel_name(self, channel_id: str) -> str:
        node = self._nodes.get(channel_id)
        return node.name if node else channel_id

    # -- queries -----------------------------------------------------------

    def shortest_path(self, start: str, end: str, max_hops: Optional[int] = None) -> Optional[PathResult]:
        """Breadth-first search for a minimum-hop path from `start` to `end`.

        Nodes are marked visited when enqueued, so each is expanded at most
        once. A partial path is not expanded once it already holds `max_hops`
        or more edges. Returns None when no path (within the bound) exists.
        """
        if start == end:
            return PathResult(path=[start], details=[])

        queue: Deque[List[str]] = deque([[start]])
        visited = {start}
        while queue:
            path = queue.popleft()
            if max_hops is not None and len(path) > max_hops:
                continue
            node = self._nodes.get(path[-1])
            if node is None:
                continue
            for edge in node.edges:
                if edge.to_id == end:
                    full = path + [end]
                    return PathResult(path=full, details=self.hop_details(full))
                if edge.to_id not in visited:
                    visited.add(edge.to_id)
                    queue.append(path + [edge.to_id])
        return None

    def reachable_within(self, start: str, max_hops: int) -> Dict[str, PathResult]:
        """Every channel at distance 1..max_hops from `start`, with its BFS path.

        Insertion order of the result is discovery order (non-decreasing hops).
        """
        reachable: Dict[str, PathResult] = {}
        if max_hops < 1:
            return reachable
        queue: Deque[List[str]] = deque([[start]])
        visited = {start}
        while queue:
            path = queue.popleft()
            # A path holding max_hops edges cannot be extended within the bound
            if len(path) > max_hops:
                continue
            node = self._nodes.get(path[-1])
            if node is None:
                continue
            for edge in node.edges:
                if edge.to_id in visited:
                    continue
                visited.add(edge.to_id)
                new_path = path + [edge.to_id]
                queue.append(new_path)
                reachable[edge.to_id] = PathResult(path=new_path, details=self.hop_details(new_path))
        return reachable

    def hop_details(self, path: List[str]) -> List[HopDetail]:
        """Provenance for each consecutive pair in `path` (first recorded edge wins)."""
        details: List[HopDetail] = []
        for a, b in zip(path, path[1:]):
            node = self._nodes.get(a)
            edge = next((e for e in node.edges if e.to_id == b), None) if node else None
            if edge is None:
                continue
            details.append(
                HopDetail(
                    from_name=self.channel_name(a),
                    to_name=self.channel_name(b),
                    message_link=edge.message_link,
                    message_date=edge.message_date,
                )
            )
        return details

    def statistics(self) -> Dict[str, Any]:
        """Totals plus a per-channel degree ranking sorted by total, descending.

        Channels whose recorded name equals their id were only ever seen as
        mention targets (never listed by the directory); they are left out of
        the ranking and edges pointing at them add no incoming count.
        """
        ranked: Dict[str, Dict[str, Any]] = {}
        unresolved = 0
        for cid, node in self._nodes.items():
            if node.name == cid:
                unresolved += 1
                continue
            ranked[cid] = {"id": cid, "name": node.name, "outgoing": len(node.edges), "incoming": 0}

        for node in self._nodes.values():
            for edge in node.edges:
                target = ranked.get(edge.to_id)
                if target is not None:
                    target["incoming"] += 1

        rows = list(ranked.values())
        for row in rows:
            row["total"] = row["incoming"] + row["outgoing"]
        rows.sort(key=lambda r: r["total"], reverse=True)

        total_channels = len(self._nodes)
        return {
            "total_channels": total_channels,
            "total_connections": self._edge_count,
            "unresolved_channels": unresolved,
            "average_connections": (self._edge_count / total_channels) if total_channels else None,
            "channels_by_connections": rows,
        }
