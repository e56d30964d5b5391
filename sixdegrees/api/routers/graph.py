from fastapi import APIRouter, HTTPException, Query
from typing import List, Optional

from sixdegrees.errors import MalformedEdgeRecord
from sixdegrees.models.graph import (
    ChannelRef,
    HopOut,
    PathResponse,
    ReachableItem,
    ReachableResponse,
    ReloadResponse,
    StatsResponse,
)
from sixdegrees.services.graph import get_graph, reload_graph
from sixdegrees.services.graph.cache import edge_log_path
from sixdegrees.services.graph.display import group_by_hops
from sixdegrees.services.graph.mention_graph import HopDetail, MentionGraph

router = APIRouter(tags=["graph"])


def _graph() -> MentionGraph:
    try:
        return get_graph()
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail="Edge log not found; run a crawl first")
    except MalformedEdgeRecord as exc:
        raise HTTPException(status_code=500, detail=f"Edge log is corrupt: {exc}")


def _resolve_or_404(graph: MentionGraph, name_or_id: str) -> str:
    cid = graph.resolve(name_or_id)
    if not cid:
        raise HTTPException(status_code=404, detail=f"Channel not found: {name_or_id}")
    return cid


def _hops_out(details: List[HopDetail]) -> List[HopOut]:
    return [HopOut(**d.to_dict()) for d in details]


@router.get("/channels/resolve/{name_or_id}", response_model=ChannelRef)
def api_resolve_channel(name_or_id: str):
    """Resolve a channel id or name (case-insensitive)."""
    graph = _graph()
    cid = _resolve_or_404(graph, name_or_id)
    return ChannelRef(id=cid, name=graph.channel_name(cid))


@router.get("/path", response_model=PathResponse)
def api_shortest_path(
    source: str = Query(..., description="Start channel name or id"),
    target: str = Query(..., description="End channel name or id"),
    max_hops: Optional[int] = Query(None, ge=0),
):
    """Shortest mention path between two channels, with message provenance per hop."""
    graph = _graph()
    start = _resolve_or_404(graph, source)
    end = _resolve_or_404(graph, target)
    result = graph.shortest_path(start, end, max_hops=max_hops)
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=f"No path exists from #{graph.channel_name(start)} to #{graph.channel_name(end)}",
        )
    return PathResponse(
        path=result.path,
        names=[graph.channel_name(c) for c in result.path],
        hops=result.hops,
        details=_hops_out(result.details),
    )


@router.get("/reachable", response_model=ReachableResponse)
def api_reachable(
    source: str = Query(..., description="Start channel name or id"),
    max_hops: int = Query(..., ge=1),
):
    """All channels reachable from `source` within `max_hops`, grouped by hop count."""
    graph = _graph()
    start = _resolve_or_404(graph, source)
    reachable = graph.reachable_within(start, max_hops)
    by_hops = {
        hops: [
            ReachableItem(
                id=cid,
                name=graph.channel_name(cid),
                path=reachable[cid].path,
                details=_hops_out(reachable[cid].details),
            )
            for cid in ids
        ]
        for hops, ids in group_by_hops(reachable).items()
    }
    return ReachableResponse(
        source=ChannelRef(id=start, name=graph.channel_name(start)),
        max_hops=max_hops,
        total=len(reachable),
        by_hops=by_hops,
    )


@router.get("/stats", response_model=StatsResponse)
def api_stats():
    return _graph().statistics()


@router.post("/graph/reload", response_model=ReloadResponse)
def api_reload_graph():
    """Re-read the edge log (e.g. after a crawl finished)."""
    try:
        graph = reload_graph()
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail="Edge log not found; run a crawl first")
    except MalformedEdgeRecord as exc:
        raise HTTPException(status_code=500, detail=f"Edge log is corrupt: {exc}")
    return ReloadResponse(
        total_channels=graph.total_channels,
        total_connections=graph.total_edges,
        source=edge_log_path(),
    )
