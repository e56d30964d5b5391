from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class ChannelRef(BaseModel):
    id: str
    name: str


class HopOut(BaseModel):
    from_name: str = Field(..., description="Source channel name")
    to_name: str = Field(..., description="Target channel name")
    message_link: str
    message_date: str


class PathResponse(BaseModel):
    path: List[str] = Field(..., description="Channel ids from source to target")
    names: List[str]
    hops: int
    details: List[HopOut]


class ReachableItem(BaseModel):
    id: str
    name: str
    path: List[str]
    details: List[HopOut]


class ReachableResponse(BaseModel):
    source: ChannelRef
    max_hops: int
    total: int
    by_hops: Dict[int, List[ReachableItem]]


class ChannelDegree(BaseModel):
    id: str
    name: str
    outgoing: int
    incoming: int
    total: int


class StatsResponse(BaseModel):
    total_channels: int
    total_connections: int
    unresolved_channels: int = 0
    average_connections: Optional[float] = None
    channels_by_connections: List[ChannelDegree]


class ReloadResponse(BaseModel):
    total_channels: int
    total_connections: int
    source: str
