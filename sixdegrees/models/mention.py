from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, Optional


class Channel(BaseModel):
    """A workspace channel as listed by the directory.

    `name` is a snapshot; only `id` is stable.
    """
    id: str = Field(..., description="Opaque channel id, e.g. C0123ABCD")
    name: str = Field(..., description="Display name at listing time")

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Channel":
        cid = str(raw.get("id") or "").strip()
        if not cid:
            raise ValueError("channel object without id")
        return cls(id=cid, name=str(raw.get("name") or cid))


class EdgeRecord(BaseModel):
    """One directed mention: a message in `from` linkified channel `to`.

    Serialized with the camelCase keys used in the edge log.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_id: str = Field(..., alias="from")
    to_id: str = Field(..., alias="to")
    from_name: str = Field(..., alias="fromName")
    to_name: str = Field(..., alias="toName")
    message_ts: str = Field(..., alias="messageTs")
    message_date: str = Field(..., alias="messageDate", description="ISO-8601 instant")
    message_link: str = Field(..., alias="messageLink")

    @model_validator(mode="after")
    def _no_self_mention(self) -> "EdgeRecord":
        if self.from_id == self.to_id:
            raise ValueError(f"self-mention edge for channel {self.from_id}")
        return self


class Checkpoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    last_channel_index: int = Field(..., alias="lastChannelIndex")
    last_channel_id: Optional[str] = Field(None, alias="lastChannelId")
    last_message_count: int = Field(0, alias="lastMessageCount")
    timestamp: str = Field(..., description="ISO-8601 time the checkpoint was written")
