from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_serializer

from app.schemas.events import CamelModel
from app.time_utils import isoformat_z


class SessionCreate(CamelModel):
    tenant_id: Optional[str] = None
    session_id: Optional[str] = Field(default=None, max_length=64)


class MessageIn(CamelModel):
    session_id: Optional[str] = None
    message: Optional[str] = None
    sender: str = Field(default="user", pattern="^(user|assistant)$")


class SessionEventIn(CamelModel):
    session_id: Optional[str] = None
    event_type: Optional[str] = None
    event_data: Optional[Dict[str, Any]] = None


class MessageOut(CamelModel):
    id: str
    message: str
    sender: str
    timestamp: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_serializer("timestamp")
    def _ts_out(self, v: datetime) -> str:
        return isoformat_z(v)


class SessionMetadata(CamelModel):
    message_count: int = 0
    first_message_at: Optional[datetime] = None
    last_message_at: Optional[datetime] = None


class SessionOut(CamelModel):
    session_id: str
    tenant_id: str
    messages: List[MessageOut]
    metadata: SessionMetadata
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def _ts_out(self, v: datetime) -> str:
        return isoformat_z(v)


class MessageExchangeOut(CamelModel):
    user_message: MessageOut
    assistant_message: Optional[MessageOut] = None
    session_id: str


class SessionStats(CamelModel):
    tenant_id: str
    total_sessions: int
    total_messages: int
    avg_messages_per_session: float
    last_activity: Optional[datetime] = None
