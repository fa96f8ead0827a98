from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_serializer

from app.schemas.events import CamelModel
from app.time_utils import isoformat_z


class Theme(CamelModel):
    primary_color: str = "#007bff"
    secondary_color: str = "#6c757d"
    font_family: str = "Arial, sans-serif"
    border_radius: str = "8px"


class Features(CamelModel):
    analytics: bool = True
    session_recording: bool = True
    file_upload: bool = False


class TenantUpdate(CamelModel):
    brand_name: Optional[str] = None
    logo_url: Optional[str] = None
    theme: Optional[Theme] = None
    position: Optional[str] = None
    greeting: Optional[str] = None
    enabled: Optional[bool] = None
    features: Optional[Features] = None


class TenantCreate(TenantUpdate):
    tenant_id: Optional[str] = Field(default=None, min_length=1, max_length=128)


class PublicTenantConfig(CamelModel):
    """What the widget needs to render itself."""
    tenant_id: str
    brand_name: str
    logo_url: str
    theme: Theme
    position: str
    greeting: str
    enabled: bool
    features: Features


class TenantOut(PublicTenantConfig):
    created_at: datetime
    updated_at: datetime
    embed_code: Optional[str] = None

    @field_serializer("created_at", "updated_at")
    def _ts_out(self, v: datetime) -> str:
        return isoformat_z(v)


class TenantStats(CamelModel):
    tenant_id: str
    total_sessions: int
    total_messages: int
    last_activity: Optional[datetime] = None
    status: str


class EmbedCodeOut(CamelModel):
    tenant_id: str
    embed_code: str
    instructions: List[str]
