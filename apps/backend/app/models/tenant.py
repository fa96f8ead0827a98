from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base
from app.time_utils import utc_now


class Tenant(Base):
    __tablename__ = "tenants"

    tenant_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    brand_name: Mapped[str] = mapped_column(String(255), default="Demo Shop")
    logo_url: Mapped[str] = mapped_column(Text, default="")

    # camelCase keys: primaryColor, secondaryColor, fontFamily, borderRadius
    theme: Mapped[dict] = mapped_column(JSON, default=dict)
    position: Mapped[str] = mapped_column(String(32), default="bottom-right")
    greeting: Mapped[str] = mapped_column(Text, default="")
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    # camelCase keys: analytics, sessionRecording, fileUpload
    features: Mapped[dict] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
