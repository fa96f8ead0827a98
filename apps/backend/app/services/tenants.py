from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.chat import ChatMessage, ChatSession
from app.models.tenant import Tenant
from app.schemas.tenants import (
    EmbedCodeOut,
    Features,
    TenantCreate,
    TenantOut,
    TenantStats,
    TenantUpdate,
    Theme,
)
from app.services.shard_store import check_tenant_id
from app.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Hi! Need help finding the right wheels for your vehicle?"

EMBED_INSTRUCTIONS = [
    "Copy and paste this code into your website",
    "Place it just before the closing </body> tag",
    "The widget will automatically load and initialize",
]


def tenant_out(tenant: Tenant, embed_code: Optional[str] = None) -> TenantOut:
    return TenantOut(
        tenant_id=tenant.tenant_id,
        brand_name=tenant.brand_name,
        logo_url=tenant.logo_url or "",
        theme=Theme.model_validate(tenant.theme or {}),
        position=tenant.position,
        greeting=tenant.greeting or "",
        enabled=bool(tenant.enabled),
        features=Features.model_validate(tenant.features or {}),
        created_at=tenant.created_at,
        updated_at=tenant.updated_at,
        embed_code=embed_code,
    )


class TenantService:
    def __init__(self, db: Session, cdn_base_url: str, clock: Clock = utc_now):
        self.db = db
        self.cdn_base_url = cdn_base_url.rstrip("/")
        self.clock = clock

    def get(self, tenant_id: str) -> Tenant:
        tenant = self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    def exists(self, tenant_id: str) -> bool:
        return self.db.get(Tenant, tenant_id) is not None

    def is_enabled(self, tenant_id: str) -> bool:
        tenant = self.db.get(Tenant, tenant_id)
        return bool(tenant and tenant.enabled)

    def list_all(self) -> List[Tenant]:
        return self.db.query(Tenant).order_by(Tenant.created_at.desc()).all()

    def create(self, data: TenantCreate) -> Tenant:
        tenant_id = data.tenant_id or f"tenant-{uuid.uuid4()}"
        # tenant ids double as analytics shard names
        check_tenant_id(tenant_id)
        if self.exists(tenant_id):
            raise ValidationError(f"Tenant {tenant_id} already exists")

        now = self.clock()
        tenant = Tenant(
            tenant_id=tenant_id,
            brand_name=data.brand_name or "Demo Shop",
            logo_url=data.logo_url or "",
            theme=(data.theme or Theme()).model_dump(by_alias=True),
            position=data.position or "bottom-right",
            greeting=data.greeting or DEFAULT_GREETING,
            enabled=data.enabled is not False,
            features=(data.features or Features()).model_dump(by_alias=True),
            created_at=now,
            updated_at=now,
        )
        self.db.add(tenant)
        self.db.commit()
        self.db.refresh(tenant)

        logger.info("Created tenant config: %s", tenant_id)
        return tenant

    def update(self, tenant_id: str, changes: TenantUpdate) -> Tenant:
        tenant = self.get(tenant_id)
        fields = changes.model_dump(exclude_unset=True, exclude_none=True)

        # nested settings merge key by key
        if "theme" in fields:
            theme = dict(tenant.theme or {})
            theme.update(changes.theme.model_dump(by_alias=True, exclude_unset=True))
            tenant.theme = theme
        if "features" in fields:
            features = dict(tenant.features or {})
            features.update(changes.features.model_dump(by_alias=True, exclude_unset=True))
            tenant.features = features

        for name in ("brand_name", "logo_url", "position", "greeting", "enabled"):
            if name in fields:
                setattr(tenant, name, fields[name])

        tenant.updated_at = self.clock()
        self.db.commit()
        self.db.refresh(tenant)

        logger.info("Updated tenant config: %s", tenant_id)
        return tenant

    def delete(self, tenant_id: str) -> None:
        tenant = self.get(tenant_id)
        self.db.delete(tenant)
        self.db.commit()
        logger.info("Deleted tenant config: %s", tenant_id)

    def embed_code(self, tenant_id: str) -> str:
        return f'<script src="{self.cdn_base_url}/widget.js" data-tenant="{tenant_id}"></script>'

    def embed(self, tenant_id: str) -> EmbedCodeOut:
        self.get(tenant_id)
        return EmbedCodeOut(
            tenant_id=tenant_id,
            embed_code=self.embed_code(tenant_id),
            instructions=list(EMBED_INSTRUCTIONS),
        )

    def stats(self, tenant_id: str) -> TenantStats:
        tenant = self.get(tenant_id)

        total_sessions = (
            self.db.query(func.count(ChatSession.session_id))
            .filter(ChatSession.tenant_id == tenant_id)
            .scalar()
            or 0
        )
        total_messages = (
            self.db.query(func.count(ChatMessage.seq))
            .join(ChatSession, ChatMessage.session_id == ChatSession.session_id)
            .filter(ChatSession.tenant_id == tenant_id)
            .scalar()
            or 0
        )
        last_activity = (
            self.db.query(func.max(ChatSession.updated_at))
            .filter(ChatSession.tenant_id == tenant_id)
            .scalar()
        )

        return TenantStats(
            tenant_id=tenant_id,
            total_sessions=total_sessions,
            total_messages=total_messages,
            last_activity=last_activity,
            status="active" if tenant.enabled else "inactive",
        )
