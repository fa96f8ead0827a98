from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import AppError
from app.db import get_db
from app.services.analytics import AnalyticsService
from app.services.chat import ChatService
from app.services.tenants import TenantService


def http_error(exc: AppError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def client_info(request: Request) -> tuple[str | None, str | None]:
    """(user agent, client ip) as seen by the transport."""
    ip = request.client.host if request.client else None
    return request.headers.get("user-agent"), ip


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_analytics(request: Request) -> AnalyticsService:
    return request.app.state.analytics


def get_tenants(request: Request, db: Session = Depends(get_db)) -> TenantService:
    return TenantService(db, request.app.state.settings.cdn_base_url, request.app.state.clock)


def get_chat(
    request: Request,
    db: Session = Depends(get_db),
    analytics: AnalyticsService = Depends(get_analytics),
    tenants: TenantService = Depends(get_tenants),
) -> ChatService:
    return ChatService(db, analytics, tenants, request.app.state.clock)
