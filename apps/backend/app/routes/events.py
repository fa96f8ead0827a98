# apps/backend/app/routes/events.py
from fastapi import APIRouter, Depends, Request

from app.core.config import Settings
from app.core.errors import AppError, ForbiddenError, NotFoundError
from app.deps import client_info, get_analytics, get_settings, get_tenants, http_error
from app.schemas.events import EventIn, TrackEventOut
from app.services.analytics import AnalyticsService
from app.services.tenants import TenantService
from app.time_utils import isoformat_z

router = APIRouter()


def _check_tenant(tenants: TenantService, tenant_id: str):
  if not tenants.exists(tenant_id):
    raise NotFoundError(f"Tenant {tenant_id} not found")
  if not tenants.is_enabled(tenant_id):
    raise ForbiddenError("Chat widget is disabled for this tenant")


@router.post("/event", response_model=TrackEventOut)
def track_event(
  evt: EventIn,
  request: Request,
  analytics: AnalyticsService = Depends(get_analytics),
  tenants: TenantService = Depends(get_tenants),
  settings: Settings = Depends(get_settings),
):
  # Transport fields always come from the request, never from the body
  user_agent, ip_address = client_info(request)
  evt = evt.model_copy(update={"user_agent": user_agent, "ip_address": ip_address})

  try:
    if settings.require_known_tenant and evt.tenant_id:
      _check_tenant(tenants, evt.tenant_id)
    event = analytics.track(evt)
  except AppError as e:
    raise http_error(e) from e

  return TrackEventOut(event_id=isoformat_z(event.timestamp))
