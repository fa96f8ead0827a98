# apps/backend/app/routes/analytics.py
from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from app.core.auth import require_admin
from app.core.config import Settings
from app.core.errors import AppError
from app.deps import get_analytics, get_settings, http_error
from app.schemas.events import (
  CleanupOut,
  CleanupRequest,
  DailyMetrics,
  EventSummary,
  Overview,
  Report,
  StatusOut,
)
from app.services.analytics import AnalyticsService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/tenant/{tenant_id}/overview", response_model=Overview)
def tenant_overview(
  tenant_id: str,
  days: int | None = Query(default=None, ge=1, le=3650),
  analytics: AnalyticsService = Depends(get_analytics),
  settings: Settings = Depends(get_settings),
):
  days = days or settings.overview_days
  try:
    return analytics.overview(tenant_id, days)
  except AppError as e:
    raise http_error(e) from e


@router.get("/tenant/{tenant_id}/metrics", response_model=DailyMetrics)
def tenant_metrics(
  tenant_id: str,
  days: int | None = Query(default=None, ge=1, le=3650),
  analytics: AnalyticsService = Depends(get_analytics),
  settings: Settings = Depends(get_settings),
):
  days = days or settings.report_days
  try:
    return analytics.daily_metrics(tenant_id, days)
  except AppError as e:
    raise http_error(e) from e


@router.get("/tenant/{tenant_id}/report", response_model=Report)
def tenant_report(
  tenant_id: str,
  days: int | None = Query(default=None, ge=1, le=3650),
  download: bool = False,
  analytics: AnalyticsService = Depends(get_analytics),
  settings: Settings = Depends(get_settings),
):
  days = days or settings.report_days
  try:
    report = analytics.report(tenant_id, days)
  except AppError as e:
    raise http_error(e) from e

  if not download:
    return report

  # Same payload, framed as a file attachment
  filename = f"analytics_{tenant_id}_{report.generated_at.date().isoformat()}.json"
  return JSONResponse(
    content=report.model_dump(mode="json", by_alias=True),
    headers={"Content-Disposition": f'attachment; filename="{filename}"'},
  )


@router.get("/tenant/{tenant_id}/events", response_model=EventSummary)
def tenant_event_types(
  tenant_id: str,
  days: int | None = Query(default=None, ge=1, le=3650),
  analytics: AnalyticsService = Depends(get_analytics),
  settings: Settings = Depends(get_settings),
):
  days = days or settings.overview_days
  try:
    return analytics.event_summary(tenant_id, days)
  except AppError as e:
    raise http_error(e) from e


@router.post("/cleanup", response_model=CleanupOut)
def cleanup_old_events(
  body: CleanupRequest | None = Body(default=None),
  analytics: AnalyticsService = Depends(get_analytics),
  settings: Settings = Depends(get_settings),
):
  days_to_keep = settings.retention_days
  if body is not None and body.days_to_keep is not None:
    days_to_keep = body.days_to_keep

  try:
    result = analytics.cleanup(days_to_keep)
  except AppError as e:
    raise http_error(e) from e

  return CleanupOut(
    message=f"Cleaned up {result.cleaned_count} old analytics files",
    cleaned_count=result.cleaned_count,
    cutoff_date=result.cutoff_date,
  )


@router.get("/status", response_model=StatusOut)
def analytics_status(analytics: AnalyticsService = Depends(get_analytics)):
  try:
    return analytics.status()
  except AppError as e:
    raise http_error(e) from e
