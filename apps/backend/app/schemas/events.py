# apps/backend/app/schemas/events.py
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from app.time_utils import isoformat_z


class CamelModel(BaseModel):
  # Wire and on-disk keys are camelCase; attributes stay snake_case
  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventIn(CamelModel):
  """
  Event as submitted by the widget or by another service.
  Everything is optional here so the event log can reject missing
  required fields with its own error instead of a schema error.
  """
  event_type: Optional[str] = None
  tenant_id: Optional[str] = None
  session_id: Optional[str] = None

  # Schema-less: any JSON value under string keys
  data: Optional[Dict[str, Any]] = None

  user_agent: Optional[str] = None
  ip_address: Optional[str] = None


class StoredEvent(CamelModel):
  """One line of a shard. Immutable once written."""
  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

  event_type: str = Field(..., min_length=1)
  tenant_id: str = Field(..., min_length=1)
  session_id: Optional[str] = None
  timestamp: datetime
  data: Dict[str, Any] = Field(default_factory=dict)
  user_agent: Optional[str] = None
  ip_address: Optional[str] = None

  @field_validator("timestamp")
  @classmethod
  def _as_utc(cls, v: datetime) -> datetime:
    if v.tzinfo is None:
      return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)

  @field_validator("data", mode="before")
  @classmethod
  def _null_data(cls, v: Any) -> Any:
    return {} if v is None else v

  @field_serializer("timestamp")
  def _ts_out(self, v: datetime) -> str:
    return isoformat_z(v)

  @property
  def day(self) -> date:
    return self.timestamp.date()

  def to_line(self) -> str:
    return self.model_dump_json(by_alias=True) + "\n"


class TrackEventOut(CamelModel):
  success: bool = True
  # The stored timestamp doubles as the acknowledgement token
  event_id: str


class DateRange(CamelModel):
  start: date
  end: date


class DailyBucket(CamelModel):
  day: date = Field(..., alias="date")
  total_events: int = 0
  unique_sessions: int = 0
  event_types: Dict[str, int] = Field(default_factory=dict)


class Overview(CamelModel):
  tenant_id: str
  date_range: DateRange
  total_events: int
  unique_sessions: int
  event_types: Dict[str, int]
  daily_breakdown: List[DailyBucket]


class DailyMetricsSummary(CamelModel):
  total_events: int
  avg_events_per_day: float
  total_sessions: int
  most_active_day: Optional[DailyBucket] = None


class DailyMetrics(CamelModel):
  tenant_id: str
  period: str
  metrics: List[DailyBucket]
  summary: DailyMetricsSummary


class TopEventType(CamelModel):
  type: str
  count: int


class ReportInsights(CamelModel):
  total_engagement: int
  session_conversion_rate: str
  avg_session_length: str
  top_event_types: List[TopEventType]
  busiest_day: Optional[date] = None


class Report(CamelModel):
  tenant_id: str
  generated_at: datetime
  period: str
  overview: Overview
  daily_metrics: List[DailyBucket]
  insights: ReportInsights

  @field_serializer("generated_at")
  def _generated_out(self, v: datetime) -> str:
    return isoformat_z(v)


class EventSummary(CamelModel):
  tenant_id: str
  period: str
  event_types: Dict[str, int]
  total_events: int
  unique_sessions: int


class CleanupRequest(CamelModel):
  days_to_keep: Optional[int] = Field(default=None, ge=0)


class CleanupOut(CamelModel):
  success: bool = True
  message: str
  cleaned_count: int
  cutoff_date: date


class ShardStatus(CamelModel):
  filename: str
  size: int
  event_count: int
  last_modified: datetime


class StatusOut(CamelModel):
  status: str = "ok"
  total_files: int
  total_events: int
  total_size: int
  files: List[ShardStatus]
