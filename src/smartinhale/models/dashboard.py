"""Pydantic models for derived adherence and technique data."""

from pydantic import BaseModel, ConfigDict, Field

from smartinhale.models.event import Event


class DailyAggregate(BaseModel):
    """Correct/wrong technique counts for one local calendar day."""

    date: str = Field(description="ISO calendar day (YYYY-MM-DD)")
    correct: int = 0
    wrong: int = 0

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"date": "2025-01-15", "correct": 3, "wrong": 1},
        }
    )


class TechniqueIssueCounters(BaseModel):
    """Overlapping technique-issue tallies across the whole store."""

    not_shaken: int = Field(default=0, description="Events with shakeOk false")
    weak_inhale: int = Field(
        default=0, description="Events at or below the strength threshold"
    )
    orientation_issues: int = Field(
        default=0, description="Events with orientationOk false"
    )


class DeviceInfo(BaseModel):
    """Device details reported by the transport on connect."""

    name: str
    battery: int | None = Field(default=None, ge=0, le=100, description="Percent")


class DashboardSummary(BaseModel):
    """Everything the presentation layer needs for one render."""

    adherence_percent: int = Field(ge=0, le=100)
    todays_count: int = Field(ge=0)
    expected_doses_per_day: int
    last_event: Event | None = None
    recent_events: list[Event] = Field(default_factory=list)
    daily: list[DailyAggregate] = Field(default_factory=list)
    technique_issues: TechniqueIssueCounters = Field(
        default_factory=TechniqueIssueCounters
    )
    total_events: int = 0
    status: str = "idle"
    device: DeviceInfo | None = None
