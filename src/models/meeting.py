"""Meeting model for a scheduled L10 meeting instance."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import ConfigDict, Field

from src.models.base import TimestampedEntity


class MeetingType(str, Enum):
    """Kind of L10 meeting."""

    LEADERSHIP = "leadership"
    DEPARTMENT = "department"
    QUARTERLY = "quarterly"


class MeetingStatus(str, Enum):
    """Lifecycle status of a meeting."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Meeting(TimestampedEntity):
    """An L10 meeting instance.

    Meetings are the aggregate that owns an agenda. Every meeting is scoped
    to one organization, which is what callers are authorized against.
    """

    model_config = ConfigDict(validate_assignment=True)

    organization_id: UUID = Field(description="Owning organization (tenant)")
    title: str = Field(min_length=1, max_length=500, description="Meeting title")
    meeting_type: MeetingType = Field(default=MeetingType.LEADERSHIP)
    scheduled_at: datetime = Field(description="When the meeting is scheduled")
    started_at: datetime | None = Field(default=None)
    ended_at: datetime | None = Field(default=None)
    duration_minutes: int | None = Field(
        default=None,
        ge=0,
        description="Actual duration, set when the meeting ends",
    )
    status: MeetingStatus = Field(default=MeetingStatus.SCHEDULED)
    rating: int | None = Field(
        default=None,
        ge=1,
        le=10,
        description="Attendee rating of the meeting",
    )
    created_by: UUID | None = Field(default=None, description="Profile that created it")

    @property
    def is_open(self) -> bool:
        """Whether the meeting has not been completed or cancelled."""
        return self.status in (MeetingStatus.SCHEDULED, MeetingStatus.IN_PROGRESS)
