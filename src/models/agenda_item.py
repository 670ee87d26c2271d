"""AgendaItem model for the timed sections of an L10 meeting."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from src.models.base import BaseEntity


class AgendaSection(str, Enum):
    """Section types that make up an L10 agenda."""

    SEGUE = "segue"
    SCORECARD = "scorecard"
    ROCKS = "rocks"
    HEADLINES = "headlines"
    TODOS = "todos"
    IDS = "ids"
    CONCLUDE = "conclude"


class AgendaItem(BaseEntity):
    """One section of a meeting's agenda.

    Timing is recorded as two nullable timestamps. The derived
    pending/active/complete state is computed from them by
    src.agenda.state.derive_state rather than stored.
    """

    meeting_id: UUID = Field(description="Meeting this agenda item belongs to")
    section: AgendaSection = Field(description="Agenda section type")
    sort_order: int = Field(description="Position in the agenda, unique per meeting")
    duration_minutes: int | None = Field(
        default=None,
        ge=0,
        description="Planned duration (display only)",
    )
    started_at: datetime | None = Field(
        default=None,
        description="When the section was last started",
    )
    completed_at: datetime | None = Field(
        default=None,
        description="When the section was finished",
    )
    notes: str | None = Field(default=None, description="Facilitator notes")


class AgendaItemTemplate(BaseModel):
    """Blueprint used to seed an agenda when a meeting is scheduled."""

    section: AgendaSection
    duration_minutes: int = Field(ge=0)
    sort_order: int


DEFAULT_AGENDA: tuple[AgendaItemTemplate, ...] = (
    AgendaItemTemplate(section=AgendaSection.SEGUE, duration_minutes=5, sort_order=1),
    AgendaItemTemplate(
        section=AgendaSection.SCORECARD, duration_minutes=5, sort_order=2
    ),
    AgendaItemTemplate(section=AgendaSection.ROCKS, duration_minutes=5, sort_order=3),
    AgendaItemTemplate(
        section=AgendaSection.HEADLINES, duration_minutes=5, sort_order=4
    ),
    AgendaItemTemplate(section=AgendaSection.TODOS, duration_minutes=5, sort_order=5),
    AgendaItemTemplate(section=AgendaSection.IDS, duration_minutes=60, sort_order=6),
    AgendaItemTemplate(
        section=AgendaSection.CONCLUDE, duration_minutes=5, sort_order=7
    ),
)
