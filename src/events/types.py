"""Typed integration events for L10 meetings.

Meeting lifecycle:
- MeetingCreated: A meeting was scheduled with its default agenda
- MeetingStarted: A meeting moved to in_progress
- MeetingCompleted: A meeting ended and its agenda was closed out

Agenda progression:
- AgendaItemStarted: A section became active for the first time
- AgendaItemCompleted: The active section was finished
- AgendaItemReset: The active section was returned to pending
- AgendaItemReactivated: A finished section became active again
- AgendaItemReopened: A finished section was navigated back into
- AgendaItemNotesUpdated: Facilitator notes changed
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from pydantic import Field

from src.agenda.engine import ChangeKind, TransitionChange
from src.events.base import Event
from src.models.agenda_item import AgendaSection


class MeetingCreated(Event):
    """Emitted when a new L10 meeting is scheduled."""

    event_type: ClassVar[str] = "l10/meeting.created"
    meeting_id: UUID = Field(description="ID of the meeting")
    title: str = Field(description="Meeting title")
    meeting_type: str = Field(description="leadership, department or quarterly")
    scheduled_at: datetime = Field(description="When the meeting is scheduled")
    agenda_item_count: int = Field(default=0, description="Seeded agenda items")


class MeetingStarted(Event):
    """Emitted when a meeting is started."""

    event_type: ClassVar[str] = "l10/meeting.started"
    meeting_id: UUID = Field(description="ID of the meeting")
    title: str = Field(description="Meeting title")
    started_at: datetime = Field(description="When the meeting started")


class MeetingCompleted(Event):
    """Emitted when a meeting is ended."""

    event_type: ClassVar[str] = "l10/meeting.completed"
    meeting_id: UUID = Field(description="ID of the meeting")
    title: str = Field(description="Meeting title")
    ended_at: datetime = Field(description="When the meeting ended")
    duration_minutes: int | None = Field(default=None, description="Actual length")
    rating: int | None = Field(default=None, ge=1, le=10)


class AgendaItemEvent(Event):
    """Shared shape of every agenda item transition event."""

    meeting_id: UUID = Field(description="ID of the meeting")
    agenda_item_id: UUID = Field(description="ID of the agenda item")
    section: AgendaSection = Field(description="Agenda section")
    sort_order: int = Field(description="Position of the item in the agenda")
    occurred_at: datetime = Field(description="When the transition was committed")


class AgendaItemStarted(AgendaItemEvent):
    event_type: ClassVar[str] = "l10/agenda_item.started"


class AgendaItemCompleted(AgendaItemEvent):
    event_type: ClassVar[str] = "l10/agenda_item.completed"


class AgendaItemReset(AgendaItemEvent):
    event_type: ClassVar[str] = "l10/agenda_item.reset"


class AgendaItemReactivated(AgendaItemEvent):
    event_type: ClassVar[str] = "l10/agenda_item.reactivated"


class AgendaItemReopened(AgendaItemEvent):
    event_type: ClassVar[str] = "l10/agenda_item.reopened"


class AgendaItemNotesUpdated(AgendaItemEvent):
    event_type: ClassVar[str] = "l10/agenda_item.notes_updated"


AGENDA_EVENT_TYPES: dict[ChangeKind, type[AgendaItemEvent]] = {
    ChangeKind.STARTED: AgendaItemStarted,
    ChangeKind.COMPLETED: AgendaItemCompleted,
    ChangeKind.RESET: AgendaItemReset,
    ChangeKind.REACTIVATED: AgendaItemReactivated,
    ChangeKind.REOPENED: AgendaItemReopened,
    ChangeKind.NOTES_UPDATED: AgendaItemNotesUpdated,
}


def agenda_event_for(
    change: TransitionChange,
    meeting_id: UUID,
    organization_id: UUID,
) -> AgendaItemEvent:
    """Build the integration event for one committed item change."""
    event_class = AGENDA_EVENT_TYPES[change.kind]
    return event_class(
        organization_id=organization_id,
        meeting_id=meeting_id,
        agenda_item_id=change.item_id,
        section=change.section,
        sort_order=change.sort_order,
        occurred_at=change.at,
    )
