"""Domain models for the L10 meeting agent.

- BaseEntity / TimestampedEntity: Base classes with id and timestamps
- Meeting: A scheduled L10 meeting owned by an organization
- AgendaItem: One timed section of a meeting's agenda
"""

from src.models.agenda_item import (
    DEFAULT_AGENDA,
    AgendaItem,
    AgendaItemTemplate,
    AgendaSection,
)
from src.models.base import BaseEntity, TimestampedEntity, utc_now
from src.models.meeting import Meeting, MeetingStatus, MeetingType

__all__ = [
    # Base
    "BaseEntity",
    "TimestampedEntity",
    "utc_now",
    # Meeting
    "Meeting",
    "MeetingStatus",
    "MeetingType",
    # Agenda
    "AgendaItem",
    "AgendaItemTemplate",
    "AgendaSection",
    "DEFAULT_AGENDA",
]
