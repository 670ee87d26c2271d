"""Repository layer for data persistence.

Repositories encapsulate data access for meetings and their agendas and
provide a clean interface for the meeting session layer.
"""

from src.repositories.agenda_repo import AgendaItemRepository, Direction
from src.repositories.meeting_repo import MeetingRepository

__all__ = [
    "AgendaItemRepository",
    "Direction",
    "MeetingRepository",
]
