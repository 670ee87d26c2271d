"""Agenda progression for L10 meetings.

Provides:
- AgendaSnapshot: Ordered, validated view of one meeting's agenda
- derive_state: Explicit Pending/Active/Complete variant per item
- ProgressionEngine: Pure navigate/next/previous/update_notes transitions
"""

from src.agenda.engine import (
    ChangeKind,
    Command,
    ItemPatch,
    ProgressionEngine,
    Transition,
    TransitionChange,
)
from src.agenda.errors import (
    AgendaError,
    DuplicateSortOrder,
    IntegrityError,
    InvalidMeetingStatus,
    ItemNotFound,
    MeetingNotFound,
    MultipleActiveItems,
    NoActiveItem,
    NotFoundError,
    TargetNotFound,
    Unauthorized,
)
from src.agenda.state import Active, AgendaSnapshot, Complete, Pending, derive_state

__all__ = [
    # State
    "Active",
    "AgendaSnapshot",
    "Complete",
    "Pending",
    "derive_state",
    # Engine
    "ChangeKind",
    "Command",
    "ItemPatch",
    "ProgressionEngine",
    "Transition",
    "TransitionChange",
    # Errors
    "AgendaError",
    "DuplicateSortOrder",
    "IntegrityError",
    "InvalidMeetingStatus",
    "ItemNotFound",
    "MeetingNotFound",
    "MultipleActiveItems",
    "NoActiveItem",
    "NotFoundError",
    "TargetNotFound",
    "Unauthorized",
]
