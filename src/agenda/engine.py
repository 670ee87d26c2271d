"""Agenda progression engine.

Translates navigation commands into the minimal set of item patches that
keeps a meeting's agenda consistent:

- at most one item is active at a time
- forward/backward moves follow sort_order
- notes never touch timing fields

The engine is synchronous and does no I/O. It reads an AgendaSnapshot and
returns a Transition; committing the patches atomically is the caller's job.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from src.agenda.errors import ItemNotFound, NoActiveItem, TargetNotFound
from src.agenda.state import Active, AgendaSnapshot, Complete, Pending
from src.models.agenda_item import AgendaItem, AgendaSection
from src.models.base import utc_now

PATCHABLE_FIELDS = frozenset({"started_at", "completed_at", "notes"})


class Command(str, Enum):
    """Navigation commands accepted by the engine."""

    NAVIGATE = "navigate"
    NEXT = "next"
    PREVIOUS = "previous"
    UPDATE_NOTES = "update_notes"


class ChangeKind(str, Enum):
    """What happened to a single item during a transition."""

    STARTED = "started"
    COMPLETED = "completed"
    RESET = "reset"
    REACTIVATED = "reactivated"
    REOPENED = "reopened"
    NOTES_UPDATED = "notes_updated"


@dataclass(frozen=True)
class ItemPatch:
    """Partial update of one agenda item."""

    item_id: UUID
    fields: dict[str, Any]

    def __post_init__(self) -> None:
        unknown = set(self.fields) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch agenda item fields: {sorted(unknown)}")


@dataclass(frozen=True)
class TransitionChange:
    """Record of one item's state change, used to build integration events."""

    kind: ChangeKind
    item_id: UUID
    section: AgendaSection
    sort_order: int
    at: datetime


@dataclass
class Transition:
    """Result of applying one command to a snapshot."""

    command: Command
    meeting_id: UUID
    patches: list[ItemPatch] = field(default_factory=list)
    changes: list[TransitionChange] = field(default_factory=list)
    exhausted: bool = False

    @property
    def is_noop(self) -> bool:
        return not self.patches

    def add(
        self,
        kind: ChangeKind,
        item: AgendaItem,
        at: datetime,
        **fields: Any,
    ) -> None:
        self.patches.append(ItemPatch(item_id=item.id, fields=fields))
        self.changes.append(
            TransitionChange(
                kind=kind,
                item_id=item.id,
                section=item.section,
                sort_order=item.sort_order,
                at=at,
            )
        )


class ProgressionEngine:
    """Computes agenda transitions for navigate/next/previous/update_notes."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock

    def navigate(self, snapshot: AgendaSnapshot, target_id: UUID) -> Transition:
        """Jump to a specific agenda item.

        The current active item (if it is not the target) is completed. A
        pending target is started; a finished target is reopened, keeping
        its completion marker. Navigating to the active item is a no-op.

        Raises:
            TargetNotFound: If the target is not on this meeting's agenda
            MultipleActiveItems: If the snapshot violates the single-active rule
        """
        target = snapshot.get(target_id)
        if target is None:
            raise TargetNotFound(snapshot.meeting_id, target_id)

        now = self._clock()
        transition = Transition(Command.NAVIGATE, snapshot.meeting_id)
        current = snapshot.active()

        if current is not None and current.id != target.id:
            self._complete(transition, current, snapshot.state_of(current.id), now)

        self._enter(transition, target, snapshot.state_of(target.id), now)
        return transition

    def next(self, snapshot: AgendaSnapshot) -> Transition:
        """Complete the active item and start the one after it.

        When the active item is the last one, the agenda is exhausted and
        nothing is active afterwards.

        Raises:
            NoActiveItem: If no item is active
        """
        current = snapshot.active()
        if current is None:
            raise NoActiveItem(snapshot.meeting_id)

        now = self._clock()
        transition = Transition(Command.NEXT, snapshot.meeting_id)
        self._complete(transition, current, snapshot.state_of(current.id), now)

        following = snapshot.next_of(current.sort_order)
        if following is None:
            transition.exhausted = True
        else:
            self._enter(transition, following, snapshot.state_of(following.id), now)
        return transition

    def previous(self, snapshot: AgendaSnapshot) -> Transition:
        """Reset the active item and step back to the one before it.

        The active item returns to pending. The preceding item becomes
        active again with its original started_at preserved. Stepping back
        past the first item leaves nothing active.

        Raises:
            NoActiveItem: If no item is active
        """
        current = snapshot.active()
        if current is None:
            raise NoActiveItem(snapshot.meeting_id)

        now = self._clock()
        transition = Transition(Command.PREVIOUS, snapshot.meeting_id)
        transition.add(
            ChangeKind.RESET, current, now, started_at=None, completed_at=None
        )

        preceding = snapshot.previous_of(current.sort_order)
        if preceding is None:
            return transition

        state = snapshot.state_of(preceding.id)
        if isinstance(state, Complete) and state.started_at is not None:
            transition.add(
                ChangeKind.REACTIVATED, preceding, now, completed_at=None
            )
        else:
            # Never started (pending, or closed out when a meeting ended)
            transition.add(
                ChangeKind.STARTED,
                preceding,
                now,
                started_at=now,
                completed_at=None,
            )
        return transition

    def update_notes(
        self,
        snapshot: AgendaSnapshot,
        item_id: UUID,
        notes: str | None,
    ) -> Transition:
        """Replace an item's notes without touching its timing.

        Raises:
            ItemNotFound: If the item is not on this meeting's agenda
        """
        item = snapshot.get(item_id)
        if item is None:
            raise ItemNotFound(item_id)

        transition = Transition(Command.UPDATE_NOTES, snapshot.meeting_id)
        transition.add(ChangeKind.NOTES_UPDATED, item, self._clock(), notes=notes)
        return transition

    @staticmethod
    def _complete(
        transition: Transition,
        item: AgendaItem,
        state: Pending | Active | Complete,
        now: datetime,
    ) -> None:
        # A reopened item may carry a started_at ahead of the clock
        completed_at = now
        if isinstance(state, Active) and state.started_at > now:
            completed_at = state.started_at
        transition.add(ChangeKind.COMPLETED, item, now, completed_at=completed_at)

    @staticmethod
    def _enter(
        transition: Transition,
        item: AgendaItem,
        state: Pending | Active | Complete,
        now: datetime,
    ) -> None:
        if isinstance(state, Pending):
            transition.add(ChangeKind.STARTED, item, now, started_at=now)
        elif isinstance(state, Complete):
            # Reopened only while started_at is strictly after completed_at
            started_at = max(now, state.completed_at + timedelta(microseconds=1))
            transition.add(ChangeKind.REOPENED, item, now, started_at=started_at)
