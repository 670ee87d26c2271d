"""Derived agenda item state and the ordered agenda snapshot.

Stored items only carry two nullable timestamps. They are turned into an
explicit variant once, at load time, so transition logic never has to
re-derive pending/active/complete from raw fields:

- Pending: never started, or reset by a backward move
- Active: started and not finished since (possibly reopened after finishing)
- Complete: finished, with or without having been started
"""

from bisect import bisect_left, bisect_right
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.agenda.errors import DuplicateSortOrder, MultipleActiveItems
from src.models.agenda_item import AgendaItem


@dataclass(frozen=True)
class Pending:
    name = "pending"


@dataclass(frozen=True)
class Active:
    started_at: datetime
    # Kept when a finished section is reopened; cleared by the next completion.
    previous_completed_at: datetime | None = None
    name = "active"

    @property
    def reopened(self) -> bool:
        return self.previous_completed_at is not None


@dataclass(frozen=True)
class Complete:
    completed_at: datetime
    started_at: datetime | None = None
    name = "complete"


ItemState = Pending | Active | Complete


def derive_state(item: AgendaItem) -> ItemState:
    """Build the explicit state variant from an item's stored timestamps.

    An item whose started_at is later than its completed_at was reopened
    after being finished and counts as active.
    """
    started, completed = item.started_at, item.completed_at
    if started is None and completed is None:
        return Pending()
    if completed is None:
        return Active(started_at=started)
    if started is not None and started > completed:
        return Active(started_at=started, previous_completed_at=completed)
    return Complete(completed_at=completed, started_at=started)


class AgendaSnapshot:
    """Immutable, ordered view of one meeting's agenda.

    Items are held in ascending sort_order. Adjacent lookups bisect over the
    sort orders, so they work on any strictly increasing sequence with gaps.

    Raises:
        DuplicateSortOrder: If two items share a sort_order
    """

    def __init__(self, meeting_id: UUID, items: Iterable[AgendaItem]):
        self.meeting_id = meeting_id
        ordered = sorted(items, key=lambda item: item.sort_order)
        for before, after in zip(ordered, ordered[1:]):
            if before.sort_order == after.sort_order:
                raise DuplicateSortOrder(meeting_id, after.sort_order)

        self._items: tuple[AgendaItem, ...] = tuple(ordered)
        self._orders = [item.sort_order for item in ordered]
        self._positions = {item.id: index for index, item in enumerate(ordered)}
        self._states = {item.id: derive_state(item) for item in ordered}

    def __iter__(self) -> Iterator[AgendaItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._positions

    @property
    def items(self) -> list[AgendaItem]:
        return list(self._items)

    def get(self, item_id: UUID) -> AgendaItem | None:
        position = self._positions.get(item_id)
        return None if position is None else self._items[position]

    def state_of(self, item_id: UUID) -> ItemState:
        return self._states[item_id]

    def active(self) -> AgendaItem | None:
        """Return the single active item, if any.

        Raises:
            MultipleActiveItems: If more than one item is active
        """
        active = [item for item in self._items if isinstance(self._states[item.id], Active)]
        if len(active) > 1:
            raise MultipleActiveItems(self.meeting_id, [item.id for item in active])
        return active[0] if active else None

    def next_of(self, sort_order: int) -> AgendaItem | None:
        """Item with the smallest sort_order greater than the reference."""
        index = bisect_right(self._orders, sort_order)
        return self._items[index] if index < len(self._items) else None

    def previous_of(self, sort_order: int) -> AgendaItem | None:
        """Item with the largest sort_order less than the reference."""
        index = bisect_left(self._orders, sort_order)
        return self._items[index - 1] if index > 0 else None

    def is_exhausted(self) -> bool:
        """No item is active and the last item is complete."""
        if not self._items or self.active() is not None:
            return False
        return isinstance(self._states[self._items[-1].id], Complete)
