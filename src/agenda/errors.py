"""Errors raised by agenda progression and the meeting session boundary."""

from uuid import UUID


class AgendaError(Exception):
    """Base class for agenda and meeting session errors."""


class Unauthorized(AgendaError):
    """Caller may not act on the meeting's organization."""


class NotFoundError(AgendaError):
    """A referenced meeting or agenda item does not exist."""


class MeetingNotFound(NotFoundError):
    def __init__(self, meeting_id: UUID):
        super().__init__(f"Meeting {meeting_id} not found")
        self.meeting_id = meeting_id


class ItemNotFound(NotFoundError):
    def __init__(self, item_id: UUID):
        super().__init__(f"Agenda item {item_id} not found")
        self.item_id = item_id


class TargetNotFound(NotFoundError):
    """Navigation target is not part of the meeting's agenda."""

    def __init__(self, meeting_id: UUID, item_id: UUID):
        super().__init__(f"Agenda item {item_id} is not on meeting {meeting_id}")
        self.meeting_id = meeting_id
        self.item_id = item_id


class NoActiveItem(AgendaError):
    """next/previous was called while no agenda item is active.

    A usage error: the caller has to navigate to a starting item first.
    """

    def __init__(self, meeting_id: UUID):
        super().__init__(f"No active agenda item on meeting {meeting_id}")
        self.meeting_id = meeting_id


class InvalidMeetingStatus(AgendaError):
    """Meeting lifecycle operation is not allowed from the current status."""


class IntegrityError(AgendaError):
    """Stored agenda violates an invariant. Indicates a concurrency bug."""


class MultipleActiveItems(IntegrityError):
    def __init__(self, meeting_id: UUID, item_ids: list[UUID]):
        ids = ", ".join(str(i) for i in item_ids)
        super().__init__(f"Meeting {meeting_id} has {len(item_ids)} active items: {ids}")
        self.meeting_id = meeting_id
        self.item_ids = item_ids


class DuplicateSortOrder(IntegrityError):
    def __init__(self, meeting_id: UUID, sort_order: int):
        super().__init__(
            f"Meeting {meeting_id} has more than one agenda item at sort order {sort_order}"
        )
        self.meeting_id = meeting_id
        self.sort_order = sort_order
