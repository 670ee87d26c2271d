"""Meeting session facade.

Single entry point for agenda commands during a live L10 meeting. For each
command it:

1. Loads the meeting and authorizes the caller for its organization
2. Takes the meeting's agenda lock, runs the progression engine against a
   fresh snapshot, and commits the resulting patches in one batch
3. Emits one integration event per committed item change
4. Returns the full re-fetched agenda, never a diff
"""

from collections.abc import Callable
from uuid import UUID

import structlog

from src.agenda.engine import ProgressionEngine, Transition
from src.agenda.errors import MeetingNotFound, Unauthorized
from src.agenda.state import AgendaSnapshot
from src.events.emitter import IntegrationEventEmitter
from src.events.types import agenda_event_for
from src.l10.authorization import Authorizer
from src.models.agenda_item import AgendaItem
from src.models.meeting import Meeting
from src.repositories.agenda_repo import AgendaItemRepository
from src.repositories.meeting_repo import MeetingRepository

logger = structlog.get_logger()


async def load_authorized_meeting(
    meetings: MeetingRepository,
    authorizer: Authorizer | None,
    caller_id: UUID | None,
    meeting_id: UUID,
) -> Meeting:
    """Fetch a meeting the caller is allowed to act on.

    Fails closed: a missing caller or a missing authorizer is unauthorized.

    Raises:
        MeetingNotFound: If the meeting does not exist
        Unauthorized: If the caller may not act on the meeting's organization
    """
    meeting = await meetings.get(meeting_id)
    if meeting is None:
        raise MeetingNotFound(meeting_id)
    if caller_id is None or authorizer is None:
        raise Unauthorized("No caller identity or authorizer available")
    if not await authorizer.can_access(caller_id, meeting.organization_id):
        logger.warning(
            "caller denied meeting access",
            caller_id=str(caller_id),
            meeting_id=str(meeting_id),
        )
        raise Unauthorized(f"Caller {caller_id} may not act on meeting {meeting_id}")
    return meeting


class MeetingSession:
    """Boundary API for navigate/next/previous/update_notes."""

    def __init__(
        self,
        meetings: MeetingRepository,
        agenda: AgendaItemRepository,
        emitter: IntegrationEventEmitter,
        authorizer: Authorizer | None,
        engine: ProgressionEngine | None = None,
    ):
        self._meetings = meetings
        self._agenda = agenda
        self._emitter = emitter
        self._authorizer = authorizer
        self._engine = engine or ProgressionEngine()

    async def get_agenda(self, caller_id: UUID | None, meeting_id: UUID) -> list[AgendaItem]:
        """Return the meeting's agenda in sort order."""
        await load_authorized_meeting(
            self._meetings, self._authorizer, caller_id, meeting_id
        )
        return await self._agenda.list_by_sort_order(meeting_id)

    async def navigate(
        self,
        caller_id: UUID | None,
        meeting_id: UUID,
        item_id: UUID,
    ) -> list[AgendaItem]:
        """Jump to a specific agenda item."""
        return await self._run(
            caller_id,
            meeting_id,
            lambda snapshot: self._engine.navigate(snapshot, item_id),
        )

    async def next(self, caller_id: UUID | None, meeting_id: UUID) -> list[AgendaItem]:
        """Complete the active item and move to the following one."""
        return await self._run(caller_id, meeting_id, self._engine.next)

    async def previous(
        self, caller_id: UUID | None, meeting_id: UUID
    ) -> list[AgendaItem]:
        """Reset the active item and step back to the preceding one."""
        return await self._run(caller_id, meeting_id, self._engine.previous)

    async def update_notes(
        self,
        caller_id: UUID | None,
        meeting_id: UUID,
        item_id: UUID,
        notes: str | None,
    ) -> list[AgendaItem]:
        """Replace an item's notes. Timing is untouched."""
        return await self._run(
            caller_id,
            meeting_id,
            lambda snapshot: self._engine.update_notes(snapshot, item_id, notes),
        )

    async def _run(
        self,
        caller_id: UUID | None,
        meeting_id: UUID,
        decide: Callable[[AgendaSnapshot], Transition],
    ) -> list[AgendaItem]:
        meeting = await load_authorized_meeting(
            self._meetings, self._authorizer, caller_id, meeting_id
        )

        async with self._agenda.lock(meeting_id):
            snapshot = await self._agenda.snapshot(meeting_id)
            transition = decide(snapshot)
            await self._agenda.apply_patches(transition.patches)
            refreshed = AgendaSnapshot(
                meeting_id, await self._agenda.list_by_sort_order(meeting_id)
            )
            # Fails loudly if the committed state broke the single-active rule
            active = refreshed.active()

        logger.info(
            "agenda command committed",
            command=transition.command.value,
            meeting_id=str(meeting_id),
            changes=[change.kind.value for change in transition.changes],
            active_item_id=str(active.id) if active else None,
            exhausted=transition.exhausted,
        )

        # Committed regardless of what happens during emission
        await self._emitter.emit_batch(
            agenda_event_for(change, meeting.id, meeting.organization_id)
            for change in transition.changes
        )
        return refreshed.items
