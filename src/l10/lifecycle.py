"""Meeting lifecycle: schedule, start and end L10 meetings."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog

from src.agenda.errors import InvalidMeetingStatus, Unauthorized
from src.events.emitter import IntegrationEventEmitter
from src.events.types import MeetingCompleted, MeetingCreated, MeetingStarted
from src.l10.authorization import Authorizer
from src.l10.session import load_authorized_meeting
from src.models.agenda_item import DEFAULT_AGENDA, AgendaItemTemplate
from src.models.base import utc_now
from src.models.meeting import Meeting, MeetingStatus, MeetingType
from src.repositories.agenda_repo import AgendaItemRepository
from src.repositories.meeting_repo import MeetingRepository

logger = structlog.get_logger()


class MeetingLifecycle:
    """Creates meetings with their default agenda and moves them through
    scheduled -> in_progress -> completed."""

    def __init__(
        self,
        meetings: MeetingRepository,
        agenda: AgendaItemRepository,
        emitter: IntegrationEventEmitter,
        authorizer: Authorizer | None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._meetings = meetings
        self._agenda = agenda
        self._emitter = emitter
        self._authorizer = authorizer
        self._clock = clock

    async def create_meeting(
        self,
        caller_id: UUID | None,
        organization_id: UUID,
        title: str,
        scheduled_at: datetime,
        meeting_type: MeetingType = MeetingType.LEADERSHIP,
        agenda: tuple[AgendaItemTemplate, ...] = DEFAULT_AGENDA,
    ) -> Meeting:
        """Schedule a meeting and seed its agenda.

        Raises:
            Unauthorized: If the caller may not schedule meetings
        """
        if caller_id is None or self._authorizer is None:
            raise Unauthorized("No caller identity or authorizer available")
        if not await self._authorizer.can_schedule(caller_id, organization_id):
            raise Unauthorized(
                f"Caller {caller_id} may not schedule meetings for {organization_id}"
            )

        meeting = Meeting(
            organization_id=organization_id,
            title=title,
            meeting_type=meeting_type,
            scheduled_at=scheduled_at,
            created_by=caller_id,
        )
        await self._meetings.create(meeting, agenda)
        logger.info(
            "meeting scheduled",
            meeting_id=str(meeting.id),
            organization_id=str(organization_id),
            agenda_items=len(agenda),
        )

        await self._emitter.emit_event(
            MeetingCreated(
                organization_id=organization_id,
                meeting_id=meeting.id,
                title=meeting.title,
                meeting_type=meeting.meeting_type.value,
                scheduled_at=meeting.scheduled_at,
                agenda_item_count=len(agenda),
            )
        )
        return meeting

    async def start_meeting(self, caller_id: UUID | None, meeting_id: UUID) -> Meeting:
        """Move a scheduled meeting to in_progress.

        Raises:
            InvalidMeetingStatus: If the meeting is not scheduled
        """
        async with self._agenda.lock(meeting_id):
            meeting = await load_authorized_meeting(
                self._meetings, self._authorizer, caller_id, meeting_id
            )
            if meeting.status is not MeetingStatus.SCHEDULED:
                raise InvalidMeetingStatus(
                    f"Cannot start meeting with status: {meeting.status.value}"
                )
            meeting.status = MeetingStatus.IN_PROGRESS
            meeting.started_at = self._clock()
            await self._meetings.save(meeting)

        logger.info("meeting started", meeting_id=str(meeting_id))
        await self._emitter.emit_event(
            MeetingStarted(
                organization_id=meeting.organization_id,
                meeting_id=meeting.id,
                title=meeting.title,
                started_at=meeting.started_at,
            )
        )
        return meeting

    async def end_meeting(
        self,
        caller_id: UUID | None,
        meeting_id: UUID,
        rating: int | None = None,
    ) -> Meeting:
        """Complete an in-progress meeting and close out its agenda.

        Every agenda item not yet finished is completed at the end time.

        Raises:
            InvalidMeetingStatus: If the meeting is not in progress
        """
        async with self._agenda.lock(meeting_id):
            meeting = await load_authorized_meeting(
                self._meetings, self._authorizer, caller_id, meeting_id
            )
            if meeting.status is not MeetingStatus.IN_PROGRESS:
                raise InvalidMeetingStatus(
                    f"Cannot end meeting with status: {meeting.status.value}"
                )
            ended_at = self._clock()
            started_at = meeting.started_at or ended_at
            meeting.status = MeetingStatus.COMPLETED
            meeting.ended_at = ended_at
            meeting.duration_minutes = round((ended_at - started_at).total_seconds() / 60)
            meeting.rating = rating
            await self._meetings.save_ended(meeting)

        logger.info(
            "meeting completed",
            meeting_id=str(meeting_id),
            duration_minutes=meeting.duration_minutes,
        )
        await self._emitter.emit_event(
            MeetingCompleted(
                organization_id=meeting.organization_id,
                meeting_id=meeting.id,
                title=meeting.title,
                ended_at=ended_at,
                duration_minutes=meeting.duration_minutes,
                rating=rating,
            )
        )
        return meeting
