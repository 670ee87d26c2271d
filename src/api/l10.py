"""L10 meeting API endpoints: agenda navigation and meeting lifecycle."""

from datetime import datetime
from enum import Enum
from uuid import UUID

import structlog
from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request
from pydantic import BaseModel, Field

from src.agenda.errors import (
    AgendaError,
    IntegrityError,
    InvalidMeetingStatus,
    NoActiveItem,
    NotFoundError,
    Unauthorized,
)
from src.agenda.state import derive_state
from src.events.errors import AuditWriteError
from src.l10.lifecycle import MeetingLifecycle
from src.l10.session import MeetingSession
from src.models.agenda_item import AgendaItem, AgendaSection
from src.models.meeting import Meeting, MeetingStatus, MeetingType

logger = structlog.get_logger()

router = APIRouter(prefix="/l10", tags=["l10"])


class AgendaAction(str, Enum):
    NAVIGATE = "navigate"
    NEXT = "next"
    PREVIOUS = "previous"
    UPDATE_NOTES = "update_notes"


class AgendaCommandRequest(BaseModel):
    """Body of PUT /l10/{meeting_id}/agenda."""

    action: AgendaAction
    agenda_item_id: UUID | None = None
    notes: str | None = None


class AgendaItemResponse(BaseModel):
    """One agenda item plus its derived state."""

    id: UUID
    meeting_id: UUID
    section: AgendaSection
    sort_order: int
    duration_minutes: int | None
    started_at: datetime | None
    completed_at: datetime | None
    notes: str | None
    state: str

    @classmethod
    def from_item(cls, item: AgendaItem) -> "AgendaItemResponse":
        return cls(**item.model_dump(), state=derive_state(item).name)


class CreateMeetingRequest(BaseModel):
    organization_id: UUID
    title: str = Field(min_length=1, max_length=500)
    scheduled_at: datetime
    meeting_type: MeetingType = MeetingType.LEADERSHIP


class EndMeetingRequest(BaseModel):
    rating: int | None = Field(default=None, ge=1, le=10)


class MeetingResponse(BaseModel):
    id: UUID
    organization_id: UUID
    title: str
    meeting_type: MeetingType
    status: MeetingStatus
    scheduled_at: datetime
    started_at: datetime | None
    ended_at: datetime | None
    duration_minutes: int | None
    rating: int | None

    @classmethod
    def from_meeting(cls, meeting: Meeting) -> "MeetingResponse":
        return cls.model_validate(meeting.model_dump())


def get_meeting_session(request: Request) -> MeetingSession:
    """Dependency to get MeetingSession from app state."""
    return request.app.state.meeting_session


def get_meeting_lifecycle(request: Request) -> MeetingLifecycle:
    """Dependency to get MeetingLifecycle from app state."""
    return request.app.state.meeting_lifecycle


def get_caller_id(x_profile_id: UUID | None = Header(default=None)) -> UUID:
    """Resolve the caller's profile ID set by the authentication layer.

    Raises:
        HTTPException: 401 if no caller identity was provided
    """
    if x_profile_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_profile_id


def to_http_error(error: AgendaError | AuditWriteError) -> HTTPException:
    """Map domain errors onto HTTP status codes.

    - 403: Caller lacks access to the meeting's organization
    - 404: Meeting or agenda item not found
    - 409: No active item, or lifecycle step not allowed from current status
    - 500: Stored agenda violates an invariant
    - 503: Audit log unavailable (the command itself was committed)
    """
    if isinstance(error, Unauthorized):
        return HTTPException(status_code=403, detail="Forbidden")
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, NoActiveItem):
        return HTTPException(status_code=409, detail="No active agenda item")
    if isinstance(error, InvalidMeetingStatus):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, AuditWriteError):
        logger.error("audit log write failed", error=str(error))
        return HTTPException(status_code=503, detail="Failed to record meeting event")
    if isinstance(error, IntegrityError):
        logger.error("agenda integrity violation", error=str(error))
    return HTTPException(status_code=500, detail="Agenda is in an inconsistent state")


def _agenda_response(items: list[AgendaItem]) -> list[AgendaItemResponse]:
    return [AgendaItemResponse.from_item(item) for item in items]


@router.get("/{meeting_id}/agenda", response_model=list[AgendaItemResponse])
async def get_agenda(
    meeting_id: UUID,
    caller_id: UUID = Depends(get_caller_id),
    session: MeetingSession = Depends(get_meeting_session),
) -> list[AgendaItemResponse]:
    """Get a meeting's agenda in sort order."""
    try:
        items = await session.get_agenda(caller_id, meeting_id)
    except AgendaError as e:
        raise to_http_error(e)
    return _agenda_response(items)


@router.put("/{meeting_id}/agenda", response_model=list[AgendaItemResponse])
async def update_agenda(
    meeting_id: UUID,
    command: AgendaCommandRequest,
    caller_id: UUID = Depends(get_caller_id),
    session: MeetingSession = Depends(get_meeting_session),
) -> list[AgendaItemResponse]:
    """Apply an agenda command and return the refreshed agenda.

    Actions:
    - navigate: jump to agenda_item_id
    - next: complete the active item, start the following one
    - previous: reset the active item, reactivate the preceding one
    - update_notes: set notes on agenda_item_id

    Raises:
        HTTPException: 400 if agenda_item_id is missing for navigate or
            update_notes, otherwise see to_http_error
    """
    needs_item = command.action in (AgendaAction.NAVIGATE, AgendaAction.UPDATE_NOTES)
    if needs_item and command.agenda_item_id is None:
        raise HTTPException(status_code=400, detail="agenda_item_id is required")

    try:
        if command.action is AgendaAction.NAVIGATE:
            items = await session.navigate(caller_id, meeting_id, command.agenda_item_id)
        elif command.action is AgendaAction.NEXT:
            items = await session.next(caller_id, meeting_id)
        elif command.action is AgendaAction.PREVIOUS:
            items = await session.previous(caller_id, meeting_id)
        else:
            items = await session.update_notes(
                caller_id, meeting_id, command.agenda_item_id, command.notes
            )
    except (AgendaError, AuditWriteError) as e:
        raise to_http_error(e)

    return _agenda_response(items)


@router.post("", response_model=MeetingResponse, status_code=201)
async def create_meeting(
    body: CreateMeetingRequest,
    caller_id: UUID = Depends(get_caller_id),
    lifecycle: MeetingLifecycle = Depends(get_meeting_lifecycle),
) -> MeetingResponse:
    """Schedule a meeting with the default L10 agenda."""
    try:
        meeting = await lifecycle.create_meeting(
            caller_id,
            organization_id=body.organization_id,
            title=body.title,
            scheduled_at=body.scheduled_at,
            meeting_type=body.meeting_type,
        )
    except (AgendaError, AuditWriteError) as e:
        raise to_http_error(e)
    return MeetingResponse.from_meeting(meeting)


@router.post("/{meeting_id}/start", response_model=MeetingResponse)
async def start_meeting(
    meeting_id: UUID,
    caller_id: UUID = Depends(get_caller_id),
    lifecycle: MeetingLifecycle = Depends(get_meeting_lifecycle),
) -> MeetingResponse:
    """Start a scheduled meeting."""
    try:
        meeting = await lifecycle.start_meeting(caller_id, meeting_id)
    except (AgendaError, AuditWriteError) as e:
        raise to_http_error(e)
    return MeetingResponse.from_meeting(meeting)


@router.post("/{meeting_id}/end", response_model=MeetingResponse)
async def end_meeting(
    meeting_id: UUID,
    body: EndMeetingRequest | None = Body(default=None),
    caller_id: UUID = Depends(get_caller_id),
    lifecycle: MeetingLifecycle = Depends(get_meeting_lifecycle),
) -> MeetingResponse:
    """End an in-progress meeting, completing any unfinished agenda items."""
    rating = body.rating if body else None
    try:
        meeting = await lifecycle.end_meeting(caller_id, meeting_id, rating=rating)
    except (AgendaError, AuditWriteError) as e:
        raise to_http_error(e)
    return MeetingResponse.from_meeting(meeting)
