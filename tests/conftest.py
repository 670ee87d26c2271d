"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from src.agenda.engine import ProgressionEngine
from src.config import Settings
from src.db.turso import TursoClient
from src.events.bus import ALL_EVENTS, EventBus
from src.events.dispatch import EventDispatcher
from src.events.emitter import IntegrationEventEmitter
from src.events.store import AuditRecord, IntegrationEventStore
from src.l10.authorization import AccessLevel, ProfileAuthorizer
from src.l10.lifecycle import MeetingLifecycle
from src.l10.session import MeetingSession
from src.main import app, init_app_state, shutdown_app_state
from src.models.agenda_item import AgendaItemTemplate, AgendaSection
from src.models.meeting import Meeting
from src.repositories.agenda_repo import AgendaItemRepository
from src.repositories.meeting_repo import MeetingRepository

APP_STATE_KEYS = (
    "db",
    "event_store",
    "event_bus",
    "event_dispatcher",
    "event_emitter",
    "authorizer",
    "meeting_repo",
    "agenda_repo",
    "meeting_session",
    "meeting_lifecycle",
)

# Four sections with gaps in sort_order
SHORT_AGENDA = (
    AgendaItemTemplate(section=AgendaSection.SEGUE, duration_minutes=5, sort_order=10),
    AgendaItemTemplate(section=AgendaSection.SCORECARD, duration_minutes=5, sort_order=20),
    AgendaItemTemplate(section=AgendaSection.ROCKS, duration_minutes=5, sort_order=40),
    AgendaItemTemplate(section=AgendaSection.IDS, duration_minutes=60, sort_order=80),
)


class TickingClock:
    """Deterministic clock that moves forward one second per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@dataclass
class Services:
    """Everything a meeting command touches, wired against one database."""

    db: TursoClient
    meetings: MeetingRepository
    agenda: AgendaItemRepository
    authorizer: ProfileAuthorizer
    store: IntegrationEventStore
    bus: EventBus
    emitter: IntegrationEventEmitter
    session: MeetingSession
    lifecycle: MeetingLifecycle
    clock: TickingClock
    received: list[AuditRecord]


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
async def db_client(tmp_path: Path) -> AsyncIterator[TursoClient]:
    """Create a temp file database client for testing."""
    db_path = tmp_path / "test_l10.db"
    client = TursoClient(url=f"file:{db_path}")
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
async def services(db_client: TursoClient, clock: TickingClock) -> Services:
    """Repositories, audit log and meeting services with inline dispatch."""
    meetings = MeetingRepository(db_client)
    await meetings.initialize()
    agenda = AgendaItemRepository(db_client)
    await agenda.initialize()
    authorizer = ProfileAuthorizer(db_client)
    await authorizer.initialize()
    store = IntegrationEventStore(db_client)
    await store.init_schema()

    received: list[AuditRecord] = []

    async def capture(record: AuditRecord) -> None:
        received.append(record)

    bus = EventBus()
    bus.subscribe(ALL_EVENTS, capture)
    emitter = IntegrationEventEmitter(
        store, EventDispatcher(store, bus=bus), background=False
    )

    return Services(
        db=db_client,
        meetings=meetings,
        agenda=agenda,
        authorizer=authorizer,
        store=store,
        bus=bus,
        emitter=emitter,
        session=MeetingSession(
            meetings, agenda, emitter, authorizer, engine=ProgressionEngine(clock)
        ),
        lifecycle=MeetingLifecycle(meetings, agenda, emitter, authorizer, clock=clock),
        clock=clock,
        received=received,
    )


@pytest.fixture
def organization_id() -> UUID:
    return uuid4()


@pytest.fixture
async def member_id(services: Services, organization_id: UUID) -> UUID:
    """A regular member of the organization."""
    profile_id = uuid4()
    await services.authorizer.add_profile(profile_id, organization_id, AccessLevel.MEMBER)
    return profile_id


@pytest.fixture
async def leader_id(services: Services, organization_id: UUID) -> UUID:
    """A leadership team member, allowed to schedule meetings."""
    profile_id = uuid4()
    await services.authorizer.add_profile(profile_id, organization_id, AccessLevel.ELT)
    return profile_id


@pytest.fixture
async def meeting(services: Services, organization_id: UUID) -> Meeting:
    """A scheduled meeting seeded with SHORT_AGENDA."""
    meeting = Meeting(
        organization_id=organization_id,
        title="Leadership L10",
        scheduled_at=datetime(2026, 3, 2, 9, 0, tzinfo=UTC),
    )
    return await services.meetings.create(meeting, SHORT_AGENDA)


@pytest.fixture
async def client(tmp_path: Path) -> AsyncIterator[AsyncClient]:
    """Create async test client for FastAPI app with database."""
    db_path = tmp_path / "test_api.db"
    db = TursoClient(url=f"file:{db_path}")
    await db.connect()

    await init_app_state(app, db, Settings(dispatch_in_background=False))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Cleanup
    await shutdown_app_state(app)
    for key in APP_STATE_KEYS:
        if hasattr(app.state, key):
            delattr(app.state, key)
