"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.router import api_router
from src.config import Settings, settings
from src.db.turso import TursoClient
from src.events.bus import EventBus
from src.events.dispatch import EventDispatcher, WebhookSink
from src.events.emitter import IntegrationEventEmitter
from src.events.store import IntegrationEventStore
from src.l10.authorization import ProfileAuthorizer
from src.l10.lifecycle import MeetingLifecycle
from src.l10.session import MeetingSession
from src.repositories.agenda_repo import AgendaItemRepository
from src.repositories.meeting_repo import MeetingRepository

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def init_app_state(
    app: FastAPI,
    db: TursoClient,
    config: Settings = settings,
) -> None:
    """Create schemas and wire services into app state.

    Meetings are created before agenda items (foreign key), and the audit
    log before anything that emits.
    """
    app.state.db = db

    meeting_repo = MeetingRepository(db)
    await meeting_repo.initialize()
    agenda_repo = AgendaItemRepository(db)
    await agenda_repo.initialize()
    authorizer = ProfileAuthorizer(db)
    await authorizer.initialize()
    logger.info("Meeting, agenda and profile schemas initialized")

    event_store = IntegrationEventStore(db)
    await event_store.init_schema()
    app.state.event_store = event_store

    webhook = None
    if config.dispatch_webhook_url:
        webhook = WebhookSink(
            config.dispatch_webhook_url,
            timeout_seconds=config.dispatch_timeout_seconds,
            max_attempts=config.dispatch_max_attempts,
        )
        logger.info(f"Webhook dispatch enabled: {config.dispatch_webhook_url}")

    event_bus = EventBus()
    dispatcher = EventDispatcher(event_store, bus=event_bus, webhook=webhook)
    emitter = IntegrationEventEmitter(
        event_store,
        dispatcher,
        background=config.dispatch_in_background,
    )
    app.state.event_bus = event_bus
    app.state.event_dispatcher = dispatcher
    app.state.event_emitter = emitter
    logger.info("Integration event emitter initialized")

    app.state.authorizer = authorizer
    app.state.meeting_repo = meeting_repo
    app.state.agenda_repo = agenda_repo
    app.state.meeting_session = MeetingSession(
        meeting_repo, agenda_repo, emitter, authorizer
    )
    app.state.meeting_lifecycle = MeetingLifecycle(
        meeting_repo, agenda_repo, emitter, authorizer
    )
    logger.info("Meeting session initialized")


async def shutdown_app_state(app: FastAPI) -> None:
    """Flush background dispatches and release connections."""
    emitter = getattr(app.state, "event_emitter", None)
    if emitter is not None:
        await emitter.drain()
    dispatcher = getattr(app.state, "event_dispatcher", None)
    if dispatcher is not None:
        await dispatcher.close()
    db = getattr(app.state, "db", None)
    if db is not None:
        await db.close()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Initialize database connection
    - Initialize schemas, audit log and event dispatch
    - Wire meeting session and lifecycle services

    Shutdown:
    - Wait for in-flight event dispatches
    - Close webhook client and database connection
    """
    logger.info("Starting L10 Meeting Agent...")

    db = TursoClient()
    await db.connect()
    logger.info(f"Database connected: {db.url}")
    await init_app_state(app, db)

    yield

    logger.info("Shutting down L10 Meeting Agent...")
    await shutdown_app_state(app)
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Agenda progression and integration events for L10 meetings",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
