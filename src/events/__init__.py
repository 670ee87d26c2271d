"""Integration event infrastructure for the L10 meeting agent.

Provides:
- Event: Base class for typed integration events
- IntegrationEventStore: Append-only audit log (system of record)
- EventBus: In-process pub/sub for integration handlers
- EventDispatcher / WebhookSink: Best-effort delivery of audited events
- IntegrationEventEmitter: Audit-then-dispatch entry point
"""

from src.events.base import Event
from src.events.bus import ALL_EVENTS, EventBus
from src.events.dispatch import DispatchError, DispatchResult, EventDispatcher, WebhookSink
from src.events.emitter import IntegrationEventEmitter
from src.events.errors import AuditWriteError, MissingOrganizationScope
from src.events.store import AuditRecord, IntegrationEventStore
from src.events.types import (
    AgendaItemCompleted,
    AgendaItemEvent,
    AgendaItemNotesUpdated,
    AgendaItemReactivated,
    AgendaItemReopened,
    AgendaItemReset,
    AgendaItemStarted,
    MeetingCompleted,
    MeetingCreated,
    MeetingStarted,
    agenda_event_for,
)

__all__ = [
    # Base
    "Event",
    "AuditRecord",
    # Infrastructure
    "ALL_EVENTS",
    "EventBus",
    "EventDispatcher",
    "DispatchResult",
    "WebhookSink",
    "IntegrationEventEmitter",
    "IntegrationEventStore",
    # Errors
    "AuditWriteError",
    "DispatchError",
    "MissingOrganizationScope",
    # Event types
    "MeetingCreated",
    "MeetingStarted",
    "MeetingCompleted",
    "AgendaItemEvent",
    "AgendaItemStarted",
    "AgendaItemCompleted",
    "AgendaItemReset",
    "AgendaItemReactivated",
    "AgendaItemReopened",
    "AgendaItemNotesUpdated",
    "agenda_event_for",
]
