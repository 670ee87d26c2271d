"""Async event bus for in-process integration handlers.

The bus decouples the meeting workflow from integrations. The dispatcher
publishes audited events, and handlers (notifications, calendar sync,
webhooks) receive the event types they subscribed to.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from src.events.store import AuditRecord

logger = logging.getLogger(__name__)

EventHandler = Callable[[AuditRecord], None] | Callable[[AuditRecord], Awaitable[None]]

# Subscribing to this receives every event type.
ALL_EVENTS = "*"


class EventBus:
    """Simple async event bus for in-process pub/sub.

    Features:
    - Subscriptions by event type name, plus a wildcard
    - Async and sync handler support
    - Error isolation (one handler failure doesn't affect others)
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: Event type name, or ALL_EVENTS
            handler: Function to call when event is published
        """
        self._subscribers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """Unsubscribe a handler from an event type.

        Args:
            event_type: Event type name the handler was subscribed to
            handler: The handler to remove
        """
        if event_type in self._subscribers:
            try:
                self._subscribers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                pass  # Handler wasn't subscribed

    def handlers_for(self, event_type: str) -> list[EventHandler]:
        return [
            *self._subscribers.get(event_type, []),
            *self._subscribers.get(ALL_EVENTS, []),
        ]

    async def publish(self, record: AuditRecord) -> list[Exception]:
        """Publish an audited event to all subscribers.

        Handlers run concurrently. Their errors are logged and returned,
        never raised.

        Args:
            record: The audited event to deliver

        Returns:
            Exceptions raised by handlers, empty when all succeeded
        """
        handlers = self.handlers_for(record.event_type)
        logger.debug(f"Publishing {record.event_type} to {len(handlers)} handler(s)")

        tasks = []
        for handler in handlers:
            if inspect.iscoroutinefunction(handler):
                tasks.append(self._run_async_handler(handler, record))
            else:
                tasks.append(self._run_sync_handler(handler, record))

        if not tasks:
            return []

        results = await asyncio.gather(*tasks, return_exceptions=True)
        errors = [result for result in results if isinstance(result, Exception)]
        for error in errors:
            logger.error(f"Handler error for {record.event_type}: {error}")
        return errors

    async def _run_async_handler(
        self,
        handler: Callable[[AuditRecord], Awaitable[None]],
        record: AuditRecord,
    ) -> None:
        """Run an async handler safely."""
        await handler(record)

    async def _run_sync_handler(
        self,
        handler: Callable[[AuditRecord], None],
        record: AuditRecord,
    ) -> None:
        """Run a sync handler in thread pool."""
        await asyncio.to_thread(handler, record)

    def subscriber_count(self, event_type: str) -> int:
        """Get number of subscribers for an event type (wildcard excluded)."""
        return len(self._subscribers.get(event_type, []))
