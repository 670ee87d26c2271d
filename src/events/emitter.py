"""Integration event emitter.

Every committed meeting or agenda transition goes through emit():

1. Append to the audit log. This must succeed; failures raise
   AuditWriteError to the caller.
2. Hand the audited record to the dispatcher. Dispatch is best effort and
   never raises; by default it runs in a background task so integrations
   cannot slow the meeting workflow down.

The audit log may therefore hold events that were never dispatched. Those
keep processed_at empty and can be replayed.
"""

import asyncio
from collections.abc import Iterable
from typing import Any

import structlog

from src.events.base import Event
from src.events.dispatch import EventDispatcher
from src.events.store import AuditRecord, IntegrationEventStore

logger = structlog.get_logger()


class IntegrationEventEmitter:
    """Dual-sink emitter: confirmed audit append, best-effort dispatch."""

    def __init__(
        self,
        store: IntegrationEventStore,
        dispatcher: EventDispatcher,
        background: bool = True,
    ):
        """Initialize emitter.

        Args:
            store: Audit log every event is appended to first
            dispatcher: Delivers audited events to integrations
            background: Dispatch in a background task instead of inline
        """
        self._store = store
        self._dispatcher = dispatcher
        self._background = background
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_dispatches(self) -> int:
        return len(self._pending)

    async def emit(self, event_type: str, payload: dict[str, Any]) -> AuditRecord:
        """Record an event and dispatch it.

        Args:
            event_type: Routing name, e.g. "l10/agenda_item.started"
            payload: Event data; must include organization_id

        Returns:
            The audit record that was written

        Raises:
            MissingOrganizationScope: If payload has no organization_id
            AuditWriteError: If the audit append failed
        """
        record = await self._store.append(event_type, payload)

        if self._background:
            task = asyncio.create_task(self._dispatcher.dispatch(record))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        else:
            await self._dispatcher.dispatch(record)

        logger.info(
            "integration event emitted",
            event_type=event_type,
            event_id=str(record.id),
            organization_id=str(record.organization_id),
        )
        return record

    async def emit_event(self, event: Event) -> AuditRecord:
        """Emit a typed event."""
        return await self.emit(event.event_type, event.to_payload())

    async def emit_batch(self, events: Iterable[Event]) -> list[AuditRecord]:
        """Emit several events concurrently and independently.

        Every emission runs to completion even if another one fails. If any
        audit append failed, the first failure is raised afterwards.

        Returns:
            Audit records in the order the events were given
        """
        results = await asyncio.gather(
            *(self.emit_event(event) for event in events),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.error(
                "integration event batch had failures",
                failed=len(failures),
                total=len(results),
            )
            raise failures[0]
        return list(results)

    async def drain(self) -> None:
        """Wait for every background dispatch started so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
