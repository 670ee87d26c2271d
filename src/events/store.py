"""Append-only integration event log using Turso/libSQL.

The log is the system of record for integration events:
- Audit trail of every committed meeting/agenda transition
- Dispatch status per event (processed_at / error)
- Dead letters: events whose dispatch failed stay queryable for replay
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from src.db.turso import TursoClient
from src.events.errors import AuditWriteError, MissingOrganizationScope

logger = logging.getLogger(__name__)

RECORD_COLUMNS = (
    "id, organization_id, event_type, payload, processed_at, error, attempts, created_at"
)


class AuditRecord(BaseModel):
    """One row of the integration event log."""

    id: UUID = Field(default_factory=uuid4)
    organization_id: UUID
    event_type: str
    payload: dict[str, Any]
    processed_at: datetime | None = None
    error: str | None = None
    attempts: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("payload", mode="before")
    @classmethod
    def _decode_payload(cls, value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value)
        return value

    @property
    def dispatched(self) -> bool:
        return self.processed_at is not None


def organization_scope(payload: dict[str, Any]) -> UUID:
    """Extract the organization_id every payload must carry.

    Raises:
        MissingOrganizationScope: If the payload has no usable organization_id
    """
    raw = payload.get("organization_id")
    if not raw:
        raise MissingOrganizationScope("Event payload must include organization_id")
    try:
        return raw if isinstance(raw, UUID) else UUID(str(raw))
    except ValueError as e:
        raise MissingOrganizationScope(f"Invalid organization_id: {raw!r}") from e


class IntegrationEventStore:
    """Append-only store for integration events.

    Events are never updated except for their dispatch bookkeeping columns
    and never deleted.
    """

    def __init__(self, client: TursoClient):
        """Initialize event store.

        Args:
            client: Database client for persistence
        """
        self.client = client

    async def init_schema(self) -> None:
        """Create the integration_events table if it doesn't exist."""
        await self.client.execute("""
            CREATE TABLE IF NOT EXISTS integration_events (
                id TEXT PRIMARY KEY,
                organization_id TEXT NOT NULL,
                event_type TEXT NOT NULL,
                payload TEXT NOT NULL,
                processed_at TEXT,
                error TEXT,
                attempts INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            )
        """)
        await self.client.execute("""
            CREATE INDEX IF NOT EXISTS idx_integration_events_org
            ON integration_events(organization_id, created_at)
        """)
        await self.client.execute("""
            CREATE INDEX IF NOT EXISTS idx_integration_events_type
            ON integration_events(event_type)
        """)
        await self.client.execute("""
            CREATE INDEX IF NOT EXISTS idx_integration_events_unprocessed
            ON integration_events(organization_id, event_type)
            WHERE processed_at IS NULL
        """)
        logger.info("Integration event store schema initialized")

    async def append(self, event_type: str, payload: dict[str, Any]) -> AuditRecord:
        """Append an event to the log.

        Args:
            event_type: Routing name of the event
            payload: Event data, including organization_id

        Returns:
            The stored AuditRecord

        Raises:
            MissingOrganizationScope: If payload has no organization_id
            AuditWriteError: If the database write fails
        """
        record = AuditRecord(
            organization_id=organization_scope(payload),
            event_type=event_type,
            payload=payload,
        )
        try:
            await self.client.execute(
                """INSERT INTO integration_events
                   (id, organization_id, event_type, payload, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                [
                    str(record.id),
                    str(record.organization_id),
                    record.event_type,
                    json.dumps(record.payload, default=str),
                    record.created_at.isoformat(),
                ],
            )
        except Exception as e:
            logger.error(f"Failed to append {event_type} to audit log: {e}")
            raise AuditWriteError(f"Could not record {event_type}: {e}") from e

        logger.debug(f"Stored event {event_type} ({record.id})")
        return record

    async def mark_processed(self, record_id: UUID, attempts: int = 1) -> None:
        """Record a successful dispatch."""
        await self.client.execute(
            """UPDATE integration_events
               SET processed_at = ?, error = NULL, attempts = attempts + ?
               WHERE id = ?""",
            [datetime.now(UTC).isoformat(), attempts, str(record_id)],
        )

    async def mark_failed(self, record_id: UUID, error: str, attempts: int = 1) -> None:
        """Record a failed dispatch. The event stays unprocessed (dead letter)."""
        await self.client.execute(
            """UPDATE integration_events
               SET error = ?, attempts = attempts + ?
               WHERE id = ?""",
            [error, attempts, str(record_id)],
        )

    async def get(self, record_id: UUID) -> AuditRecord | None:
        row = await self.client.fetch_one(
            f"SELECT {RECORD_COLUMNS} FROM integration_events WHERE id = ?",
            [str(record_id)],
        )
        return AuditRecord.model_validate(row) if row else None

    async def list_events(
        self,
        organization_id: UUID | None = None,
        event_type: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """Retrieve events in insertion order.

        Args:
            organization_id: Only events for this organization
            event_type: Only events of this type
            limit: Maximum events to return
            offset: Number of events to skip

        Returns:
            Matching AuditRecords, oldest first
        """
        where: list[str] = []
        params: list[Any] = []
        if organization_id is not None:
            where.append("organization_id = ?")
            params.append(str(organization_id))
        if event_type is not None:
            where.append("event_type = ?")
            params.append(event_type)

        sql = f"SELECT {RECORD_COLUMNS} FROM integration_events"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY rowid ASC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = await self.client.fetch_all(sql, params)
        return [AuditRecord.model_validate(row) for row in rows]

    async def list_undispatched(self, limit: int = 100) -> list[AuditRecord]:
        """Events that were never successfully dispatched, oldest first."""
        rows = await self.client.fetch_all(
            f"""SELECT {RECORD_COLUMNS}
                FROM integration_events
                WHERE processed_at IS NULL
                ORDER BY rowid ASC
                LIMIT ?""",
            [limit],
        )
        return [AuditRecord.model_validate(row) for row in rows]

    async def count_events(self, event_type: str | None = None) -> int:
        """Count events, optionally by type.

        Args:
            event_type: Optional event type to filter by

        Returns:
            Number of events
        """
        if event_type:
            result = await self.client.execute(
                "SELECT COUNT(*) FROM integration_events WHERE event_type = ?",
                [event_type],
            )
        else:
            result = await self.client.execute("SELECT COUNT(*) FROM integration_events")
        return result.rows[0][0]
