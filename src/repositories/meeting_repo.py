"""Repository for L10 meeting records.

Meetings own their agenda, so creating and ending a meeting touches the
agenda table as well. Both happen in one batch with the meeting write.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from src.db.turso import TursoClient
from src.models.agenda_item import DEFAULT_AGENDA, AgendaItemTemplate
from src.models.meeting import Meeting, MeetingStatus
from src.repositories.agenda_repo import (
    agenda_insert_statements,
    complete_open_items_statement,
    to_db_timestamp,
)

logger = logging.getLogger(__name__)

MEETING_COLUMNS = (
    "id, organization_id, title, meeting_type, scheduled_at, started_at, "
    "ended_at, duration_minutes, status, rating, created_by, created_at, updated_at"
)


def _to_row_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_db_timestamp(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


class MeetingRepository:
    """Persistence for meetings and the agenda seeded with them."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create the meetings table if it doesn't exist."""
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS l10_meetings (
                id TEXT PRIMARY KEY,
                organization_id TEXT NOT NULL,
                title TEXT NOT NULL,
                meeting_type TEXT NOT NULL DEFAULT 'leadership',
                scheduled_at TEXT NOT NULL,
                started_at TEXT,
                ended_at TEXT,
                duration_minutes INTEGER,
                status TEXT NOT NULL DEFAULT 'scheduled',
                rating INTEGER CHECK (rating IS NULL OR rating BETWEEN 1 AND 10),
                created_by TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        await self._db.execute("""
            CREATE INDEX IF NOT EXISTS idx_meetings_organization
            ON l10_meetings(organization_id, scheduled_at)
        """)
        logger.info("Meetings schema initialized")

    async def create(
        self,
        meeting: Meeting,
        agenda: Iterable[AgendaItemTemplate] = DEFAULT_AGENDA,
    ) -> Meeting:
        """Insert a meeting together with its agenda.

        Args:
            meeting: Meeting to persist
            agenda: Templates for the agenda items (defaults to the L10 agenda)

        Returns:
            The persisted meeting
        """
        columns = [column.strip() for column in MEETING_COLUMNS.split(",")]
        values = meeting.model_dump()
        placeholders = ", ".join("?" for _ in columns)
        insert_meeting = (
            f"INSERT INTO l10_meetings ({MEETING_COLUMNS}) VALUES ({placeholders})",
            [_to_row_value(values[column]) for column in columns],
        )
        await self._db.execute_batch(
            [insert_meeting, *agenda_insert_statements(meeting.id, agenda)]
        )
        logger.info(f"Created meeting {meeting.id} ({meeting.title})")
        return meeting

    async def get(self, meeting_id: UUID) -> Meeting | None:
        row = await self._db.fetch_one(
            f"SELECT {MEETING_COLUMNS} FROM l10_meetings WHERE id = ?",
            [str(meeting_id)],
        )
        return Meeting.model_validate(row) if row else None

    async def list_for_organization(
        self,
        organization_id: UUID,
        status: MeetingStatus | None = None,
        limit: int = 50,
    ) -> list[Meeting]:
        """List an organization's meetings, most recently scheduled first."""
        sql = f"SELECT {MEETING_COLUMNS} FROM l10_meetings WHERE organization_id = ?"
        params: list[Any] = [str(organization_id)]
        if status is not None:
            sql += " AND status = ?"
            params.append(status.value)
        sql += " ORDER BY scheduled_at DESC LIMIT ?"
        params.append(limit)
        rows = await self._db.fetch_all(sql, params)
        return [Meeting.model_validate(row) for row in rows]

    async def save(self, meeting: Meeting) -> Meeting:
        """Persist the mutable lifecycle fields of a meeting."""
        meeting.touch()
        await self._db.execute(*self._update_statement(meeting))
        return meeting

    async def save_ended(self, meeting: Meeting) -> Meeting:
        """Persist an ended meeting and close out its agenda atomically.

        Every agenda item that is not finished gets completed_at set to the
        meeting's ended_at.
        """
        if meeting.ended_at is None:
            msg = "Meeting must have ended_at set before it is saved as ended"
            raise ValueError(msg)
        meeting.touch()
        await self._db.execute_batch(
            [
                complete_open_items_statement(meeting.id, meeting.ended_at),
                self._update_statement(meeting),
            ]
        )
        return meeting

    @staticmethod
    def _update_statement(meeting: Meeting) -> tuple[str, list[Any]]:
        fields = [
            "title",
            "scheduled_at",
            "started_at",
            "ended_at",
            "duration_minutes",
            "status",
            "rating",
            "updated_at",
        ]
        values = meeting.model_dump()
        assignments = ", ".join(f"{field} = ?" for field in fields)
        params = [_to_row_value(values[field]) for field in fields]
        params.append(str(meeting.id))
        return f"UPDATE l10_meetings SET {assignments} WHERE id = ?", params
