"""Repository for L10 agenda items.

The agenda table is the only shared mutable state behind the meeting
session. Writes for one meeting are serialized with a per-meeting lock and
multi-item transitions are committed as a single libSQL batch.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from src.agenda.engine import ItemPatch
from src.agenda.errors import DuplicateSortOrder, ItemNotFound
from src.agenda.state import AgendaSnapshot
from src.db.turso import BatchStatement, TursoClient
from src.models.agenda_item import AgendaItem, AgendaItemTemplate

logger = logging.getLogger(__name__)

AGENDA_COLUMNS = (
    "id, meeting_id, section, sort_order, duration_minutes, "
    "started_at, completed_at, notes"
)


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


def to_db_timestamp(value: datetime | None) -> str | None:
    """Serialize a timestamp with a fixed width so SQL string comparison
    orders the same way as the datetimes do."""
    if value is None:
        return None
    return value.isoformat(timespec="microseconds")


def _to_db_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_db_timestamp(value)
    return value


def agenda_insert_statements(
    meeting_id: UUID,
    templates: Iterable[AgendaItemTemplate],
) -> list[BatchStatement]:
    """INSERT statements that seed a meeting's agenda from templates."""
    statements: list[BatchStatement] = []
    for template in templates:
        item = AgendaItem(
            meeting_id=meeting_id,
            section=template.section,
            sort_order=template.sort_order,
            duration_minutes=template.duration_minutes,
        )
        statements.append(
            (
                """INSERT INTO l10_agenda_items
                   (id, meeting_id, section, sort_order, duration_minutes)
                   VALUES (?, ?, ?, ?, ?)""",
                [
                    str(item.id),
                    str(meeting_id),
                    item.section.value,
                    item.sort_order,
                    item.duration_minutes,
                ],
            )
        )
    return statements


def complete_open_items_statement(meeting_id: UUID, at: datetime) -> BatchStatement:
    """UPDATE that finishes every item not already finished.

    Covers pending items, active items, and items reopened after finishing.
    """
    return (
        """UPDATE l10_agenda_items
           SET completed_at = CASE
               WHEN started_at IS NOT NULL AND started_at > ? THEN started_at
               ELSE ? END
           WHERE meeting_id = ?
             AND (completed_at IS NULL
                  OR (started_at IS NOT NULL AND started_at > completed_at))""",
        [to_db_timestamp(at), to_db_timestamp(at), str(meeting_id)],
    )


def _patch_statement(patch: ItemPatch) -> BatchStatement:
    columns = sorted(patch.fields)
    assignments = ", ".join(f"{column} = ?" for column in columns)
    params = [_to_db_value(patch.fields[column]) for column in columns]
    params.append(str(patch.item_id))
    return f"UPDATE l10_agenda_items SET {assignments} WHERE id = ?", params


class AgendaItemRepository:
    """Durable ordered storage and point lookups for agenda items."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._lock_users: dict[UUID, int] = {}

    async def initialize(self) -> None:
        """Create the agenda items table if it doesn't exist."""
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS l10_agenda_items (
                id TEXT PRIMARY KEY,
                meeting_id TEXT NOT NULL
                    REFERENCES l10_meetings(id) ON DELETE CASCADE,
                section TEXT NOT NULL CHECK (section IN (
                    'segue', 'scorecard', 'rocks', 'headlines',
                    'todos', 'ids', 'conclude'
                )),
                sort_order INTEGER NOT NULL,
                duration_minutes INTEGER,
                started_at TEXT,
                completed_at TEXT,
                notes TEXT
            )
        """)
        await self._db.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS idx_agenda_items_meeting_order
            ON l10_agenda_items(meeting_id, sort_order)
        """)
        logger.info("Agenda items schema initialized")

    @asynccontextmanager
    async def lock(self, meeting_id: UUID) -> AsyncIterator[None]:
        """Hold the write lock for one meeting's agenda.

        Every read-modify-write of an agenda runs inside this lock so two
        concurrent commands never act on the same observed state.
        """
        meeting_lock = self._locks.setdefault(meeting_id, asyncio.Lock())
        self._lock_users[meeting_id] = self._lock_users.get(meeting_id, 0) + 1
        try:
            async with meeting_lock:
                yield
        finally:
            self._lock_users[meeting_id] -= 1
            if not self._lock_users[meeting_id]:
                # Nobody holds or waits on it any more
                del self._lock_users[meeting_id]
                del self._locks[meeting_id]

    async def list_by_sort_order(self, meeting_id: UUID) -> list[AgendaItem]:
        """Return a meeting's agenda items in ascending sort_order."""
        rows = await self._db.fetch_all(
            f"""SELECT {AGENDA_COLUMNS}
                FROM l10_agenda_items
                WHERE meeting_id = ?
                ORDER BY sort_order ASC""",
            [str(meeting_id)],
        )
        return [AgendaItem.model_validate(row) for row in rows]

    async def snapshot(self, meeting_id: UUID) -> AgendaSnapshot:
        """Load a validated, ordered snapshot of the agenda.

        Raises:
            DuplicateSortOrder: If two items share a sort_order
        """
        return AgendaSnapshot(meeting_id, await self.list_by_sort_order(meeting_id))

    async def get_item(self, item_id: UUID) -> AgendaItem | None:
        row = await self._db.fetch_one(
            f"SELECT {AGENDA_COLUMNS} FROM l10_agenda_items WHERE id = ?",
            [str(item_id)],
        )
        return AgendaItem.model_validate(row) if row else None

    async def get_active(self, meeting_id: UUID) -> AgendaItem | None:
        """Return the active item, if any.

        Raises:
            MultipleActiveItems: If more than one item is active
        """
        return (await self.snapshot(meeting_id)).active()

    async def get_adjacent(
        self,
        meeting_id: UUID,
        reference_sort_order: int,
        direction: Direction,
    ) -> AgendaItem | None:
        """Return the neighbouring item in the given direction.

        Raises:
            DuplicateSortOrder: If the neighbouring position is shared
        """
        if direction is Direction.FORWARD:
            comparison, ordering = ">", "ASC"
        else:
            comparison, ordering = "<", "DESC"

        rows = await self._db.fetch_all(
            f"""SELECT {AGENDA_COLUMNS}
                FROM l10_agenda_items
                WHERE meeting_id = ? AND sort_order {comparison} ?
                ORDER BY sort_order {ordering}
                LIMIT 2""",
            [str(meeting_id), reference_sort_order],
        )
        if not rows:
            return None
        if len(rows) == 2 and rows[0]["sort_order"] == rows[1]["sort_order"]:
            raise DuplicateSortOrder(meeting_id, rows[0]["sort_order"])
        return AgendaItem.model_validate(rows[0])

    async def apply_patch(self, item_id: UUID, fields: dict[str, Any]) -> None:
        """Apply a partial update to one item.

        Raises:
            ItemNotFound: If the item does not exist
        """
        result = await self._db.execute(
            *_patch_statement(ItemPatch(item_id=item_id, fields=fields))
        )
        if result.rows_affected == 0:
            raise ItemNotFound(item_id)

    async def apply_patches(self, patches: list[ItemPatch]) -> None:
        """Commit several patches as one transaction.

        Raises:
            ItemNotFound: If any patched item does not exist. The batch is
                validated before it is sent, so nothing is written.
        """
        if not patches:
            return

        ids = [str(patch.item_id) for patch in patches]
        placeholders = ", ".join("?" for _ in ids)
        rows = await self._db.fetch_all(
            f"SELECT id FROM l10_agenda_items WHERE id IN ({placeholders})",
            ids,
        )
        found = {row["id"] for row in rows}
        for patch in patches:
            if str(patch.item_id) not in found:
                raise ItemNotFound(patch.item_id)

        await self._db.execute_batch([_patch_statement(patch) for patch in patches])
        logger.debug(f"Applied {len(patches)} agenda patch(es)")
