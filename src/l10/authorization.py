"""Authorization collaborator for meeting commands.

Authentication happens upstream; this module only answers whether an
already identified caller may act on an organization's meetings.
"""

import logging
from enum import Enum
from typing import Protocol, runtime_checkable
from uuid import UUID

from src.db.turso import TursoClient

logger = logging.getLogger(__name__)


class AccessLevel(str, Enum):
    ADMIN = "admin"
    ELT = "elt"
    MEMBER = "member"


@runtime_checkable
class Authorizer(Protocol):
    """Decides whether a caller may act on an organization's meetings."""

    async def can_access(self, caller_id: UUID, organization_id: UUID) -> bool:
        """Return True if the caller belongs to the organization."""
        ...

    async def can_schedule(self, caller_id: UUID, organization_id: UUID) -> bool:
        """Return True if the caller may create meetings for the organization."""
        ...


class ProfileAuthorizer:
    """Authorizer backed by the profiles table.

    Any profile in the organization may run its meetings. Scheduling new
    meetings is limited to admins and the leadership team.
    """

    def __init__(self, db_client: TursoClient):
        self._db = db_client

    async def initialize(self) -> None:
        """Create the profiles table if it doesn't exist."""
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                organization_id TEXT NOT NULL,
                full_name TEXT,
                access_level TEXT NOT NULL DEFAULT 'member'
            )
        """)

    async def add_profile(
        self,
        profile_id: UUID,
        organization_id: UUID,
        access_level: AccessLevel = AccessLevel.MEMBER,
        full_name: str | None = None,
    ) -> None:
        await self._db.execute(
            """INSERT INTO profiles (id, organization_id, full_name, access_level)
               VALUES (?, ?, ?, ?)""",
            [str(profile_id), str(organization_id), full_name, access_level.value],
        )

    async def _access_level(
        self, caller_id: UUID, organization_id: UUID
    ) -> AccessLevel | None:
        row = await self._db.fetch_one(
            "SELECT access_level FROM profiles WHERE id = ? AND organization_id = ?",
            [str(caller_id), str(organization_id)],
        )
        if row is None:
            logger.info(f"Profile {caller_id} is not a member of {organization_id}")
            return None
        return AccessLevel(row["access_level"])

    async def can_access(self, caller_id: UUID, organization_id: UUID) -> bool:
        return await self._access_level(caller_id, organization_id) is not None

    async def can_schedule(self, caller_id: UUID, organization_id: UUID) -> bool:
        level = await self._access_level(caller_id, organization_id)
        return level in (AccessLevel.ADMIN, AccessLevel.ELT)
