"""Base Event class for integration events."""

from datetime import UTC, datetime
from typing import Any, ClassVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class Event(BaseModel):
    """Base class for all integration events.

    Events are immutable records of committed changes. Every event is
    scoped to an organization so downstream integrations stay tenant-aware.

    Attributes:
        event_id: Unique identifier for this event instance
        timestamp: When the event occurred
        organization_id: Tenant the event belongs to
    """

    model_config = ConfigDict(
        frozen=True,  # Events are immutable
        str_strip_whitespace=True,
    )

    # Routing name, e.g. "l10/agenda_item.started"
    event_type: ClassVar[str] = "event"

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the event occurred",
    )
    organization_id: UUID = Field(description="Organization (tenant) scope")

    def to_payload(self) -> dict[str, Any]:
        """Convert event to its JSON-ready payload.

        The payload carries organization_id plus every event field, which
        is what the audit log stores and what integrations receive.
        """
        return self.model_dump(mode="json")
