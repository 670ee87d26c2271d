"""Base entity classes for all domain models."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class BaseEntity(BaseModel):
    """Base class for all domain entities.

    Provides a unique ID and the shared serialization config. Entities are
    loaded straight from database rows, so ISO timestamp strings are coerced
    to datetimes on validation.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_default=True,
        from_attributes=True,
    )

    id: UUID = Field(default_factory=uuid4, description="Unique entity identifier")


class TimestampedEntity(BaseEntity):
    """Entity that tracks its own creation and modification time."""

    created_at: datetime = Field(
        default_factory=utc_now,
        description="When entity was created",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        description="When entity was last updated",
    )

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = utc_now()
