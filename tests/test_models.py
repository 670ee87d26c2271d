"""Tests for domain models."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from src.models.agenda_item import DEFAULT_AGENDA, AgendaItem, AgendaSection
from src.models.base import BaseEntity, TimestampedEntity
from src.models.meeting import Meeting, MeetingStatus, MeetingType


class TestBaseEntity:
    """Tests for BaseEntity."""

    def test_auto_generates_uuid(self):
        """BaseEntity should auto-generate a UUID."""

        class TestEntity(BaseEntity):
            pass

        entity = TestEntity()
        assert isinstance(entity.id, UUID)

    def test_auto_generates_timestamps(self):
        """TimestampedEntity should auto-generate created_at and updated_at."""

        class TestEntity(TimestampedEntity):
            pass

        before = datetime.now(UTC)
        entity = TestEntity()
        after = datetime.now(UTC)

        assert before <= entity.created_at <= after
        assert before <= entity.updated_at <= after

    def test_touch_updates_timestamp(self):
        """touch() should update the updated_at timestamp."""

        class TestEntity(TimestampedEntity):
            pass

        entity = TestEntity()
        original_updated = entity.updated_at

        entity.touch()

        assert entity.updated_at >= original_updated


class TestAgendaItem:
    """Tests for AgendaItem model."""

    def test_defaults_to_untimed(self):
        item = AgendaItem(meeting_id=uuid4(), section=AgendaSection.IDS, sort_order=6)
        assert item.started_at is None
        assert item.completed_at is None
        assert item.notes is None

    def test_parses_stored_row(self):
        """Rows from the database carry strings for ids, enums and timestamps."""
        meeting_id = uuid4()
        item = AgendaItem.model_validate(
            {
                "id": str(uuid4()),
                "meeting_id": str(meeting_id),
                "section": "headlines",
                "sort_order": 4,
                "duration_minutes": 5,
                "started_at": "2026-03-02T09:15:00.000000+00:00",
                "completed_at": None,
                "notes": None,
            }
        )
        assert item.meeting_id == meeting_id
        assert item.section is AgendaSection.HEADLINES
        assert item.started_at == datetime(2026, 3, 2, 9, 15, tzinfo=UTC)

    def test_rejects_unknown_section(self):
        with pytest.raises(ValidationError):
            AgendaItem(meeting_id=uuid4(), section="lunch", sort_order=1)

    def test_default_agenda(self):
        """The standard L10 agenda is seven sections, ninety minutes."""
        assert [t.section for t in DEFAULT_AGENDA] == list(AgendaSection)
        assert [t.sort_order for t in DEFAULT_AGENDA] == list(range(1, 8))
        assert sum(t.duration_minutes for t in DEFAULT_AGENDA) == 90


class TestMeeting:
    """Tests for Meeting model."""

    def test_defaults(self):
        meeting = Meeting(
            organization_id=uuid4(),
            title="Leadership L10",
            scheduled_at=datetime(2026, 3, 2, 9, 0, tzinfo=UTC),
        )
        assert meeting.status is MeetingStatus.SCHEDULED
        assert meeting.meeting_type is MeetingType.LEADERSHIP
        assert meeting.is_open

    def test_title_required(self):
        with pytest.raises(ValidationError):
            Meeting(organization_id=uuid4(), title="", scheduled_at=datetime.now(UTC))

    def test_rating_validated_on_assignment(self):
        meeting = Meeting(
            organization_id=uuid4(), title="L10", scheduled_at=datetime.now(UTC)
        )
        with pytest.raises(ValidationError):
            meeting.rating = 0

    def test_completed_meeting_is_not_open(self):
        meeting = Meeting(
            organization_id=uuid4(),
            title="L10",
            scheduled_at=datetime.now(UTC),
            status=MeetingStatus.COMPLETED,
        )
        assert not meeting.is_open
