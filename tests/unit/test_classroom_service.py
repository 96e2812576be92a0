# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Classroom service."""

import pytest

from src.core.errors import (
    InvalidInputError,
    InvalidOperationError,
    ResourceExistsError,
    ResourceNotFoundError,
    SchoolInactiveError,
)
from src.infrastructure.database.store import EntityStore
from src.infrastructure.events import EventTypes
from src.utils.ids import new_object_id


@pytest.fixture
def store(db):
    """Entity store for reading back committed state."""
    return EntityStore(db)


class TestCreateClassroom:
    """Tests for classroom creation."""

    @pytest.mark.asyncio
    async def test_create_success(self, classroom_service, make_school, event_bus):
        """Test a new classroom starts empty and active."""
        school = await make_school()

        classroom = await classroom_service.create_classroom(
            school.id, "Room 101", 25, ["Projector", "Whiteboard", "Projector"]
        )

        assert classroom.school_id == school.id
        assert classroom.capacity == 25
        assert classroom.current_students == 0
        assert classroom.status == "active"
        assert classroom.resources == ["Projector", "Whiteboard"]
        assert event_bus.recent(EventTypes.Classroom.CREATED)[-1].payload == {
            "classroom_id": classroom.id,
            "school_id": school.id,
        }

    @pytest.mark.asyncio
    async def test_duplicate_name_in_school(self, classroom_service, make_school, make_classroom):
        """Test names are unique within a school."""
        school = await make_school()
        await make_classroom(school.id, name="Room 101")

        with pytest.raises(ResourceExistsError):
            await classroom_service.create_classroom(school.id, "Room 101", 20)

    @pytest.mark.asyncio
    async def test_same_name_in_other_school(self, classroom_service, make_school, make_classroom):
        """Test two schools may reuse a classroom name."""
        school_a = await make_school()
        school_b = await make_school()
        await make_classroom(school_a.id, name="Room 101")

        classroom = await classroom_service.create_classroom(school_b.id, "Room 101", 20)

        assert classroom.school_id == school_b.id

    @pytest.mark.asyncio
    async def test_name_reusable_after_delete(
        self, classroom_service, make_school, make_classroom
    ):
        """Test a deleted classroom releases its name."""
        school = await make_school()
        old = await make_classroom(school.id, name="Room 101")
        await classroom_service.delete_classroom(old.id, school.id)

        classroom = await classroom_service.create_classroom(school.id, "Room 101", 20)

        assert classroom.id != old.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("capacity", [0, 101, True])
    async def test_invalid_capacity(self, classroom_service, make_school, capacity):
        """Test capacity must be an integer from 1 to 100."""
        school = await make_school()

        with pytest.raises(InvalidInputError):
            await classroom_service.create_classroom(school.id, "Room 101", capacity)

    @pytest.mark.asyncio
    async def test_unknown_resource(self, classroom_service, make_school):
        """Test resources outside the catalogue are rejected."""
        school = await make_school()

        with pytest.raises(InvalidInputError) as exc_info:
            await classroom_service.create_classroom(school.id, "Lab", 10, ["Hologram"])

        assert exc_info.value.details["resources"] == ["Hologram"]

    @pytest.mark.asyncio
    async def test_inactive_school(self, classroom_service, school_service, make_school):
        """Test classrooms can only be added to active schools."""
        school = await make_school()
        await school_service.update_school(school.id, {"status": "inactive"})

        with pytest.raises(SchoolInactiveError):
            await classroom_service.create_classroom(school.id, "Room 101", 20)

    @pytest.mark.asyncio
    async def test_missing_school(self, classroom_service):
        """Test a missing school is reported as inactive."""
        with pytest.raises(SchoolInactiveError):
            await classroom_service.create_classroom(new_object_id(), "Room 101", 20)


class TestUpdateClassroom:
    """Tests for classroom updates."""

    @pytest.mark.asyncio
    async def test_update_fields(self, classroom_service, make_school, make_classroom):
        """Test name, resources and status updates."""
        school = await make_school()
        classroom = await make_classroom(school.id)

        updated = await classroom_service.update_classroom(
            classroom.id,
            school.id,
            {"name": "Science Lab", "resources": ["Lab Equipment"], "status": "maintenance"},
        )

        assert updated.name == "Science Lab"
        assert updated.resources == ["Lab Equipment"]
        assert updated.status == "maintenance"

    @pytest.mark.asyncio
    async def test_shrink_below_occupancy(
        self, classroom_service, store, make_school, make_classroom, make_student
    ):
        """Test capacity 5 on a classroom with 6 students fails and leaves it unchanged."""
        school = await make_school()
        classroom = await make_classroom(school.id, capacity=10)
        classroom_id = classroom.id
        for _ in range(6):
            await make_student(school.id, classroom_id=classroom_id)

        with pytest.raises(InvalidOperationError):
            await classroom_service.update_classroom(classroom_id, school.id, {"capacity": 5})

        reloaded = await store.get_classroom(classroom_id)
        assert reloaded.capacity == 10
        assert reloaded.current_students == 6

    @pytest.mark.asyncio
    async def test_shrink_to_occupancy(
        self, classroom_service, make_school, make_classroom, make_student
    ):
        """Test capacity may equal the current occupancy."""
        school = await make_school()
        classroom = await make_classroom(school.id, capacity=10)
        for _ in range(2):
            await make_student(school.id, classroom_id=classroom.id)

        updated = await classroom_service.update_classroom(
            classroom.id, school.id, {"capacity": 2}
        )

        assert updated.capacity == 2
        assert updated.available_seats == 0

    @pytest.mark.asyncio
    async def test_rename_to_taken_name(self, classroom_service, make_school, make_classroom):
        """Test renaming onto another live classroom's name fails."""
        school = await make_school()
        await make_classroom(school.id, name="Room 101")
        other = await make_classroom(school.id, name="Room 102")

        with pytest.raises(ResourceExistsError):
            await classroom_service.update_classroom(other.id, school.id, {"name": "Room 101"})

    @pytest.mark.asyncio
    async def test_update_without_valid_fields(
        self, classroom_service, make_school, make_classroom
    ):
        """Test an update must name at least one editable field."""
        school = await make_school()
        classroom = await make_classroom(school.id)

        with pytest.raises(InvalidInputError):
            await classroom_service.update_classroom(
                classroom.id, school.id, {"current_students": 9}
            )

    @pytest.mark.asyncio
    async def test_update_cannot_set_deleted_status(
        self, classroom_service, make_school, make_classroom
    ):
        """Test deletion is not reachable through update."""
        school = await make_school()
        classroom = await make_classroom(school.id)

        with pytest.raises(InvalidInputError):
            await classroom_service.update_classroom(
                classroom.id, school.id, {"status": "deleted"}
            )


class TestDeleteClassroom:
    """Tests for classroom deletion."""

    @pytest.mark.asyncio
    async def test_delete_empty(self, classroom_service, store, make_school, make_classroom):
        """Test an empty classroom is soft-deleted."""
        school = await make_school()
        classroom = await make_classroom(school.id)
        classroom_id = classroom.id

        result = await classroom_service.delete_classroom(classroom_id, school.id)

        assert result == {"success": True}
        reloaded = await store.get_classroom(classroom_id, include_deleted=True)
        assert reloaded.status == "deleted"
        assert reloaded.deleted_at is not None
        with pytest.raises(ResourceNotFoundError):
            await classroom_service.get_classroom(classroom_id, school.id)

    @pytest.mark.asyncio
    async def test_delete_occupied(
        self, classroom_service, store, make_school, make_classroom, make_student
    ):
        """Test a classroom with a student cannot be deleted."""
        school = await make_school()
        classroom = await make_classroom(school.id)
        classroom_id = classroom.id
        await make_student(school.id, classroom_id=classroom_id)

        with pytest.raises(InvalidOperationError) as exc_info:
            await classroom_service.delete_classroom(classroom_id, school.id)

        assert exc_info.value.details["current_students"] == 1
        assert (await store.get_classroom(classroom_id)).status == "active"

    @pytest.mark.asyncio
    async def test_delete_missing(self, classroom_service, make_school):
        """Test deleting a missing classroom."""
        school = await make_school()

        with pytest.raises(ResourceNotFoundError):
            await classroom_service.delete_classroom(new_object_id(), school.id)


class TestClassroomQueries:
    """Tests for listings and statistics."""

    @pytest.mark.asyncio
    async def test_get_classrooms(self, classroom_service, make_school, make_classroom):
        """Test listing only returns the school's active classrooms."""
        school = await make_school()
        other = await make_school()
        kept = await make_classroom(school.id)
        removed = await make_classroom(school.id)
        await make_classroom(other.id)
        await classroom_service.delete_classroom(removed.id, school.id)

        page = await classroom_service.get_classrooms(school.id)

        assert [c.id for c in page.items] == [kept.id]
        assert page.pagination["total"] == 1

    @pytest.mark.asyncio
    async def test_get_classrooms_unknown_school(self, classroom_service):
        """Test listing a missing school."""
        with pytest.raises(ResourceNotFoundError):
            await classroom_service.get_classrooms(new_object_id())

    @pytest.mark.asyncio
    async def test_get_classroom_from_other_school(
        self, classroom_service, make_school, make_classroom
    ):
        """Test classrooms are scoped to their school."""
        school = await make_school()
        other = await make_school()
        classroom = await make_classroom(other.id)

        with pytest.raises(ResourceNotFoundError):
            await classroom_service.get_classroom(classroom.id, school.id)

    @pytest.mark.asyncio
    async def test_classroom_stats(
        self, classroom_service, make_school, make_classroom, make_student
    ):
        """Test counts by status and seat totals."""
        school = await make_school()
        first = await make_classroom(school.id, capacity=20)
        second = await make_classroom(school.id, capacity=10)
        await make_student(school.id, classroom_id=first.id)
        await classroom_service.update_classroom(second.id, school.id, {"status": "inactive"})

        stats = await classroom_service.get_classroom_stats(school.id)

        assert stats["total"] == 2
        assert stats["active"] == 1
        assert stats["inactive"] == 1
        assert stats["capacity"] == {"seats": 20, "occupied": 1}
