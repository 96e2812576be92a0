# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for School service."""

from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy import update

from src.core.errors import (
    DatabaseError,
    InvalidInputError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from src.domains.school import school_document
from src.infrastructure.database.models import Classroom, School, Student
from src.infrastructure.database.store import EntityStore
from src.infrastructure.events import EventTypes
from src.utils.datetime import utc_now
from src.utils.ids import new_object_id


@pytest.fixture
def store(db):
    """Entity store for reading back committed state."""
    return EntityStore(db)


class TestSchoolServiceCreate:
    """Tests for school creation."""

    @pytest.mark.asyncio
    async def test_create_school_success(
        self, school_service, sample_address, sample_contact, redis_mock, event_bus
    ):
        """Test successful school creation."""
        admin_id = new_object_id()

        school = await school_service.create_school(
            "  Springfield Elementary ",
            sample_address,
            {**sample_contact, "email": "Office@Springfield.EDU"},
            admin_id=admin_id,
        )

        assert school.name == "Springfield Elementary"
        assert school.status == "active"
        assert school.admin_id == admin_id
        assert school.created_by == admin_id
        assert school.address == sample_address
        assert school.contact_info["email"] == "office@springfield.edu"
        assert school.school_metadata == {
            "student_count": 0,
            "classroom_count": 0,
            "active_teacher_count": 0,
        }

        redis_mock.set.assert_awaited_once()
        key, doc = redis_mock.set.await_args.args
        assert key == f"school:{school.id}"
        assert doc["name"] == "Springfield Elementary"
        assert event_bus.recent(EventTypes.School.CREATED)[-1].payload["school_id"] == school.id

    @pytest.mark.asyncio
    async def test_create_school_name_case_insensitive(
        self, school_service, make_school, sample_address, sample_contact
    ):
        """Test school names are unique regardless of case."""
        await make_school("Springfield Elementary")

        with pytest.raises(ResourceExistsError):
            await school_service.create_school(
                "SPRINGFIELD elementary", sample_address, sample_contact
            )

    @pytest.mark.asyncio
    async def test_deleted_school_keeps_its_name(
        self, school_service, make_school, sample_address, sample_contact
    ):
        """Test a deleted school's name stays reserved."""
        school = await make_school("Shelbyville Elementary")
        await school_service.delete_school(school.id)

        with pytest.raises(ResourceExistsError):
            await school_service.create_school(
                "Shelbyville Elementary", sample_address, sample_contact
            )

    @pytest.mark.asyncio
    async def test_create_school_incomplete_address(
        self, school_service, sample_address, sample_contact
    ):
        """Test every address field is required."""
        address = {**sample_address, "zip_code": " "}

        with pytest.raises(InvalidInputError) as exc_info:
            await school_service.create_school("Ogdenville High", address, sample_contact)

        assert exc_info.value.details["field"] == "address.zip_code"

    @pytest.mark.asyncio
    async def test_create_school_empty_name(self, school_service, sample_address, sample_contact):
        """Test a blank name is rejected."""
        with pytest.raises(InvalidInputError):
            await school_service.create_school("   ", sample_address, sample_contact)


class TestSchoolServiceGet:
    """Tests for school retrieval."""

    @pytest.mark.asyncio
    async def test_get_school_round_trip(self, school_service, make_school, redis_mock):
        """Test a created school reads back as the same document."""
        school = await make_school()

        doc = await school_service.get_school(school.id)

        assert doc["id"] == school.id
        assert doc["name"] == school.name
        assert doc["address"] == school.address
        assert doc["status"] == "active"
        assert doc["deleted_at"] is None
        redis_mock.get.assert_awaited_with(f"school:{school.id}")

    @pytest.mark.asyncio
    async def test_get_school_served_from_cache(self, school_service, redis_mock):
        """Test a cache hit skips the database."""
        school_id = new_object_id()
        redis_mock.get.return_value = {"id": school_id, "name": "Cached", "status": "active"}

        doc = await school_service.get_school(school_id)

        assert doc["name"] == "Cached"

    @pytest.mark.asyncio
    async def test_get_school_survives_cache_failure(
        self, school_service, make_school, redis_mock
    ):
        """Test a failing cache falls back to the database."""
        school = await make_school()
        redis_mock.get.side_effect = ConnectionError("redis down")

        doc = await school_service.get_school(school.id)

        assert doc["id"] == school.id

    @pytest.mark.asyncio
    async def test_get_deleted_school(self, school_service, make_school):
        """Test a deleted school is not found."""
        school = await make_school()
        school_id = school.id
        await school_service.delete_school(school_id)

        with pytest.raises(ResourceNotFoundError):
            await school_service.get_school(school_id)

    @pytest.mark.asyncio
    async def test_get_school_invalid_id(self, school_service):
        """Test malformed ids are rejected."""
        with pytest.raises(InvalidInputError):
            await school_service.get_school("12345")


class TestSchoolServiceList:
    """Tests for school listing."""

    @pytest.mark.asyncio
    async def test_get_schools_with_live_counts(
        self, school_service, make_school, make_classroom, make_student
    ):
        """Test listed metadata carries live counts."""
        school = await make_school("Springfield Elementary")
        classroom = await make_classroom(school.id)
        await make_student(school.id, classroom_id=classroom.id)
        await make_student(school.id)

        page = await school_service.get_schools()

        doc = next(d for d in page.items if d["id"] == school.id)
        assert doc["metadata"]["student_count"] == 2
        assert doc["metadata"]["classroom_count"] == 1

    @pytest.mark.asyncio
    async def test_get_schools_search_and_sort(self, school_service, make_school):
        """Test search matches name or city and sorting by name."""
        await make_school("Bravo Academy")
        await make_school("Alpha Academy")
        await make_school("Charlie Prep")

        page = await school_service.get_schools(
            search_term="academy", sort_by="name", sort_order="asc"
        )

        assert [d["name"] for d in page.items] == ["Alpha Academy", "Bravo Academy"]
        assert page.pagination["total"] == 2

    @pytest.mark.asyncio
    async def test_get_schools_excludes_deleted(self, school_service, make_school):
        """Test deleted schools are never listed."""
        kept = await make_school()
        removed = await make_school()
        await school_service.delete_school(removed.id)

        page = await school_service.get_schools(status="")

        assert [d["id"] for d in page.items] == [kept.id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [
            {"sort_order": "sideways"},
            {"sort_by": "email"},
            {"status": "archived"},
            {"page": 0},
        ],
    )
    async def test_get_schools_invalid_parameters(self, school_service, params):
        """Test invalid listing parameters are rejected."""
        with pytest.raises(InvalidInputError):
            await school_service.get_schools(**params)


class TestSchoolServiceUpdate:
    """Tests for school updates."""

    @pytest.mark.asyncio
    async def test_update_merges_address(self, school_service, make_school, redis_mock):
        """Test partial address updates keep the other fields."""
        school = await make_school()

        updated = await school_service.update_school(
            school.id, {"address": {"city": "Shelbyville"}}
        )

        assert updated.city == "Shelbyville"
        assert updated.street == "742 Evergreen Terrace"
        redis_mock.delete.assert_awaited_with(f"school:{school.id}")

    @pytest.mark.asyncio
    async def test_update_then_get_round_trip(self, school_service, make_school, redis_mock):
        """Test a renamed school reads back renamed even after a cached read."""
        entries = {}
        redis_mock.get.side_effect = lambda key: entries.get(key)
        redis_mock.set.side_effect = lambda key, value, **kwargs: entries.__setitem__(key, value)
        redis_mock.delete.side_effect = lambda *keys: sum(
            entries.pop(k, None) is not None for k in keys
        )
        school = await make_school("Springfield Elementary")
        school_id = school.id

        before = await school_service.get_school(school_id)
        assert f"school:{school_id}" in entries

        await school_service.update_school(school_id, {"name": "Springfield Primary"})
        after = await school_service.get_school(school_id)

        assert after["name"] == "Springfield Primary"
        assert datetime.fromisoformat(after["updated_at"]) > datetime.fromisoformat(
            before["updated_at"]
        )
        assert after["address"] == before["address"]
        assert after["contact_info"] == before["contact_info"]
        assert entries[f"school:{school_id}"]["name"] == "Springfield Primary"

    @pytest.mark.asyncio
    async def test_update_name_taken(self, school_service, make_school):
        """Test renaming onto another school's name fails."""
        await make_school("Springfield Elementary")
        other = await make_school("Shelbyville Elementary")

        with pytest.raises(ResourceExistsError):
            await school_service.update_school(other.id, {"name": "springfield elementary"})

    @pytest.mark.asyncio
    async def test_update_keeps_own_name(self, school_service, make_school):
        """Test re-saving the same name is allowed."""
        school = await make_school("Springfield Elementary")

        updated = await school_service.update_school(
            school.id, {"name": "Springfield Elementary", "status": "inactive"}
        )

        assert updated.status == "inactive"

    @pytest.mark.asyncio
    async def test_update_rejects_deleted_status(self, school_service, make_school):
        """Test status can only move between active and inactive."""
        school = await make_school()

        with pytest.raises(InvalidInputError):
            await school_service.update_school(school.id, {"status": "deleted"})

    @pytest.mark.asyncio
    async def test_update_without_valid_fields(self, school_service, make_school):
        """Test an update must name an editable field."""
        school = await make_school()

        with pytest.raises(InvalidInputError):
            await school_service.update_school(school.id, {"student_count": 10})


class TestSchoolServiceDelete:
    """Tests for the cascading soft delete."""

    @pytest.mark.asyncio
    async def test_delete_cascades(
        self, school_service, store, make_school, make_classroom, make_student, redis_mock,
        event_bus,
    ):
        """Test deleting a school with 3 students and 2 classrooms."""
        school = await make_school()
        school_id = school.id
        first = await make_classroom(school_id)
        second = await make_classroom(school_id)
        classroom_ids = [first.id, second.id]
        student_ids = [
            (await make_student(school_id, classroom_id=classroom_ids[0])).id,
            (await make_student(school_id, classroom_id=classroom_ids[1])).id,
            (await make_student(school_id)).id,
        ]
        actor = new_object_id()

        result = await school_service.delete_school(school_id, deleted_by=actor)

        assert result["success"] is True
        assert result["deletion_summary"] == {
            "students": {"before": 3, "deleted": 3},
            "classrooms": {"before": 2, "deleted": 2},
        }
        assert result["school"]["status"] == "deleted"

        for student_id in student_ids:
            assert await store.get_student(student_id, status="deleted") is not None
        for classroom_id in classroom_ids:
            classroom = await store.get_classroom(classroom_id, include_deleted=True)
            assert classroom.status == "deleted"
            assert classroom.current_students == 0

        deleted = await store.get_school(school_id, include_deleted=True)
        assert deleted.status == "deleted"
        assert deleted.deleted_by == actor
        assert deleted.deletion_reason == "SCHOOL_DELETE"
        assert deleted.deleted_at is not None

        redis_mock.delete.assert_awaited_with(f"school:{school_id}")
        payload = event_bus.recent(EventTypes.School.DELETED)[-1].payload
        assert payload["metadata"]["deletion_order"] == ["students", "classrooms", "school"]

    @pytest.mark.asyncio
    async def test_delete_counts_inactive_students(
        self, school_service, student_service, make_school, make_student
    ):
        """Test inactive students are part of the cascade."""
        school = await make_school()
        leaving = await make_student(school.id)
        await make_student(school.id)
        await student_service.deactivate_student(leaving.id, school.id, "Left")

        result = await school_service.delete_school(school.id)

        assert result["deletion_summary"]["students"] == {"before": 2, "deleted": 2}
        assert result["school"]["status"] == "deleted"

    @pytest.mark.asyncio
    async def test_delete_defaults_actor(self, school_service, store, make_school):
        """Test the actor is recorded as SYSTEM when omitted."""
        school = await make_school()
        school_id = school.id

        await school_service.delete_school(school_id)

        deleted = await store.get_school(school_id, include_deleted=True)
        assert deleted.deleted_by == "SYSTEM"

    @pytest.mark.asyncio
    async def test_delete_twice(self, school_service, make_school):
        """Test a deleted school cannot be deleted again."""
        school = await make_school()
        school_id = school.id
        await school_service.delete_school(school_id)

        with pytest.raises(ResourceNotFoundError):
            await school_service.delete_school(school_id)


class TestSchoolServiceRecovery:
    """Tests for the deletion recovery report."""

    @pytest.mark.asyncio
    async def test_report_for_live_school(self, school_service, make_school):
        """Test an untouched school needs no recovery."""
        school = await make_school()

        report = await school_service.recover_partial_delete(school.id)

        assert report["partially_deleted"] is False
        assert report["fully_deleted"] is False
        assert report["recovery_needed"] is False
        assert report["deletion_in_progress"] is False
        assert [s["name"] for s in report["states"]] == ["schools", "students", "classrooms"]

    @pytest.mark.asyncio
    async def test_report_after_full_delete(
        self, school_service, make_school, make_classroom, make_student
    ):
        """Test a completed cascade is reported as fully deleted."""
        school = await make_school()
        classroom = await make_classroom(school.id)
        await make_student(school.id, classroom_id=classroom.id)
        await school_service.delete_school(school.id)

        report = await school_service.recover_partial_delete(school.id)

        assert report["fully_deleted"] is True
        assert report["partially_deleted"] is False
        assert report["recovery_needed"] is False
        assert report["deletion_in_progress"] is False

    @pytest.mark.asyncio
    async def test_report_for_interrupted_delete(
        self, db, school_service, make_school, make_student
    ):
        """Test a cascade that stopped after some students is flagged."""
        school = await make_school()
        school_id = school.id
        first = await make_student(school_id)
        await make_student(school_id)
        first_id = first.id

        await db.execute(
            update(School).where(School.id == school_id).values(deletion_started_at=utc_now())
        )
        await db.execute(update(Student).where(Student.id == first_id).values(status="deleted"))
        await db.commit()

        report = await school_service.recover_partial_delete(school_id)

        students = next(s for s in report["states"] if s["name"] == "students")
        assert students == {"name": "students", "deleted_count": 1, "total_count": 2}
        assert report["partially_deleted"] is True
        assert report["deletion_in_progress"] is True
        assert report["recovery_needed"] is True

    @pytest.mark.asyncio
    async def test_failed_cascade_keeps_marker(
        self, school_service, store, make_school, make_student
    ):
        """Test a cascade that fails midway is reported as in progress."""
        school = await make_school()
        school_id = school.id
        await make_student(school_id)

        with patch.object(
            school_service._store,
            "soft_delete_classrooms",
            side_effect=RuntimeError("connection reset"),
        ):
            with pytest.raises(DatabaseError):
                await school_service.delete_school(school_id)

        report = await school_service.recover_partial_delete(school_id)

        assert report["deletion_in_progress"] is True
        assert report["recovery_needed"] is True
        assert report["fully_deleted"] is False
        students = next(s for s in report["states"] if s["name"] == "students")
        assert students == {"name": "students", "deleted_count": 0, "total_count": 1}
        marked = await store.get_school(school_id)
        assert marked.status == "active"
        assert marked.deletion_started_at is not None

    @pytest.mark.asyncio
    async def test_report_for_missing_school(self, school_service):
        """Test the report needs an existing school."""
        with pytest.raises(ResourceNotFoundError):
            await school_service.recover_partial_delete(new_object_id())


class TestSchoolServiceStats:
    """Tests for statistics and reconciliation."""

    @pytest.mark.asyncio
    async def test_school_stats(self, school_service, make_school, make_classroom, make_student):
        """Test the stats document combines student and classroom stats."""
        school = await make_school()
        classroom = await make_classroom(school.id, capacity=5)
        await make_student(school.id, classroom_id=classroom.id, grade=2)

        stats = await school_service.get_school_stats(school.id)

        assert stats["school_info"]["id"] == school.id
        assert stats["school_info"]["address"] == school.address
        assert stats["student_stats"]["active"] == 1
        assert stats["classroom_stats"]["capacity"] == {"seats": 5, "occupied": 1}

    @pytest.mark.asyncio
    async def test_reconcile_occupancy(
        self, db, school_service, store, make_school, make_classroom, make_student, event_bus
    ):
        """Test drifted counters are rewritten and reported."""
        school = await make_school()
        school_id = school.id
        drifted = await make_classroom(school_id, capacity=10)
        steady = await make_classroom(school_id, capacity=10)
        drifted_id, steady_id = drifted.id, steady.id
        await make_student(school_id, classroom_id=drifted_id)
        await make_student(school_id, classroom_id=steady_id)
        await db.execute(
            update(Classroom).where(Classroom.id == drifted_id).values(current_students=5)
        )
        await db.commit()

        result = await school_service.reconcile_occupancy(school_id)

        assert result["school_id"] == school_id
        assert result["corrected"] == 1
        assert len(result["classrooms"]) == 2
        assert (await store.get_classroom(drifted_id)).current_students == 1
        reconciled = event_bus.recent(EventTypes.Classroom.RECONCILED)
        assert [e.payload["classroom_id"] for e in reconciled] == [drifted_id]

        refreshed = await store.get_school(school_id)
        assert refreshed.student_count == 2
        assert refreshed.classroom_count == 2

    @pytest.mark.asyncio
    async def test_school_document_is_json_safe(self, make_school):
        """Test timestamps are rendered as ISO strings."""
        school = await make_school()

        doc = school_document(school)

        assert isinstance(doc["created_at"], str)
        assert isinstance(doc["updated_at"], str)
        assert doc["deleted_at"] is None
