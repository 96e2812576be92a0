# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for API request models."""

import pytest
from pydantic import ValidationError

from src.models.classroom import ClassroomCreateRequest, ClassroomUpdateRequest
from src.models.school import SchoolCreateRequest, SchoolListParams
from src.models.student import StudentCreateRequest, StudentUpdateRequest
from src.models.user import UserCreateRequest

OBJECT_ID = "65f0c2a1b3d4e5f6a7b8c9d0"


@pytest.fixture
def school_payload() -> dict:
    """Valid school creation body."""
    return {
        "name": "Springfield Elementary",
        "address": {
            "street": "742 Evergreen Terrace",
            "city": "Springfield",
            "state": "OR",
            "zip_code": "97403",
        },
        "contact_info": {"email": "office@springfield.edu", "phone": "+15551234567"},
    }


class TestSchoolModels:
    """Tests for school request models."""

    def test_valid_school(self, school_payload: dict) -> None:
        """Test a complete body validates."""
        request = SchoolCreateRequest.model_validate(school_payload)

        assert request.address.zip_code == "97403"

    @pytest.mark.parametrize("zip_code", ["97403-1234", "12345"])
    def test_valid_zip_codes(self, school_payload: dict, zip_code: str) -> None:
        """Test five and nine digit zip codes."""
        school_payload["address"]["zip_code"] = zip_code

        assert SchoolCreateRequest.model_validate(school_payload)

    @pytest.mark.parametrize("zip_code", ["9740", "97403-12", "ABCDE"])
    def test_invalid_zip_codes(self, school_payload: dict, zip_code: str) -> None:
        """Test malformed zip codes are rejected."""
        school_payload["address"]["zip_code"] = zip_code

        with pytest.raises(ValidationError):
            SchoolCreateRequest.model_validate(school_payload)

    @pytest.mark.parametrize("phone", ["12345678", "phone-number", "+123456789012345678"])
    def test_invalid_phone(self, school_payload: dict, phone: str) -> None:
        """Test phone numbers must be 9 to 15 digits."""
        school_payload["contact_info"]["phone"] = phone

        with pytest.raises(ValidationError):
            SchoolCreateRequest.model_validate(school_payload)

    def test_short_name(self, school_payload: dict) -> None:
        """Test names need at least three characters."""
        school_payload["name"] = "  AB  "

        with pytest.raises(ValidationError):
            SchoolCreateRequest.model_validate(school_payload)

    def test_list_params_limit(self) -> None:
        """Test listing limits are capped at 100."""
        with pytest.raises(ValidationError):
            SchoolListParams(limit=101)


class TestClassroomModels:
    """Tests for classroom request models."""

    @pytest.mark.parametrize("capacity", [1, 100])
    def test_capacity_bounds(self, capacity: int) -> None:
        """Test the capacity range is inclusive."""
        request = ClassroomCreateRequest(name="Room 101", capacity=capacity)

        assert request.capacity == capacity
        assert request.resources == []

    @pytest.mark.parametrize("capacity", [0, 101, "20", 20.0])
    def test_capacity_rejected(self, capacity: object) -> None:
        """Test out-of-range or non-integer capacities."""
        with pytest.raises(ValidationError):
            ClassroomCreateRequest.model_validate({"name": "Room 101", "capacity": capacity})

    def test_unknown_resource(self) -> None:
        """Test resources come from the fixed catalogue."""
        with pytest.raises(ValidationError):
            ClassroomCreateRequest(name="Room 101", capacity=20, resources=["Hologram"])

    def test_duplicate_resources(self) -> None:
        """Test resources must be unique."""
        with pytest.raises(ValidationError):
            ClassroomCreateRequest(
                name="Room 101", capacity=20, resources=["Projector", "Projector"]
            )

    def test_update_rejects_deleted_status(self) -> None:
        """Test deletion is not an editable status."""
        with pytest.raises(ValidationError):
            ClassroomUpdateRequest(status="deleted")


class TestStudentModels:
    """Tests for student request models."""

    def test_valid_student(self) -> None:
        """Test a complete body validates and lowercases the classroom id."""
        request = StudentCreateRequest(
            first_name="Lisa",
            last_name="Simpson",
            email="lisa@springfield.edu",
            grade=2,
            classroom_id=OBJECT_ID.upper(),
        )

        assert request.classroom_id == OBJECT_ID

    @pytest.mark.parametrize("grade", [0, 13])
    def test_grade_range(self, grade: int) -> None:
        """Test grades run from 1 to 12."""
        with pytest.raises(ValidationError):
            StudentCreateRequest(
                first_name="Lisa", last_name="Simpson", email="lisa@springfield.edu", grade=grade
            )

    def test_name_characters(self) -> None:
        """Test names only allow letters, spaces, apostrophes and hyphens."""
        with pytest.raises(ValidationError):
            StudentCreateRequest(
                first_name="L1sa", last_name="Simpson", email="lisa@springfield.edu", grade=2
            )

    def test_update_tracks_explicit_null(self) -> None:
        """Test an explicit null classroom is distinguishable from an omitted one."""
        unassign = StudentUpdateRequest.model_validate({"classroom_id": None})
        untouched = StudentUpdateRequest.model_validate({"grade": 3})

        assert unassign.model_dump(exclude_unset=True) == {"classroom_id": None}
        assert untouched.model_dump(exclude_unset=True) == {"grade": 3}


class TestUserModels:
    """Tests for admin account request models."""

    def test_school_admin_needs_school(self) -> None:
        """Test school admins must name their school."""
        with pytest.raises(ValidationError):
            UserCreateRequest(
                email="principal@springfield.edu", password="password123", role="school_admin"
            )

    def test_superadmin_without_school(self) -> None:
        """Test superadmins cannot be bound to a school."""
        with pytest.raises(ValidationError):
            UserCreateRequest(
                email="root@schoolhub.io",
                password="password123",
                role="superadmin",
                school_id=OBJECT_ID,
            )
