# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School request models."""

from typing import Annotated, Literal

from pydantic import BaseModel, EmailStr, Field, StringConstraints

ZIP_CODE_PATTERN = r"^\d{5}(-\d{4})?$"
PHONE_PATTERN = r"^\+?1?\d{9,15}$"

SchoolName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)]
Street = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=200)]
City = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
State = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
ZipCode = Annotated[str, StringConstraints(strip_whitespace=True, pattern=ZIP_CODE_PATTERN)]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, pattern=PHONE_PATTERN)]


class AddressModel(BaseModel):
    """Postal address of a school."""

    street: Street
    city: City
    state: State
    zip_code: ZipCode


class AddressUpdate(BaseModel):
    """Partial address; omitted fields keep their value."""

    street: Street | None = None
    city: City | None = None
    state: State | None = None
    zip_code: ZipCode | None = None


class ContactInfoModel(BaseModel):
    """School contact details."""

    email: EmailStr
    phone: Phone


class ContactInfoUpdate(BaseModel):
    """Partial contact details."""

    email: EmailStr | None = None
    phone: Phone | None = None


class SchoolCreateRequest(BaseModel):
    """Request to create a school."""

    name: SchoolName
    address: AddressModel
    contact_info: ContactInfoModel


class SchoolUpdateRequest(BaseModel):
    """Request to update a school. At least one field is required."""

    name: SchoolName | None = None
    address: AddressUpdate | None = None
    contact_info: ContactInfoUpdate | None = None
    status: Literal["active", "inactive"] | None = None


class SchoolListParams(BaseModel):
    """Query parameters of the school listing."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    status: Literal["active", "inactive", "deleted"] | None = "active"
    sort_by: Literal["name", "created_at", "student_count"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    search_term: str = Field(default="", max_length=100)
