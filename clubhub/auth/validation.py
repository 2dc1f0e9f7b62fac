"""
Validation contracts for account operations.

Each operation has a named pydantic model. ``parse_form`` runs one and
turns pydantic's error report into our field-tagged ValidationError, so
callers never depend on pydantic's exception types.
"""

import re
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[\w.-]+@[\w.-]+\.iitr\.ac\.in$")
PHONE_PATTERN = re.compile(r"^\d{10}$")
ENROLLMENT_PATTERN = re.compile(r"^\d{8}$")

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100
MAX_BIO_LENGTH = 500

BRANCHES = (
    "Computer Science Engineering",
    "Electronics & Communication",
    "Mechanical Engineering",
    "Civil Engineering",
    "Electrical Engineering",
    "Information Technology",
    "Chemical Engineering",
    "Biotechnology",
    "MBA",
    "BBA",
    "Other",
)

YEARS = ("1st Year", "2nd Year", "3rd Year", "4th Year", "5th Year")

ROLE_STUDENT = "student"
ROLE_CLUB_ADMIN = "club_admin"
ROLE_SUPER_ADMIN = "super_admin"
ROLES = (ROLE_STUDENT, ROLE_CLUB_ADMIN, ROLE_SUPER_ADMIN)

FormT = TypeVar("FormT", bound=BaseModel)


def parse_form(form_cls: Type[FormT], data: dict) -> FormT:
    """
    Validate ``data`` against ``form_cls``.

    Raises:
        ValidationError: With one entry per offending field
    """
    try:
        return form_cls.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


def clean_tags(values: Optional[List[str]]) -> List[str]:
    """Trim each entry and drop empty ones."""
    if not values:
        return []
    return [v.strip() for v in values if v and v.strip()]


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Must use a valid IITR email (e.g., user@abc.iitr.ac.in)")
    return value


def _check_phone(value: str) -> str:
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Phone number must be exactly 10 digits")
    return value


def _check_full_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Full name is required")
    if len(value) > MAX_NAME_LENGTH:
        raise ValueError(f"Full name cannot exceed {MAX_NAME_LENGTH} characters")
    return value


class RegistrationForm(BaseModel):
    """Register: every field required."""

    full_name: str
    email: str
    phone: str
    enrollment_number: str
    branch: str
    year: str
    password: str

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, v: str) -> str:
        return _check_full_name(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return _check_phone(v)

    @field_validator("enrollment_number")
    @classmethod
    def _enrollment(cls, v: str) -> str:
        v = v.strip()
        if not ENROLLMENT_PATTERN.match(v):
            raise ValueError("Enrollment number must be exactly 8 digits")
        return v

    @field_validator("branch")
    @classmethod
    def _branch(cls, v: str) -> str:
        if v not in BRANCHES:
            raise ValueError("Please select a valid branch")
        return v

    @field_validator("year")
    @classmethod
    def _year(cls, v: str) -> str:
        if v not in YEARS:
            raise ValueError("Please select a valid year")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class ProfileUpdate(BaseModel):
    """
    Self-editable profile fields.

    Unknown keys (email, enrollment_number, password, is_email_verified,
    is_active, role, ...) are dropped without error.
    """

    model_config = ConfigDict(extra="ignore")

    full_name: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Full name is required")
        return _check_full_name(v)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Phone number must be exactly 10 digits")
        return _check_phone(v)

    @field_validator("bio")
    @classmethod
    def _bio(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > MAX_BIO_LENGTH:
            raise ValueError(f"Bio cannot exceed {MAX_BIO_LENGTH} characters")
        return v

    @field_validator("skills", "interests")
    @classmethod
    def _tags(cls, v: Optional[List[str]]) -> List[str]:
        return [] if v is None else clean_tags(v)

    def changes(self) -> dict:
        """Only the fields the caller actually sent; a null bio clears it."""
        return self.model_dump(exclude_unset=True)
