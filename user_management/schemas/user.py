"""Request and response shapes for the users API."""

import re
from datetime import datetime

from pydantic import BaseModel, field_validator

from user_management.models.user import UserRole

MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_PHONE_LENGTH = 20
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def normalize_name(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Name is required.')
    if len(normalized) > MAX_NAME_LENGTH:
        raise ValueError(f'Name must be {MAX_NAME_LENGTH} characters or fewer.')
    return normalized


def normalize_email(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Email is required.')
    if len(normalized) > MAX_EMAIL_LENGTH:
        raise ValueError(f'Email must be {MAX_EMAIL_LENGTH} characters or fewer.')
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError('Email must be a valid email address.')
    return normalized


def normalize_phone(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_PHONE_LENGTH:
        raise ValueError(f'Phone must be {MAX_PHONE_LENGTH} characters or fewer.')

    return normalized


class UserCreateRequest(BaseModel):
    name: str
    email: str
    phone: str | None = None
    role: UserRole | None = None
    active: bool | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return normalize_name(value)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        return normalize_phone(value)


class UserUpdateRequest(BaseModel):
    """Sparse set of changes; ``None`` means leave the stored value alone."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    role: UserRole | None = None
    active: bool | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_name(value)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_email(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        return normalize_phone(value)


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str | None = None
    role: UserRole
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class UserPageResponse(BaseModel):
    content: list[UserResponse]
    total_elements: int
    total_pages: int
    page: int
    size: int
