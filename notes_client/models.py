"""Pydantic models for the notes API wire format.

Field names match the JSON keys (snake_case) so the mapping between the
wire and Python attributes is the identity in both directions.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, tzinfo
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

PAGE_SIZE = 6  # must match the server's pagination
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse a server timestamp (UTC, microsecond precision) or return None."""
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        return None


def format_timestamp(value: str, tz: Optional[tzinfo] = None) -> str:
    """Render a timestamp as e.g. ``Oct 16, 2026, 3:04 PM``.

    Falls back to the raw string when it does not match the server format.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    local = parsed.astimezone(tz or UTC)
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day}, {local.year}, {hour}:{local:%M} {local:%p}"


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    """Number of pages for *count* items; zero items means zero pages."""
    if count < 0:
        raise ValueError("count must be >= 0")
    return math.ceil(count / page_size)


# ---------------------------------------------------------------------------
# Users & authentication
# ---------------------------------------------------------------------------


class User(BaseModel):
    """Identity record of the signed-in user."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.username


class LoginRequest(BaseModel):
    username: str
    password: str


class RegisterRequest(BaseModel):
    username: str
    password: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class TokenResponse(BaseModel):
    access: str
    refresh: str


class RefreshTokenRequest(BaseModel):
    refresh: str


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class MessageResponse(BaseModel):
    detail: str


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class Note(BaseModel):
    """A server-owned note. ``id`` and timestamps are assigned by the server."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    created_at: str = Field(..., description="ISO-8601 creation timestamp (UTC)")
    updated_at: str = Field(..., description="ISO-8601 last update timestamp (UTC)")
    creator_name: Optional[str] = None
    creator_username: str

    @property
    def created(self) -> Optional[datetime]:
        return parse_timestamp(self.created_at)

    @property
    def updated(self) -> Optional[datetime]:
        return parse_timestamp(self.updated_at)

    @property
    def formatted_created_date(self) -> str:
        return format_timestamp(self.created_at)

    @property
    def formatted_updated_date(self) -> str:
        return format_timestamp(self.updated_at)


class CreateNoteRequest(BaseModel):
    title: str
    description: str = ""


class UpdateNoteRequest(BaseModel):
    title: str
    description: str = ""


class Page(BaseModel, Generic[T]):
    """One page of a paginated collection."""

    count: int = Field(..., ge=0)
    next: Optional[str] = None
    previous: Optional[str] = None
    results: list[T] = Field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return total_pages(self.count)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorItem(BaseModel):
    detail: Optional[str] = None


class ErrorBody(BaseModel):
    """Server error envelope: ``{detail}``, ``{message}`` or ``{errors: [...]}``."""

    detail: Optional[str] = None
    message: Optional[str] = None
    errors: list[ErrorItem] = Field(default_factory=list)

    @property
    def first_detail(self) -> Optional[str]:
        if self.detail:
            return self.detail
        for item in self.errors:
            if item.detail:
                return item.detail
        return self.message or None
