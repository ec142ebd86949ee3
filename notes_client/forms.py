"""Client-side form validity gates.

These run before any request is sent. Forms are also expected to disable
their submit action while a request is in flight; the client itself does
not de-duplicate concurrent submissions.
"""

from __future__ import annotations

from typing import Optional

from notes_client.errors import FormValidationError

MIN_PASSWORD_LENGTH = 8


def _check_new_password(password: str, confirm: Optional[str]) -> None:
    if confirm is not None and password != confirm:
        raise FormValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise FormValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


def validate_registration(
    username: str,
    email: str,
    password: str,
    confirm: Optional[str] = None,
) -> None:
    """Raise FormValidationError unless the registration form is submittable.

    ``confirm`` of None skips the confirmation check (non-interactive callers).
    """
    missing = [
        name
        for name, value in (("username", username), ("email", email), ("password", password))
        if not value
    ]
    if missing:
        raise FormValidationError(f"Missing required field(s): {', '.join(missing)}")
    _check_new_password(password, confirm)


def validate_password_change(
    old_password: str,
    new_password: str,
    confirm: Optional[str] = None,
) -> None:
    """Raise FormValidationError unless the change-password form is submittable."""
    if not old_password:
        raise FormValidationError("Current password is required")
    if not new_password:
        raise FormValidationError("New password is required")
    _check_new_password(new_password, confirm)


def validate_note(title: str) -> None:
    """A note needs a non-blank title."""
    if not title.strip():
        raise FormValidationError("Title is required")
