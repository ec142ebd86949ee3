"""Categorized failures raised by the notes client.

Every public operation of the client raises a subclass of
:class:`NotesClientError` instead of a raw transport exception, so callers
can branch on the category and render :func:`describe` to the user.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Stable category tags for branching on failures."""

    INVALID_URL = "invalid_url"
    NO_DATA = "no_data"
    ENCODING_ERROR = "encoding_error"
    DECODING_ERROR = "decoding_error"
    INVALID_RESPONSE = "invalid_response"
    SERVER_ERROR = "server_error"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    NETWORK_UNAVAILABLE = "network_unavailable"
    INVALID_FORM = "invalid_form"


class NotesClientError(Exception):
    """Base class for every failure the client surfaces."""

    kind: ErrorKind
    default_description = "An unknown error occurred"

    @property
    def description(self) -> str:
        """User-facing text for this failure."""
        return self.default_description

    def __str__(self) -> str:
        return self.description


class NetworkError(NotesClientError):
    """A request could not produce a usable typed result."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message or self.default_description)

    @property
    def description(self) -> str:
        return self.message or self.default_description


class InvalidURL(NetworkError):
    kind = ErrorKind.INVALID_URL
    default_description = "Invalid URL"


class NoData(NetworkError):
    kind = ErrorKind.NO_DATA
    default_description = "No data received"


class EncodingError(NetworkError):
    """The request body could not be serialized."""

    kind = ErrorKind.ENCODING_ERROR
    default_description = "Failed to encode request"


class DecodingError(NetworkError):
    """The response body was malformed or had an unexpected shape."""

    kind = ErrorKind.DECODING_ERROR
    default_description = "Failed to decode response"


class InvalidResponse(NetworkError):
    kind = ErrorKind.INVALID_RESPONSE
    default_description = "Invalid response from server"


class NetworkUnavailable(NetworkError):
    """Transport-level failure: no connectivity, refused, timed out."""

    kind = ErrorKind.NETWORK_UNAVAILABLE
    default_description = "Network unavailable"


class ServerError(NetworkError):
    """Non-2xx response, carrying the status code and any extracted detail."""

    kind = ErrorKind.SERVER_ERROR

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code
        super().__init__(message)

    @property
    def description(self) -> str:
        return self.message or f"Server error with code: {self.code}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class Unauthorized(ServerError):
    """HTTP 401, or a required token is missing locally."""

    kind = ErrorKind.UNAUTHORIZED
    default_description = "Unauthorized access"

    def __init__(self, message: str = "", code: int = 401) -> None:
        super().__init__(code, message)

    @property
    def description(self) -> str:
        return self.message or self.default_description


class Forbidden(ServerError):
    kind = ErrorKind.FORBIDDEN
    default_description = "Access forbidden"

    def __init__(self, message: str = "", code: int = 403) -> None:
        super().__init__(code, message)

    @property
    def description(self) -> str:
        return self.message or self.default_description


class NotFound(ServerError):
    kind = ErrorKind.NOT_FOUND
    default_description = "Resource not found"

    def __init__(self, message: str = "", code: int = 404) -> None:
        super().__init__(code, message)

    @property
    def description(self) -> str:
        return self.message or self.default_description


class FormValidationError(NotesClientError):
    """Input rejected client-side before any request is sent."""

    kind = ErrorKind.INVALID_FORM

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def description(self) -> str:
        return self.message


def describe(error: Optional[BaseException]) -> str:
    """Map any failure to the text shown to the user."""
    if isinstance(error, NotesClientError):
        return error.description
    return NotesClientError.default_description
