"""Async client and session manager for the notes REST API."""

from notes_client.app import NotesApp
from notes_client.config import Settings
from notes_client.errors import (
    DecodingError,
    EncodingError,
    ErrorKind,
    Forbidden,
    FormValidationError,
    InvalidResponse,
    InvalidURL,
    NetworkError,
    NetworkUnavailable,
    NoData,
    NotesClientError,
    NotFound,
    ServerError,
    Unauthorized,
    describe,
)
from notes_client.executor import RequestExecutor
from notes_client.models import (
    PAGE_SIZE,
    CreateNoteRequest,
    MessageResponse,
    Note,
    Page,
    RegisterRequest,
    TokenResponse,
    UpdateNoteRequest,
    User,
)
from notes_client.notes import NotesClient
from notes_client.pagination import NoteBrowser, total_pages
from notes_client.session import SessionManager
from notes_client.state import SessionState
from notes_client.token_store import FileTokenStore, MemoryTokenStore, TokenStore

__version__ = "1.0.0"

__all__ = [
    # services
    "NotesApp",
    "NotesClient",
    "NoteBrowser",
    "RequestExecutor",
    "SessionManager",
    "SessionState",
    "Settings",
    # storage
    "FileTokenStore",
    "MemoryTokenStore",
    "TokenStore",
    # models
    "PAGE_SIZE",
    "CreateNoteRequest",
    "MessageResponse",
    "Note",
    "Page",
    "RegisterRequest",
    "TokenResponse",
    "UpdateNoteRequest",
    "User",
    "total_pages",
    # errors
    "DecodingError",
    "EncodingError",
    "ErrorKind",
    "Forbidden",
    "FormValidationError",
    "InvalidResponse",
    "InvalidURL",
    "NetworkError",
    "NetworkUnavailable",
    "NoData",
    "NotFound",
    "NotesClientError",
    "ServerError",
    "Unauthorized",
    "describe",
]
