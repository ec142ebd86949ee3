"""Typed client for the notes resource.

Every call attaches the session's bearer header when an access token is
stored. Without one the header is simply omitted and the server decides.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence
from urllib.parse import quote

from notes_client.executor import RequestExecutor
from notes_client.models import (
    CreateNoteRequest,
    MessageResponse,
    Note,
    Page,
    UpdateNoteRequest,
)
from notes_client.session import SessionManager

logger = logging.getLogger(__name__)

NOTE_DELETED_DETAIL = "Note deleted successfully"


def encode_query_value(value: str) -> str:
    """Percent-encode a query parameter value (space -> %20)."""
    return quote(value, safe="")


def _check_page(page: int) -> None:
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")


class NotesClient:
    """List, search, create, update and delete notes."""

    def __init__(self, executor: RequestExecutor, session: SessionManager) -> None:
        self._executor = executor
        self._session = session

    async def list_notes(self, page: int = 1) -> Page[Note]:
        """GET /notes/?page=N"""
        _check_page(page)
        return await self._executor.request(
            f"/notes/?page={page}",
            Page[Note],
            headers=self._session.auth_headers(),
        )

    async def get_note(self, note_id: int) -> Note:
        return await self._executor.request(
            f"/notes/{note_id}/",
            Note,
            headers=self._session.auth_headers(),
        )

    async def create_note(self, request: CreateNoteRequest) -> Note:
        note: Note = await self._executor.request(
            "/notes/",
            Note,
            method="POST",
            body=request,
            headers=self._session.auth_headers(),
        )
        logger.info("Created note %d — '%s'", note.id, note.title)
        return note

    async def update_note(self, note_id: int, request: UpdateNoteRequest) -> Note:
        """Full replace of title and description."""
        return await self._executor.request(
            f"/notes/{note_id}/",
            Note,
            method="PUT",
            body=request,
            headers=self._session.auth_headers(),
        )

    async def delete_note(self, note_id: int) -> MessageResponse:
        """Delete a note.

        The server answers either 204 with no body, which yields a
        synthesized confirmation, or a ``{detail}`` body, which is decoded.
        """
        result = await self._executor.request_message(
            f"/notes/{note_id}/",
            method="DELETE",
            headers=self._session.auth_headers(),
            empty_detail=NOTE_DELETED_DETAIL,
        )
        logger.info("Deleted note %d", note_id)
        return result

    async def bulk_create_notes(
        self, requests: Sequence[CreateNoteRequest]
    ) -> list[Note]:
        notes: list[Note] = await self._executor.request(
            "/notes/bulk",
            list[Note],
            method="POST",
            body=list(requests),
            headers=self._session.auth_headers(),
        )
        logger.info("Bulk-created %d notes", len(notes))
        return notes

    async def filter_notes(
        self, title: Optional[str] = None, page: int = 1
    ) -> Page[Note]:
        """GET /notes/filter?page=N[&title=T]"""
        _check_page(page)
        endpoint = f"/notes/filter?page={page}"
        if title:
            endpoint += f"&title={encode_query_value(title)}"
        return await self._executor.request(
            endpoint, Page[Note], headers=self._session.auth_headers()
        )

    async def search_notes(self, query: str, page: int = 1) -> Page[Note]:
        """GET /notes/search?page=N[&q=Q]"""
        _check_page(page)
        endpoint = f"/notes/search?page={page}"
        if query:
            endpoint += f"&q={encode_query_value(query)}"
        return await self._executor.request(
            endpoint, Page[Note], headers=self._session.auth_headers()
        )
