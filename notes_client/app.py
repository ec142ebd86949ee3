"""Composition root wiring the client services together."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from notes_client.config import Settings
from notes_client.executor import RequestExecutor
from notes_client.notes import NotesClient
from notes_client.pagination import NoteBrowser
from notes_client.session import SessionManager
from notes_client.token_store import FileTokenStore, TokenStore

logger = logging.getLogger(__name__)


class NotesApp:
    """Builds and owns the executor, token store, session and notes client.

    Usage::

        async with NotesApp(settings) as app:
            await app.session.login("alice", "secret")
            page = await app.notes.list_notes()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.token_store: TokenStore = token_store or FileTokenStore(
            self.settings.token_file
        )
        self.executor = RequestExecutor(
            self.settings.api_base_url,
            timeout=self.settings.request_timeout,
            transport=transport,
        )
        self.session = SessionManager(self.executor, self.token_store)
        self.notes = NotesClient(self.executor, self.session)

    def browser(self) -> NoteBrowser:
        """A fresh list/search browsing controller."""
        return NoteBrowser(self.notes)

    async def start(self, *, fetch_user: bool = True) -> None:
        """Derive the initial session state and optionally load the profile."""
        if fetch_user:
            await self.session.start()
        logger.info(
            "Notes client ready (api=%s, authenticated=%s)",
            self.executor.base_url,
            self.session.is_authenticated,
        )

    async def close(self) -> None:
        await self.session.close()
        await self.executor.aclose()

    async def __aenter__(self) -> NotesApp:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
