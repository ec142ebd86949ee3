"""Page arithmetic and a list/search browsing controller."""

from __future__ import annotations

import logging

from notes_client.models import PAGE_SIZE, Note, Page, total_pages
from notes_client.notes import NotesClient

logger = logging.getLogger(__name__)

__all__ = ["PAGE_SIZE", "NoteBrowser", "total_pages"]


class NoteBrowser:
    """Tracks the notes list a user is paging through.

    An empty query browses all notes; a non-empty one searches. Changing
    the query goes back to page 1. ``current_page`` only moves once a page
    has loaded, so a failed load leaves the position unchanged.
    """

    def __init__(self, notes: NotesClient) -> None:
        self._notes = notes
        self.query = ""
        self.current_page = 1
        self.total_pages = 0
        self.count = 0
        self.results: list[Note] = []

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    async def load(self, page: int | None = None) -> Page[Note]:
        """Load *page* (default: the current page) for the current query."""
        return await self._fetch(self.query, self.current_page if page is None else page)

    async def _fetch(self, query: str, target: int) -> Page[Note]:
        if query:
            result = await self._notes.search_notes(query, page=target)
        else:
            result = await self._notes.list_notes(page=target)

        self.query = query
        self.current_page = target
        self.count = result.count
        self.total_pages = result.total_pages
        self.results = list(result.results)
        logger.debug(
            "Loaded %d notes, page %d of %d",
            len(self.results),
            self.current_page,
            self.total_pages,
        )
        return result

    async def set_query(self, query: str) -> Page[Note]:
        """Switch to a new search term, starting again from page 1."""
        query = query.strip()
        if query == self.query:
            return await self.load()
        return await self._fetch(query, 1)

    async def next_page(self) -> int:
        """Step forward one page; no-op on the last page."""
        if self.has_next:
            await self.load(self.current_page + 1)
        return self.current_page

    async def previous_page(self) -> int:
        """Step back one page; no-op on the first page."""
        if self.has_previous:
            await self.load(self.current_page - 1)
        return self.current_page
