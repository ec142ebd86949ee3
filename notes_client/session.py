"""Session manager: authentication state, tokens and the current user.

The session has two observable states. It is *authenticated* exactly when
an access token is stored; the cached user profile is optional on top of
that. Every mutation of tokens, user and published state happens under a
single lock so no subscriber or reader sees a half-updated token pair.

There is no automatic 401 -> refresh -> retry loop: a failed request
surfaces its categorized error and the caller decides whether to call
:meth:`SessionManager.refresh_access_token` and try again.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from notes_client.errors import NotesClientError, Unauthorized
from notes_client.executor import RequestExecutor
from notes_client.forms import validate_password_change, validate_registration
from notes_client.metrics import SESSION_EVENTS
from notes_client.models import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    User,
)
from notes_client.state import SessionState, StateStore, Subscriber
from notes_client.token_store import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, TokenStore

logger = logging.getLogger(__name__)

PASSWORD_CHANGED_DETAIL = "Password changed successfully"


@contextmanager
def _track(event: str) -> Iterator[None]:
    """Count a session event as success or error."""
    try:
        yield
    except NotesClientError:
        SESSION_EVENTS.labels(event=event, status="error").inc()
        raise
    SESSION_EVENTS.labels(event=event, status="success").inc()


class SessionManager:
    """Owns authentication state on top of a request executor and token store."""

    def __init__(self, executor: RequestExecutor, token_store: TokenStore) -> None:
        self._executor = executor
        self._tokens = token_store
        self._lock = asyncio.Lock()
        self._state = StateStore(
            SessionState(is_authenticated=self._tokens.get(ACCESS_TOKEN_KEY) is not None)
        )
        self._background: set[asyncio.Task] = set()
        # Bumped by logout so in-flight token writes can tell they are stale
        self._generation = 0

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state.state

    @property
    def is_authenticated(self) -> bool:
        return self._state.state.is_authenticated

    @property
    def current_user(self) -> Optional[User]:
        return self._state.state.user

    @property
    def access_token(self) -> Optional[str]:
        return self._tokens.get(ACCESS_TOKEN_KEY)

    @property
    def refresh_token(self) -> Optional[str]:
        return self._tokens.get(REFRESH_TOKEN_KEY)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call *callback* with the new state after every change."""
        return self._state.subscribe(callback)

    def auth_headers(self) -> dict[str, str]:
        """Bearer header for the stored access token, or nothing."""
        token = self.access_token
        if token is None:
            return {}
        return {"Authorization": f"Bearer {token}"}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SessionState:
        """Cold start: refetch the profile if a token was already stored."""
        if self.is_authenticated:
            await self._refresh_user_quietly()
        return self.state

    async def wait_for_background(self) -> None:
        """Wait for pending best-effort profile fetches."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        """Cancel pending background work."""
        for task in list(self._background):
            task.cancel()
        await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def login(self, username: str, password: str) -> TokenResponse:
        """Exchange credentials for tokens and become authenticated.

        The user profile is then fetched in the background; if that fetch
        fails the session stays authenticated.
        """
        generation = self._generation
        with _track("login"):
            tokens: TokenResponse = await self._executor.request(
                "/auth/token/",
                TokenResponse,
                method="POST",
                body=LoginRequest(username=username, password=password),
            )
        async with self._lock:
            if self._generation != generation:
                logger.info("Discarding login for %s: logged out meanwhile", username)
                raise Unauthorized("Logged out while signing in")
            self._write_tokens(tokens, user=None)
        logger.info("Logged in as %s", username)
        self._schedule_user_refresh()
        return tokens

    async def register(self, request: RegisterRequest) -> User:
        """Create an account. Does not authenticate the session."""
        validate_registration(request.username, request.email, request.password)
        request = request.model_copy(
            update={
                "first_name": request.first_name or None,
                "last_name": request.last_name or None,
            }
        )
        with _track("register"):
            user: User = await self._executor.request(
                "/auth/register/", User, method="POST", body=request
            )
        logger.info("Registered user %s (id=%d)", user.username, user.id)
        return user

    async def refresh_access_token(self) -> TokenResponse:
        """Trade the stored refresh token for a new token pair.

        Raises Unauthorized without touching the network when no refresh
        token is stored, and also when the session was logged out or its
        tokens replaced while the request was in flight.
        """
        refresh = self.refresh_token
        if refresh is None:
            raise Unauthorized()
        generation = self._generation
        with _track("refresh"):
            tokens: TokenResponse = await self._executor.request(
                "/auth/token/refresh/",
                TokenResponse,
                method="POST",
                body=RefreshTokenRequest(refresh=refresh),
            )
        async with self._lock:
            if self._generation != generation or self.refresh_token != refresh:
                logger.info("Discarding refreshed tokens: session changed meanwhile")
                raise Unauthorized("Session ended while refreshing")
            self._write_tokens(tokens, user=self.current_user)
        logger.info("Access token refreshed")
        return tokens

    async def get_user_info(self) -> User:
        """Fetch and cache the current user.

        A 401 surfaces as Unauthorized; stored tokens are left untouched.
        """
        token = self.access_token
        if token is None:
            raise Unauthorized()
        with _track("userinfo"):
            user: User = await self._executor.request(
                "/auth/userinfo/",
                User,
                headers={"Authorization": f"Bearer {token}"},
            )
        async with self._lock:
            # Drop the result if the session changed while the request ran
            if self.access_token == token:
                self._publish(user=user)
        return user

    async def change_password(
        self,
        old_password: str,
        new_password: str,
        confirm_password: Optional[str] = None,
    ) -> MessageResponse:
        """Change the password; the form gate runs before anything is sent."""
        validate_password_change(old_password, new_password, confirm_password)
        if self.access_token is None:
            raise Unauthorized()
        with _track("change_password"):
            return await self._executor.request_message(
                "/auth/change-password/",
                method="POST",
                body=ChangePasswordRequest(
                    old_password=old_password, new_password=new_password
                ),
                headers=self.auth_headers(),
                empty_detail=PASSWORD_CHANGED_DETAIL,
            )

    async def logout(self) -> None:
        """Clear tokens and user. Safe to call in any state."""
        async with self._lock:
            self._generation += 1
            self._tokens.update({ACCESS_TOKEN_KEY: None, REFRESH_TOKEN_KEY: None})
            changed = self._state.set(SessionState())
        SESSION_EVENTS.labels(event="logout", status="success").inc()
        if changed:
            logger.info("Logged out")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write_tokens(self, tokens: TokenResponse, user: Optional[User]) -> None:
        """Store both tokens in one step and republish. Caller holds the lock."""
        self._tokens.update(
            {ACCESS_TOKEN_KEY: tokens.access, REFRESH_TOKEN_KEY: tokens.refresh}
        )
        self._publish(user=user)

    def _publish(self, **changes: Optional[User]) -> None:
        authenticated = self._tokens.get(ACCESS_TOKEN_KEY) is not None
        self._state.set(
            dataclasses.replace(
                self._state.state, is_authenticated=authenticated, **changes
            )
        )

    def _schedule_user_refresh(self) -> None:
        task = asyncio.create_task(self._refresh_user_quietly())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh_user_quietly(self) -> None:
        try:
            await self.get_user_info()
        except NotesClientError as exc:
            logger.warning("Could not load user profile: %s", exc)
