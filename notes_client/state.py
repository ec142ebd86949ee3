"""Observable session state.

Presentation layers subscribe to a :class:`StateStore` and receive an
immutable :class:`SessionState` snapshot on every change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from notes_client.models import User

logger = logging.getLogger(__name__)

Subscriber = Callable[["SessionState"], None]


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the authentication state."""

    is_authenticated: bool = False
    user: Optional[User] = None


class StateStore:
    """Holds the current snapshot and notifies subscribers of changes.

    Each change is delivered exactly once to every current subscriber, in
    the order the changes were made. Setting an equal snapshot is a no-op.
    """

    def __init__(self, initial: SessionState) -> None:
        self._state = initial
        self._subscribers: list[Subscriber] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def set(self, new_state: SessionState) -> bool:
        """Replace the snapshot. Returns True when subscribers were notified."""
        if new_state == self._state:
            return False
        self._state = new_state
        for callback in list(self._subscribers):
            try:
                callback(new_state)
            except Exception:
                logger.exception("Session state subscriber %r failed", callback)
        return True
