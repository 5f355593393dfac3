"""
Session State

Explicit holder for who is signed in on this client. Views subscribe to be
told when the session changes instead of polling a global.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from bhavan.client.storage import LocalStorage

logger = logging.getLogger(__name__)

SESSION_KEY = "session"

Listener = Callable[["SessionState"], None]


@dataclass
class SessionSnapshot:
    token: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False


class SessionState:
    """Current session plus change listeners."""

    def __init__(self, storage: Optional[LocalStorage] = None):
        self.storage = storage
        self.current = SessionSnapshot(**(storage.get(SESSION_KEY) or {})) if storage else SessionSnapshot()
        self._listeners: list[Listener] = []

    @property
    def authenticated(self) -> bool:
        return bool(self.current.token)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _persist(self) -> None:
        if self.storage is not None:
            self.storage.set(SESSION_KEY, vars(self.current))

    def sign_in(self, token: str, user_id: Optional[str] = None, email: Optional[str] = None) -> None:
        self.current = SessionSnapshot(token=token, user_id=user_id, email=email)
        self._persist()
        self._notify()

    def update(self, user_id: Optional[str], email: Optional[str], is_admin: bool) -> None:
        """Apply what the server says about the current token."""
        self.current = SessionSnapshot(self.current.token, user_id, email, is_admin)
        self._persist()
        self._notify()

    def sign_out(self) -> None:
        self.current = SessionSnapshot()
        if self.storage is not None:
            self.storage.delete(SESSION_KEY)
        self._notify()
        logger.debug("Signed out")
