"""Session context shared by the HTTP clients.

The session is passed explicitly to each client instead of being read from
process-wide storage, so tests can hand in a fresh one.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from clinic_console.schemas.auth import User

logger = logging.getLogger(__name__)

InvalidationListener = Callable[[], None]


class SessionContext:
    def __init__(self, token: str | None = None, user: User | None = None) -> None:
        self._token = token
        self._user = user
        self._listeners: List[InvalidationListener] = []

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def authenticate(self, token: str, user: User | None = None) -> None:
        self._token = token
        self._user = user

    def authorization_header(self) -> dict:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def on_invalidate(self, listener: InvalidationListener) -> None:
        """Register a callback run after the session is cleared (login redirect)."""

        self._listeners.append(listener)

    def clear(self) -> None:
        self._token = None
        self._user = None

    def invalidate(self) -> None:
        """Clear the credentials and send the operator back to the login boundary."""

        logger.warning("Session invalidated; credentials cleared")
        self.clear()
        for listener in list(self._listeners):
            listener()
