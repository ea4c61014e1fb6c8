"""
Holds the signed-in account and notifies subscribers when it changes.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from backend.identity import IdentityProvider
from shared.errors import AuthError
from shared.types import AuthUser

logger = logging.getLogger(__name__)

AuthStateListener = Callable[[Optional[AuthUser]], None]


class Session:
    def __init__(self, identity: IdentityProvider):
        self.identity = identity
        self._user: Optional[AuthUser] = None
        self._listeners: list[AuthStateListener] = []
        self._lock = threading.RLock()

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._user

    def sign_in(self, email: str, password: str) -> AuthUser:
        user = self.identity.sign_in(email, password)
        logger.info("Signed in %s", user.uid)
        self._set_user(user)
        return user

    def create_account(self, email: str, password: str) -> AuthUser:
        """Creates the account and signs it in, as the hosted SDK does."""
        user = self.identity.create_user(email, password)
        logger.info("Created account %s", user.uid)
        self._set_user(user)
        return user

    def sign_out(self) -> None:
        user = self._user
        if user is None:
            return
        try:
            self.identity.sign_out(user)
        except AuthError as e:
            logger.warning("Sign out failed for %s: %s", user.uid, e.code)
        logger.info("Signed out %s", user.uid)
        self._set_user(None)

    def on_auth_state_changed(self, listener: AuthStateListener) -> Callable[[], None]:
        """
        Registers `listener` and calls it right away with the current user.
        Returns a function that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)
        listener(self._user)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _set_user(self, user: Optional[AuthUser]) -> None:
        with self._lock:
            self._user = user
            listeners = list(self._listeners)
        for listener in listeners:
            listener(user)
