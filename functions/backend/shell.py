"""
Navigation shell: picks the auth or main stack from the session state and
owns the lifecycle of the screens mounted on it.
"""

from __future__ import annotations

import logging
import threading
from enum import StrEnum
from typing import Optional

from backend.accounts import LoginScreen, SignupScreen
from backend.chat import ChatScreen
from backend.contacts import ContactsScreen
from backend.items import ItemListScreen
from backend.session import Session
from backend.store import DocumentStore
from shared.errors import NotSignedInError, UserFacingError
from shared.types import AuthUser

logger = logging.getLogger(__name__)


class Stack(StrEnum):
    AUTH = "auth"
    MAIN = "main"


class Route(StrEnum):
    LOGIN = "Login"
    SIGNUP = "Signup"
    HOME = "Home"
    CONTACTS = "Contacts"
    CHAT = "Chat"


STACK_ROUTES = {
    Stack.AUTH: [Route.LOGIN, Route.SIGNUP],
    Stack.MAIN: [Route.HOME, Route.CONTACTS, Route.CHAT],
}


class AppShell:
    def __init__(self, store: DocumentStore, session: Session):
        self.store = store
        self.session = session
        self.login = LoginScreen(session)
        self.signup = SignupScreen(session, store)
        self.initializing = True
        self._items: Optional[ItemListScreen] = None
        self._contacts: Optional[ContactsScreen] = None
        self._chat: Optional[ChatScreen] = None
        self._lock = threading.RLock()
        self._unsubscribe = session.on_auth_state_changed(self._on_auth_state_changed)

    @property
    def user(self) -> Optional[AuthUser]:
        return self.session.current_user

    @property
    def stack(self) -> Stack:
        return Stack.MAIN if self.user else Stack.AUTH

    @property
    def routes(self) -> list[Route]:
        return STACK_ROUTES[self.stack]

    def _on_auth_state_changed(self, user: Optional[AuthUser]) -> None:
        with self._lock:
            self._unmount_all()
            if user is not None:
                self._items = ItemListScreen(self.store, user)
                self._contacts = ContactsScreen(self.store, user)
            self.initializing = False
        if user is not None:
            logger.info("Mounting main stack for %s", user.uid)
            self._items.start()
            self._contacts.start()

    def _unmount_all(self) -> None:
        for screen in (self._chat, self._items, self._contacts):
            if screen is not None:
                screen.stop()
        self._chat = None
        self._items = None
        self._contacts = None

    @property
    def items(self) -> ItemListScreen:
        if self._items is None:
            raise NotSignedInError()
        return self._items

    @property
    def contacts(self) -> ContactsScreen:
        if self._contacts is None:
            raise NotSignedInError()
        return self._contacts

    @property
    def chat(self) -> Optional[ChatScreen]:
        return self._chat

    def open_chat(self, contact_id: str) -> ChatScreen:
        """Mounts the chat with a contact, replacing any other open chat."""
        contact = self.contacts.contact(contact_id)
        if contact is None:
            raise UserFacingError("Add this user to your contacts first")
        with self._lock:
            if self._chat is not None:
                if self._chat.contact.contact_id == contact_id:
                    return self._chat
                self._chat.stop()
            self._chat = ChatScreen(self.store, self.user, contact)
            chat = self._chat
        chat.start()
        return chat

    def close_chat(self) -> None:
        with self._lock:
            if self._chat is not None:
                self._chat.stop()
                self._chat = None

    def logout(self) -> None:
        self.session.sign_out()

    def close(self) -> None:
        self._unsubscribe()
        with self._lock:
            self._unmount_all()
