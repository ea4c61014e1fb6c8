"""
The Contacts tab: live contact list plus username search.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from backend.store import DocumentStore, Query, StoredDocument, StoreError
from shared.constants import (
    CONTACTS_COLLECTION,
    PREFIX_QUERY_SENTINEL,
    USERS_COLLECTION,
)
from shared.errors import INFO_TITLE, WARNING_TITLE, UserFacingError
from shared.types import AuthUser, ContactLink, Profile, from_document, to_document
from shared.utils import now_iso

logger = logging.getLogger(__name__)

SEARCH_FAILED_MESSAGE = "Type the user's exact username"
ALREADY_CONTACT_MESSAGE = "This user is already in your contacts!"
ADD_FAILED_MESSAGE = "Could not add the contact"
UNKNOWN_USER_MESSAGE = "User not found!"
LOAD_FAILED_MESSAGE = "Could not load your contacts"
SELF_CONTACT_MESSAGE = "You cannot add yourself as a contact!"


class ContactsScreen:
    def __init__(self, store: DocumentStore, user: AuthUser):
        self.store = store
        self.user = user
        self.contacts: list[ContactLink] = []
        self.results: list[Profile] = []
        self.search_term = ""
        self.loading = True
        self.searching = False
        self.error: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._lock = threading.RLock()

    def start(self) -> None:
        if self._unsubscribe:
            return
        query = Query(CONTACTS_COLLECTION).where("userId", "==", self.user.uid)
        try:
            self._unsubscribe = self.store.listen(
                query, self._on_snapshot, self._on_error
            )
        except StoreError as e:
            self._on_error(e)

    def stop(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_snapshot(self, docs: list[StoredDocument]) -> None:
        contacts = [from_document(ContactLink, doc.id, doc.data) for doc in docs]
        with self._lock:
            self.contacts = contacts
            self.loading = False
            self.error = None

    def _on_error(self, error: Exception) -> None:
        logger.error("Could not load contacts for %s: %s", self.user.uid, error)
        with self._lock:
            self.error = LOAD_FAILED_MESSAGE
            self.loading = False

    def contact(self, contact_id: str) -> Optional[ContactLink]:
        with self._lock:
            return next((c for c in self.contacts if c.contact_id == contact_id), None)

    def is_contact(self, user_id: str) -> bool:
        return self.contact(user_id) is not None

    def search(self, term: str) -> list[Profile]:
        """Finds profiles whose username starts with `term`, excluding our own."""
        self.search_term = term
        prefix = (term or "").strip().lower()
        if not prefix:
            self.results = []
            return []

        query = (
            Query(USERS_COLLECTION)
            .where("username", ">=", prefix)
            .where("username", "<=", prefix + PREFIX_QUERY_SENTINEL)
        )
        self.searching = True
        try:
            docs = self.store.query(query)
        except StoreError as e:
            logger.warning("Username search for %r failed: %s", prefix, e)
            raise UserFacingError(SEARCH_FAILED_MESSAGE, title=INFO_TITLE) from e
        finally:
            self.searching = False

        self.results = [
            from_document(Profile, doc.id, doc.data)
            for doc in docs
            if doc.id != self.user.uid
        ]
        return self.results

    def _resolve_profile(self, user_id: str) -> Profile:
        for profile in self.results:
            if profile.id == user_id:
                return profile
        try:
            doc = self.store.get(USERS_COLLECTION, user_id)
        except StoreError as e:
            raise UserFacingError(ADD_FAILED_MESSAGE) from e
        if doc is None:
            raise UserFacingError(UNKNOWN_USER_MESSAGE)
        return from_document(Profile, doc.id, doc.data)

    def add(self, user_id: str) -> str:
        """Adds a profile to our contacts and returns the confirmation text."""
        profile = self._resolve_profile(user_id)
        if profile.id == self.user.uid:
            raise UserFacingError(SELF_CONTACT_MESSAGE, title=WARNING_TITLE)
        # Only the local mirror is checked; two quick adds can still race.
        if self.is_contact(profile.id):
            raise UserFacingError(ALREADY_CONTACT_MESSAGE, title=WARNING_TITLE)

        link = ContactLink(
            id="",
            user_id=self.user.uid,
            contact_id=profile.id,
            email=profile.email,
            username=profile.username,
            added_at=now_iso(),
        )
        try:
            self.store.add(CONTACTS_COLLECTION, to_document(link))
        except StoreError as e:
            logger.error("Adding contact %s failed: %s", profile.id, e)
            raise UserFacingError(ADD_FAILED_MESSAGE) from e

        self.search_term = ""
        self.results = []
        return f"@{profile.username} added to contacts!"
