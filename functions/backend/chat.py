"""
Direct conversation with one contact.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from backend.store import DocumentStore, Query, StoredDocument, StoreError
from shared.constants import MESSAGES_COLLECTION
from shared.errors import UserFacingError
from shared.types import (
    AuthUser,
    ContactLink,
    Message,
    MessageType,
    from_document,
    to_document,
)
from shared.utils import conversation_id, parse_timestamp, time_label
from shared.validation import validate_message_text

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Could not load messages"
SEND_FAILED_MESSAGE = "Could not send the message"


def _message_order(message: Message):
    # Messages still waiting for their server timestamp are the newest.
    pending = not isinstance(message.timestamp, datetime)
    return (pending, parse_timestamp(message.timestamp))


class ChatScreen:
    def __init__(self, store: DocumentStore, user: AuthUser, contact: ContactLink):
        self.store = store
        self.user = user
        self.contact = contact
        self.conversation_id = conversation_id(user.uid, contact.contact_id)
        self.messages: list[Message] = []
        self.sending = False
        self.error: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._lock = threading.RLock()

    @property
    def title(self) -> str:
        return f"Chat with @{self.contact.username}"

    @property
    def status_line(self) -> str:
        return "Online" if self.messages else "Start a conversation"

    def is_mine(self, message: Message) -> bool:
        return message.sender_id == self.user.uid

    def time_label(self, message: Message) -> str:
        return time_label(message.timestamp)

    def start(self) -> None:
        if self._unsubscribe:
            return
        logger.info(
            "Loading conversation %s (%s -> %s)",
            self.conversation_id,
            self.user.uid,
            self.contact.contact_id,
        )
        query = Query(MESSAGES_COLLECTION).where(
            "conversationId", "==", self.conversation_id
        )
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
        messages = [from_document(Message, doc.id, doc.data) for doc in docs]
        messages.sort(key=_message_order)
        with self._lock:
            self.messages = messages
            self.error = None

    def _on_error(self, error: Exception) -> None:
        logger.error("Could not load conversation %s: %s", self.conversation_id, error)
        with self._lock:
            self.error = LOAD_FAILED_MESSAGE

    def send(self, text: str) -> str:
        """Writes a message and returns its document id."""
        body = validate_message_text(text)
        message = Message(
            id="",
            text=body,
            sender_id=self.user.uid,
            sender_email=self.user.email,
            sender_username=self.user.handle,
            recipient_id=self.contact.contact_id,
            recipient_username=self.contact.username,
            recipient_email=self.contact.email,
            conversation_id=self.conversation_id,
            timestamp=SERVER_TIMESTAMP,
            read=False,
            type=MessageType.TEXT,
        )
        self.sending = True
        try:
            return self.store.add(MESSAGES_COLLECTION, to_document(message))
        except StoreError as e:
            logger.error("Sending to %s failed: %s", self.conversation_id, e)
            raise UserFacingError(SEND_FAILED_MESSAGE) from e
        finally:
            self.sending = False
