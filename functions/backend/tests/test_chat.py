import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from backend.chat import LOAD_FAILED_MESSAGE, SEND_FAILED_MESSAGE, ChatScreen
from backend.store import InMemoryDocumentStore, Query, StoreError
from shared.errors import UserFacingError, ValidationError
from shared.types import AuthUser, ContactLink


class ChatScreenTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()
        self.alice = AuthUser(uid="uidA", email="alice@example.com")
        self.bob = AuthUser(uid="uidB", email="bob@example.com", display_name="Bobby")
        self.alice_chat = ChatScreen(
            self.store,
            self.alice,
            ContactLink(
                id="l1",
                user_id="uidA",
                contact_id="uidB",
                username="bob",
                email="bob@example.com",
            ),
        )
        self.bob_chat = ChatScreen(
            self.store,
            self.bob,
            ContactLink(
                id="l2",
                user_id="uidB",
                contact_id="uidA",
                username="alice",
                email="alice@example.com",
            ),
        )

    def tearDown(self):
        self.alice_chat.stop()
        self.bob_chat.stop()

    def test_both_sides_share_conversation_id(self):
        self.assertEqual(self.alice_chat.conversation_id, "uidA_uidB")
        self.assertEqual(self.bob_chat.conversation_id, self.alice_chat.conversation_id)

    def test_send_writes_message(self):
        doc_id = self.alice_chat.send("  hi bob  ")

        data = self.store.get("messages", doc_id).data
        self.assertEqual(data["text"], "hi bob")
        self.assertEqual(data["senderId"], "uidA")
        self.assertEqual(data["senderEmail"], "alice@example.com")
        self.assertEqual(data["senderUsername"], "alice")
        self.assertEqual(data["recipientId"], "uidB")
        self.assertEqual(data["recipientUsername"], "bob")
        self.assertEqual(data["recipientEmail"], "bob@example.com")
        self.assertEqual(data["conversationId"], "uidA_uidB")
        self.assertIsInstance(data["timestamp"], datetime)
        self.assertFalse(data["read"])
        self.assertEqual(data["type"], "text")
        self.assertFalse(self.alice_chat.sending)

    def test_sender_username_prefers_display_name(self):
        doc_id = self.bob_chat.send("hey")
        self.assertEqual(self.store.get("messages", doc_id).data["senderUsername"], "Bobby")

    def test_messages_reach_both_participants(self):
        self.alice_chat.start()
        self.bob_chat.start()
        self.assertEqual(self.alice_chat.status_line, "Start a conversation")

        self.alice_chat.send("hi bob")
        self.bob_chat.send("hi alice")

        for chat in (self.alice_chat, self.bob_chat):
            self.assertEqual([m.text for m in chat.messages], ["hi bob", "hi alice"])
            self.assertEqual(chat.status_line, "Online")
        self.assertTrue(self.alice_chat.is_mine(self.alice_chat.messages[0]))
        self.assertFalse(self.bob_chat.is_mine(self.bob_chat.messages[0]))

    def test_other_conversations_are_not_delivered(self):
        self.alice_chat.start()
        self.store.add(
            "messages",
            {
                "text": "elsewhere",
                "senderId": "uidC",
                "recipientId": "uidA",
                "conversationId": "uidA_uidC",
            },
        )
        self.assertEqual(self.alice_chat.messages, [])

    def test_messages_sorted_by_timestamp_with_pending_last(self):
        base = {"senderId": "uidB", "recipientId": "uidA", "conversationId": "uidA_uidB"}
        self.store.add("messages", {**base, "text": "pending", "timestamp": None})
        self.store.add(
            "messages",
            {**base, "text": "second", "timestamp": datetime(2025, 1, 2, tzinfo=timezone.utc)},
        )
        self.store.add(
            "messages",
            {**base, "text": "first", "timestamp": datetime(2025, 1, 1, 8, 30, tzinfo=timezone.utc)},
        )

        self.alice_chat.start()

        self.assertEqual(
            [m.text for m in self.alice_chat.messages], ["first", "second", "pending"]
        )
        first = self.alice_chat.messages[0]
        self.assertEqual(
            self.alice_chat.time_label(first),
            first.timestamp.astimezone().strftime("%H:%M"),
        )
        self.assertEqual(self.alice_chat.time_label(self.alice_chat.messages[2]), "Now")

    def test_listen_failure_sets_error(self):
        with patch.object(self.store, "listen", side_effect=StoreError("unavailable")):
            self.alice_chat.start()
        self.assertEqual(self.alice_chat.error, LOAD_FAILED_MESSAGE)

    def test_listener_error_sets_error(self):
        with patch.object(self.store, "listen") as listen:
            self.alice_chat.start()
        on_snapshot, on_error = listen.call_args[0][1:]
        on_snapshot([])
        self.assertIsNone(self.alice_chat.error)

        on_error(StoreError("permission denied"))
        self.assertEqual(self.alice_chat.error, LOAD_FAILED_MESSAGE)

    def test_blank_message_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.alice_chat.send("   ")
        self.assertEqual(self.store.query(Query("messages")), [])

    def test_send_failure(self):
        with patch.object(self.store, "add", side_effect=StoreError("offline")):
            with self.assertRaises(UserFacingError) as ctx:
                self.alice_chat.send("hi")
        self.assertEqual(ctx.exception.message, SEND_FAILED_MESSAGE)
        self.assertFalse(self.alice_chat.sending)

    def test_title(self):
        self.assertEqual(self.alice_chat.title, "Chat with @bob")


if __name__ == "__main__":
    unittest.main()
