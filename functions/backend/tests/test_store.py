import unittest
from datetime import datetime
from unittest.mock import MagicMock

from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from backend.store import (
    FirestoreDocumentStore,
    InMemoryDocumentStore,
    MissingIndexError,
    Query,
    StoreError,
)


class InMemoryDocumentStoreTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()

    def test_filters_and_ordering(self):
        self.store.add("items", {"userId": "u1", "createdAt": "2025-01-01"})
        self.store.add("items", {"userId": "u1", "createdAt": "2025-01-03"})
        self.store.add("items", {"userId": "u2", "createdAt": "2025-01-02"})

        query = Query("items").where("userId", "==", "u1").ordered(
            "createdAt", descending=True
        )
        docs = self.store.query(query)
        self.assertEqual([d.data["createdAt"] for d in docs], ["2025-01-03", "2025-01-01"])

    def test_range_filters_ignore_mismatched_types(self):
        self.store.set("users", "a", {"username": "alice"})
        self.store.set("users", "b", {"username": 42})
        query = Query("users").where("username", ">=", "al").where("username", "<=", "al\uf8ff")
        self.assertEqual([d.id for d in self.store.query(query)], ["a"])

    def test_rejects_unknown_operator(self):
        with self.assertRaises(ValueError):
            Query("items").where("text", "array-contains", "x")

    def test_server_timestamp_is_resolved(self):
        doc_id = self.store.add("messages", {"timestamp": SERVER_TIMESTAMP})
        self.assertIsInstance(self.store.get("messages", doc_id).data["timestamp"], datetime)

    def test_update_requires_existing_document(self):
        with self.assertRaises(StoreError):
            self.store.update("items", "missing", {"text": "x"})

    def test_returned_documents_are_copies(self):
        self.store.set("users", "a", {"username": "alice"})
        self.store.get("users", "a").data["username"] = "mallory"
        self.assertEqual(self.store.get("users", "a").data["username"], "alice")

    def test_listener_gets_initial_and_changed_results(self):
        snapshots = []
        unsubscribe = self.store.listen(
            Query("items").where("userId", "==", "u1"),
            lambda docs: snapshots.append([d.data["text"] for d in docs]),
        )
        self.assertEqual(snapshots, [[]])

        doc_id = self.store.add("items", {"userId": "u1", "text": "milk"})
        self.store.add("items", {"userId": "u2", "text": "not mine"})
        self.store.update("items", doc_id, {"text": "bread"})
        self.assertEqual(snapshots, [[], ["milk"], ["bread"]])

        unsubscribe()
        unsubscribe()
        self.store.delete("items", doc_id)
        self.assertEqual(len(snapshots), 3)

    def test_reset_drops_data_and_listeners(self):
        snapshots = []
        self.store.listen(Query("items"), snapshots.append)
        self.store.reset()
        self.store.add("items", {"text": "x"})
        self.assertEqual(len(snapshots), 1)
        self.assertEqual(len(self.store.query(Query("items"))), 1)


class FirestoreDocumentStoreTests(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.store = FirestoreDocumentStore(self.client)
        self.collection = self.client.collection.return_value

    def test_add_returns_document_id(self):
        self.collection.add.return_value = (None, MagicMock(id="abc"))
        self.assertEqual(self.store.add("items", {"text": "x"}), "abc")
        self.client.collection.assert_called_with("items")

    def test_get_missing_document(self):
        self.collection.document.return_value.get.return_value = MagicMock(exists=False)
        self.assertIsNone(self.store.get("users", "nobody"))

    def test_backend_errors_become_store_errors(self):
        self.collection.document.return_value.set.side_effect = (
            google_exceptions.ServiceUnavailable("down")
        )
        with self.assertRaises(StoreError):
            self.store.set("users", "u1", {"username": "alice"})

    def test_ordered_listen_reports_missing_index(self):
        ordered = self.collection.where.return_value.order_by.return_value
        ordered.limit.return_value.stream.side_effect = (
            google_exceptions.FailedPrecondition("The query requires an index.")
        )
        query = Query("items").where("userId", "==", "u1").ordered("createdAt", descending=True)
        with self.assertRaises(MissingIndexError):
            self.store.listen(query, lambda docs: None)
        ordered.on_snapshot.assert_not_called()

    def test_listen_converts_snapshots(self):
        filtered = self.collection.where.return_value
        received = []
        unsubscribe = self.store.listen(
            Query("contacts").where("userId", "==", "u1"), received.append
        )
        self.assertIs(unsubscribe, filtered.on_snapshot.return_value.unsubscribe)

        callback = filtered.on_snapshot.call_args[0][0]
        snapshot = MagicMock(id="c1")
        snapshot.to_dict.return_value = {"userId": "u1"}
        callback([snapshot], [], None)
        self.assertEqual(received[0][0].id, "c1")
        self.assertEqual(received[0][0].data, {"userId": "u1"})


if __name__ == "__main__":
    unittest.main()
