"""Unit tests for the Firestore-backed document store with a mocked client."""

import unittest
from unittest import mock

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from stockset.core import FirebaseClientManager
from stockset.models.exceptions import ModelNotFoundError, PersistenceError


MODULE = "stockset.core.firebase_client_manager"


class FirebaseClientManagerTests(unittest.TestCase):
    """Validate Firestore calls and error translation."""

    def setUp(self) -> None:
        """Patch the Firestore client constructor."""
        patcher = mock.patch(MODULE + ".firestore.Client")
        self.client_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.client = self.client_cls.return_value
        self.ref = self.client.collection.return_value.document.return_value
        self.manager = FirebaseClientManager(project_id="demo-project")

    def test_client_uses_project(self) -> None:
        """The configured project id reaches the client."""
        self.client_cls.assert_called_once_with(project="demo-project")

    def test_client_failure_is_wrapped(self) -> None:
        """Initialization faults surface as persistence errors."""
        self.client_cls.side_effect = RuntimeError("no credentials")
        with self.assertRaises(PersistenceError):
            FirebaseClientManager(project_id="demo-project")

    def test_get_document(self) -> None:
        """Existing snapshots come back with their id."""
        snapshot = self.ref.get.return_value
        snapshot.exists = True
        snapshot.id = "grp_1"
        snapshot.to_dict.return_value = {"name": "Circle"}
        self.assertEqual(self.manager.get_document("groups", "grp_1"), {"name": "Circle", "id": "grp_1"})
        self.client.collection.assert_called_with("groups")

        snapshot.exists = False
        self.assertIsNone(self.manager.get_document("groups", "grp_1"))

    def test_increment_uses_server_transform(self) -> None:
        """Counters change through `firestore.Increment`."""
        self.manager.increment_field("groups", "grp_1", "trust_score", 2)
        payload = self.ref.update.call_args[0][0]
        self.assertIsInstance(payload["trust_score"], firestore.Increment)
        self.assertIn("updated_at", payload)

    def test_array_transforms(self) -> None:
        """Membership changes through `ArrayUnion` and `ArrayRemove`."""
        self.manager.array_union("groups", "grp_1", "members", ["usr_1"])
        self.assertIsInstance(self.ref.update.call_args[0][0]["members"], firestore.ArrayUnion)
        self.manager.array_remove("groups", "grp_1", "members", ["usr_1"])
        self.assertIsInstance(self.ref.update.call_args[0][0]["members"], firestore.ArrayRemove)

    def test_update_missing_document(self) -> None:
        """Driver NotFound becomes the domain not-found error."""
        self.ref.update.side_effect = google_exceptions.NotFound("missing")
        with self.assertRaises(ModelNotFoundError):
            self.manager.update_document("loans", "loan_1", {"repaid": True})

    def test_update_driver_fault(self) -> None:
        """Other driver faults become persistence errors."""
        self.ref.update.side_effect = RuntimeError("unavailable")
        with self.assertRaises(PersistenceError):
            self.manager.update_document("loans", "loan_1", {"repaid": True})

    def test_set_document_in_transaction_is_staged(self) -> None:
        """Transactional sets are staged and not read back."""
        transaction = mock.MagicMock()
        stored = self.manager.set_document("users", "usr_1", {"user_id": "usr_1"}, transaction=transaction)
        transaction.set.assert_called_once()
        self.ref.set.assert_not_called()
        self.assertEqual(stored["user_id"], "usr_1")

    def test_query_documents(self) -> None:
        """Filters, ordering and limits map onto the query builder."""
        collection = self.client.collection.return_value
        query = collection.where.return_value
        ordered = query.order_by.return_value
        limited = ordered.limit.return_value
        snapshot = mock.MagicMock(id="loan_1")
        snapshot.to_dict.return_value = {"user_id": "usr_1"}
        limited.stream.return_value = [snapshot]

        rows = self.manager.query_documents(
            "loans",
            filters=[("user_id", "==", "usr_1")],
            order_by="created_at",
            descending=True,
            limit=5,
        )
        collection.where.assert_called_once_with("user_id", "==", "usr_1")
        query.order_by.assert_called_once_with("created_at", direction=firestore.Query.DESCENDING)
        self.assertEqual(rows, [{"user_id": "usr_1", "id": "loan_1"}])

    def test_run_transaction_error_translation(self) -> None:
        """Domain errors pass through and driver faults are wrapped."""
        with mock.patch(MODULE + ".firestore.transactional", side_effect=lambda func: func):
            transaction = self.client.transaction.return_value

            def _update(txn):
                self.manager.increment_field("groups", "grp_1", "trust_score", 2, transaction=txn)
                return "ok"

            self.assertEqual(self.manager.run_transaction(_update), "ok")
            transaction.update.assert_called_once()

            def _missing(txn):
                raise ModelNotFoundError("Loan not found: loan_1")

            with self.assertRaises(ModelNotFoundError):
                self.manager.run_transaction(_missing)

            def _fault(txn):
                raise RuntimeError("aborted")

            with self.assertRaises(PersistenceError):
                self.manager.run_transaction(_fault)


if __name__ == "__main__":
    unittest.main()
