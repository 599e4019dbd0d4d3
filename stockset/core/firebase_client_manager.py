"""Firestore-backed document store for users, groups, portfolios and loans."""

from datetime import datetime, timezone
import logging
import os
from typing import Any, Callable, Dict, List, Optional, Sequence

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.oauth2 import service_account

from stockset.models.exceptions import ModelError, ModelNotFoundError, PersistenceError

from .document_store import DocumentStore, FilterTuple, T


logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class FirebaseClientManager(DocumentStore):
    """Encapsulates Firestore client setup and the lending store primitives."""

    def __init__(self, project_id: Optional[str] = None, credentials_path: Optional[str] = None) -> None:
        """Initialize Firestore client.

        Args:
            project_id: Optional Google Cloud project id override.
            credentials_path: Optional path to Firebase service account json file.
        """
        try:
            if credentials_path:
                os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = credentials_path
                credentials = service_account.Credentials.from_service_account_file(credentials_path)
                self._client = firestore.Client(project=project_id, credentials=credentials)
            else:
                self._client = firestore.Client(project=project_id) if project_id else firestore.Client()
            logger.info("FirebaseClientManager initialized for project_id=%s", project_id)
        except Exception as exc:
            logger.exception("Failed to initialize Firebase Firestore client.")
            raise PersistenceError("Firestore client initialization failed: {0}".format(exc)) from exc

    def _ref(self, collection_name: str, document_id: str) -> Any:
        return self._client.collection(collection_name).document(document_id)

    def _write(
        self,
        collection_name: str,
        document_id: str,
        payload: Dict[str, Any],
        transaction: Optional[Any],
    ) -> None:
        """Apply a field update directly or through the given transaction."""
        ref = self._ref(collection_name, document_id)
        safe_payload = dict(payload)
        safe_payload["updated_at"] = _utc_now()
        try:
            if transaction is not None:
                transaction.update(ref, safe_payload)
            else:
                ref.update(safe_payload)
        except google_exceptions.NotFound as exc:
            raise ModelNotFoundError(
                "Document not found: {0}/{1}".format(collection_name, document_id)
            ) from exc
        except Exception as exc:
            logger.exception(
                "Failed to update document collection=%s document_id=%s",
                collection_name,
                document_id,
            )
            raise PersistenceError(str(exc)) from exc

    def get_document(
        self,
        collection_name: str,
        document_id: str,
        transaction: Optional[Any] = None,
    ) -> Optional[Dict[str, Any]]:
        """Get one Firestore document by id."""
        try:
            snapshot = self._ref(collection_name, document_id).get(transaction=transaction)
            if not snapshot.exists:
                return None
            data = snapshot.to_dict() or {}
            data["id"] = snapshot.id
            return data
        except Exception as exc:
            logger.exception(
                "Failed to get document collection=%s document_id=%s",
                collection_name,
                document_id,
            )
            raise PersistenceError(str(exc)) from exc

    def set_document(
        self,
        collection_name: str,
        document_id: str,
        payload: Dict[str, Any],
        merge: bool = False,
        transaction: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """Create or replace a Firestore document.

        Inside a transaction the write is only staged, so the payload is
        returned as written instead of being read back.
        """
        try:
            ref = self._ref(collection_name, document_id)
            safe_payload = dict(payload)
            safe_payload["updated_at"] = _utc_now()
            safe_payload["created_at"] = safe_payload.get("created_at", _utc_now())
            if transaction is not None:
                transaction.set(ref, safe_payload, merge=merge)
                return safe_payload
            ref.set(safe_payload, merge=merge)
            snapshot = ref.get()
            return snapshot.to_dict() or {}
        except Exception as exc:
            logger.exception(
                "Failed to set document collection=%s document_id=%s",
                collection_name,
                document_id,
            )
            raise PersistenceError(str(exc)) from exc

    def update_document(
        self,
        collection_name: str,
        document_id: str,
        payload: Dict[str, Any],
        transaction: Optional[Any] = None,
    ) -> None:
        """Update fields in an existing Firestore document."""
        self._write(collection_name, document_id, payload, transaction)

    def increment_field(
        self,
        collection_name: str,
        document_id: str,
        field_name: str,
        amount: int,
        transaction: Optional[Any] = None,
    ) -> None:
        """Apply a server-side `Increment` transform."""
        self._write(collection_name, document_id, {field_name: firestore.Increment(amount)}, transaction)

    def array_union(
        self,
        collection_name: str,
        document_id: str,
        field_name: str,
        values: Sequence[Any],
        transaction: Optional[Any] = None,
    ) -> None:
        """Apply a server-side `ArrayUnion` transform."""
        self._write(collection_name, document_id, {field_name: firestore.ArrayUnion(list(values))}, transaction)

    def array_remove(
        self,
        collection_name: str,
        document_id: str,
        field_name: str,
        values: Sequence[Any],
        transaction: Optional[Any] = None,
    ) -> None:
        """Apply a server-side `ArrayRemove` transform."""
        self._write(collection_name, document_id, {field_name: firestore.ArrayRemove(list(values))}, transaction)

    def query_documents(
        self,
        collection_name: str,
        filters: Optional[Sequence[FilterTuple]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Run a filtered query and return document payloads.

        Args:
            collection_name: Target collection.
            filters: Sequence of tuples `(field, op, value)`.
            order_by: Optional field name for sorting.
            descending: Sort `order_by` from highest to lowest.
            limit: Optional maximum result count.
        """
        try:
            query = self._client.collection(collection_name)
            for field_name, operator, value in filters or []:
                query = query.where(field_name, operator, value)
            if order_by:
                direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
                query = query.order_by(order_by, direction=direction)
            if limit is not None:
                query = query.limit(limit)

            documents: List[Dict[str, Any]] = []
            for snapshot in query.stream():
                payload = snapshot.to_dict() or {}
                payload["id"] = snapshot.id
                documents.append(payload)
            return documents
        except Exception as exc:
            logger.exception("Failed query for collection=%s", collection_name)
            raise PersistenceError(str(exc)) from exc

    def run_transaction(self, callback: Callable[[Any], T]) -> T:
        """Run `callback` inside a Firestore transaction with the client's retry policy."""

        @firestore.transactional
        def _run(transaction: Any) -> T:
            return callback(transaction)

        try:
            return _run(self._client.transaction())
        except ModelError:
            raise
        except Exception as exc:
            logger.exception("Firestore transaction failed.")
            raise PersistenceError(str(exc)) from exc
