"""Document-store implementation of the loan repository."""

from datetime import datetime
import logging
from typing import Any, List, Optional

from stockset.core.document_store import DocumentStore
from stockset.models.exceptions import PersistenceError
from stockset.models.loans import LoanModel
from stockset.models.repositories import LoanRepository


logger = logging.getLogger(__name__)


def _newest_first_key(payload: dict) -> Any:
    """Sort key on creation time, tie-broken by loan id."""
    value = payload.get("created_at")
    created = value.timestamp() if isinstance(value, datetime) else 0.0
    return created, str(payload.get("loan_id") or payload.get("id") or "")


class DocumentLoanRepository(LoanRepository):
    """Persist and fetch loan documents."""

    def __init__(self, store: DocumentStore, collection_name: str = "loans") -> None:
        self._store = store
        self._collection_name = collection_name
        logger.info("Initialized DocumentLoanRepository collection=%s", collection_name)

    def create(self, model: LoanModel, transaction: Optional[Any] = None) -> LoanModel:
        try:
            stored = self._store.set_document(
                collection_name=self._collection_name,
                document_id=model.loan_id,
                payload=model.to_firestore(),
                merge=False,
                transaction=transaction,
            )
            return LoanModel.from_firestore(stored, doc_id=model.loan_id)
        except Exception:
            logger.exception("Failed to create loan_id=%s user_id=%s", model.loan_id, model.user_id)
            raise

    def find(self, loan_id: str, transaction: Optional[Any] = None) -> Optional[LoanModel]:
        payload = self._store.get_document(self._collection_name, loan_id, transaction=transaction)
        if payload is None:
            return None
        return LoanModel.from_firestore(payload, doc_id=loan_id)

    def mark_repaid(self, loan_id: str, transaction: Optional[Any] = None) -> None:
        self._store.update_document(
            self._collection_name,
            loan_id,
            {"repaid": True},
            transaction=transaction,
        )

    def list_by_user(self, user_id: str) -> List[LoanModel]:
        filters = [("user_id", "==", user_id)]
        try:
            payloads = self._store.query_documents(
                self._collection_name,
                filters=filters,
                order_by="created_at",
                descending=True,
            )
        except PersistenceError as exc:
            if "requires an index" not in str(exc).lower():
                raise
            logger.warning(
                "Firestore composite index missing. Falling back to in-memory sort collection=%s",
                self._collection_name,
            )
            payloads = self._store.query_documents(self._collection_name, filters=filters)
        # Equal timestamps have no store-defined order.
        payloads.sort(key=_newest_first_key, reverse=True)
        return [LoanModel.from_firestore(payload, doc_id=payload.get("id")) for payload in payloads]
