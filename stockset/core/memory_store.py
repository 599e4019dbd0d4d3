"""In-process document store used when Firestore is disabled and in tests."""

import copy
from datetime import datetime, timezone
import logging
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Sequence

from stockset.models.exceptions import ModelNotFoundError

from .document_store import DocumentStore, FilterTuple, T


logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed store that serializes every mutation under one lock.

    Transactions hold the lock for their whole duration and restore a
    snapshot of all collections when the callback raises.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _bucket(self, collection_name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection_name, {})

    def _require(self, collection_name: str, document_id: str) -> Dict[str, Any]:
        payload = self._bucket(collection_name).get(document_id)
        if payload is None:
            raise ModelNotFoundError(
                "Document not found: {0}/{1}".format(collection_name, document_id)
            )
        return payload

    def get_document(
        self,
        collection_name: str,
        document_id: str,
        transaction: Optional[Any] = None,
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            payload = self._bucket(collection_name).get(document_id)
            if payload is None:
                return None
            result = copy.deepcopy(payload)
            result.setdefault("id", document_id)
            return result

    def set_document(
        self,
        collection_name: str,
        document_id: str,
        payload: Dict[str, Any],
        merge: bool = False,
        transaction: Optional[Any] = None,
    ) -> Dict[str, Any]:
        with self._lock:
            bucket = self._bucket(collection_name)
            if merge and document_id in bucket:
                stored = dict(bucket[document_id])
                stored.update(copy.deepcopy(payload))
            else:
                stored = copy.deepcopy(payload)
                stored.setdefault("created_at", _utc_now())
            stored["updated_at"] = _utc_now()
            bucket[document_id] = stored
            return copy.deepcopy(stored)

    def update_document(
        self,
        collection_name: str,
        document_id: str,
        payload: Dict[str, Any],
        transaction: Optional[Any] = None,
    ) -> None:
        with self._lock:
            stored = self._require(collection_name, document_id)
            stored.update(copy.deepcopy(payload))
            stored["updated_at"] = _utc_now()

    def increment_field(
        self,
        collection_name: str,
        document_id: str,
        field_name: str,
        amount: int,
        transaction: Optional[Any] = None,
    ) -> None:
        with self._lock:
            stored = self._require(collection_name, document_id)
            stored[field_name] = stored.get(field_name, 0) + amount
            stored["updated_at"] = _utc_now()

    def array_union(
        self,
        collection_name: str,
        document_id: str,
        field_name: str,
        values: Sequence[Any],
        transaction: Optional[Any] = None,
    ) -> None:
        with self._lock:
            stored = self._require(collection_name, document_id)
            current = list(stored.get(field_name) or [])
            for value in values:
                if value not in current:
                    current.append(value)
            stored[field_name] = current
            stored["updated_at"] = _utc_now()

    def array_remove(
        self,
        collection_name: str,
        document_id: str,
        field_name: str,
        values: Sequence[Any],
        transaction: Optional[Any] = None,
    ) -> None:
        with self._lock:
            stored = self._require(collection_name, document_id)
            stored[field_name] = [item for item in stored.get(field_name) or [] if item not in values]
            stored["updated_at"] = _utc_now()

    def query_documents(
        self,
        collection_name: str,
        filters: Optional[Sequence[FilterTuple]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            records: List[Dict[str, Any]] = []
            for document_id, payload in self._bucket(collection_name).items():
                row = copy.deepcopy(payload)
                row.setdefault("id", document_id)
                if self._matches_filters(row, filters or []):
                    records.append(row)
        if order_by:
            # Equal keys keep reverse insertion order when descending.
            if descending:
                records.reverse()
            records.sort(key=lambda item: item.get(order_by), reverse=descending)
        if limit is not None:
            records = records[: int(limit)]
        return records

    def run_transaction(self, callback: Callable[[Any], T]) -> T:
        with self._lock:
            snapshot = copy.deepcopy(self._collections)
            try:
                return callback(None)
            except BaseException:
                self._collections = snapshot
                logger.debug("In-memory transaction rolled back.")
                raise

    def _matches_filters(self, payload: Dict[str, Any], filters: Sequence[FilterTuple]) -> bool:
        """Evaluate query-like filters."""
        for field_name, operator, expected_value in filters:
            actual_value = payload.get(field_name)
            if operator == "==":
                if actual_value != expected_value:
                    return False
            elif operator == "!=":
                if actual_value == expected_value:
                    return False
            elif operator == ">":
                if actual_value is None or actual_value <= expected_value:
                    return False
            elif operator == ">=":
                if actual_value is None or actual_value < expected_value:
                    return False
            elif operator == "<":
                if actual_value is None or actual_value >= expected_value:
                    return False
            elif operator == "<=":
                if actual_value is None or actual_value > expected_value:
                    return False
            elif operator == "in":
                if actual_value not in expected_value:
                    return False
            elif operator == "array_contains":
                if expected_value not in (actual_value or []):
                    return False
            else:
                raise ValueError("Unsupported filter operator: {0}".format(operator))
        return True
