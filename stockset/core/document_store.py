"""Document store contract shared by the Firestore and in-memory backends."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar


FilterTuple = Tuple[str, str, Any]
T = TypeVar("T")


class DocumentStore(ABC):
    """Persistence primitives the lending core relies on.

    Every write accepts an optional ``transaction`` handle obtained from
    :meth:`run_transaction`. Inside a transaction all reads must happen
    before the first write, which mirrors the Firestore contract.
    """

    @abstractmethod
    def get_document(
        self,
        collection_name: str,
        document_id: str,
        transaction: Optional[Any] = None,
    ) -> Optional[Dict[str, Any]]:
        """Return a document payload, or None when it does not exist."""

    @abstractmethod
    def set_document(
        self,
        collection_name: str,
        document_id: str,
        payload: Dict[str, Any],
        merge: bool = False,
        transaction: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """Create or replace a document."""

    @abstractmethod
    def update_document(
        self,
        collection_name: str,
        document_id: str,
        payload: Dict[str, Any],
        transaction: Optional[Any] = None,
    ) -> None:
        """Update fields of an existing document.

        Raises:
            ModelNotFoundError: If the document does not exist.
        """

    @abstractmethod
    def increment_field(
        self,
        collection_name: str,
        document_id: str,
        field_name: str,
        amount: int,
        transaction: Optional[Any] = None,
    ) -> None:
        """Atomically add `amount` to a numeric field of an existing document."""

    @abstractmethod
    def array_union(
        self,
        collection_name: str,
        document_id: str,
        field_name: str,
        values: Sequence[Any],
        transaction: Optional[Any] = None,
    ) -> None:
        """Atomically add values to an array field, skipping ones already present."""

    @abstractmethod
    def array_remove(
        self,
        collection_name: str,
        document_id: str,
        field_name: str,
        values: Sequence[Any],
        transaction: Optional[Any] = None,
    ) -> None:
        """Atomically remove every occurrence of values from an array field."""

    @abstractmethod
    def query_documents(
        self,
        collection_name: str,
        filters: Optional[Sequence[FilterTuple]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Run a filtered query and return document payloads."""

    @abstractmethod
    def run_transaction(self, callback: Callable[[Any], T]) -> T:
        """Run `callback(transaction)` so that its writes commit all-or-nothing."""
