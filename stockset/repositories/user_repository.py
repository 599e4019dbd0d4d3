"""Document-store implementation of the user repository."""

import logging
from typing import Any, Optional

from stockset.core.document_store import DocumentStore
from stockset.models.repositories import UserRepository
from stockset.models.users import UserModel


logger = logging.getLogger(__name__)


class DocumentUserRepository(UserRepository):
    """Persist and fetch user documents keyed by the caller's user id."""

    def __init__(self, store: DocumentStore, collection_name: str = "users") -> None:
        self._store = store
        self._collection_name = collection_name
        logger.info("Initialized DocumentUserRepository collection=%s", collection_name)

    def find(self, user_id: str, transaction: Optional[Any] = None) -> Optional[UserModel]:
        payload = self._store.get_document(self._collection_name, user_id, transaction=transaction)
        if payload is None:
            return None
        return UserModel.from_firestore(payload, doc_id=user_id)

    def save(self, model: UserModel, transaction: Optional[Any] = None) -> UserModel:
        try:
            stored = self._store.set_document(
                collection_name=self._collection_name,
                document_id=model.user_id,
                payload=model.to_firestore(),
                merge=False,
                transaction=transaction,
            )
            return UserModel.from_firestore(stored, doc_id=model.user_id)
        except Exception:
            logger.exception("Failed to save user_id=%s", model.user_id)
            raise
