"""Document-store implementation of the group repository."""

import logging
from typing import Any, Optional

from stockset.core.document_store import DocumentStore
from stockset.models.groups import GroupModel
from stockset.models.repositories import GroupRepository


logger = logging.getLogger(__name__)


class DocumentGroupRepository(GroupRepository):
    """Groups whose counters and member sets change only through store transforms."""

    def __init__(self, store: DocumentStore, collection_name: str = "groups") -> None:
        self._store = store
        self._collection_name = collection_name
        logger.info("Initialized DocumentGroupRepository collection=%s", collection_name)

    def create(self, model: GroupModel, transaction: Optional[Any] = None) -> GroupModel:
        try:
            stored = self._store.set_document(
                collection_name=self._collection_name,
                document_id=model.group_id,
                payload=model.to_firestore(),
                merge=False,
                transaction=transaction,
            )
            return GroupModel.from_firestore(stored, doc_id=model.group_id)
        except Exception:
            logger.exception("Failed to create group_id=%s", model.group_id)
            raise

    def find(self, group_id: str, transaction: Optional[Any] = None) -> Optional[GroupModel]:
        payload = self._store.get_document(self._collection_name, group_id, transaction=transaction)
        if payload is None:
            return None
        return GroupModel.from_firestore(payload, doc_id=group_id)

    def add_member(self, group_id: str, user_id: str, transaction: Optional[Any] = None) -> None:
        self._store.array_union(self._collection_name, group_id, "members", [user_id], transaction=transaction)

    def remove_member(self, group_id: str, user_id: str, transaction: Optional[Any] = None) -> None:
        self._store.array_remove(self._collection_name, group_id, "members", [user_id], transaction=transaction)

    def increment_pool(self, group_id: str, amount_minor: int, transaction: Optional[Any] = None) -> None:
        self._store.increment_field(
            self._collection_name,
            group_id,
            "insurance_pool_minor",
            int(amount_minor),
            transaction=transaction,
        )

    def increment_trust(self, group_id: str, delta: int, transaction: Optional[Any] = None) -> None:
        self._store.increment_field(
            self._collection_name,
            group_id,
            "trust_score",
            int(delta),
            transaction=transaction,
        )
