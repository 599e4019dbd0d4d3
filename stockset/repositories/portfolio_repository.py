"""Document-store implementation of the portfolio repository."""

import logging
from typing import Optional

from stockset.core.document_store import DocumentStore
from stockset.models.portfolios import PortfolioModel
from stockset.models.repositories import PortfolioRepository


logger = logging.getLogger(__name__)


class DocumentPortfolioRepository(PortfolioRepository):
    """Portfolios stored under the owner's user id, giving upsert semantics."""

    def __init__(self, store: DocumentStore, collection_name: str = "portfolios") -> None:
        self._store = store
        self._collection_name = collection_name

    def upsert(self, model: PortfolioModel) -> PortfolioModel:
        try:
            stored = self._store.set_document(
                collection_name=self._collection_name,
                document_id=model.user_id,
                payload=model.to_firestore(),
                merge=False,
            )
            return PortfolioModel.from_firestore(stored, doc_id=model.user_id)
        except Exception:
            logger.exception("Failed to upsert portfolio user_id=%s", model.user_id)
            raise

    def find_by_user(self, user_id: str) -> Optional[PortfolioModel]:
        payload = self._store.get_document(self._collection_name, user_id)
        if payload is None:
            return None
        return PortfolioModel.from_firestore(payload, doc_id=user_id)
