"""Primary API router: service endpoints plus the lending routes."""

import logging
from typing import Optional

from fastapi import APIRouter

from stockset.core import FirebaseClientManager, InMemoryDocumentStore
from stockset.core.config import AppSettings
from stockset.core.document_store import DocumentStore
from stockset.services import build_lending_orchestrator

from .lending_router import build_lending_router


logger = logging.getLogger(__name__)


def _build_store(settings: AppSettings) -> DocumentStore:
    """Return Firestore when enabled and reachable, else the in-memory store."""
    if settings.firebase_enabled:
        try:
            return FirebaseClientManager(
                project_id=settings.firebase_project_id,
                credentials_path=settings.firebase_credentials_path,
            )
        except Exception:
            logger.exception("Failed to initialize Firebase; falling back to in-memory storage.")
    else:
        logger.info("Firebase integration disabled by firebase.enabled=false")
    return InMemoryDocumentStore()


def build_router(settings: AppSettings, store: Optional[DocumentStore] = None) -> APIRouter:
    """Build and return the top-level API router.

    Args:
        settings: Application settings payload.
        store: Document store to use; built from settings when omitted.

    Returns:
        APIRouter: Fully configured router with all endpoints.
    """
    router = APIRouter()
    document_store = store if store is not None else _build_store(settings)
    orchestrator = build_lending_orchestrator(settings, document_store)

    @router.get("/", summary="Root endpoint")
    def read_root() -> dict:
        """Return a basic message confirming service availability."""
        return {"message": "{0} is running".format(settings.app_name)}

    @router.get("/health", summary="Health check")
    def health_check() -> dict:
        """Return service health status for probes and monitors."""
        return {"status": "ok"}

    @router.get("/settings", summary="Settings snapshot")
    def get_settings_snapshot() -> dict:
        """Expose non-sensitive settings."""
        return {
            "app_name": settings.app_name,
            "debug": settings.debug,
            "firebase_enabled": settings.firebase_enabled,
            "storage": type(document_store).__name__,
            "loan_to_value": float(settings.loan_to_value),
            "trust_reward": settings.trust_reward,
            "supported_currencies": sorted(settings.fx_rates.keys()),
        }

    router.include_router(build_lending_router(orchestrator))
    return router
