"""Core utilities for configuration, logging and document storage."""

from .config import AppSettings, load_settings
from .document_store import DocumentStore
from .logging_config import get_logger, setup_logging
from .memory_store import InMemoryDocumentStore
from .firebase_client_manager import FirebaseClientManager

__all__ = [
    "AppSettings",
    "load_settings",
    "DocumentStore",
    "InMemoryDocumentStore",
    "FirebaseClientManager",
    "get_logger",
    "setup_logging",
]
