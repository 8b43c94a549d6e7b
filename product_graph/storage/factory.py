"""
Store Factory for the product graph editor.

Creates the configured GraphStore: the console REST API by default, or the
in-process store for offline editing.
"""

import logging
from typing import Optional

from product_graph.auth.session import SessionManager, get_session_manager
from product_graph.config import Settings, get_settings
from product_graph.storage.memory_backend import MemoryGraphStore
from product_graph.storage.protocol import GraphStore
from product_graph.storage.rest_backend import RestGraphStore

logger = logging.getLogger(__name__)

BACKEND_TYPES = ("rest", "memory")


def get_backend_type(settings: Optional[Settings] = None) -> str:
    """Return 'rest' or 'memory' for the given (or current) settings."""
    settings = settings or get_settings()
    return settings.storage_backend


def create_store(
    settings: Optional[Settings] = None,
    session: Optional[SessionManager] = None,
    force_backend: Optional[str] = None,
) -> GraphStore:
    """
    Create a graph store instance.

    Args:
        settings: Resolved settings (defaults to get_settings())
        session: Session providing the bearer token (defaults to the process session)
        force_backend: Override the configured backend type

    Returns:
        GraphStore instance (RestGraphStore or MemoryGraphStore)
    """
    settings = settings or get_settings()
    backend_type = (force_backend or settings.storage_backend).lower()

    if backend_type == "rest":
        logger.info(f"Using REST graph store at {settings.api_url}")
        return RestGraphStore(
            settings.api_url,
            session=session or get_session_manager(),
            timeout=settings.request_timeout,
        )
    if backend_type == "memory":
        logger.info("Using in-memory graph store")
        return MemoryGraphStore()

    raise ValueError(f"Unknown storage backend {backend_type!r}, expected one of {BACKEND_TYPES}")
