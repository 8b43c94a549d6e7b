"""
Session Management for the product graph editor.

Holds the admin bearer token used by the REST store. The token is seeded from
configuration and dropped when the backend answers 401, matching the console's
behaviour of forgetting the token and sending the operator back to login.
"""

import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class SessionManager:
    """Token-based session store."""

    def __init__(self, token: Optional[str] = None):
        self._token = token or None
        self._on_expired: List[Callable[[], None]] = []

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def get_session_token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token or None
        logger.info(f"Session token {'set' if self._token else 'cleared'}")

    def auth_headers(self) -> dict:
        """Authorization header for the current token, or {} when logged out."""
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def on_expired(self, callback: Callable[[], None]) -> None:
        """Register a callback fired when the backend rejects the token."""
        self._on_expired.append(callback)

    def expire(self) -> None:
        """Drop the token after a 401 and notify listeners."""
        if self._token is None:
            return
        logger.warning("Session token rejected by backend, clearing it")
        self._token = None
        for callback in self._on_expired:
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in session expiry callback: {e}")


_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Process-wide SessionManager, seeded from settings on first use."""
    global _session_manager
    if _session_manager is None:
        from product_graph.config import get_settings
        _session_manager = SessionManager(token=get_settings().admin_token)
    return _session_manager


def configure_session_manager(token: Optional[str] = None) -> SessionManager:
    """Replace the process-wide SessionManager (used by app start-up and tests)."""
    global _session_manager
    _session_manager = SessionManager(token=token)
    return _session_manager
