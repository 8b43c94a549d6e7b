"""
Authentication module for the product graph editor.

Provides the token session store used to authenticate REST requests.
"""

from product_graph.auth.session import SessionManager, get_session_manager, configure_session_manager

__all__ = [
    'SessionManager',
    'get_session_manager',
    'configure_session_manager',
]
