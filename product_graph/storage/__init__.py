"""
Storage backend abstraction for the product graph editor.

Supports multiple graph stores:
- RestGraphStore: the operator console REST API (default)
- MemoryGraphStore: in-process store for offline editing and tests
"""

from product_graph.storage.protocol import GraphStore
from product_graph.storage.rest_backend import RestGraphStore
from product_graph.storage.memory_backend import MemoryGraphStore
from product_graph.storage.factory import create_store, get_backend_type

__all__ = [
    'GraphStore',
    'RestGraphStore',
    'MemoryGraphStore',
    'create_store',
    'get_backend_type',
]
