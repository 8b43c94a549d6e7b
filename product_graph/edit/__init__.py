"""
Editing system for the product relationship graph.

This package provides:
- GraphEditorController: session state, load and save-all round trip
- EditorState: the controller's state machine
- canvas constants shared with the renderer

Usage:
    from product_graph.edit import GraphEditorController, EditorState
"""

from product_graph.edit.constants import (
    NODE_SYMBOL_SIZE,
    EDGE_TYPE_COLORS,
)
from product_graph.edit.controller import (
    GraphEditorController,
    EditorState,
    validate_for_save,
    remote_id_map,
)

__all__ = [
    'GraphEditorController',
    'EditorState',
    'validate_for_save',
    'remote_id_map',
    'NODE_SYMBOL_SIZE',
    'EDGE_TYPE_COLORS',
]
