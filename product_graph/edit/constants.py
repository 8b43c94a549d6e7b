"""
Shared constants for the graph editing canvas.

Used by the ECharts option builder (graph_viz) and the NiceGUI page (app.py).
"""

NODE_SYMBOL_SIZE = 36

# Line colour per edge type
EDGE_TYPE_COLORS = {
    "similar": "#3b82f6",
    "related": "#a855f7",
    "combo": "#f59e0b",
}

# Line width is MIN + weight * (MAX - MIN)
EDGE_MIN_WIDTH = 1.0
EDGE_MAX_WIDTH = 6.0
