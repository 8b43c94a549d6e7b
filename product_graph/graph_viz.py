"""
Graph visualizer that produces an ECharts-compatible configuration for the
product relationship graph.

The output is a plain dict representing an ECharts option which can be passed
to NiceGUI's ui.echart. Nodes are drawn at their stored positions (no force
layout); edges are directed, coloured by type, widened by weight and labelled
'<type> (<weight>)'.

The returned dict has a single 'graph' series:
  {
    "series": [
      {
        "type": "graph",
        "layout": "none",
        "data": [{"id", "name", "x", "y", ...}],
        "links": [{"id", "source", "target", "value", "label", "lineStyle"}],
        ...
      }
    ]
  }
"""

from typing import Any, Dict

from product_graph.edit.constants import (
    EDGE_MAX_WIDTH,
    EDGE_MIN_WIDTH,
    EDGE_TYPE_COLORS,
    NODE_SYMBOL_SIZE,
)
from product_graph.models import Edge, Graph


class GraphVisualizer:
    """Build an ECharts option dict from a Graph snapshot."""

    default_edge_color = "#9ca3af"

    @staticmethod
    def edge_width(weight: float) -> float:
        return EDGE_MIN_WIDTH + weight * (EDGE_MAX_WIDTH - EDGE_MIN_WIDTH)

    def _link(self, edge: Edge) -> Dict[str, Any]:
        return {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "value": edge.weight,
            "edge_type": edge.type.value,
            "label": {"show": True, "formatter": edge.display_label},
            "lineStyle": {
                "color": EDGE_TYPE_COLORS.get(edge.type.value, self.default_edge_color),
                "width": self.edge_width(edge.weight),
                "curveness": 0.1,
            },
        }

    def generate_echarts(self, graph: Graph) -> Dict[str, Any]:
        data = [
            {
                "id": node.id,
                "name": node.label or node.id,
                "x": node.position.x,
                "y": node.position.y,
                "symbolSize": NODE_SYMBOL_SIZE,
                "label": {"show": True},
            }
            for node in graph.nodes
        ]
        links = [self._link(edge) for edge in graph.edges]

        return {
            "tooltip": {},
            "series": [
                {
                    "type": "graph",
                    "layout": "none",
                    "roam": True,
                    "draggable": False,
                    "edgeSymbol": ["none", "arrow"],
                    "edgeSymbolSize": 10,
                    "data": data,
                    "links": links,
                    "emphasis": {"focus": "adjacency"},
                }
            ],
        }


def build_echarts_option(graph: Graph) -> Dict[str, Any]:
    return GraphVisualizer().generate_echarts(graph)
