"""Commit graph layout, colors and rendering."""

from keifu.graph.colors import ColorAssigner, get_color
from keifu.graph.layout import Connection, ConnectionType, GraphLayout, GraphNode, build_graph

__all__ = [
    "ColorAssigner",
    "Connection",
    "ConnectionType",
    "GraphLayout",
    "GraphNode",
    "build_graph",
    "get_color",
]
