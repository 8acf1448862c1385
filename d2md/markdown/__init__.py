"""Markdown parsing and D2 diagram transformation."""

from d2md.markdown.parser import parse_markdown, render_html
from d2md.markdown.transformer import (
    DiagramNode,
    DiagramTransformer,
    find_diagram_nodes,
    transform_diagrams,
)

__all__ = [
    # Parser
    "parse_markdown",
    "render_html",
    # Transformer
    "DiagramNode",
    "DiagramTransformer",
    "find_diagram_nodes",
    "transform_diagrams",
]
