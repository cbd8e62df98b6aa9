"""
Default grid layout for backend_map graph nodes.
"""

from __future__ import annotations

import math

from backend_map.models import Position, ScannedFile

NODE_WIDTH = 220
NODE_HEIGHT = 120
SPACING = 50


def layout(
    files: list[ScannedFile],
    node_width: int = NODE_WIDTH,
    node_height: int = NODE_HEIGHT,
    spacing: int = SPACING,
) -> list[Position]:
    """
    Place files on a square-ish grid, row by row, in list order.

    Args:
        files: Files to place.
        node_width: Width of one node.
        node_height: Height of one node.
        spacing: Gap between nodes.

    Returns:
        One Position per file, in the same order. Empty for an empty list.
    """
    if not files:
        return []

    cols = math.ceil(math.sqrt(len(files)))
    positions = []
    for index in range(len(files)):
        row, col = divmod(index, cols)
        positions.append(Position(
            x=col * (node_width + spacing),
            y=row * (node_height + spacing),
        ))
    return positions
