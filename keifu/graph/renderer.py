"""Unicode rendering of graph rows."""

from dataclasses import dataclass

from rich.text import Text

from keifu.graph.colors import get_color
from keifu.graph.layout import ConnectionType, GraphNode


@dataclass(frozen=True)
class GraphChars:
    """Glyphs used to draw the graph."""

    vertical: str = "│"
    horizontal: str = "─"
    commit: str = "○"
    commit_selected: str = "●"
    commit_head: str = "◉"
    branch_corner: str = "╮"  # Connector turning down into a new lane on the right
    merge_corner: str = "╭"  # Connector turning down into a new lane on the left
    tee_left: str = "┤"  # Connector joining an active lane from the left
    tee_right: str = "├"  # Connector joining an active lane from the right


DEFAULT_CHARS = GraphChars()


def graph_width(max_lane: int) -> int:
    """Number of terminal cells used by the graph column."""
    return (max_lane + 1) * 2


def _lane_color(node: GraphNode, lane: int) -> str:
    if lane < len(node.lane_colors):
        color = node.lane_colors[lane]
        if color is not None:
            return get_color(color)
    return get_color(node.color_index)


def render_graph_line(
    node: GraphNode,
    max_lane: int,
    is_selected: bool = False,
    chars: GraphChars = DEFAULT_CHARS,
) -> Text:
    """
    Render the graph cells of one row.

    Each lane takes one cell followed by one gap cell. A lane cell is the
    commit glyph, a vertical line for another active lane, a junction where
    a connector lands, or blank. Gap cells carry horizontal connector lines.
    """
    lane = node.lane
    cells: list[tuple[str, str | None]] = []

    # Horizontal spans of non-direct connectors, keyed by the lane they land on
    landings: dict[int, tuple[ConnectionType, int]] = {}
    spans: list[tuple[int, int, int]] = []
    for conn in node.connections:
        if conn.connection_type == ConnectionType.DIRECT:
            continue
        landings[conn.target_lane] = (conn.connection_type, conn.color_index)
        low = min(conn.source_lane, conn.target_lane)
        high = max(conn.source_lane, conn.target_lane)
        spans.append((low, high, conn.color_index))

    for col in range(max_lane + 1):
        active = col < len(node.active_lanes) and node.active_lanes[col]

        if col == lane:
            if node.is_head:
                glyph = chars.commit_head
            elif is_selected:
                glyph = chars.commit_selected
            else:
                glyph = chars.commit
            style = get_color(node.color_index)
            if node.is_head:
                style = f"bold {style}"
            cells.append((glyph, style))
        elif col in landings:
            kind, color = landings[col]
            if active:
                glyph = chars.tee_left if kind == ConnectionType.BRANCH_OUT else chars.tee_right
            else:
                glyph = chars.branch_corner if kind == ConnectionType.BRANCH_OUT else chars.merge_corner
            cells.append((glyph, get_color(color)))
        elif active:
            cells.append((chars.vertical, _lane_color(node, col)))
        else:
            cells.append((" ", None))

        if col < max_lane:
            gap_color = None
            for low, high, color in spans:
                if low <= col < high:
                    gap_color = color
                    break
            if gap_color is not None:
                cells.append((chars.horizontal, get_color(gap_color)))
            else:
                cells.append((" ", None))

    line = Text(no_wrap=True)
    for glyph, style in cells:
        line.append(glyph, style=style)
    return line
