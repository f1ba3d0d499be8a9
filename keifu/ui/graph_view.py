"""Commit graph list: one row per commit with graph, labels and summary"""

from rich.text import Text
from textual.widget import Widget

from keifu.app import AppState
from keifu.graph.layout import GraphNode
from keifu.graph.renderer import graph_width, render_graph_line

AUTHOR_WIDTH = 8
SELECTED_STYLE = "on grey23"


def format_row(
    node: GraphNode, max_lane: int, is_selected: bool = False, head_branch: str | None = None
) -> Text:
    """Graph cells, branch labels, short id, author, date and subject of one commit.

    Only the label named head_branch gets the checked-out style.
    """
    line = render_graph_line(node, max_lane, is_selected)
    line.pad_right(graph_width(max_lane) - line.cell_len)
    line.append(" ")

    for name in node.branch_names:
        label_style = "bold black on green" if name == head_branch else "black on yellow"
        line.append(f" {name} ", style=label_style)
        line.append(" ")

    commit = node.commit
    line.append(commit.short_id, style="yellow")
    line.append(" ")
    line.append(f"{commit.author_name[:AUTHOR_WIDTH]:<{AUTHOR_WIDTH}}", style="blue")
    line.append(" ")
    line.append(commit.committed_at.strftime("%m-%d"), style="bright_black")
    line.append(" ")
    line.append(commit.message, style="bold" if is_selected else None)
    return line


class GraphView(Widget):
    """Scrolling view over the graph layout that keeps the selection visible"""

    DEFAULT_CSS = """
    GraphView {
        height: 70%;
        border: round $accent;
    }
    """

    def __init__(self, state: AppState, **kwargs) -> None:
        super().__init__(**kwargs)
        self.state = state
        self.offset_row = 0

    def _visible_rows(self, height: int) -> range:
        total = len(self.state.graph_layout)
        selected = self.state.selected
        if selected < self.offset_row:
            self.offset_row = selected
        elif selected >= self.offset_row + height:
            self.offset_row = selected - height + 1
        self.offset_row = max(0, min(self.offset_row, max(0, total - height)))
        return range(self.offset_row, min(total, self.offset_row + height))

    def render(self) -> Text:
        layout = self.state.graph_layout
        if not layout.nodes:
            return Text("No commits", style="bright_black")

        lines: list[Text] = []
        for row in self._visible_rows(max(1, self.content_size.height)):
            is_selected = row == self.state.selected
            line = format_row(layout.nodes[row], layout.max_lane, is_selected, self.state.head_name)
            if is_selected:
                line.stylize(SELECTED_STYLE)
            lines.append(line)
        return Text("\n").join(lines)
