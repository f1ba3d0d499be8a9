"""One-line status bar: repository, current branch, working tree and last message"""

from pathlib import Path

from rich.text import Text
from textual.widget import Widget

from keifu.app import AppState
from keifu.constants import SHORT_ID_LENGTH


def status_text(state: AppState, repo_path: str) -> Text:
    text = Text(no_wrap=True)
    text.append(f" {Path(repo_path).name or repo_path} ", style="bold black on cyan")
    text.append(" ")

    if state.head_name is None:
        text.append("(no commits)", style="bright_black")
    elif state.head_name == "HEAD":
        detached = "HEAD (detached)"
        if state.head_oid:
            detached = f"HEAD (detached at {state.head_oid[:SHORT_ID_LENGTH]})"
        text.append(detached, style="bold red")
    else:
        text.append(state.head_name, style="bold green")

    if state.working_tree is not None:
        text.append(f"  ● {state.working_tree.file_count} changed", style="yellow")

    if state.message:
        text.append(f"  {state.message}")

    text.append("  ?: help  q: quit", style="bright_black")
    return text


class StatusBar(Widget):
    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        dock: bottom;
    }
    """

    def __init__(self, state: AppState, **kwargs) -> None:
        super().__init__(**kwargs)
        self.state = state

    def render(self) -> Text:
        return status_text(self.state, self.state.repo.path)
