"""Commit detail pane: metadata and message on the left, changed files on the right"""

from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from textual.widget import Widget

from keifu.app import AppState
from keifu.constants import SHORT_ID_LENGTH
from keifu.git_backend.diff import CommitDiffInfo, FileChangeKind
from keifu.git_backend.types import CommitInfo

_KIND_STYLES = {
    FileChangeKind.ADDED: "green",
    FileChangeKind.MODIFIED: "yellow",
    FileChangeKind.DELETED: "red",
    FileChangeKind.RENAMED: "cyan",
    FileChangeKind.COPIED: "cyan",
}


def commit_info_text(commit: CommitInfo) -> Text:
    text = Text()
    text.append("Commit: ", style="bold")
    text.append(commit.oid, style="yellow")
    text.append("\nAuthor: ", style="bold")
    text.append(f"{commit.author_name} <{commit.author_email}>", style="blue")
    text.append("\nDate:   ", style="bold")
    text.append(commit.committed_at.strftime("%Y-%m-%d %H:%M:%S"), style="bright_black")
    if commit.parent_oids:
        text.append("\nMerge:  " if commit.is_merge else "\nParent: ", style="bold")
        text.append(", ".join(oid[:SHORT_ID_LENGTH] for oid in commit.parent_oids), style="bright_black")
    text.append("\n\n")
    text.append(commit.full_message.rstrip("\n"))
    return text


def file_list_text(diff: CommitDiffInfo | None) -> Text:
    if diff is None:
        return Text("(diff unavailable)", style="bright_black")

    text = Text()
    text.append(f"{diff.total_files} files changed", style="bold")
    text.append("  ")
    text.append(f"+{diff.total_insertions}", style="green")
    text.append(" ")
    text.append(f"-{diff.total_deletions}", style="red")

    for file in diff.files:
        text.append("\n")
        text.append(file.kind.value, style=_KIND_STYLES[file.kind])
        text.append(f" {file.path} ")
        text.append(f"+{file.insertions}", style="green")
        text.append(" ")
        text.append(f"-{file.deletions}", style="red")

    if diff.truncated:
        text.append(f"\n... and {diff.total_files - len(diff.files)} more files", style="bright_black")
    return text


class CommitDetail(Widget):
    DEFAULT_CSS = """
    CommitDetail {
        height: 1fr;
    }
    """

    def __init__(self, state: AppState, **kwargs) -> None:
        super().__init__(**kwargs)
        self.state = state

    def render(self) -> RenderableType:
        node = self.state.selected_node()
        if node is None:
            return Panel(Text("Select a commit", style="bright_black"), title="Commit")

        grid = Table.grid(expand=True)
        grid.add_column(ratio=1)
        grid.add_column(ratio=1)
        grid.add_row(
            Panel(commit_info_text(node.commit), title="Commit", border_style="bright_black"),
            Panel(file_list_text(self.state.selected_diff()), title="Files", border_style="bright_black"),
        )
        return grid
