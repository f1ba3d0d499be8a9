"""
Textual application hosting the graph, detail pane, dialogs and status bar.

All repository reads and git operations go through AppState on the UI
thread. Remote fetches run in a thread worker on their own repository
handle and request a normal refresh when done.
"""

import logging

from textual import events, work
from textual.app import App, ComposeResult
from textual.widgets import Static

from keifu.app import AppState, NormalMode
from keifu.config.settings import Settings
from keifu.git_backend.repository import KeifuRepository
from keifu.keybindings import map_key_to_action
from keifu.ui.commit_detail import CommitDetail
from keifu.ui.graph_view import GraphView
from keifu.ui.popups import render_dialog
from keifu.ui.status_bar import StatusBar

logger = logging.getLogger(__name__)


class KeifuApp(App):
    TITLE = "keifu"
    CSS = """
    Screen {
        overflow: hidden;
        layers: base overlay;
    }
    #dialog {
        dock: top;
        margin: 2 8;
        display: none;
        layer: overlay;
    }
    """
    # Every key goes through map_key_to_action
    ENABLE_COMMAND_PALETTE = False

    def __init__(self, state: AppState, settings: Settings, **kwargs) -> None:
        super().__init__(**kwargs)
        self.state = state
        self.settings = settings

    def compose(self) -> ComposeResult:
        yield Static(id="dialog")
        yield GraphView(self.state, id="graph")
        yield CommitDetail(self.state, id="detail")
        yield StatusBar(self.state, id="status")

    def on_mount(self) -> None:
        if self.settings.get_auto_refresh():
            self.set_interval(self.settings.get_refresh_interval(), self.auto_refresh)
        if self.settings.get_auto_fetch():
            self.set_interval(self.settings.get_fetch_interval(), self.fetch_remotes)
        self.sync_view()

    def on_key(self, event: events.Key) -> None:
        action = map_key_to_action(event.key, event.character, self.state.mode)
        if action is None:
            return
        event.stop()
        event.prevent_default()

        self.state.handle_action(action)
        if self.state.should_quit:
            self.exit()
            return
        self.sync_view()

    def sync_view(self) -> None:
        """Redraw every pane from the current state"""
        graph = self.query_one(GraphView)
        graph.border_title = f"Commits ({len(self.state.graph_layout)})"
        graph.refresh()
        self.query_one(CommitDetail).refresh()
        self.query_one(StatusBar).refresh()

        dialog = self.query_one("#dialog", Static)
        panel = render_dialog(self.state.mode)
        if panel is None:
            dialog.display = False
        else:
            dialog.update(panel)
            dialog.display = True

    def auto_refresh(self) -> None:
        self.state.auto_refresh()
        if isinstance(self.state.mode, NormalMode):
            self.sync_view()

    @work(thread=True, exclusive=True, group="fetch")
    def fetch_remotes(self) -> None:
        # pygit2 repositories aren't shared across threads
        try:
            fetched = KeifuRepository(self.state.repo.path).fetch_remotes()
        except ValueError as e:
            logger.warning("Auto-fetch failed: %s", e)
            return
        if fetched:
            self.call_from_thread(self.auto_refresh)
