"""
Application state machine.

AppState owns the repository snapshot, the graph layout built from it, the
selection and the current UI mode. Actions from the key bindings are fed to
handle_action(); git failures surface as ValueError and are turned into an
ErrorMode for the UI to display.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from keifu.action import Action, InputChar
from keifu.config.settings import Settings
from keifu.constants import DEFAULT_MAX_COMMITS, PAGE_SIZE
from keifu.git_backend.actions import (
    CheckoutBranchAction,
    CheckoutCommitAction,
    CheckoutRemoteBranchAction,
    CreateBranchAction,
    DeleteBranchAction,
    GitAction,
    MergeAction,
    RebaseAction,
)
from keifu.git_backend.diff import CommitDiffInfo
from keifu.git_backend.repository import KeifuRepository
from keifu.git_backend.types import BranchInfo, CommitInfo, WorkingTreeStatus
from keifu.graph.layout import GraphLayout, GraphNode, build_graph

logger = logging.getLogger(__name__)


class InputPurpose(Enum):
    CREATE_BRANCH = "create_branch"
    SEARCH = "search"


class BranchOperation(Enum):
    CHECKOUT = "checkout"
    DELETE = "delete"
    MERGE = "merge"
    REBASE = "rebase"


_CONFIRM_PROMPTS = {
    BranchOperation.DELETE: "Delete branch '{name}'?",
    BranchOperation.MERGE: "Merge '{name}' into current branch?",
    BranchOperation.REBASE: "Rebase current branch onto '{name}'?",
}

_CHOOSE_TITLES = {
    BranchOperation.CHECKOUT: "Checkout which branch?",
    BranchOperation.DELETE: "Delete which branch?",
    BranchOperation.MERGE: "Merge which branch?",
    BranchOperation.REBASE: "Rebase onto which branch?",
}


@dataclass
class NormalMode:
    pass


@dataclass
class HelpMode:
    pass


@dataclass
class InputMode:
    title: str
    purpose: InputPurpose
    text: str = ""


@dataclass
class ConfirmMode:
    message: str
    operation: BranchOperation
    branch: BranchInfo


@dataclass
class ChooseBranchMode:
    """Pick one of several branches sitting on the selected commit"""

    title: str
    operation: BranchOperation
    choices: list[BranchInfo] = field(default_factory=list)
    index: int = 0

    @property
    def current(self) -> BranchInfo:
        return self.choices[self.index]


@dataclass
class ErrorMode:
    message: str


Mode = NormalMode | HelpMode | InputMode | ConfirmMode | ChooseBranchMode | ErrorMode


class AppState:
    """Repository snapshot, graph layout, selection and UI mode"""

    def __init__(self, repo: KeifuRepository, settings: Settings | None = None) -> None:
        self.repo = repo
        self.max_commits = settings.get_max_commits() if settings is not None else DEFAULT_MAX_COMMITS

        self.mode: Mode = NormalMode()
        self.commits: list[CommitInfo] = []
        self.branches: list[BranchInfo] = []
        self.head_name: str | None = None
        self.head_oid: str | None = None
        self.working_tree: WorkingTreeStatus | None = None
        self.graph_layout = GraphLayout()
        self.selected = 0

        self.should_quit = False
        self.message: str | None = None

        # Single entry: (oid, diff) for the last selected commit
        self._diff_cache: tuple[str, CommitDiffInfo] | None = None

    # --- Snapshot ---

    def refresh(self) -> None:
        """
        Reload commits and branches and rebuild the graph.

        Raises:
            ValueError: if the repository can't be read. The previous
                snapshot and layout are left in place.
        """
        commits = self.repo.get_commits(self.max_commits)
        branches = self.repo.get_branches()
        head_name = self.repo.head_name()
        head_ref = self.repo.head_ref()
        head_oid = self.repo.head_oid()
        working_tree = self.repo.get_working_tree_status()

        layout = build_graph(commits, branches, head=head_ref)

        self.commits = commits
        self.branches = branches
        self.head_name = head_name
        self.head_oid = head_oid
        self.working_tree = working_tree
        self.graph_layout = layout
        self.selected = layout.clamp_row(self.selected)
        logger.debug("Refreshed: %d commits, %d branches, %d lanes", len(commits), len(branches), layout.max_lane + 1)

    def auto_refresh(self) -> None:
        """Timer-driven refresh. Skipped while a dialog is open; failures only log"""
        if not isinstance(self.mode, NormalMode):
            return
        try:
            self.refresh()
        except ValueError as e:
            logger.warning("Auto-refresh failed: %s", e)
            self.message = f"Refresh failed: {e}"

    # --- Selection ---

    def selected_node(self) -> GraphNode | None:
        return self.graph_layout.node_at(self.selected)

    def selected_branches(self) -> list[BranchInfo]:
        """All branches whose tip is the selected commit, in label order"""
        node = self.selected_node()
        if node is None:
            return []
        by_name = {branch.name: branch for branch in self.branches}
        return [by_name[name] for name in node.branch_names if name in by_name]

    def selected_diff(self) -> CommitDiffInfo | None:
        """Changed files of the selected commit, cached for the last commit asked"""
        node = self.selected_node()
        if node is None:
            return None
        oid = node.commit.oid
        if self._diff_cache is not None and self._diff_cache[0] == oid:
            return self._diff_cache[1]
        try:
            diff = self.repo.get_commit_diff(oid)
        except ValueError as e:
            logger.warning("Cannot diff %s: %s", oid, e)
            return None
        self._diff_cache = (oid, diff)
        return diff

    def move_selection(self, delta: int) -> None:
        self.selected = self.graph_layout.clamp_row(self.selected + delta)

    def select_first(self) -> None:
        self.selected = 0

    def select_last(self) -> None:
        self.selected = self.graph_layout.clamp_row(len(self.graph_layout) - 1)

    def jump_to_next_branch(self) -> None:
        row = self.graph_layout.next_labeled_row(self.selected)
        if row is not None:
            self.selected = row

    def jump_to_prev_branch(self) -> None:
        row = self.graph_layout.prev_labeled_row(self.selected)
        if row is not None:
            self.selected = row

    def search(self, query: str) -> bool:
        """
        Select the next commit matching query, wrapping around.

        Matches the subject, author, short id and branch names,
        case-insensitively. The search starts after the current row and
        ends on it.

        Returns:
            True if a match was found
        """
        needle = query.strip().lower()
        nodes = self.graph_layout.nodes
        if not needle or not nodes:
            return False

        for step in range(1, len(nodes) + 1):
            row = (self.selected + step) % len(nodes)
            if self._node_matches(nodes[row], needle):
                self.selected = row
                return True

        self.message = f"No match for '{query.strip()}'"
        return False

    @staticmethod
    def _node_matches(node: GraphNode, needle: str) -> bool:
        commit = node.commit
        fields = [commit.message, commit.author_name, commit.short_id, *node.branch_names]
        return any(needle in value.lower() for value in fields)

    # --- Actions ---

    def handle_action(self, action: Action | InputChar) -> None:
        """Apply an action to the current mode. Git errors switch to ErrorMode"""
        try:
            if isinstance(self.mode, NormalMode):
                self._handle_normal(action)
            elif isinstance(self.mode, HelpMode):
                self._handle_help(action)
            elif isinstance(self.mode, InputMode):
                self._handle_input(self.mode, action)
            elif isinstance(self.mode, ConfirmMode):
                self._handle_confirm(self.mode, action)
            elif isinstance(self.mode, ChooseBranchMode):
                self._handle_choose(self.mode, action)
            elif isinstance(self.mode, ErrorMode):
                self._handle_error(action)
        except ValueError as e:
            logger.error("%s", e)
            self.mode = ErrorMode(str(e))

    def _handle_normal(self, action: Action | InputChar) -> None:  # noqa: PLR0912
        if action == Action.QUIT:
            self.should_quit = True
        elif action == Action.MOVE_UP:
            self.move_selection(-1)
        elif action == Action.MOVE_DOWN:
            self.move_selection(1)
        elif action == Action.PAGE_UP:
            self.move_selection(-PAGE_SIZE)
        elif action == Action.PAGE_DOWN:
            self.move_selection(PAGE_SIZE)
        elif action == Action.GO_TO_TOP:
            self.select_first()
        elif action == Action.GO_TO_BOTTOM:
            self.select_last()
        elif action == Action.NEXT_BRANCH:
            self.jump_to_next_branch()
        elif action == Action.PREV_BRANCH:
            self.jump_to_prev_branch()
        elif action == Action.TOGGLE_HELP:
            self.mode = HelpMode()
        elif action == Action.REFRESH:
            self.refresh()
            self.message = "Refreshed"
        elif action == Action.SEARCH:
            self.mode = InputMode(title="Search", purpose=InputPurpose.SEARCH)
        elif action == Action.CREATE_BRANCH:
            if self.selected_node() is not None:
                self.mode = InputMode(title="New Branch Name", purpose=InputPurpose.CREATE_BRANCH)
        elif action == Action.CHECKOUT:
            self._checkout_selected()
        elif action == Action.DELETE_BRANCH:
            candidates = [b for b in self.selected_branches() if not b.is_remote and not b.is_head]
            self._start_branch_operation(BranchOperation.DELETE, candidates)
        elif action == Action.MERGE:
            candidates = [b for b in self.selected_branches() if not b.is_head]
            self._start_branch_operation(BranchOperation.MERGE, candidates)
        elif action == Action.REBASE:
            candidates = [b for b in self.selected_branches() if not b.is_head]
            self._start_branch_operation(BranchOperation.REBASE, candidates)

    def _handle_help(self, action: Action | InputChar) -> None:
        if action in (Action.TOGGLE_HELP, Action.QUIT, Action.CANCEL):
            self.mode = NormalMode()

    def _handle_input(self, mode: InputMode, action: Action | InputChar) -> None:
        if isinstance(action, InputChar):
            mode.text += action.char
        elif action == Action.INPUT_BACKSPACE:
            mode.text = mode.text[:-1]
        elif action == Action.CANCEL:
            self.mode = NormalMode()
        elif action == Action.CONFIRM:
            self.mode = NormalMode()
            if mode.purpose == InputPurpose.SEARCH:
                self.search(mode.text)
            elif mode.purpose == InputPurpose.CREATE_BRANCH:
                node = self.selected_node()
                if mode.text.strip() and node is not None:
                    self._run(CreateBranchAction(self.repo, mode.text, node.commit.oid))

    def _handle_confirm(self, mode: ConfirmMode, action: Action | InputChar) -> None:
        if action == Action.CONFIRM:
            self.mode = NormalMode()
            self._run(self._make_git_action(mode.operation, mode.branch))
        elif action == Action.CANCEL:
            self.mode = NormalMode()

    def _handle_choose(self, mode: ChooseBranchMode, action: Action | InputChar) -> None:
        if action == Action.MOVE_UP:
            mode.index = max(0, mode.index - 1)
        elif action == Action.MOVE_DOWN:
            mode.index = min(len(mode.choices) - 1, mode.index + 1)
        elif action == Action.CANCEL:
            self.mode = NormalMode()
        elif action == Action.CONFIRM:
            self.mode = NormalMode()
            self._proceed(mode.operation, mode.current)

    def _handle_error(self, action: Action | InputChar) -> None:
        if action == Action.CANCEL:
            self.mode = NormalMode()

    # --- Git operations ---

    def _checkout_selected(self) -> None:
        """Check out the branch at the selected row, or the commit itself"""
        node = self.selected_node()
        if node is None:
            return

        branches = self.selected_branches()
        if not branches:
            self._run(CheckoutCommitAction(self.repo, node.commit.oid))
            return

        candidates = [b for b in branches if not b.is_head]
        if not candidates:
            self.message = f"Already on '{branches[0].name}'"
            return
        self._start_branch_operation(BranchOperation.CHECKOUT, candidates)

    def _start_branch_operation(self, operation: BranchOperation, candidates: list[BranchInfo]) -> None:
        if not candidates:
            self.message = f"No branch to {operation.value} at this commit"
        elif len(candidates) == 1:
            self._proceed(operation, candidates[0])
        else:
            self.mode = ChooseBranchMode(title=_CHOOSE_TITLES[operation], operation=operation, choices=candidates)

    def _proceed(self, operation: BranchOperation, branch: BranchInfo) -> None:
        """Checkout runs immediately, everything else asks first"""
        if operation == BranchOperation.CHECKOUT:
            self._run(self._make_git_action(operation, branch))
        else:
            prompt = _CONFIRM_PROMPTS[operation].format(name=branch.name)
            self.mode = ConfirmMode(message=prompt, operation=operation, branch=branch)

    def _make_git_action(self, operation: BranchOperation, branch: BranchInfo) -> GitAction:
        if operation == BranchOperation.CHECKOUT:
            if branch.is_remote:
                return CheckoutRemoteBranchAction(self.repo, branch.name)
            return CheckoutBranchAction(self.repo, branch.name)
        if operation == BranchOperation.DELETE:
            return DeleteBranchAction(self.repo, branch.name)
        if operation == BranchOperation.MERGE:
            return MergeAction(self.repo, branch.name)
        return RebaseAction(self.repo, branch.name)

    def _run(self, action: GitAction) -> None:
        """Perform a git action and reload the snapshot"""
        action.perform()
        self.message = action.description()
        logger.info("%s", self.message)
        self.refresh()
