"""
Git actions triggered from the commit graph.

Each action is a class with perform() and description() methods. Failures
are raised as ValueError with a message suitable for showing to the user.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import pygit2
from pygit2.enums import MergeAnalysis, SortMode

from keifu.constants import SHORT_ID_LENGTH
from keifu.git_backend.repository import KeifuRepository

logger = logging.getLogger(__name__)


class GitAction(ABC):
    """Base class for git actions."""

    @abstractmethod
    def perform(self) -> None:
        """Execute the action."""
        ...

    @abstractmethod
    def description(self) -> str:
        """Human-readable description of the action."""
        ...


def _conflict_paths(index: pygit2.Index) -> list[str]:
    """Sorted paths of conflicting entries in an index"""
    paths: set[str] = set()
    if index.conflicts is None:
        return []
    for conflict in index.conflicts:
        # conflict is a tuple of (ancestor, ours, theirs) IndexEntry objects
        for entry in conflict:
            if entry is not None:
                paths.add(entry.path)
    return sorted(paths)


def _format_paths(paths: list[str], limit: int = 5) -> str:
    shown = ", ".join(paths[:limit])
    if len(paths) > limit:
        shown += f", ... ({len(paths) - limit} more)"
    return shown


def _checkout_reference(repo: pygit2.Repository, ref: pygit2.Reference) -> None:
    try:
        repo.checkout(ref)
    except pygit2.GitError as e:
        raise ValueError(f"Checkout failed: {e}") from e


@dataclass
class CheckoutBranchAction(GitAction):
    """Check out a local branch."""

    repo: KeifuRepository
    branch_name: str

    def perform(self) -> None:
        try:
            branch = self.repo.repo.branches.local[self.branch_name]
        except KeyError:
            raise ValueError(f"Branch '{self.branch_name}' not found") from None
        _checkout_reference(self.repo.repo, branch)
        logger.info("Checked out %s", self.branch_name)

    def description(self) -> str:
        return f"Checked out '{self.branch_name}'"


@dataclass
class CheckoutRemoteBranchAction(GitAction):
    """
    Check out a remote branch through a local branch of the same name.

    origin/feature becomes local feature: it is checked out as-is when it
    already points at the remote tip, moved to the remote tip when it
    differs, or created with upstream tracking when it doesn't exist.
    """

    repo: KeifuRepository
    remote_name: str
    local_name: str = ""  # Filled after perform()

    def perform(self) -> None:
        git = self.repo.repo
        try:
            remote_branch = git.branches.remote[self.remote_name]
        except KeyError:
            raise ValueError(f"Remote branch '{self.remote_name}' not found") from None

        _, sep, local_name = self.remote_name.partition("/")
        if not sep or not local_name:
            raise ValueError(f"Invalid remote branch name: {self.remote_name}")
        self.local_name = local_name

        remote_commit = remote_branch.peel(pygit2.Commit)
        local = git.branches.local.get(local_name)

        try:
            if local is None:
                local = git.branches.local.create(local_name, remote_commit)
                local.upstream = remote_branch
                logger.info("Created %s tracking %s", local_name, self.remote_name)
            elif local.peel(pygit2.Commit).id != remote_commit.id:
                local = git.branches.local.create(local_name, remote_commit, force=True)
                logger.info("Moved %s to %s", local_name, self.remote_name)
        except pygit2.GitError as e:
            raise ValueError(f"Cannot update '{local_name}': {e}") from e

        _checkout_reference(git, local)

    def description(self) -> str:
        return f"Checked out '{self.local_name or self.remote_name}'"


@dataclass
class CheckoutCommitAction(GitAction):
    """Check out a commit, leaving HEAD detached."""

    repo: KeifuRepository
    oid: str

    def perform(self) -> None:
        commit = self.repo.get_commit(self.oid)
        try:
            self.repo.repo.checkout_tree(commit)
        except pygit2.GitError as e:
            raise ValueError(f"Checkout failed: {e}") from e
        self.repo.repo.set_head(commit.id)
        logger.info("Detached HEAD at %s", self.oid)

    def description(self) -> str:
        return f"Checked out {self.oid[:SHORT_ID_LENGTH]} (detached)"


@dataclass
class CreateBranchAction(GitAction):
    """Create a local branch at a commit."""

    repo: KeifuRepository
    branch_name: str
    oid: str

    def perform(self) -> None:
        name = self.branch_name.strip()
        if not name:
            raise ValueError("Branch name cannot be empty")
        commit = self.repo.get_commit(self.oid)
        try:
            self.repo.repo.branches.local.create(name, commit)
        except pygit2.AlreadyExistsError:
            raise ValueError(f"Branch '{name}' already exists") from None
        except (pygit2.GitError, ValueError) as e:
            raise ValueError(f"Failed to create branch '{name}': {e}") from e
        logger.info("Created branch %s at %s", name, self.oid)

    def description(self) -> str:
        return f"Created branch '{self.branch_name.strip()}'"


@dataclass
class DeleteBranchAction(GitAction):
    """Delete a local branch. The current branch cannot be deleted."""

    repo: KeifuRepository
    branch_name: str

    def perform(self) -> None:
        try:
            branch = self.repo.repo.branches.local[self.branch_name]
        except KeyError:
            raise ValueError(f"Branch '{self.branch_name}' not found") from None
        if branch.is_head():
            raise ValueError("Cannot delete the current branch")
        try:
            branch.delete()
        except pygit2.GitError as e:
            raise ValueError(f"Failed to delete '{self.branch_name}': {e}") from e
        logger.info("Deleted branch %s", self.branch_name)

    def description(self) -> str:
        return f"Deleted branch '{self.branch_name}'"


@dataclass
class MergeAction(GitAction):
    """
    Merge a branch into HEAD.

    Fast-forwards when possible, otherwise creates a merge commit with two
    parents: the previous HEAD and the branch tip. Conflicts are left in the
    index for manual resolution and reported as an error.
    """

    repo: KeifuRepository
    branch_name: str
    outcome: str = ""  # Filled after perform()

    def perform(self) -> None:
        git = self.repo.repo
        if git.head_is_unborn:
            raise ValueError("Cannot merge into an empty branch")

        their_commit = self.repo.get_branch_head(self.branch_name)
        analysis, _ = git.merge_analysis(their_commit.id)

        if analysis & MergeAnalysis.UP_TO_DATE:
            self.outcome = "Already up to date"
            return

        if analysis & MergeAnalysis.FASTFORWARD:
            try:
                git.checkout_tree(their_commit)
            except pygit2.GitError as e:
                raise ValueError(f"Fast-forward failed: {e}") from e
            git.head.set_target(their_commit.id, f"merge {self.branch_name}: Fast-forward")
            self.outcome = f"Fast-forwarded to '{self.branch_name}'"
            logger.info("Fast-forwarded HEAD to %s", self.branch_name)
            return

        if not analysis & MergeAnalysis.NORMAL:
            raise ValueError(f"Cannot merge '{self.branch_name}'")

        try:
            git.merge(their_commit.id)
        except pygit2.GitError as e:
            raise ValueError(f"Merge failed: {e}") from e

        conflict_paths = _conflict_paths(git.index)
        if conflict_paths:
            logger.warning("Merge of %s conflicts in %s", self.branch_name, conflict_paths)
            raise ValueError(
                f"Merge has conflicts in: {_format_paths(conflict_paths)}. Resolve them manually"
            )

        signature = self.repo.signature()
        tree_oid = git.index.write_tree()
        git.create_commit(
            "HEAD",
            signature,
            signature,
            f"Merge branch '{self.branch_name}'",
            tree_oid,
            [git.head.target, their_commit.id],  # Two parents for merge
        )
        git.state_cleanup()
        self.outcome = f"Merged '{self.branch_name}'"
        logger.info("Merged %s into HEAD", self.branch_name)

    def description(self) -> str:
        return self.outcome or f"Merged '{self.branch_name}'"


@dataclass
class RebaseAction(GitAction):
    """
    Rebase HEAD onto a branch.

    Commits reachable from HEAD but not from the target are replayed on top
    of it with three-way tree merges, oldest first. Merge commits are
    dropped, as plain `git rebase` does. Nothing is checked out and no ref
    moves until every commit has replayed cleanly, so a conflict leaves the
    repository as it was.
    """

    repo: KeifuRepository
    onto_branch: str
    replayed: int = 0  # Filled after perform()

    def _commits_to_replay(self, head: pygit2.Commit, onto: pygit2.Commit) -> list[pygit2.Commit]:
        walker = self.repo.repo.walk(head.id, SortMode.TOPOLOGICAL | SortMode.REVERSE)
        walker.hide(onto.id)
        return [commit for commit in walker if len(commit.parents) == 1]

    def perform(self) -> None:
        git = self.repo.repo
        if git.head_is_unborn:
            raise ValueError("Cannot rebase an empty branch")

        onto = self.repo.get_branch_head(self.onto_branch)
        head = git.head.peel(pygit2.Commit)

        merge_base = git.merge_base(head.id, onto.id)
        if merge_base is None:
            raise ValueError(f"No common ancestor with '{self.onto_branch}'")
        if merge_base == onto.id:
            # onto is already in HEAD's history
            return

        committer = self.repo.signature()
        tip = onto
        for commit in self._commits_to_replay(head, onto):
            index = git.merge_trees(ancestor=commit.parents[0].tree, ours=tip.tree, theirs=commit.tree)
            conflict_paths = _conflict_paths(index)
            if conflict_paths:
                raise ValueError(
                    f"Rebase stopped at {commit.short_id}: conflicts in "
                    f"{_format_paths(conflict_paths)}. Nothing was changed"
                )

            tree_oid = index.write_tree(git)
            if tree_oid == tip.tree.id:
                # Change already present upstream
                continue

            new_oid = git.create_commit(None, commit.author, committer, commit.message, tree_oid, [tip.id])
            new_commit = git.get(new_oid)
            assert isinstance(new_commit, pygit2.Commit)
            tip = new_commit
            self.replayed += 1

        try:
            git.checkout_tree(tip)
        except pygit2.GitError as e:
            raise ValueError(f"Rebase failed: {e}") from e

        if git.head_is_detached:
            git.set_head(tip.id)
        else:
            git.head.set_target(tip.id, f"rebase onto {self.onto_branch}")
        logger.info("Rebased %d commit(s) onto %s", self.replayed, self.onto_branch)

    def description(self) -> str:
        return f"Rebased onto '{self.onto_branch}'"
