"""
Git repository access using pygit2
"""

import contextlib
import logging
from pathlib import Path

import pygit2
from pygit2.enums import FileStatus, SortMode

from keifu.constants import SHORT_ID_LENGTH
from keifu.git_backend.diff import CommitDiffInfo
from keifu.git_backend.types import BranchInfo, CommitInfo, WorkingTreeStatus

logger = logging.getLogger(__name__)

_STAGED = (
    FileStatus.INDEX_NEW
    | FileStatus.INDEX_MODIFIED
    | FileStatus.INDEX_DELETED
    | FileStatus.INDEX_RENAMED
    | FileStatus.INDEX_TYPECHANGE
)
_UNSTAGED = (
    FileStatus.WT_MODIFIED | FileStatus.WT_DELETED | FileStatus.WT_RENAMED | FileStatus.WT_TYPECHANGE
)


def commit_info_from_pygit2(commit: pygit2.Commit) -> CommitInfo:
    """Convert a pygit2 commit into a CommitInfo snapshot."""
    oid = str(commit.id)
    full_message = commit.message or ""
    lines = full_message.splitlines()
    author = commit.author
    return CommitInfo(
        oid=oid,
        short_id=oid[:SHORT_ID_LENGTH],
        author_name=author.name or "Unknown",
        author_email=author.email or "",
        timestamp=commit.commit_time,
        message=lines[0] if lines else "",
        full_message=full_message,
        parent_oids=[str(parent_id) for parent_id in commit.parent_ids],
    )


class KeifuRepository:
    """Reads commit/branch snapshots and resolves objects for git actions"""

    def __init__(self, repo_path: str | None = None) -> None:
        """Open the repository containing repo_path (or the current directory)"""
        git_dir = self._find_repo(repo_path)
        self.repo = pygit2.Repository(git_dir)

    def _find_repo(self, start: str | None) -> str:
        """Find the git directory for start or one of its parents"""
        start_path = Path(start) if start else Path.cwd()
        git_dir = pygit2.discover_repository(str(start_path.resolve()))
        if not git_dir:
            raise ValueError("Not in a git repository")
        return git_dir

    @property
    def path(self) -> str:
        """Working directory, or the git directory for bare repositories"""
        return self.repo.workdir or self.repo.path

    # --- Snapshot ---

    def _tip_oids(self) -> list[pygit2.Oid]:
        """Commit ids of every branch tip plus a detached HEAD"""
        tips: list[pygit2.Oid] = []
        for branch_name in self.repo.branches:
            if branch_name.endswith("/HEAD"):
                continue
            branch = self.repo.branches[branch_name]
            try:
                tips.append(branch.peel(pygit2.Commit).id)
            except (pygit2.GitError, KeyError) as e:
                logger.warning("Skipping branch %s: %s", branch_name, e)

        if not self.repo.head_is_unborn and self.repo.head_is_detached:
            tips.append(self.repo.head.target)
        return tips

    def get_commits(self, max_count: int) -> list[CommitInfo]:
        """Get up to max_count commits reachable from any branch, newest first"""
        tips = self._tip_oids()
        if not tips or max_count <= 0:
            return []

        try:
            walker = self.repo.walk(tips[0], SortMode.TOPOLOGICAL | SortMode.TIME)
            for oid in tips[1:]:
                walker.push(oid)

            commits: list[CommitInfo] = []
            for commit in walker:
                commits.append(commit_info_from_pygit2(commit))
                if len(commits) >= max_count:
                    break
        except pygit2.GitError as e:
            raise ValueError(f"Failed to read history: {e}") from e

        return commits

    def get_branches(self) -> list[BranchInfo]:
        """Get local and remote branches, current branch first, then by name"""
        branches: list[BranchInfo] = []

        for branch_name in self.repo.branches.local:
            branch = self.repo.branches.local[branch_name]
            try:
                tip = str(branch.peel(pygit2.Commit).id)
            except (pygit2.GitError, KeyError) as e:
                logger.warning("Skipping branch %s: %s", branch_name, e)
                continue

            upstream_name = None
            with contextlib.suppress(pygit2.GitError, KeyError):
                upstream = branch.upstream
                if upstream is not None:
                    upstream_name = upstream.branch_name

            branches.append(
                BranchInfo(
                    name=branch_name,
                    tip_oid=tip,
                    is_head=branch.is_head(),
                    is_remote=False,
                    upstream=upstream_name,
                )
            )

        for branch_name in self.repo.branches.remote:
            # origin/HEAD is a symbolic alias of another remote branch
            if branch_name.endswith("/HEAD"):
                continue
            branch = self.repo.branches.remote[branch_name]
            try:
                tip = str(branch.peel(pygit2.Commit).id)
            except (pygit2.GitError, KeyError) as e:
                logger.warning("Skipping remote branch %s: %s", branch_name, e)
                continue
            branches.append(BranchInfo(name=branch_name, tip_oid=tip, is_remote=True))

        branches.sort(key=lambda b: (not b.is_head, b.is_remote, b.name))
        return branches

    def head_name(self) -> str | None:
        """Current branch name, "HEAD" when detached, None when unborn"""
        if self.repo.head_is_unborn:
            return None
        if self.repo.head_is_detached:
            return "HEAD"
        return self.repo.head.shorthand

    def head_ref(self) -> str | None:
        """Branch name HEAD points to, or the commit id when detached"""
        if self.repo.head_is_unborn:
            return None
        if self.repo.head_is_detached:
            return str(self.repo.head.target)
        return self.repo.head.shorthand

    def head_oid(self) -> str | None:
        if self.repo.head_is_unborn:
            return None
        return str(self.repo.head.target)

    def get_working_tree_status(self) -> WorkingTreeStatus | None:
        """Count changed files (staged or not, untracked excluded). None when clean"""
        if self.repo.is_bare:
            return None
        statuses = self.repo.status(untracked_files="no")
        file_count = sum(1 for flags in statuses.values() if flags & (_STAGED | _UNSTAGED))
        if file_count == 0:
            return None
        return WorkingTreeStatus(file_count=file_count)

    # --- Object lookup ---

    def get_commit(self, oid: str) -> pygit2.Commit:
        """Look up a commit by hex id"""
        try:
            obj = self.repo[oid]
        except (KeyError, ValueError):
            raise ValueError(f"Commit {oid[:SHORT_ID_LENGTH]} not found") from None
        if not isinstance(obj, pygit2.Commit):
            raise ValueError(f"{oid[:SHORT_ID_LENGTH]} is not a commit")
        return obj

    def get_branch_head(self, branch_name: str) -> pygit2.Commit:
        """Get the head commit of a branch, local names taking precedence over remote ones"""
        branch = self.repo.branches.local.get(branch_name) or self.repo.branches.remote.get(branch_name)
        if branch is None:
            raise ValueError(f"Branch '{branch_name}' not found")
        return branch.peel(pygit2.Commit)

    def get_commit_diff(self, oid: str) -> CommitDiffInfo:
        return CommitDiffInfo.from_commit(self.repo, self.get_commit(oid))

    def signature(self) -> pygit2.Signature:
        """Signature from git config, used for merge and rebase commits"""
        try:
            return self.repo.default_signature
        except (KeyError, pygit2.GitError):
            raise ValueError("Set user.name and user.email in git config first") from None

    # --- Remotes ---

    def fetch_remotes(self) -> list[str]:
        """Fetch every configured remote. Returns the names fetched"""
        fetched: list[str] = []
        for remote in self.repo.remotes:
            try:
                remote.fetch()
            except pygit2.GitError as e:
                raise ValueError(f"Fetch from '{remote.name}' failed: {e}") from e
            logger.info("Fetched %s", remote.name)
            fetched.append(remote.name)
        return fetched
