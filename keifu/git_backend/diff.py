"""Per-commit changed-file statistics."""

from dataclasses import dataclass, field
from enum import Enum

import pygit2
from pygit2.enums import DeltaStatus

from keifu.constants import MAX_FILES_TO_DISPLAY


class FileChangeKind(Enum):
    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"


_DELTA_KINDS = {
    DeltaStatus.ADDED: FileChangeKind.ADDED,
    DeltaStatus.MODIFIED: FileChangeKind.MODIFIED,
    DeltaStatus.DELETED: FileChangeKind.DELETED,
    DeltaStatus.RENAMED: FileChangeKind.RENAMED,
    DeltaStatus.COPIED: FileChangeKind.COPIED,
}


@dataclass
class FileDiffInfo:
    path: str
    kind: FileChangeKind
    insertions: int = 0
    deletions: int = 0


@dataclass
class CommitDiffInfo:
    """Files changed by a commit, capped at MAX_FILES_TO_DISPLAY entries."""

    files: list[FileDiffInfo] = field(default_factory=list)
    total_insertions: int = 0
    total_deletions: int = 0
    total_files: int = 0
    truncated: bool = False

    @classmethod
    def from_commit(cls, repo: pygit2.Repository, commit: pygit2.Commit) -> "CommitDiffInfo":
        """
        Diff a commit against its first parent.

        Merge commits are diffed against their first parent and root commits
        against the empty tree.
        """
        if commit.parents:
            diff = commit.parents[0].tree.diff_to_tree(commit.tree, context_lines=0)
        else:
            diff = commit.tree.diff_to_tree(context_lines=0, swap=True)
        diff.find_similar()
        return cls.from_diff(diff)

    @classmethod
    def from_diff(cls, diff: pygit2.Diff) -> "CommitDiffInfo":
        total_files = len(diff)
        files: list[FileDiffInfo] = []

        for idx in range(min(total_files, MAX_FILES_TO_DISPLAY)):
            patch = diff[idx]
            if patch is None:
                continue
            delta = patch.delta
            if delta.is_binary:
                continue

            kind = _DELTA_KINDS.get(delta.status)
            if kind is None:
                continue

            path = delta.old_file.path if kind == FileChangeKind.DELETED else delta.new_file.path
            _, additions, deletions = patch.line_stats
            files.append(FileDiffInfo(path=path, kind=kind, insertions=additions, deletions=deletions))

        stats = diff.stats
        return cls(
            files=files,
            total_insertions=stats.insertions,
            total_deletions=stats.deletions,
            total_files=total_files,
            truncated=total_files > MAX_FILES_TO_DISPLAY,
        )
