"""Snapshot types read from the repository."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class CommitInfo:
    """A commit as read from the repository."""

    oid: str
    short_id: str
    author_name: str
    author_email: str
    timestamp: int
    message: str
    full_message: str
    parent_oids: list[str] = field(default_factory=list)

    @property
    def committed_at(self) -> datetime:
        """Commit time in the local timezone."""
        return datetime.fromtimestamp(self.timestamp).astimezone()

    @property
    def is_merge(self) -> bool:
        return len(self.parent_oids) > 1


@dataclass(frozen=True)
class BranchInfo:
    """A local or remote branch pointer."""

    name: str
    tip_oid: str
    is_head: bool = False
    is_remote: bool = False
    upstream: str | None = None


@dataclass(frozen=True)
class WorkingTreeStatus:
    """Uncommitted changes in the working tree (untracked files excluded)."""

    file_count: int
