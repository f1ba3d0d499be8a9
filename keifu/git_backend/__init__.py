"""Git backend for reading repository state and running git operations"""

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
from keifu.git_backend.repository import KeifuRepository
from keifu.git_backend.types import BranchInfo, CommitInfo, WorkingTreeStatus

__all__ = [
    "BranchInfo",
    "CheckoutBranchAction",
    "CheckoutCommitAction",
    "CheckoutRemoteBranchAction",
    "CommitInfo",
    "CreateBranchAction",
    "DeleteBranchAction",
    "GitAction",
    "KeifuRepository",
    "MergeAction",
    "RebaseAction",
    "WorkingTreeStatus",
]
