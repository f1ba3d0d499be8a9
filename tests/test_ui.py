"""Tests for the text produced by the UI panes and the CLI entry point."""

from unittest.mock import MagicMock

import pytest

from keifu.app import AppState, BranchOperation, ChooseBranchMode, ErrorMode, HelpMode, InputMode, InputPurpose, NormalMode
from keifu.git_backend.diff import CommitDiffInfo, FileChangeKind, FileDiffInfo
from keifu.git_backend.repository import KeifuRepository
from keifu.git_backend.types import BranchInfo, CommitInfo, WorkingTreeStatus
from keifu.graph.layout import build_graph
from keifu.main import main, parse_args
from keifu.ui.commit_detail import commit_info_text, file_list_text
from keifu.ui.graph_view import format_row
from keifu.ui.popups import render_dialog
from keifu.ui.status_bar import status_text

COMMIT = CommitInfo(
    oid="0123456789abcdef0123456789abcdef01234567",
    short_id="0123456",
    author_name="Alexandria Quill",
    author_email="aq@example.com",
    timestamp=1700000000,
    message="Teach the graph to merge",
    full_message="Teach the graph to merge\n\nWith details.\n",
    parent_oids=["fedcba9876543210fedcba9876543210fedcba98"],
)


class TestGraphRow:
    def test_row_contents(self):
        layout = build_graph([COMMIT], [BranchInfo(name="main", tip_oid=COMMIT.oid, is_head=True)])
        plain = format_row(layout.nodes[0], layout.max_lane).plain

        assert plain.startswith("◉")
        assert " main " in plain
        assert "0123456" in plain
        assert "Alexandr " in plain
        assert plain.endswith("Teach the graph to merge")

    def test_only_checked_out_label_is_highlighted(self):
        branches = [
            BranchInfo(name="main", tip_oid=COMMIT.oid, is_head=True),
            BranchInfo(name="release", tip_oid=COMMIT.oid),
        ]
        layout = build_graph([COMMIT], branches)
        row = format_row(layout.nodes[0], layout.max_lane, head_branch="main")

        styles = {row.plain[span.start:span.end]: span.style for span in row.spans}
        assert styles[" main "] == "bold black on green"
        assert styles[" release "] == "black on yellow"


class TestCommitDetail:
    def test_commit_info(self):
        plain = commit_info_text(COMMIT).plain
        assert COMMIT.oid in plain
        assert "Alexandria Quill <aq@example.com>" in plain
        assert "Parent: fedcba9" in plain
        assert "With details." in plain

    def test_merge_commit_lists_parents(self):
        merge = CommitInfo(
            oid="1" * 40,
            short_id="1111111",
            author_name="Alexandria Quill",
            author_email="aq@example.com",
            timestamp=1700000000,
            message="Merge branch 'lanes'",
            full_message="Merge branch 'lanes'\n",
            parent_oids=["2" * 40, "3" * 40],
        )
        plain = commit_info_text(merge).plain
        assert "Merge:  2222222, 3333333" in plain
        assert "Parent:" not in plain

    def test_file_list(self):
        diff = CommitDiffInfo(
            files=[FileDiffInfo(path="src/graph.py", kind=FileChangeKind.MODIFIED, insertions=3, deletions=1)],
            total_insertions=3,
            total_deletions=1,
            total_files=1,
        )
        plain = file_list_text(diff).plain
        assert plain.startswith("1 files changed  +3 -1")
        assert "M src/graph.py +3 -1" in plain

    def test_truncated_file_list(self):
        diff = CommitDiffInfo(files=[], total_files=60, truncated=True)
        assert "... and 60 more files" in file_list_text(diff).plain

    def test_missing_diff(self):
        assert file_list_text(None).plain == "(diff unavailable)"


class TestStatusBar:
    @pytest.fixture
    def state(self):
        repo = MagicMock(spec=KeifuRepository)
        repo.path = "/work/project/"
        return AppState(repo)

    def test_branch_and_changes(self, state):
        state.head_name = "main"
        state.working_tree = WorkingTreeStatus(file_count=2)
        state.message = "Refreshed"
        plain = status_text(state, "/work/project/").plain

        assert plain.startswith(" project ")
        assert "main" in plain
        assert "● 2 changed" in plain
        assert "Refreshed" in plain

    def test_detached(self, state):
        state.head_name = "HEAD"
        assert "HEAD (detached)" in status_text(state, "/work/project").plain

    def test_detached_shows_commit(self, state):
        state.head_name = "HEAD"
        state.head_oid = COMMIT.oid
        assert "HEAD (detached at 0123456)" in status_text(state, "/work/project").plain


class TestDialogs:
    def test_normal_mode_has_no_dialog(self):
        assert render_dialog(NormalMode()) is None

    def test_each_mode_renders(self):
        modes = [
            HelpMode(),
            InputMode(title="Search", purpose=InputPurpose.SEARCH, text="abc"),
            ChooseBranchMode(
                title="Merge which branch?",
                operation=BranchOperation.MERGE,
                choices=[BranchInfo(name="a", tip_oid="1"), BranchInfo(name="b", tip_oid="1")],
                index=1,
            ),
            ErrorMode(message="boom"),
        ]
        for mode in modes:
            assert render_dialog(mode) is not None

    def test_choose_marks_current(self):
        mode = ChooseBranchMode(
            title="?",
            operation=BranchOperation.CHECKOUT,
            choices=[BranchInfo(name="a", tip_oid="1"), BranchInfo(name="b", tip_oid="1")],
            index=1,
        )
        assert render_dialog(mode).renderable.plain == "  a\n> b"


class TestCli:
    def test_parse_args(self):
        args = parse_args(["repo", "--max-count", "20", "--no-auto-refresh"])
        assert args.path == "repo"
        assert args.max_count == 20
        assert args.no_auto_refresh

    def test_not_a_repository_exits(self, tmp_path, capsys):
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(SystemExit) as exc:
            main([str(plain), "--config", str(tmp_path / "settings.json")])

        assert exc.value.code == 1
        assert "Not in a git repository" in capsys.readouterr().err
