"""
Tests for build_graph - lane allocation and connector routing.

These tests cover:
- Linear, merge and fork histories
- Lane reuse after a lane ends
- Parents outside the commit window
- Branch labels and HEAD marking
- Navigation queries on GraphLayout
"""

import pytest

from keifu.git_backend.types import BranchInfo, CommitInfo
from keifu.graph.colors import MAIN_LANE_COLOR, ColorAssigner
from keifu.graph.layout import ConnectionType, GraphLayout, build_graph


def make_commit(oid: str, parents: list[str] | None = None, message: str = "", author: str = "Alice") -> CommitInfo:
    return CommitInfo(
        oid=oid,
        short_id=oid[:7],
        author_name=author,
        author_email=f"{author.lower()}@example.com",
        timestamp=1700000000,
        message=message or f"commit {oid}",
        full_message=message or f"commit {oid}",
        parent_oids=parents or [],
    )


def linear(count: int) -> list[CommitInfo]:
    oids = [f"c{i}" for i in range(count)]
    return [make_commit(oid, [oids[i + 1]] if i + 1 < count else []) for i, oid in enumerate(oids)]


@pytest.fixture
def merge_history() -> list[CommitInfo]:
    """M merges P2 into P1; both come from base"""
    return [
        make_commit("M", ["P1", "P2"]),
        make_commit("P1", ["base"]),
        make_commit("P2", ["base"]),
        make_commit("base"),
    ]


class TestLinearHistory:
    """A single chain of commits stays in lane 0"""

    def test_empty_input(self):
        layout = build_graph([], [])
        assert layout.nodes == []
        assert layout.max_lane == 0

    def test_three_commits(self):
        layout = build_graph(linear(3), [])

        assert [node.lane for node in layout.nodes] == [0, 0, 0]
        assert layout.max_lane == 0
        assert [len(node.connections) for node in layout.nodes] == [1, 1, 0]
        for node in layout.nodes[:2]:
            conn = node.connections[0]
            assert conn.connection_type == ConnectionType.DIRECT
            assert conn.source_lane == conn.target_lane == 0

    @pytest.mark.parametrize("count", [1, 2, 50])
    def test_any_length_uses_one_lane(self, count):
        layout = build_graph(linear(count), [])
        assert layout.max_lane == 0
        assert all(node.active_lanes == [True] for node in layout.nodes)

    def test_rows_follow_input_order(self):
        commits = linear(4)
        layout = build_graph(commits, [])
        assert [node.commit.oid for node in layout.nodes] == [c.oid for c in commits]
        assert [node.row for node in layout.nodes] == [0, 1, 2, 3]


class TestMerges:
    """Merge commits open lanes for their extra parents"""

    def test_merge_routes_second_parent_right(self, merge_history):
        layout = build_graph(merge_history, [])
        merge = layout.nodes[0]

        assert merge.lane == 0
        first, second = merge.connections
        assert first.target_oid == "P1"
        assert first.connection_type == ConnectionType.DIRECT
        assert second.target_oid == "P2"
        assert second.target_lane == 1
        assert second.connection_type == ConnectionType.BRANCH_OUT

    def test_side_branch_merges_back_in(self, merge_history):
        layout = build_graph(merge_history, [])
        p1, p2, base = layout.nodes[1:]

        assert p1.lane == 0
        assert p2.lane == 1
        assert p2.connections[0].target_lane == 0
        assert p2.connections[0].connection_type == ConnectionType.MERGE_IN
        assert base.lane == 0
        assert layout.max_lane == 1

    def test_active_lane_snapshots(self, merge_history):
        layout = build_graph(merge_history, [])
        assert [node.active_lanes for node in layout.nodes] == [
            [True, False],
            [True, True],
            [True, True],
            [True, False],
        ]

    def test_octopus_parents_get_distinct_colors(self):
        commits = [
            make_commit("M", ["A", "B", "C"]),
            make_commit("A", ["base"]),
            make_commit("B", ["base"]),
            make_commit("C", ["base"]),
            make_commit("base"),
        ]
        layout = build_graph(commits, [])
        conns = layout.nodes[0].connections

        assert [c.target_lane for c in conns] == [0, 1, 2]
        assert conns[1].color_index != conns[2].color_index
        assert layout.max_lane == 2

    def test_parent_already_pending_is_joined(self):
        """Two children of one parent converge on the lane already waiting for it"""
        commits = [
            make_commit("feature", ["base"]),
            make_commit("main", ["base"]),
            make_commit("base"),
        ]
        layout = build_graph(commits, [])
        feature, main, base = layout.nodes

        assert feature.lane == 0
        assert main.lane == 1
        assert main.connections[0].target_lane == 0
        assert main.connections[0].connection_type == ConnectionType.MERGE_IN
        assert base.lane == 0


class TestLaneReuse:
    def test_freed_lane_is_reused(self):
        """After a side lane ends, the next new lane takes its index again"""
        commits = [
            make_commit("M2", ["M1", "S2"]),
            make_commit("S2", ["M1"]),
            make_commit("M1", ["M0", "S1"]),
            make_commit("S1", ["M0"]),
            make_commit("M0"),
        ]
        layout = build_graph(commits, [])

        assert layout.nodes[1].lane == 1
        assert layout.nodes[3].lane == 1
        assert layout.max_lane == 1

    def test_lane_never_holds_two_pending_parents(self):
        commits = [
            make_commit("A", ["B", "C"]),
            make_commit("D", ["C"]),
            make_commit("B", ["E"]),
            make_commit("C", ["E"]),
            make_commit("E"),
        ]
        layout = build_graph(commits, [])

        for node in layout.nodes:
            targets: dict[int, str] = {}
            for conn in node.connections:
                assert targets.setdefault(conn.target_lane, conn.target_oid) == conn.target_oid

    def test_widths_cover_max_lane(self):
        commits = [
            make_commit("A", ["B", "C"]),
            make_commit("C", ["D"]),
            make_commit("B", ["D"]),
            make_commit("D"),
        ]
        layout = build_graph(commits, [])
        for node in layout.nodes:
            assert len(node.active_lanes) >= layout.max_lane + 1
            assert len(node.lane_colors) == len(node.active_lanes)
            assert node.lane <= layout.max_lane
            for conn in node.connections:
                assert conn.target_lane <= layout.max_lane


class TestWindowEdges:
    def test_parent_outside_window_is_dropped(self):
        layout = build_graph([make_commit("A", ["missing"])], [])
        assert layout.nodes[0].connections == []

    def test_merge_with_missing_second_parent(self):
        layout = build_graph([make_commit("A", ["B", "gone"]), make_commit("B")], [])
        assert [c.target_oid for c in layout.nodes[0].connections] == ["B"]
        assert layout.max_lane == 0

    def test_branch_tip_outside_window_has_no_label(self):
        branches = [BranchInfo(name="old", tip_oid="elsewhere")]
        layout = build_graph(linear(2), branches)
        assert all(node.branch_names == [] for node in layout.nodes)


class TestLabelsAndHead:
    def test_two_branches_on_one_commit_keep_order(self):
        branches = [
            BranchInfo(name="main", tip_oid="c0", is_head=True),
            BranchInfo(name="origin/main", tip_oid="c0", is_remote=True),
        ]
        layout = build_graph(linear(2), branches)
        assert layout.nodes[0].branch_names == ["main", "origin/main"]

    def test_head_from_flagged_branch(self):
        branches = [BranchInfo(name="main", tip_oid="c1", is_head=True)]
        layout = build_graph(linear(3), branches)
        assert [node.is_head for node in layout.nodes] == [False, True, False]

    def test_head_by_branch_name(self):
        branches = [
            BranchInfo(name="main", tip_oid="c0", is_head=True),
            BranchInfo(name="topic", tip_oid="c2"),
        ]
        layout = build_graph(linear(3), branches, head="topic")
        assert [node.is_head for node in layout.nodes] == [False, False, True]

    def test_head_by_oid(self):
        layout = build_graph(linear(3), [], head="c1")
        assert layout.nodes[1].is_head


class TestColors:
    def test_main_lane_keeps_reserved_color(self, merge_history):
        layout = build_graph(merge_history, [])
        for node in layout.nodes:
            if node.lane == 0:
                assert node.color_index == MAIN_LANE_COLOR
            assert node.lane_colors[0] == MAIN_LANE_COLOR

    def test_main_lane_color_survives_merge_parent_refilling_it(self):
        # B leaves lane 0 free by joining C in lane 1, then C's second parent Y reopens lane 0
        history = [
            make_commit("A", ["B", "C"]),
            make_commit("B", ["C"]),
            make_commit("C", ["X", "Y"]),
            make_commit("X"),
            make_commit("Y"),
        ]
        colors = ColorAssigner()
        layout = build_graph(history, [], color_assigner=colors)

        assert [node.lane for node in layout.nodes] == [0, 0, 1, 1, 0]
        assert [node.lane_colors[0] for node in layout.nodes] == [
            MAIN_LANE_COLOR,
            MAIN_LANE_COLOR,
            None,
            MAIN_LANE_COLOR,
            MAIN_LANE_COLOR,
        ]
        assert layout.nodes[4].color_index == MAIN_LANE_COLOR
        assert layout.nodes[2].connections[1].color_index == MAIN_LANE_COLOR
        assert colors.get_lane_color_index(0) == MAIN_LANE_COLOR

    def test_side_lane_never_uses_main_color(self, merge_history):
        layout = build_graph(merge_history, [])
        assert layout.nodes[2].color_index != MAIN_LANE_COLOR

    def test_connection_takes_target_lane_color(self, merge_history):
        layout = build_graph(merge_history, [])
        merge, _, side, _ = layout.nodes
        assert merge.connections[1].color_index == side.color_index
        assert side.connections[0].color_index == MAIN_LANE_COLOR

    def test_inactive_lanes_have_no_color(self, merge_history):
        layout = build_graph(merge_history, [])
        assert layout.nodes[0].lane_colors[1] is None

    def test_uses_given_assigner(self, merge_history):
        colors = ColorAssigner()
        build_graph(merge_history, [], color_assigner=colors)
        assert colors.main_lane == 0
        assert colors.usage(MAIN_LANE_COLOR) == 1


class TestNavigation:
    @pytest.fixture
    def layout(self) -> GraphLayout:
        branches = [BranchInfo(name="main", tip_oid="c0"), BranchInfo(name="topic", tip_oid="c3")]
        return build_graph(linear(5), branches)

    def test_clamp_row(self, layout):
        assert layout.clamp_row(-3) == 0
        assert layout.clamp_row(2) == 2
        assert layout.clamp_row(99) == 4
        assert GraphLayout().clamp_row(5) == 0

    def test_node_at(self, layout):
        assert layout.node_at(1).commit.oid == "c1"
        assert layout.node_at(5) is None
        assert layout.node_at(-1) is None

    def test_next_labeled_row(self, layout):
        assert layout.next_labeled_row(0) == 3
        assert layout.next_labeled_row(3) is None

    def test_prev_labeled_row(self, layout):
        assert layout.prev_labeled_row(4) == 3
        assert layout.prev_labeled_row(3) == 0
        assert layout.prev_labeled_row(0) is None
