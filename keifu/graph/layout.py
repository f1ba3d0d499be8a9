"""
Commit graph layout: lane allocation and connector routing.

The layout is computed in one pass over a newest-first, topologically valid
commit list. A rolling list of lane slots holds, for each lane, the oid of the
parent that lane is waiting for (or None when the lane is free). Each row
consumes the lane holding its commit, then routes its parents into lanes:

- a parent already waited for by some lane is joined there,
- the first parent continues straight down in the commit's own lane,
- further parents of a merge open the lowest free lane.

The lowest free lane always wins allocation, which keeps first-parent chains
on lane 0 and the graph compact.
"""

from dataclasses import dataclass, field
from enum import Enum

from keifu.git_backend.types import BranchInfo, CommitInfo
from keifu.graph.colors import ColorAssigner


class ConnectionType(Enum):
    """How a connector travels from a commit to one of its parents."""

    DIRECT = "direct"  # Same lane, straight down
    BRANCH_OUT = "branch_out"  # Parent is to the right
    MERGE_IN = "merge_in"  # Parent is to the left


@dataclass
class Connection:
    """Connector from a commit's lane to the lane of one of its parents."""

    target_oid: str
    source_lane: int
    target_lane: int
    connection_type: ConnectionType
    color_index: int = 0


@dataclass
class GraphNode:
    """One row of the graph."""

    commit: CommitInfo
    lane: int
    row: int
    connections: list[Connection] = field(default_factory=list)
    # Lanes with a vertical line during this row (own lane included)
    active_lanes: list[bool] = field(default_factory=list)
    # Color per lane for this row, None where the lane is inactive
    lane_colors: list[int | None] = field(default_factory=list)
    color_index: int = 0
    branch_names: list[str] = field(default_factory=list)
    is_head: bool = False


@dataclass
class GraphLayout:
    """Ordered rows of the graph plus the widest lane used."""

    nodes: list[GraphNode] = field(default_factory=list)
    max_lane: int = 0

    def __len__(self) -> int:
        return len(self.nodes)

    def node_at(self, row: int) -> GraphNode | None:
        if 0 <= row < len(self.nodes):
            return self.nodes[row]
        return None

    def clamp_row(self, row: int) -> int:
        """Clamp a row index into the valid range (0 for an empty layout)."""
        if not self.nodes:
            return 0
        return max(0, min(row, len(self.nodes) - 1))

    def next_labeled_row(self, current: int) -> int | None:
        """Nearest row after `current` that carries a branch label."""
        for row in range(current + 1, len(self.nodes)):
            if self.nodes[row].branch_names:
                return row
        return None

    def prev_labeled_row(self, current: int) -> int | None:
        """Nearest row before `current` that carries a branch label."""
        for row in range(min(current, len(self.nodes)) - 1, -1, -1):
            if self.nodes[row].branch_names:
                return row
        return None


def _find_lane(active_lanes: list[str | None], oid: str) -> int | None:
    for lane, pending in enumerate(active_lanes):
        if pending == oid:
            return lane
    return None


def _allocate_lane(active_lanes: list[str | None]) -> int:
    """Lowest free lane, appending a new one when every lane is taken."""
    for lane, pending in enumerate(active_lanes):
        if pending is None:
            return lane
    active_lanes.append(None)
    return len(active_lanes) - 1


def _resolve_head_oid(head: str | None, branches: list[BranchInfo]) -> str | None:
    if head is None:
        for branch in branches:
            if branch.is_head:
                return branch.tip_oid
        return None
    for branch in branches:
        if branch.name == head:
            return branch.tip_oid
    return head


def _classify(source_lane: int, target_lane: int) -> ConnectionType:
    if target_lane == source_lane:
        return ConnectionType.DIRECT
    if target_lane > source_lane:
        return ConnectionType.BRANCH_OUT
    return ConnectionType.MERGE_IN


def build_graph(
    commits: list[CommitInfo],
    branches: list[BranchInfo],
    head: str | None = None,
    color_assigner: ColorAssigner | None = None,
) -> GraphLayout:
    """
    Build the graph layout for a commit window.

    Args:
        commits: Commits ordered newest first, children before parents
        branches: Branch pointers; labels keep this order
        head: Branch name or commit oid HEAD resolves to. When None, the
            branch flagged is_head is used.
        color_assigner: Color state for this build (a fresh one if omitted)

    Returns:
        The layout. Parents outside the window get no connector, and branch
        tips outside the window get no label.
    """
    if not commits:
        return GraphLayout(nodes=[], max_lane=0)

    colors = color_assigner if color_assigner is not None else ColorAssigner()

    oid_to_branches: dict[str, list[str]] = {}
    for branch in branches:
        oid_to_branches.setdefault(branch.tip_oid, []).append(branch.name)
    head_oid = _resolve_head_oid(head, branches)

    in_window = {commit.oid for commit in commits}

    active_lanes: list[str | None] = []
    nodes: list[GraphNode] = []
    max_lane = 0

    for row, commit in enumerate(commits):
        colors.begin_row(row)

        # 1. Lane selection
        existing = _find_lane(active_lanes, commit.oid)
        if existing is not None:
            lane = existing
            color = colors.continue_lane(lane)
        else:
            lane = _allocate_lane(active_lanes)
            if colors.main_lane is None:
                color = colors.assign_main_lane(lane)
            elif lane == colors.main_lane:
                color = colors.continue_lane(lane)
            else:
                color = colors.assign_color(lane, fork_sibling=True)

        # 2. Snapshot of this row's vertical lines before routing
        snapshot = [pending is not None for pending in active_lanes]
        snapshot[lane] = True
        lane_colors = [
            colors.get_lane_color_index(i) if active else None
            for i, active in enumerate(snapshot)
        ]

        # 3. The commit consumes its lane
        active_lanes[lane] = None

        # 4. Route parents
        connections: list[Connection] = []
        for parent_idx, parent_oid in enumerate(commit.parent_oids):
            if parent_oid not in in_window:
                continue

            parent_lane = _find_lane(active_lanes, parent_oid)
            if parent_lane is not None:
                target_lane = parent_lane
            elif parent_idx == 0:
                active_lanes[lane] = parent_oid
                target_lane = lane
            else:
                target_lane = _allocate_lane(active_lanes)
                active_lanes[target_lane] = parent_oid
                if target_lane == colors.main_lane:
                    colors.continue_lane(target_lane)
                else:
                    colors.assign_color(target_lane, fork_sibling=True)

            target_color = colors.get_lane_color_index(target_lane)
            connections.append(
                Connection(
                    target_oid=parent_oid,
                    source_lane=lane,
                    target_lane=target_lane,
                    connection_type=_classify(lane, target_lane),
                    color_index=target_color if target_color is not None else color,
                )
            )
            max_lane = max(max_lane, target_lane)

        # The lane ends here unless a parent now waits in it
        if active_lanes[lane] is None:
            colors.release_lane(lane)

        max_lane = max(max_lane, lane)

        nodes.append(
            GraphNode(
                commit=commit,
                lane=lane,
                row=row,
                connections=connections,
                active_lanes=snapshot,
                lane_colors=lane_colors,
                color_index=color,
                branch_names=list(oid_to_branches.get(commit.oid, [])),
                is_head=head_oid is not None and head_oid == commit.oid,
            )
        )

    # Every row spans the full graph width
    width = max_lane + 1
    for node in nodes:
        missing = width - len(node.active_lanes)
        if missing > 0:
            node.active_lanes.extend([False] * missing)
            node.lane_colors.extend([None] * missing)

    return GraphLayout(nodes=nodes, max_lane=max_lane)
