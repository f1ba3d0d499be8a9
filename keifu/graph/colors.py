"""Lane colors for the commit graph."""

from collections import deque

# Rich color names. Index 0 is reserved for the main lane.
LANE_COLORS = [
    "bright_green",
    "cyan",
    "magenta",
    "yellow",
    "blue",
    "red",
    "bright_cyan",
    "bright_magenta",
    "bright_yellow",
    "bright_blue",
    "bright_red",
]

PALETTE_SIZE = len(LANE_COLORS)
MAIN_LANE_COLOR = 0
DEFAULT_HISTORY_WINDOW = 6

# Penalty weights for assign_color
LAST_COLOR_PENALTY = 10.0
NEIGHBOR_WEIGHT = 8.0
HISTORY_ROW_WEIGHT = 4.0
HISTORY_LANE_WEIGHT = 2.0
FORK_SIBLING_PENALTY = 100.0
FAIRNESS_WEIGHT = 2.0


def get_color(color_index: int) -> str:
    """Get the rich color name for a color index."""
    return LANE_COLORS[color_index % len(LANE_COLORS)]


class ColorAssigner:
    """
    Assigns palette colors to lanes while a layout is built.

    One instance lives for exactly one build. Colors are picked by penalty
    minimization: a candidate is penalized for matching the lane's previous
    color, for matching colors of other active lanes (more when they are
    close), for matching recent assignments near the same lane, for matching
    a color already given to a fork sibling in this row, and for being used
    more often than the other colors.

    The main lane gets the reserved main color once and keeps it for the
    rest of the build.
    """

    def __init__(
        self,
        palette_size: int = PALETTE_SIZE,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        reserved: frozenset[int] = frozenset({MAIN_LANE_COLOR}),
    ) -> None:
        if palette_size <= len(reserved):
            raise ValueError("Palette must have at least one unreserved color")

        self.palette_size = palette_size
        self._reserved = set(reserved)
        self._lane_colors: list[int | None] = []
        self._lane_last_color: list[int | None] = []
        self._next_color_index = 0
        self._history: deque[tuple[int, int, int]] = deque(maxlen=history_window)
        self._fork_siblings: set[int] = set()
        self._usage = [0] * palette_size
        self._row = 0
        self._main_lane: int | None = None

    @property
    def main_lane(self) -> int | None:
        return self._main_lane

    @property
    def next_color_index(self) -> int:
        return self._next_color_index

    @property
    def history(self) -> list[tuple[int, int, int]]:
        """Recent (row, lane, color) assignments, oldest first."""
        return list(self._history)

    def usage(self, color: int) -> int:
        return self._usage[color]

    def begin_row(self, row: int) -> None:
        """Start a new row. Fork siblings only count within one row."""
        self._row = row
        self._fork_siblings.clear()

    def _ensure_capacity(self, lane: int) -> None:
        while len(self._lane_colors) <= lane:
            self._lane_colors.append(None)
            self._lane_last_color.append(None)

    def get_lane_color_index(self, lane: int) -> int | None:
        """Current color of a lane, or None if the lane has no color."""
        if lane < len(self._lane_colors):
            return self._lane_colors[lane]
        return None

    def assign_main_lane(self, lane: int) -> int:
        """Designate the main lane and give it the reserved main color."""
        if self._main_lane is not None:
            if self._main_lane != lane:
                raise ValueError(f"Main lane is already lane {self._main_lane}")
            color = self._lane_colors[lane]
            assert color is not None
            return color

        self._ensure_capacity(lane)
        self._main_lane = lane
        color = min(self._reserved)
        self._record(lane, color, fork_sibling=False)
        return color

    def _penalty(self, lane: int, candidate: int) -> float:
        penalty = 0.0

        if self._lane_last_color[lane] == candidate:
            penalty += LAST_COLOR_PENALTY

        for other, color in enumerate(self._lane_colors):
            if other != lane and color == candidate:
                penalty += NEIGHBOR_WEIGHT / (abs(other - lane) + 1)

        for row, hist_lane, color in self._history:
            if color == candidate:
                row_gap = abs(self._row - row)
                lane_gap = abs(hist_lane - lane)
                penalty += (HISTORY_ROW_WEIGHT / (row_gap + 1)) * (
                    HISTORY_LANE_WEIGHT / (lane_gap + 1)
                )

        if candidate in self._fork_siblings:
            penalty += FORK_SIBLING_PENALTY

        most_used = max(self._usage)
        if most_used > 0:
            penalty += FAIRNESS_WEIGHT * self._usage[candidate] / most_used

        return penalty

    def assign_color(
        self, lane: int, fork_sibling: bool = False, allow_reserved: bool = False
    ) -> int:
        """Pick the lowest-penalty color for a lane that is being opened.

        Candidates are scanned in palette order starting at the rotation
        pointer, so equal penalties resolve to the first candidate scanned.
        The main lane keeps its reserved color and records nothing.
        """
        self._ensure_capacity(lane)
        if lane == self._main_lane:
            color = min(self._reserved)
            self._lane_colors[lane] = color
            return color

        best_color: int | None = None
        best_penalty = 0.0
        for offset in range(self.palette_size):
            candidate = (self._next_color_index + offset) % self.palette_size
            if candidate in self._reserved and not allow_reserved:
                continue
            penalty = self._penalty(lane, candidate)
            if best_color is None or penalty < best_penalty:
                best_color = candidate
                best_penalty = penalty

        assert best_color is not None
        self._record(lane, best_color, fork_sibling)
        return best_color

    def _record(self, lane: int, color: int, fork_sibling: bool) -> None:
        self._lane_colors[lane] = color
        self._lane_last_color[lane] = color
        self._next_color_index = (color + 1) % self.palette_size
        self._history.append((self._row, lane, color))
        self._usage[color] += 1
        if fork_sibling:
            self._fork_siblings.add(color)

    def continue_lane(self, lane: int) -> int:
        """Keep using a lane's color, assigning one if it has none."""
        self._ensure_capacity(lane)
        color = self._lane_colors[lane]
        if color is None:
            return self.assign_color(lane)
        return color

    def release_lane(self, lane: int) -> None:
        """Free a lane's color. The main lane never gives up its color."""
        if lane == self._main_lane:
            return
        if lane < len(self._lane_colors):
            self._lane_colors[lane] = None
