"""User actions produced by key bindings and consumed by AppState"""

from dataclasses import dataclass
from enum import Enum, auto


class Action(Enum):
    # Navigation
    MOVE_UP = auto()
    MOVE_DOWN = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    GO_TO_TOP = auto()
    GO_TO_BOTTOM = auto()
    NEXT_BRANCH = auto()
    PREV_BRANCH = auto()

    # Git operations
    CHECKOUT = auto()
    CREATE_BRANCH = auto()
    DELETE_BRANCH = auto()
    MERGE = auto()
    REBASE = auto()

    # UI
    TOGGLE_HELP = auto()
    SEARCH = auto()
    REFRESH = auto()
    QUIT = auto()

    # Dialogs
    CONFIRM = auto()
    CANCEL = auto()
    INPUT_BACKSPACE = auto()


@dataclass(frozen=True)
class InputChar:
    """A character typed into a text input"""

    char: str
