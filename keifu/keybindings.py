"""
Key bindings per application mode.

Keys arrive as textual key names ("down", "ctrl+d", "shift+tab") together
with the printed character, if any. Named keys are looked up first; printable
characters are looked up by the character itself so "G" and "?" match
regardless of how the terminal reports the shift modifier.
"""

from keifu.action import Action, InputChar
from keifu.app import ChooseBranchMode, ConfirmMode, ErrorMode, HelpMode, InputMode, Mode, NormalMode

NORMAL_KEYS: dict[str, Action] = {
    "down": Action.MOVE_DOWN,
    "up": Action.MOVE_UP,
    "ctrl+d": Action.PAGE_DOWN,
    "ctrl+u": Action.PAGE_UP,
    "home": Action.GO_TO_TOP,
    "end": Action.GO_TO_BOTTOM,
    "tab": Action.NEXT_BRANCH,
    "shift+tab": Action.PREV_BRANCH,
    "enter": Action.CHECKOUT,
    "escape": Action.QUIT,
}

NORMAL_CHARS: dict[str, Action] = {
    "j": Action.MOVE_DOWN,
    "k": Action.MOVE_UP,
    "g": Action.GO_TO_TOP,
    "G": Action.GO_TO_BOTTOM,
    "]": Action.NEXT_BRANCH,
    "[": Action.PREV_BRANCH,
    "b": Action.CREATE_BRANCH,
    "d": Action.DELETE_BRANCH,
    "m": Action.MERGE,
    "r": Action.REBASE,
    "/": Action.SEARCH,
    "R": Action.REFRESH,
    "?": Action.TOGGLE_HELP,
    "q": Action.QUIT,
}

CHOOSE_KEYS: dict[str, Action] = {
    "down": Action.MOVE_DOWN,
    "up": Action.MOVE_UP,
    "enter": Action.CONFIRM,
    "escape": Action.CANCEL,
}

CHOOSE_CHARS: dict[str, Action] = {
    "j": Action.MOVE_DOWN,
    "k": Action.MOVE_UP,
    "q": Action.CANCEL,
}


def _printable(character: str | None) -> str | None:
    if character and len(character) == 1 and character.isprintable():
        return character
    return None


def _lookup(key: str, character: str | None, keys: dict[str, Action], chars: dict[str, Action]) -> Action | None:
    if key in keys:
        return keys[key]
    char = _printable(character)
    if char is not None:
        return chars.get(char)
    return None


def map_key_to_action(key: str, character: str | None, mode: Mode) -> Action | InputChar | None:
    """Translate a key press into an action for the current mode, or None"""
    if isinstance(mode, NormalMode):
        return _lookup(key, character, NORMAL_KEYS, NORMAL_CHARS)

    if isinstance(mode, HelpMode):
        if key == "escape" or _printable(character) in ("q", "?"):
            return Action.TOGGLE_HELP
        return None

    if isinstance(mode, InputMode):
        if key == "enter":
            return Action.CONFIRM
        if key == "escape":
            return Action.CANCEL
        if key == "backspace":
            return Action.INPUT_BACKSPACE
        char = _printable(character)
        return InputChar(char) if char is not None else None

    if isinstance(mode, ConfirmMode):
        if key == "enter" or _printable(character) == "y":
            return Action.CONFIRM
        if key == "escape" or _printable(character) == "n":
            return Action.CANCEL
        return None

    if isinstance(mode, ChooseBranchMode):
        return _lookup(key, character, CHOOSE_KEYS, CHOOSE_CHARS)

    if isinstance(mode, ErrorMode):
        if key in ("escape", "enter") or _printable(character) == "q":
            return Action.CANCEL
        return None

    return None
