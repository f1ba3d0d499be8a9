"""Dialog contents for the non-normal modes"""

from rich.panel import Panel
from rich.text import Text

from keifu.app import ChooseBranchMode, ConfirmMode, ErrorMode, HelpMode, InputMode, Mode

HELP_ENTRIES = [
    ("Navigation", ""),
    ("j / ↓", "Move down"),
    ("k / ↑", "Move up"),
    ("Ctrl-d / Ctrl-u", "Page down / up"),
    ("g / Home", "Go to top"),
    ("G / End", "Go to bottom"),
    ("] / Tab", "Next branch"),
    ("[ / Shift-Tab", "Previous branch"),
    ("Git", ""),
    ("Enter", "Checkout branch or commit"),
    ("b", "Create branch at commit"),
    ("d", "Delete branch"),
    ("m", "Merge branch into current"),
    ("r", "Rebase current onto branch"),
    ("Other", ""),
    ("/", "Search"),
    ("R", "Refresh"),
    ("?", "Toggle help"),
    ("q / Esc", "Quit"),
]


def help_text() -> Text:
    text = Text()
    for i, (key, description) in enumerate(HELP_ENTRIES):
        if i:
            text.append("\n")
        if not description:
            text.append(key, style="bold underline")
            continue
        text.append(f"  {key:<18}", style="yellow")
        text.append(description)
    return text


def render_dialog(mode: Mode) -> Panel | None:
    """Panel for the current mode, or None in normal mode"""
    if isinstance(mode, HelpMode):
        return Panel(help_text(), title="Help", subtitle="? / Esc to close", border_style="cyan")

    if isinstance(mode, InputMode):
        body = Text(mode.text)
        body.append("█", style="blink")
        return Panel(body, title=mode.title, subtitle="Enter: OK  Esc: cancel", border_style="cyan")

    if isinstance(mode, ConfirmMode):
        body = Text(mode.message)
        body.append("\n\n")
        body.append("y", style="bold green")
        body.append(": yes  ")
        body.append("n", style="bold red")
        body.append(": no")
        return Panel(body, title="Confirm", border_style="yellow")

    if isinstance(mode, ChooseBranchMode):
        body = Text()
        for i, branch in enumerate(mode.choices):
            if i:
                body.append("\n")
            if i == mode.index:
                body.append(f"> {branch.name}", style="bold reverse")
            else:
                body.append(f"  {branch.name}")
        return Panel(body, title=mode.title, subtitle="Enter: pick  Esc: cancel", border_style="cyan")

    if isinstance(mode, ErrorMode):
        return Panel(Text(mode.message, style="red"), title="Error", subtitle="Enter / Esc", border_style="red")

    return None
