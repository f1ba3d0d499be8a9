"""Terminal user interface built on textual"""

from keifu.ui.tui import KeifuApp

__all__ = ["KeifuApp"]
