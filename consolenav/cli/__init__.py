"""Terminal access and the cancelable line editor."""

from .line_editor import CancelableLineEditor, EditOutcome
from .scripted import ScriptedTerminal
from .terminal import ConsoleTerminal, Terminal

__all__ = [
    "CancelableLineEditor",
    "ConsoleTerminal",
    "EditOutcome",
    "ScriptedTerminal",
    "Terminal",
]
