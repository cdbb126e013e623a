"""
Cross-platform terminal access for the render/input loop.

The module-level functions are a thin platform shim: termios/tty on
Unix/Linux/macOS, msvcrt plus console modes on Windows. ``ConsoleTerminal``
builds the terminal boundary the coordinator and line editor talk to on top
of it: rich consoles for output and prompt_toolkit's VT100 parser to turn raw
input into key presses.
"""

from __future__ import annotations

import codecs
import os
import sys
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Protocol

from prompt_toolkit.input.vt100_parser import Vt100Parser
from prompt_toolkit.key_binding.key_processor import KeyPress
from prompt_toolkit.keys import Keys
from rich.cells import cell_len
from rich.console import Console
from rich.control import Control
from rich.text import Text

from ..keys import is_printable

if sys.platform == "win32":
    import ctypes
    import msvcrt
    from ctypes import wintypes

    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)

    STD_INPUT_HANDLE = -10
    ENABLE_LINE_INPUT = 0x0002
    ENABLE_ECHO_INPUT = 0x0004
    ENABLE_EXTENDED_FLAGS = 0x0080
    ENABLE_QUICK_EDIT_MODE = 0x0040

    kernel32.GetStdHandle.argtypes = [wintypes.DWORD]
    kernel32.GetStdHandle.restype = wintypes.HANDLE
    kernel32.GetConsoleMode.argtypes = [wintypes.HANDLE, wintypes.LPDWORD]
    kernel32.GetConsoleMode.restype = wintypes.BOOL
    kernel32.SetConsoleMode.argtypes = [wintypes.HANDLE, wintypes.DWORD]
    kernel32.SetConsoleMode.restype = wintypes.BOOL

    @dataclass(frozen=True)
    class _TerminalSettings:
        handle: int
        mode: int

    def _input_handle() -> int:
        handle = kernel32.GetStdHandle(STD_INPUT_HANDLE)
        if handle is None or handle == wintypes.HANDLE(-1).value:
            raise OSError("Failed to get Windows console handle")
        return int(handle)

    def tcgetattr(fd: int) -> _TerminalSettings:
        """Get console mode (Windows)."""
        handle = _input_handle()
        mode = wintypes.DWORD()
        if not kernel32.GetConsoleMode(handle, ctypes.byref(mode)):
            raise OSError("Failed to read Windows console mode")
        return _TerminalSettings(handle=handle, mode=mode.value)

    def tcsetattr(fd: int, when: int, settings: _TerminalSettings) -> None:
        """Restore console mode (Windows)."""
        if not kernel32.SetConsoleMode(settings.handle, settings.mode):
            raise OSError("Failed to restore Windows console mode")

    def setcbreak(fd: int) -> None:
        """Disable line buffering and echo (Windows)."""
        settings = tcgetattr(fd)
        mode = settings.mode
        mode &= ~(ENABLE_LINE_INPUT | ENABLE_ECHO_INPUT | ENABLE_QUICK_EDIT_MODE)
        mode |= ENABLE_EXTENDED_FLAGS
        if not kernel32.SetConsoleMode(settings.handle, mode):
            raise OSError("Failed to set Windows console mode")

    TCSADRAIN = 0  # Dummy value for Windows compatibility
    _SETUP_ERRORS: tuple[type[BaseException], ...] = (OSError, ValueError)

    def kbhit() -> bool:
        """Check if a keypress is available (Windows)."""
        return msvcrt.kbhit()

    def getch() -> str:
        """Get a single character from the console (Windows)."""
        if hasattr(msvcrt, "getwch"):
            return msvcrt.getwch()
        return msvcrt.getch().decode("utf-8", errors="ignore")

else:
    import select
    import termios
    import tty

    _TerminalSettings = Any  # type: ignore[misc]
    tcgetattr = termios.tcgetattr  # type: ignore[assignment]
    tcsetattr = termios.tcsetattr  # type: ignore[assignment]
    TCSADRAIN = termios.TCSADRAIN
    setcbreak = tty.setcbreak  # type: ignore[assignment]
    _SETUP_ERRORS = (OSError, ValueError, termios.error)

    _decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def kbhit() -> bool:
        """Check if a keypress is available (Unix)."""
        return select.select([sys.stdin], [], [], 0)[0] != []

    def getch() -> str:
        """Get a single character from stdin (Unix).

        Reads the file descriptor directly so that ``kbhit`` never misses
        bytes already pulled into Python's stdin buffer.
        """
        fd = sys.stdin.fileno()
        while True:
            data = os.read(fd, 1)
            if not data:
                return ""
            text = _decoder.decode(data)
            if text:
                return text


# msvcrt reports extended keys as a prefix character followed by a scan code.
WINDOWS_KEY_PREFIXES = ("\x00", "\xe0")
WINDOWS_EXTENDED_KEYS = {
    "H": Keys.Up,
    "P": Keys.Down,
    "K": Keys.Left,
    "M": Keys.Right,
    "G": Keys.Home,
    "O": Keys.End,
    "R": Keys.Insert,
    "S": Keys.Delete,
    "I": Keys.PageUp,
    "Q": Keys.PageDown,
}
MAX_SEQUENCE_LENGTH = 16


@contextmanager
def cbreak_mode() -> Iterator[bool]:
    """Put stdin in cbreak mode for the duration of the block.

    Yields False when stdin is not a terminal; input is then read as-is.
    """
    fd = -1
    old_settings: Optional[_TerminalSettings] = None
    try:
        fd = sys.stdin.fileno()
        old_settings = tcgetattr(fd)
        setcbreak(fd)
    except _SETUP_ERRORS:
        old_settings = None
    try:
        yield old_settings is not None
    finally:
        if old_settings is not None:
            tcsetattr(fd, TCSADRAIN, old_settings)


class Terminal(Protocol):
    """The terminal operations the coordinator and line editor rely on."""

    def clear_screen(self) -> None: ...

    def write(self, text: str) -> None: ...

    def write_line(self, text: str = "") -> None: ...

    def write_error(self, text: str, style: str = "bold red") -> None: ...

    def read_key(self, echo: bool = False) -> KeyPress: ...

    def get_cursor_column(self) -> int: ...

    def set_cursor_column(self, column: int) -> None: ...


class ConsoleTerminal:
    """Terminal backed by rich consoles and raw stdin.

    The cursor column is tracked from what this object writes; output
    produced behind its back (for example a bare ``print``) is not seen.
    """

    def __init__(
        self,
        console: Console | None = None,
        error_console: Console | None = None,
        *,
        escape_timeout: float = 0.05,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.error_console = error_console or Console(stderr=True, highlight=False)
        self.escape_timeout = escape_timeout
        self._column = 0
        self._pending: deque[KeyPress] = deque()
        self._parser = Vt100Parser(self._pending.append)

    def clear_screen(self) -> None:
        self.console.clear()
        self._column = 0

    def write(self, text: str) -> None:
        if not text:
            return
        self.console.out(text, end="", highlight=False)
        if "\n" in text:
            self._column = cell_len(text.rsplit("\n", 1)[1])
        else:
            self._column += cell_len(text)

    def write_line(self, text: str = "") -> None:
        self.write(f"{text}\n")

    def write_error(self, text: str, style: str = "bold red") -> None:
        self.error_console.print(Text(text, style=style))
        self._column = 0

    def get_cursor_column(self) -> int:
        return self._column

    def set_cursor_column(self, column: int) -> None:
        column = max(0, column)
        self.console.control(Control.move_to_column(column))
        self._column = column

    def read_key(self, echo: bool = False) -> KeyPress:
        if not self._pending:
            with cbreak_mode():
                while not self._pending:
                    self._read_input()
        press = self._pending.popleft()
        if echo and is_printable(press):
            self.write(press.data)
        return press

    def _read_input(self) -> None:
        ch = getch()
        if ch == "":
            raise EOFError("stdin was closed")
        if sys.platform == "win32" and ch in WINDOWS_KEY_PREFIXES:
            code = getch()
            key = WINDOWS_EXTENDED_KEYS.get(code)
            if key is not None:
                self._pending.append(KeyPress(key, ch + code))
            return
        data = ch
        if ch == "\x1b":
            data += self._drain_sequence()
        self._parser.feed_and_flush(data)

    def _drain_sequence(self) -> str:
        """Collect the rest of an escape sequence; a lone Escape times out."""
        chars: list[str] = []
        deadline = time.monotonic() + self.escape_timeout
        while len(chars) < MAX_SEQUENCE_LENGTH:
            if kbhit():
                chars.append(getch())
            elif time.monotonic() >= deadline:
                break
            else:
                time.sleep(0.002)
        return "".join(chars)


__all__ = [
    "tcgetattr",
    "tcsetattr",
    "TCSADRAIN",
    "setcbreak",
    "kbhit",
    "getch",
    "cbreak_mode",
    "Terminal",
    "ConsoleTerminal",
    "WINDOWS_EXTENDED_KEYS",
    "_TerminalSettings",
]
