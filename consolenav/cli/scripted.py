from __future__ import annotations

import threading
from collections import deque
from typing import Iterable, Union

from prompt_toolkit.key_binding.key_processor import KeyPress
from prompt_toolkit.keys import Keys
from rich.cells import cell_len

from ..keys import is_printable, normalize_key

ScriptKey = Union[KeyPress, Keys, str]


def to_key_press(key: ScriptKey) -> KeyPress:
    """Build the KeyPress a real keyboard would deliver for ``key``.

    Single characters keep their case (``"A"`` is a shifted a); longer
    strings are key names such as ``"escape"`` or ``"left"``.
    """
    if isinstance(key, KeyPress):
        return key
    if isinstance(key, str) and len(key) == 1:
        normalized = normalize_key(key)
        if isinstance(normalized, Keys):
            return KeyPress(normalized, key)
        return KeyPress(key, key)
    return KeyPress(normalize_key(key))


class ScriptedTerminal:
    """In-memory terminal that replays a key script.

    Output is kept as a transcript of screen lines with real cursor-column
    overwrite semantics, so line-editor redraws leave the same text a
    terminal would show. When the script runs out ``read_key`` raises
    ``EOFError``, or, with ``block=True``, waits until more keys are fed or
    the terminal is closed.
    """

    def __init__(self, keys: Iterable[ScriptKey] = (), *, block: bool = False) -> None:
        self.block = block
        self.errors: list[str] = []
        self.clear_count = 0
        self.reads = 0
        self._keys: deque[KeyPress] = deque(to_key_press(key) for key in keys)
        self._cond = threading.Condition()
        self._closed = False
        self._rows: list[list[str]] = [[]]
        self._screen_start = 0
        self._column = 0

    def feed(self, *keys: ScriptKey) -> None:
        with self._cond:
            self._keys.extend(to_key_press(key) for key in keys)
            self._cond.notify_all()

    def feed_text(self, text: str) -> None:
        self.feed(*text)

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def pending_keys(self) -> int:
        with self._cond:
            return len(self._keys)

    @property
    def lines(self) -> list[str]:
        """Every line written since construction."""
        with self._cond:
            return ["".join(row).rstrip() for row in self._rows]

    @property
    def screen(self) -> list[str]:
        """Lines written since the last ``clear_screen``."""
        with self._cond:
            return ["".join(row).rstrip() for row in self._rows[self._screen_start :]]

    @property
    def current_line(self) -> str:
        with self._cond:
            return "".join(self._rows[-1]).rstrip()

    def clear_screen(self) -> None:
        with self._cond:
            self.clear_count += 1
            if self._rows[-1]:
                self._rows.append([])
            self._screen_start = len(self._rows) - 1
            self._column = 0

    def write(self, text: str) -> None:
        with self._cond:
            for ch in text:
                if ch == "\n":
                    self._rows.append([])
                    self._column = 0
                    continue
                self._put(ch)

    def write_line(self, text: str = "") -> None:
        self.write(f"{text}\n")

    def write_error(self, text: str, style: str = "bold red") -> None:
        with self._cond:
            self.errors.append(text)
            self._column = 0

    def get_cursor_column(self) -> int:
        return self._column

    def set_cursor_column(self, column: int) -> None:
        self._column = max(0, column)

    def read_key(self, echo: bool = False) -> KeyPress:
        with self._cond:
            while not self._keys:
                if self._closed or not self.block:
                    raise EOFError("key script exhausted")
                self._cond.wait()
            press = self._keys.popleft()
            self.reads += 1
        if echo and is_printable(press):
            self.write(press.data)
        return press

    def _put(self, ch: str) -> None:
        row = self._rows[-1]
        width = max(cell_len(ch), 1)
        end = self._column + width
        if len(row) < end:
            row.extend(" " * (end - len(row)))
        row[self._column] = ch
        # the trailing cell of a wide character renders as nothing
        for offset in range(1, width):
            row[self._column + offset] = ""
        self._column = end
