from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from typing import ContextManager, Iterable, Optional

from rich.cells import cell_len

from ..keys import BACKSPACE, ENTER, LEFT, RIGHT, KeyId, KeyLike, is_printable, normalize_key
from .terminal import Terminal

SUBMIT = "submit"
CANCEL = "cancel"


@dataclass(frozen=True)
class EditOutcome:
    action: str
    text: str = ""
    cancel_key: Optional[KeyId] = None

    @property
    def submitted(self) -> bool:
        return self.action == SUBMIT

    @property
    def cancelled(self) -> bool:
        return self.action == CANCEL


class CancelableLineEditor:
    """Single-line, blocking text input that any of a set of keys can cancel.

    Editing starts at the terminal's current column. Printable keys insert at
    the cursor, Backspace deletes left of it, Left/Right move within the
    text, Enter submits and any cancel key aborts; every other key is
    ignored. Redraws only touch the text from the edit point onwards.

    The editor owns the terminal while it reads. ``lock``, when given, is
    held around each redraw and never while waiting for a key.
    """

    def __init__(
        self,
        terminal: Terminal,
        lock: Optional[ContextManager[object]] = None,
    ) -> None:
        self.terminal = terminal
        self._lock = lock

    def read_line(self, cancel_keys: Iterable[KeyLike] = ()) -> EditOutcome:
        cancel = {normalize_key(key) for key in cancel_keys}
        buffer: list[str] = []
        cursor = 0
        with self._output():
            origin = self.terminal.get_cursor_column()

        while True:
            press = self.terminal.read_key(echo=False)
            key = normalize_key(press)
            if key == ENTER:
                with self._output():
                    self.terminal.write_line()
                return EditOutcome(SUBMIT, "".join(buffer))
            if key in cancel:
                return EditOutcome(CANCEL, cancel_key=key)
            if key == BACKSPACE:
                if cursor > 0:
                    cursor -= 1
                    removed = buffer.pop(cursor)
                    self._redraw(origin, buffer, cursor, cursor, blank=cell_len(removed))
            elif key == LEFT:
                if cursor > 0:
                    cursor -= 1
                    self._move(origin, buffer, cursor)
            elif key == RIGHT:
                if cursor < len(buffer):
                    cursor += 1
                    self._move(origin, buffer, cursor)
            elif is_printable(press):
                buffer.insert(cursor, press.key)  # type: ignore[arg-type]
                self._redraw(origin, buffer, cursor, cursor + 1)
                cursor += 1

    def _redraw(
        self, origin: int, buffer: list[str], start: int, cursor: int, blank: int = 0
    ) -> None:
        with self._output():
            self.terminal.set_cursor_column(origin + cell_len("".join(buffer[:start])))
            self.terminal.write("".join(buffer[start:]) + " " * blank)
            self.terminal.set_cursor_column(origin + cell_len("".join(buffer[:cursor])))

    def _move(self, origin: int, buffer: list[str], cursor: int) -> None:
        with self._output():
            self.terminal.set_cursor_column(origin + cell_len("".join(buffer[:cursor])))

    def _output(self) -> ContextManager[object]:
        return self._lock if self._lock is not None else nullcontext()
