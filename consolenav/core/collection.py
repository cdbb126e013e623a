from __future__ import annotations

import threading
from typing import Callable, FrozenSet, Optional, Sequence, Union

from rich.console import Console
from rich.text import Text

from ..keys import KeyId, KeyLike, key_label
from .dispatch import KeyActionTable
from .errors import NavigationStateError
from .records import Action, NavigationChoice, Page
from .session_log import log_error, log_event

PAGE_NOT_FOUND = -1

ErrorSink = Callable[[str], None]

_stderr_console: Console | None = None


def report_to_stderr(message: str) -> None:
    """Fallback error sink used until a coordinator attaches its own."""
    global _stderr_console
    if _stderr_console is None:
        _stderr_console = Console(stderr=True, highlight=False)
    _stderr_console.print(Text(message, style="bold red"))
    log_error("page_collection", "error.reported", message)


class PageCollection:
    """A named, ordered set of pages with its own navigation history.

    The navigation stack starts at the first page and never shrinks below
    it. Every stack mutation swaps in a dispatch table rebuilt from the new
    top page: visible choices first, then the page's go-back choice. A key
    bound twice on one page keeps its first action and the collision is
    reported through the error sink.
    """

    def __init__(
        self,
        name: str,
        pages: Sequence[Page],
        *,
        on_error: Optional[ErrorSink] = None,
    ) -> None:
        if not pages:
            raise NavigationStateError(
                f"PageCollection {name!r} must contain at least one page"
            )
        seen: set[str] = set()
        for page in pages:
            if page.name in seen:
                raise ValueError(f"Duplicate page name {page.name!r} in collection {name!r}")
            seen.add(page.name)

        self._name = name
        self._pages: tuple[Page, ...] = tuple(pages)
        self._on_error: ErrorSink = on_error or report_to_stderr
        self._set_page_lock = threading.RLock()
        self._lookup_lock = threading.Lock()
        self._page_stack: list[Page] = [self._pages[0]]
        self._actions = self._build_actions(self._pages[0])

    @property
    def name(self) -> str:
        return self._name

    @property
    def pages(self) -> tuple[Page, ...]:
        return self._pages

    @property
    def current_page(self) -> Page:
        try:
            return self._page_stack[-1]
        except IndexError:
            raise NavigationStateError(
                f"PageCollection {self._name!r} has an empty navigation stack"
            ) from None

    @property
    def current_page_index(self) -> int:
        """Stack index of the current page; 0 at the root page."""
        return len(self._page_stack) - 1

    @property
    def current_page_position(self) -> int:
        """Index of the current page within ``pages``."""
        return self.get_page_index(self.current_page.name)

    @property
    def depth(self) -> int:
        return len(self._page_stack)

    @property
    def page_history(self) -> tuple[Page, ...]:
        return tuple(self._page_stack)

    def attach_error_sink(self, sink: ErrorSink) -> None:
        self._on_error = sink

    def get_page_index(self, page_name: str) -> int:
        with self._lookup_lock:
            for index, page in enumerate(self._pages):
                if page.name == page_name:
                    return index
        return PAGE_NOT_FOUND

    def set_current_page(self, target: Union[int, str]) -> bool:
        """Push the page at ``target`` (index or name) onto the navigation stack.

        Returns False without touching the stack when the target does not
        resolve to a page of this collection.
        """
        with self._set_page_lock:
            if isinstance(target, bool):
                return False
            if isinstance(target, str):
                index = self.get_page_index(target)
            elif isinstance(target, int):
                index = target
            else:
                return False
            if not 0 <= index < len(self._pages):
                return False
            page = self._pages[index]
            self._page_stack.append(page)
            self._actions = self._build_actions(page)
            log_event(
                "page_collection",
                "page.push",
                {"collection": self._name, "page": page.name, "depth": len(self._page_stack)},
            )
            return True

    def roll_back_to_previous_page(self) -> bool:
        """Pop the navigation stack; False (not an error) when already at the root page."""
        with self._set_page_lock:
            if not self._page_stack:
                raise NavigationStateError(
                    f"PageCollection {self._name!r} has an empty navigation stack"
                )
            if len(self._page_stack) <= 1:
                return False
            popped = self._page_stack.pop()
            page = self._page_stack[-1]
            self._actions = self._build_actions(page)
            log_event(
                "page_collection",
                "page.pop",
                {"collection": self._name, "from": popped.name, "to": page.name},
            )
            return True

    def refresh_actions(self) -> None:
        """Rebuild the dispatch table for the current page after visibility changed."""
        with self._set_page_lock:
            self._actions = self._build_actions(self.current_page)

    def resolve(self, key: KeyLike) -> Optional[Action]:
        return self._actions.get(key)

    def dispatch_keys(self) -> FrozenSet[KeyId]:
        return self._actions.keys()

    def _build_actions(self, page: Page) -> KeyActionTable:
        table = KeyActionTable()
        for choice in page.visible_choices():
            self._register_choice(table, page, choice)
        self._register_choice(table, page, page.go_back)
        return table

    def _register_choice(self, table: KeyActionTable, page: Page, choice: NavigationChoice) -> None:
        for key in choice.keys:
            if not table.register(key, choice.action):
                self._on_error(
                    "Cannot add duplicate keys to page's action list. "
                    f"Offending key {key_label(key)} already has an associated action "
                    f"on page {page.name!r}\nContinuing without adding"
                )

    def __repr__(self) -> str:
        return f"PageCollection(name={self._name!r}, page={self.current_page.name!r}, depth={self.depth})"
