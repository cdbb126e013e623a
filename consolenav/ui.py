from __future__ import annotations

import threading
from pathlib import Path
from typing import ClassVar, Iterable, Optional, Sequence

from .cli.line_editor import CancelableLineEditor
from .cli.terminal import ConsoleTerminal, Terminal
from .config.manager import ConfigManager, NavigatorSettings
from .config.paths import ConsoleNavPaths
from .core.collection import PageCollection
from .core.errors import NavigationStateError
from .core.records import NavigationChoice, Page
from .core.session_log import SessionLogger, set_active_logger
from .keys import ESCAPE, KeyLike, is_printable, key_label, normalize_key

SOURCE = "console_ui"


class ConsoleUI:
    """Owns the render/input loop and the stack of active page collections.

    One coordinator normally lives for the whole process and is reached via
    ``ConsoleUI.instance()``; building one directly is supported for tests
    and embedding. The lifecycle is uninitialized -> initialized-idle ->
    running: ``initialize`` takes effect once, ``run`` starts at most one
    loop thread, and ``shutdown`` is observed at the top of the next loop
    iteration, so it only takes effect after a pending key read returns.

    Locks: the collection stack has its own lock and every terminal write
    happens under one re-entrant output lock. No lock is held while waiting
    for a key.
    """

    _instance: ClassVar[Optional["ConsoleUI"]] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def instance(cls, **kwargs: object) -> "ConsoleUI":
        """Return the process-wide coordinator, creating it on first access.

        ``kwargs`` are passed to the constructor by the first caller only.
        """
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls(**kwargs)  # type: ignore[arg-type]
        return cls._instance

    def __init__(
        self,
        terminal: Terminal | None = None,
        *,
        settings: NavigatorSettings | None = None,
        session_logger: SessionLogger | None = None,
        root: Path | None = None,
    ) -> None:
        paths = ConsoleNavPaths(root or Path.cwd())
        self.settings = settings or ConfigManager(paths).load_settings()
        self.session_logger = session_logger or SessionLogger(paths, self.settings.debug)
        set_active_logger(self.session_logger)
        self.terminal: Terminal = terminal or ConsoleTerminal(
            escape_timeout=self.settings.escape_timeout
        )
        self._state_lock = threading.Lock()
        self._collection_lock = threading.RLock()
        self._output_lock = threading.RLock()
        self.line_editor = CancelableLineEditor(self.terminal, lock=self._output_lock)
        self._initialized = False
        self._running = threading.Event()
        self._thread: threading.Thread | None = None
        self._title = ""
        self._headers: tuple[str, ...] = ()
        self._collections: tuple[PageCollection, ...] = ()
        self._collection_stack: list[PageCollection] = []

    # -- state -----------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def title(self) -> str:
        return self._title

    @property
    def headers(self) -> tuple[str, ...]:
        return self._headers

    @property
    def collections(self) -> tuple[PageCollection, ...]:
        return self._collections

    @property
    def active_collection_stack(self) -> tuple[PageCollection, ...]:
        with self._collection_lock:
            return tuple(self._collection_stack)

    @property
    def active_collection(self) -> PageCollection:
        with self._collection_lock:
            if not self._collection_stack:
                raise NavigationStateError(
                    "Must initialize the ConsoleUI with page collections before using it"
                )
            return self._collection_stack[-1]

    def initialize(
        self,
        title: str,
        collections: Iterable[PageCollection],
        headers: Optional[Sequence[str]] = None,
    ) -> bool:
        """Set title, headers and collections. Only the first call has any effect.

        Returns True when this call performed the initialization.
        """
        with self._state_lock:
            if self._initialized:
                return False
            collections = tuple(collections)
            if not collections:
                raise NavigationStateError("ConsoleUI needs at least one page collection")
            names = [collection.name for collection in collections]
            duplicates = sorted({name for name in names if names.count(name) > 1})
            if duplicates:
                raise ValueError(f"Duplicate page collection names: {', '.join(duplicates)}")

            self._title = title
            self._headers = tuple(headers or ())
            self._collections = collections
            with self._collection_lock:
                self._collection_stack = [collections[0]]
            for collection in collections:
                collection.attach_error_sink(self.log_error)
            self._initialized = True
        self.session_logger.log_event(
            SOURCE,
            "session.initialize",
            {"title": title, "collections": names},
        )
        return True

    # -- loop ------------------------------------------------------------

    def run(self) -> threading.Thread | None:
        """Start the render/input loop on a new thread.

        Returns the started thread, or None when a loop is already active.
        """
        self._require_initialized()
        with self._state_lock:
            if self._running.is_set():
                return None
            if self._thread is not None and self._thread.is_alive():
                # a shut down loop is still waiting on its last key read
                return None
            self._running.set()
            thread = threading.Thread(target=self._run_loop, name="consolenav-ui", daemon=True)
            self._thread = thread
        self.session_logger.log_event(SOURCE, "session.run")
        thread.start()
        return thread

    def shutdown(self) -> None:
        """Ask the loop to stop before its next render."""
        with self._state_lock:
            if not self._running.is_set():
                return
            self._running.clear()
        self.session_logger.log_event(SOURCE, "session.shutdown")

    def run_once(self) -> bool:
        """Render the active page and handle one input.

        Returns False when a key press could not be resolved to an action.
        """
        self._require_initialized()
        collection = self.active_collection
        page = collection.current_page
        self._render(page)
        return self._handle_input(collection, page)

    def _run_loop(self) -> None:
        while self._running.is_set():
            try:
                if not self.run_once():
                    self._acknowledge()
            except EOFError:
                self._running.clear()
                self.session_logger.log_event(SOURCE, "session.input_closed")
            except Exception as exc:  # noqa: BLE001
                self.session_logger.log_exception(SOURCE, exc)
                self.log_error(str(exc) or type(exc).__name__)
        self.session_logger.log_event(SOURCE, "session.stopped")

    def _render(self, page: Page) -> None:
        terminal = self.terminal
        with self._output_lock:
            if self.settings.clear_screen:
                terminal.clear_screen()
            terminal.write_line(self._title)
            for header in self._headers:
                terminal.write_line(header)
            terminal.write_line()

            terminal.write_line(page.name)
            if page.prompt is not None:
                terminal.write_line(page.prompt)
            terminal.write_line()

            for choice in page.visible_choices():
                self._write_choice(choice)
            if page.go_back.visible():
                self._write_choice(page.go_back)

            for display in page.visible_fields():
                terminal.write_line()
                terminal.write_line(display.line())

            if page.shows_input_prompt():
                terminal.write_line()
                terminal.write_line(page.input_request.prompt)  # type: ignore[union-attr]

            terminal.write_line()

    def _write_choice(self, choice: NavigationChoice) -> None:
        if choice.prompt is not None:
            self.terminal.write_line(choice.prompt)
        self.terminal.write_line(choice.text)

    def _handle_input(self, collection: PageCollection, page: Page) -> bool:
        if page.accepts_text():
            request = page.input_request
            outcome = self.line_editor.read_line(page.go_back.keys)
            if outcome.cancelled:
                self.session_logger.log_event(
                    SOURCE, "input.cancel", {"page": page.name, "key": key_label(outcome.cancel_key)}
                )
                page.go_back.action()
                return True
            text = outcome.text.casefold() if self.settings.casefold_input else outcome.text
            self.session_logger.log_event(SOURCE, "input.text", {"page": page.name, "text": text})
            request.action(text)  # type: ignore[union-attr]
            return True

        press = self.terminal.read_key(echo=False)
        if is_printable(press):
            with self._output_lock:
                self.terminal.write(press.data)
        key = normalize_key(press)
        action = collection.resolve(key)
        if action is None:
            self.log_error(f"Was unable to handle input. {key_label(key)} was unrecognized.")
            return False
        self.session_logger.log_event(
            SOURCE,
            "input.key",
            {"collection": collection.name, "page": page.name, "key": key_label(key)},
        )
        # the result only matters to the action itself
        action()
        return True

    def _acknowledge(self) -> None:
        self.print(self.settings.continue_prompt)
        self.terminal.read_key(echo=False)

    # -- collections -----------------------------------------------------

    def set_active_collection(self, collection_name: str) -> bool:
        """Push the named collection onto the collection stack."""
        self._require_initialized()
        with self._collection_lock:
            found = next(
                (collection for collection in self._collections if collection.name == collection_name),
                None,
            )
            if found is not None:
                self._collection_stack.append(found)
                depth = len(self._collection_stack)
        if found is None:
            self.log_error(f"Could not find any PageCollection with the name {collection_name}")
            return False
        self.session_logger.log_event(
            SOURCE, "collection.push", {"collection": collection_name, "depth": depth}
        )
        return True

    def roll_back_to_previous_collection(self) -> bool:
        """Pop the collection stack; False when only the root collection is left."""
        with self._collection_lock:
            if not self._collection_stack:
                raise NavigationStateError(
                    "Must initialize the ConsoleUI with page collections before using it"
                )
            if len(self._collection_stack) <= 1:
                return False
            popped = self._collection_stack.pop()
            current = self._collection_stack[-1]
        self.session_logger.log_event(
            SOURCE, "collection.pop", {"from": popped.name, "to": current.name}
        )
        return True

    def go_back_page_choice(
        self,
        text: str = "Press esc to go back to previous page",
        keys: Sequence[KeyLike] = (ESCAPE,),
    ) -> NavigationChoice:
        """Go-back choice that pops the active collection's page stack."""
        return NavigationChoice(
            text, tuple(keys), lambda: self.active_collection.roll_back_to_previous_page()
        )

    def go_back_collection_choice(
        self,
        text: str = "Press Q or esc to go back to previous page",
        keys: Sequence[KeyLike] = (ESCAPE, "q"),
    ) -> NavigationChoice:
        """Go-back choice that pops the collection stack."""
        return NavigationChoice(text, tuple(keys), self.roll_back_to_previous_collection)

    # -- output ----------------------------------------------------------

    def print(self, output: str) -> None:
        with self._output_lock:
            self.terminal.write_line()
            self.terminal.write_line(output)

    def log_error(self, message: str) -> None:
        with self._output_lock:
            self.terminal.write_line()
            self.terminal.write_error(message, self.settings.error_style)
        self.session_logger.log_level(SOURCE, "error", "error.reported", message)

    def get_input(
        self,
        prompt: Optional[str] = None,
        cancel_keys: Sequence[KeyLike] = (ESCAPE,),
    ) -> Optional[str]:
        """Read a line of text; None when a cancel key was pressed."""
        if prompt is not None:
            with self._output_lock:
                self.terminal.write_line(prompt)
        outcome = self.line_editor.read_line(cancel_keys)
        return outcome.text if outcome.submitted else None

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NavigationStateError(
                "Must initialize the ConsoleUI before it can render and start IO"
            )
