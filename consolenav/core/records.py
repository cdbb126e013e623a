from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..keys import KeyId, normalize_keys

Action = Callable[[], bool]
InputAction = Callable[[str], bool]
Predicate = Callable[[], bool]
Renderer = Callable[[], str]


def always_visible() -> bool:
    return True


@dataclass(frozen=True)
class NavigationChoice:
    """A key-triggered option shown on a page."""

    text: str
    keys: tuple[KeyId, ...]
    action: Action
    visible: Predicate = always_visible
    prompt: Optional[str] = None

    def __post_init__(self) -> None:
        normalized = normalize_keys(self.keys)
        if not normalized:
            raise ValueError(f"Navigation choice {self.text!r} needs at least one trigger key")
        object.__setattr__(self, "keys", normalized)


@dataclass(frozen=True)
class InputRequest:
    """Switches a page to free-text input; ``action`` receives the submitted line."""

    prompt: str
    action: InputAction
    visible: Predicate = always_visible


@dataclass(frozen=True)
class DisplayField:
    message: str
    render: Renderer
    visible: Predicate = always_visible
    subject: Any = None

    def line(self) -> str:
        """Freshly computed value; ``message`` labels the field but is not rendered."""
        return self.render()


@dataclass(frozen=True)
class Page:
    """One screen: prompts, choices, display fields and an optional input request.

    ``go_back`` is mandatory; it is rendered after the other choices, its keys
    are registered last in the dispatch table, and in free-text mode its keys
    cancel the line editor.
    """

    name: str
    go_back: NavigationChoice
    prompt: Optional[str] = None
    choices: tuple[NavigationChoice, ...] = field(default_factory=tuple)
    fields: tuple[DisplayField, ...] = field(default_factory=tuple)
    input_request: Optional[InputRequest] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Page name must not be empty")
        object.__setattr__(self, "choices", tuple(self.choices or ()))
        object.__setattr__(self, "fields", tuple(self.fields or ()))

    def visible_choices(self) -> list[NavigationChoice]:
        return [choice for choice in self.choices if choice.visible()]

    def visible_fields(self) -> list[DisplayField]:
        return [display for display in self.fields if display.visible()]

    def accepts_text(self) -> bool:
        """Free-text mode; the request's ``visible`` only governs its prompt line."""
        return self.input_request is not None

    def shows_input_prompt(self) -> bool:
        return self.input_request is not None and self.input_request.visible()
