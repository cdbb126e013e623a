"""Key identifiers used by dispatch tables and the line editor.

A key is either a member of prompt_toolkit's ``Keys`` enumeration or a single
lower-cased printable character. ``normalize_key`` is the only way callers'
spellings enter the framework, so ``"Q"``, ``"q"`` and a ``KeyPress`` for
``q`` all end up as the same dictionary key.
"""

from __future__ import annotations

from typing import Union

from prompt_toolkit.input.ansi_escape_sequences import ANSI_SEQUENCES
from prompt_toolkit.key_binding.key_processor import KeyPress
from prompt_toolkit.keys import KEY_ALIASES, Keys

KeyId = Union[Keys, str]
KeyLike = Union[Keys, KeyPress, str]

ENTER = Keys.Enter
ESCAPE = Keys.Escape
BACKSPACE = Keys.Backspace
LEFT = Keys.Left
RIGHT = Keys.Right

# A cbreak tty translates carriage return into line feed.
_EQUIVALENT_KEYS: dict[Keys, Keys] = {
    Keys.ControlJ: Keys.ControlM,
}

_NAME_ALIASES: dict[str, KeyId] = {
    "esc": Keys.Escape,
    "return": Keys.ControlM,
    "space": " ",
    "del": Keys.Delete,
}


def normalize_key(key: KeyLike) -> KeyId:
    """Return the canonical identifier for ``key``.

    Raises ``ValueError`` for names that are neither a single character nor a
    known key name, and ``TypeError`` for anything that is not key-like.
    """
    if isinstance(key, KeyPress):
        key = key.key
    if isinstance(key, Keys):
        return _EQUIVALENT_KEYS.get(key, key)
    if not isinstance(key, str):
        raise TypeError(f"Expected a key, got {type(key).__name__}")
    if len(key) == 1:
        mapped = ANSI_SEQUENCES.get(key)
        if isinstance(mapped, Keys):
            return _EQUIVALENT_KEYS.get(mapped, mapped)
        return key.lower()
    name = key.strip().lower()
    if name in _NAME_ALIASES:
        return normalize_key(_NAME_ALIASES[name])
    name = KEY_ALIASES.get(name, name)
    try:
        return normalize_key(Keys(name))
    except ValueError:
        raise ValueError(f"Unknown key: {key!r}") from None


def normalize_keys(keys: object) -> tuple[KeyId, ...]:
    """Normalize a key or an iterable of keys, dropping repeats."""
    if isinstance(keys, (str, Keys, KeyPress)):
        keys = (keys,)
    result: list[KeyId] = []
    for key in keys:  # type: ignore[attr-defined]
        normalized = normalize_key(key)
        if normalized not in result:
            result.append(normalized)
    return tuple(result)


def is_printable(press: KeyPress) -> bool:
    key = press.key
    return not isinstance(key, Keys) and len(key) == 1 and key.isprintable()


def key_label(key: KeyLike) -> str:
    """Human-readable name of a key, for error messages."""
    if isinstance(key, KeyPress):
        key = key.key
    if isinstance(key, Keys):
        key = _EQUIVALENT_KEYS.get(key, key)
        if key is Keys.ControlM:
            return "Enter"
        if key is Keys.ControlH:
            return "Backspace"
        if key is Keys.ControlI:
            return "Tab"
        return key.name
    if key == " ":
        return "Spacebar"
    return key.upper()


__all__ = [
    "KeyId",
    "KeyLike",
    "KeyPress",
    "Keys",
    "ENTER",
    "ESCAPE",
    "BACKSPACE",
    "LEFT",
    "RIGHT",
    "normalize_key",
    "normalize_keys",
    "is_printable",
    "key_label",
]
