from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from ..keys import KeyId, KeyLike, normalize_key
from .records import Action


class KeyActionTable:
    """Registry of key -> action for the page currently on screen.

    The first registration of a key wins; ``register`` reports a collision by
    returning False and leaves the earlier action in place.
    """

    def __init__(self) -> None:
        self._actions: Dict[KeyId, Action] = {}

    def register(self, key: KeyLike, action: Action) -> bool:
        key = normalize_key(key)
        if key in self._actions:
            return False
        self._actions[key] = action
        return True

    def get(self, key: KeyLike) -> Optional[Action]:
        return self._actions.get(normalize_key(key))

    def clear(self) -> None:
        self._actions.clear()

    def keys(self) -> FrozenSet[KeyId]:
        return frozenset(self._actions)

    def __contains__(self, key: object) -> bool:
        try:
            return normalize_key(key) in self._actions  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def __len__(self) -> int:
        return len(self._actions)
