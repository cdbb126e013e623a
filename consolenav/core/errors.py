from __future__ import annotations


class NavigationStateError(RuntimeError):
    """Raised when the framework is used in a way its construction invariants forbid.

    Examples are a collection without pages, or driving the coordinator before
    ``initialize`` ran. These indicate a bug in the embedding application and
    are never recovered from.
    """
