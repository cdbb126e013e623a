"""Navigation records, page collections and the session log."""

from .collection import PAGE_NOT_FOUND, PageCollection
from .dispatch import KeyActionTable
from .errors import NavigationStateError
from .records import DisplayField, InputRequest, NavigationChoice, Page, always_visible
from .session_log import SessionLogger

__all__ = [
    "PAGE_NOT_FOUND",
    "DisplayField",
    "InputRequest",
    "KeyActionTable",
    "NavigationChoice",
    "NavigationStateError",
    "Page",
    "PageCollection",
    "SessionLogger",
    "always_visible",
]
