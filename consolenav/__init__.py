"""consolenav package initialization."""

from importlib.metadata import version

from .keys import Keys, normalize_key
from .core import (
    PAGE_NOT_FOUND,
    DisplayField,
    InputRequest,
    NavigationChoice,
    NavigationStateError,
    Page,
    PageCollection,
    always_visible,
)
from .ui import ConsoleUI

__all__ = [
    "ConsoleUI",
    "DisplayField",
    "InputRequest",
    "Keys",
    "NavigationChoice",
    "NavigationStateError",
    "PAGE_NOT_FOUND",
    "Page",
    "PageCollection",
    "always_visible",
    "normalize_key",
]

# Single source of truth comes from package metadata defined in pyproject.toml
__version__ = version("consolenav")
