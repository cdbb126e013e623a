"""Configuration package."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .manager import ConfigManager, NavigatorSettings
    from .paths import ConsoleNavPaths

__all__ = ["ConfigManager", "NavigatorSettings", "ConsoleNavPaths"]


def __getattr__(name: str) -> Any:
    if name in {"ConfigManager", "NavigatorSettings"}:
        from .manager import ConfigManager, NavigatorSettings

        return {"ConfigManager": ConfigManager, "NavigatorSettings": NavigatorSettings}[name]
    if name == "ConsoleNavPaths":
        from .paths import ConsoleNavPaths

        return ConsoleNavPaths
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
