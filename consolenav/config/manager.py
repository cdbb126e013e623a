from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from .paths import ConsoleNavPaths

DEBUG_ENV_VAR = "CONSOLENAV_DEBUG"

DEFAULT_PROJECT_CONFIG: Dict[str, Any] = {
    "debug": None,
    "error_style": "bold red",
    "continue_prompt": "Press any key to continue...",
    "escape_timeout": 0.05,
    "casefold_input": True,
    "clear_screen": True,
}


@dataclass(frozen=True)
class NavigatorSettings:
    debug: Any = None
    error_style: str = DEFAULT_PROJECT_CONFIG["error_style"]
    continue_prompt: str = DEFAULT_PROJECT_CONFIG["continue_prompt"]
    escape_timeout: float = DEFAULT_PROJECT_CONFIG["escape_timeout"]
    casefold_input: bool = True
    clear_screen: bool = True


class ConfigManager:
    """Loads consolenav settings from the global and workspace JSON files."""

    def __init__(self, paths: ConsoleNavPaths, console: Optional[Console] = None) -> None:
        self.paths = paths
        self.console = console or Console(stderr=True)

    def load_settings(self) -> NavigatorSettings:
        """Merge defaults, global config, workspace config, and environment variables."""
        cfg = self.load_project_config()
        debug_override = os.environ.get(DEBUG_ENV_VAR)
        if debug_override is not None:
            cfg["debug"] = debug_override
        return NavigatorSettings(
            debug=cfg.get("debug"),
            error_style=cfg["error_style"],
            continue_prompt=cfg["continue_prompt"],
            escape_timeout=cfg["escape_timeout"],
            casefold_input=cfg["casefold_input"],
            clear_screen=cfg["clear_screen"],
        )

    def load_project_config(self) -> Dict[str, Any]:
        """Read the workspace-level consolenav.json on top of the global one."""
        merged = self._merge_dicts(DEFAULT_PROJECT_CONFIG, self._read_json(self.paths.global_config_file))
        merged = self._merge_dicts(merged, self._read_json(self.paths.config_file))
        return self._normalize_project_config(merged)

    def create_config_template(self) -> Path:
        """Create or update .consolenav/consolenav.json without overwriting user settings."""
        self.paths.consolenav_dir.mkdir(parents=True, exist_ok=True)
        current = self._read_json(self.paths.config_file)
        merged = self._merge_dicts(DEFAULT_PROJECT_CONFIG, current)
        normalized = self._normalize_project_config(merged)
        self.paths.config_file.write_text(
            json.dumps(normalized, indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        return self.paths.config_file

    def _normalize_project_config(self, data: Dict[str, Any]) -> Dict[str, Any]:
        normalized = dict(data) if data else {}
        for key in ("error_style", "continue_prompt"):
            value = normalized.get(key)
            if not isinstance(value, str) or not value.strip():
                normalized[key] = DEFAULT_PROJECT_CONFIG[key]
        timeout = normalized.get("escape_timeout")
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout < 0:
            normalized["escape_timeout"] = DEFAULT_PROJECT_CONFIG["escape_timeout"]
        else:
            normalized["escape_timeout"] = float(timeout)
        for key in ("casefold_input", "clear_screen"):
            if not isinstance(normalized.get(key), bool):
                normalized[key] = DEFAULT_PROJECT_CONFIG[key]
        return normalized

    def _merge_dicts(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        if not override:
            return dict(base)
        merged: Dict[str, Any] = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge_dicts(merged[key], value)  # type: ignore[arg-type]
            else:
                merged[key] = value
        return merged

    def _read_json(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            self.console.print(
                f"[red]Failed to parse JSON config at {path}. Using defaults.[/red]"
            )
            return {}
        return data if isinstance(data, dict) else {}
