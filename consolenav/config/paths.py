from dataclasses import dataclass
from pathlib import Path


@dataclass
class ConsoleNavPaths:
    """Centralizes filesystem paths for a consolenav workspace."""

    root: Path

    @property
    def consolenav_dir(self) -> Path:
        return self.root / ".consolenav"

    @property
    def config_file(self) -> Path:
        return self.consolenav_dir / "consolenav.json"

    @property
    def logs_dir(self) -> Path:
        return self.consolenav_dir / "logs"

    @property
    def global_dir(self) -> Path:
        return Path.home() / ".consolenav"

    @property
    def global_config_file(self) -> Path:
        return self.global_dir / "consolenav.json"
