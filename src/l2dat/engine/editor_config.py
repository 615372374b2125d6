"""Configuration knobs for the editor session.

Persisted as a small JSON file next to the tools; every field has a default
so a missing or partial file still yields a usable config.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from l2dat.parser.protocol import ProtocolRevision

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EditorConfig:
    """Tuneable parameters that aren't stored in the dat files."""

    system_folder_path: Path | None = None   # client "system" folder with the .dat files
    protocol: ProtocolRevision = ProtocolRevision.GRAND_CRUSADE_110
    max_workers: int | None = None           # thread pool size for load/save; None = executor default
    log_level: str = "INFO"

    def validate_paths(self) -> None:
        """Forget a system folder that no longer exists."""
        if self.system_folder_path is not None and not self.system_folder_path.is_dir():
            logger.warning(f"System folder {self.system_folder_path} is not a directory, ignoring it")
            self.system_folder_path = None

    def to_dict(self) -> dict:
        return {
            "system_folder_path": str(self.system_folder_path) if self.system_folder_path else None,
            "protocol": self.protocol.value,
            "max_workers": self.max_workers,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EditorConfig":
        folder = data.get("system_folder_path")
        return cls(
            system_folder_path=Path(folder) if folder else None,
            protocol=ProtocolRevision(data.get("protocol", ProtocolRevision.GRAND_CRUSADE_110.value)),
            max_workers=data.get("max_workers"),
            log_level=str(data.get("log_level", "INFO")).upper(),
        )

    @classmethod
    def load(cls, path: Path) -> "EditorConfig":
        """Read a config file; a missing file gives the defaults."""
        if not path.exists():
            logger.debug(f"No config at {path}, using defaults")
            return cls()
        config = cls.from_dict(json.loads(path.read_text(encoding="utf-8")))
        config.validate_paths()
        return config

    def save(self, path: Path) -> None:
        path.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")


def resolve_system_folder(explicit: Path | None, config: EditorConfig) -> Path:
    """Pick the folder to load: an explicit CLI path wins over the config.

    Raises:
        FileNotFoundError: If neither names an existing directory.
    """
    folder = explicit if explicit is not None else config.system_folder_path
    if folder is None:
        raise FileNotFoundError("No system folder given (use --system or set it in the config)")
    if not folder.is_dir():
        raise FileNotFoundError(f"System folder not found: {folder}")
    return folder
