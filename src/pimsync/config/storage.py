"""Where the resource state lives.

State is kept per workspace: the ``default`` workspace uses ``state.db`` in the
data directory, any other workspace ``state-<name>.db`` beside it.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import get_env
from .errors import ConfigurationError

APP_DIR_NAME: Final[str] = "pimsync"
DEFAULT_WORKSPACE: Final[str] = "default"

_WORKSPACE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    workspace: str = DEFAULT_WORKSPACE

    def __post_init__(self) -> None:
        if not _WORKSPACE_PATTERN.fullmatch(self.workspace):
            raise ConfigurationError(f"Invalid workspace name: {self.workspace!r}")

    @property
    def state_filename(self) -> str:
        if self.workspace == DEFAULT_WORKSPACE:
            return "state.db"
        return f"state-{self.workspace}.db"

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def state_path(self, *, ensure: bool = True) -> Path:
        data_dir = self.resolve_data_dir()
        if ensure:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.state_filename

    def state_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.state_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _default_data_dir() -> Path:
    if os.name == "nt":
        base_path = Path(get_env("LOCALAPPDATA", str(Path.home() / "AppData" / "Local")))
    else:
        base_path = Path(get_env("XDG_DATA_HOME", str(Path.home() / ".local" / "share")))
    return base_path / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    return StorageConfig(
        data_dir=Path(get_env("PIMSYNC_DATA_DIR", str(_default_data_dir()))),
        workspace=get_env("PIMSYNC_WORKSPACE", DEFAULT_WORKSPACE).strip(),
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``PIMSYNC_STATE_URI`` wins over the workspace file in the data directory."""

    env_uri = get_env("PIMSYNC_STATE_URI", "")
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    storage_config = storage or get_storage_config()
    return DatabaseConfig(uri=storage_config.state_uri())
