"""Remote file browser data models."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RemoteEntry:
    """One entry of a remote directory listing."""

    name: str
    path: str
    is_directory: bool
    size: int | None = None
    mtime: int | None = None


@dataclass(frozen=True)
class RemoteFileHandle:
    """Local temporary copy of a remote file opened for editing."""

    alias: str
    local_path: Path
    remote_path: str
