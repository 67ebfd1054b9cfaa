"""SFTP-backed remote file browser.

One browser exists per alias and survives reconnects: the SSH client is
attached on connect and detached on teardown. Remote files are edited
through local temporary copies; saving uploads the copy back and deletes
it.
"""

import hashlib
import logging
import posixpath
import stat
from pathlib import Path

import asyncssh
from asyncssh.constants import FILEXFER_TYPE_DIRECTORY

from multiconnect_mcp.errors import NotConnectedError, RemoteFileError, UploadError
from multiconnect_mcp.models import RemoteEntry, RemoteFileHandle
from multiconnect_mcp.protocols import EditorHost
from multiconnect_mcp.utils.validation import join_remote, validate_remote_name

logger = logging.getLogger(__name__)

SFTP_ERRORS = (asyncssh.SFTPError, asyncssh.Error, OSError)


def sort_entries(entries: list[RemoteEntry]) -> list[RemoteEntry]:
    """Directories first, then files, each case-insensitively by name."""
    return sorted(entries, key=lambda e: (not e.is_directory, e.name.lower(), e.name))


def _is_directory(attrs: asyncssh.SFTPAttrs) -> bool:
    if attrs.permissions is not None:
        return stat.S_ISDIR(attrs.permissions)
    return attrs.type == FILEXFER_TYPE_DIRECTORY


class RemoteFileBrowser:
    """Lists, downloads, and uploads files for one alias."""

    def __init__(
        self,
        alias: str,
        temp_dir: Path | str,
        editor: EditorHost | None = None,
    ):
        """Initialize browser.

        Args:
            alias: Connection alias this browser belongs to
            temp_dir: Directory for local copies of remote files
            editor: Receives every opened local copy
        """
        self.alias = alias
        self.temp_dir = Path(temp_dir).expanduser()
        self.editor = editor
        self._client: asyncssh.SSHClientConnection | None = None
        self._sftp: asyncssh.SFTPClient | None = None
        self._handles: dict[Path, RemoteFileHandle] = {}

    @property
    def is_attached(self) -> bool:
        """Whether a live SSH client is attached."""
        return self._client is not None

    @property
    def handles(self) -> list[RemoteFileHandle]:
        """Local copies currently open."""
        return list(self._handles.values())

    def attach(self, client: asyncssh.SSHClientConnection) -> None:
        """Use a (new) SSH client for subsequent operations."""
        if client is not self._client:
            self._reset_sftp()
        self._client = client

    def detach(self) -> None:
        """Forget the SSH client and its SFTP channel."""
        self._reset_sftp()
        self._client = None

    def _reset_sftp(self) -> None:
        if self._sftp is None:
            return
        try:
            self._sftp.exit()
        except SFTP_ERRORS as e:
            logger.debug("Error closing SFTP channel for %s: %s", self.alias, e)
        self._sftp = None

    async def _get_sftp(self) -> asyncssh.SFTPClient:
        if self._client is None:
            raise NotConnectedError(self.alias)
        if self._sftp is None:
            try:
                self._sftp = await self._client.start_sftp_client()
            except SFTP_ERRORS as e:
                raise RemoteFileError(f"Cannot start SFTP for {self.alias}: {e}") from e
        return self._sftp

    def local_path_for(self, remote_path: str) -> Path:
        """Temp file location for a remote path.

        A digest of the full remote path keeps same-named files from
        different directories apart.
        """
        digest = hashlib.sha1(remote_path.encode()).hexdigest()[:10]
        name = posixpath.basename(remote_path.rstrip("/")) or "file"
        return self.temp_dir / f"{self.alias}_{digest}_{name}"

    async def list(self, path: str = ".") -> list[RemoteEntry]:
        """List a remote directory.

        Args:
            path: Remote directory (default: login directory)

        Returns:
            Entries without ``.`` and ``..``, directories first

        Raises:
            NotConnectedError: If no client is attached
            RemoteFileError: If the directory cannot be read
        """
        sftp = await self._get_sftp()
        try:
            base = await sftp.realpath(path)
            names = await sftp.readdir(base)
        except SFTP_ERRORS as e:
            raise RemoteFileError(f"Cannot list {path} on {self.alias}: {e}") from e

        entries = [
            RemoteEntry(
                name=item.filename,
                path=join_remote(base, item.filename),
                is_directory=_is_directory(item.attrs),
                size=item.attrs.size,
                mtime=item.attrs.mtime,
            )
            for item in names
            if item.filename not in (".", "..")
        ]
        logger.debug("Listed %d entries in %s:%s", len(entries), self.alias, base)
        return sort_entries(entries)

    async def open(self, remote_path: str) -> RemoteFileHandle:
        """Download a remote file and hand it to the editor.

        Opening an already open file returns its existing handle so local
        edits are not overwritten.

        Raises:
            NotConnectedError: If no client is attached
            RemoteFileError: If the path is not a regular file or the
                download fails
        """
        local_path = self.local_path_for(remote_path)
        existing = self._handles.get(local_path)
        if existing is not None:
            if self.editor is not None:
                await self.editor.open_document(existing)
            return existing

        sftp = await self._get_sftp()
        try:
            attrs = await sftp.stat(remote_path)
        except SFTP_ERRORS as e:
            raise RemoteFileError(f"Cannot open {remote_path} on {self.alias}: {e}") from e
        if attrs.permissions is None or not stat.S_ISREG(attrs.permissions):
            raise RemoteFileError(f"Unsupported file type: {remote_path}")

        try:
            self.temp_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
            await sftp.get(remote_path, str(local_path))
        except SFTP_ERRORS as e:
            raise RemoteFileError(
                f"Cannot download {remote_path} from {self.alias}: {e}"
            ) from e

        handle = RemoteFileHandle(
            alias=self.alias, local_path=local_path, remote_path=remote_path
        )
        self._handles[local_path] = handle
        logger.info("Opened %s:%s as %s", self.alias, remote_path, local_path)
        if self.editor is not None:
            await self.editor.open_document(handle)
        return handle

    async def save(self, local_path: Path | str) -> str:
        """Upload a local copy to its remote path and discard it.

        The local copy is kept when the upload fails.

        Returns:
            Remote path written

        Raises:
            UploadError: If the path is not mapped or the upload fails
        """
        local = Path(local_path)
        handle = self._handles.get(local)
        if handle is None:
            raise UploadError(f"No remote file is mapped to {local}")

        try:
            sftp = await self._get_sftp()
            await sftp.put(str(local), handle.remote_path)
        except (RemoteFileError, NotConnectedError) as e:
            raise UploadError(f"Cannot upload {local}: {e}") from e
        except SFTP_ERRORS as e:
            raise UploadError(
                f"Upload of {local} to {self.alias}:{handle.remote_path} failed: {e}"
            ) from e

        logger.info("Saved %s to %s:%s", local, self.alias, handle.remote_path)
        self._discard(local)
        return handle.remote_path

    def close(self, local_path: Path | str) -> bool:
        """Discard a local copy without uploading.

        Returns:
            True if the path was mapped
        """
        return self._discard(Path(local_path))

    def _discard(self, local: Path) -> bool:
        handle = self._handles.pop(local, None)
        if handle is None:
            return False
        if self.editor is not None:
            self.editor.close_document(handle)
        try:
            local.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to delete temporary file %s: %s", local, e)
        return True

    async def create_file(self, parent: str, name: str) -> RemoteFileHandle:
        """Create an empty remote file and open it.

        Raises:
            ValueError: If name is not a plain file name
            RemoteFileError: If the file exists or cannot be created
        """
        remote_path = join_remote(parent, validate_remote_name(name))
        sftp = await self._get_sftp()
        try:
            async with sftp.open(remote_path, "x"):
                pass
        except SFTP_ERRORS as e:
            raise RemoteFileError(f"Cannot create {remote_path} on {self.alias}: {e}") from e
        logger.info("Created file %s:%s", self.alias, remote_path)
        return await self.open(remote_path)

    async def create_folder(self, parent: str, name: str) -> "list[RemoteEntry]":
        """Create a remote directory.

        Returns:
            Refreshed listing of the parent directory

        Raises:
            ValueError: If name is not a plain folder name
            RemoteFileError: If the directory cannot be created
        """
        remote_path = join_remote(parent, validate_remote_name(name))
        sftp = await self._get_sftp()
        try:
            await sftp.mkdir(remote_path)
        except SFTP_ERRORS as e:
            raise RemoteFileError(f"Cannot create {remote_path} on {self.alias}: {e}") from e
        logger.info("Created folder %s:%s", self.alias, remote_path)
        return await self.list(parent)

    def cleanup(self) -> int:
        """Delete every local copy.

        Returns:
            Number of copies removed
        """
        count = 0
        for local in list(self._handles):
            if self._discard(local):
                count += 1
        if count:
            logger.info("Cleaned up %d temporary file(s) for %s", count, self.alias)
        return count
