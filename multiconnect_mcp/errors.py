"""Error taxonomy for connection, trust, and file operations."""


class MultiConnectError(Exception):
    """Base class for user-facing failures."""


class ConfigError(MultiConnectError):
    """SSH config file could not be read, written, or resolved."""


class ConnectionNotFoundError(ConfigError):
    """No connection record exists for the alias."""

    def __init__(self, alias: str):
        """Initialize with the missing alias.

        Args:
            alias: Alias that was looked up
        """
        self.alias = alias
        super().__init__(f"Unknown connection '{alias}'")


class TrustError(MultiConnectError):
    """Host key lookup, verification, or trust file mutation failed."""


class ScanError(TrustError):
    """Host key scan failed, timed out, or returned no key."""


class AuthError(MultiConnectError):
    """Credentials rejected, missing, or the prompt was declined."""


class ToolMissingError(MultiConnectError):
    """A required external helper is not installed."""

    def __init__(self, tool: str):
        """Initialize with the missing tool name.

        Args:
            tool: Executable that could not be found
        """
        self.tool = tool
        super().__init__(
            f"'{tool}' is not installed or not on PATH. "
            f"Install the OpenSSH client tools to proceed."
        )


class ProtocolError(MultiConnectError):
    """SSH client failure: network, handshake, or runtime error."""


class NotConnectedError(ProtocolError):
    """Operation needs a live session but the alias is not connected."""

    def __init__(self, alias: str):
        """Initialize with the disconnected alias.

        Args:
            alias: Alias without a live session
        """
        self.alias = alias
        super().__init__(f"Connection to '{alias}' is not active. Please reconnect.")


class RemoteFileError(MultiConnectError):
    """Remote file browser operation failed."""


class UploadError(RemoteFileError):
    """Saving a local copy back to the remote host failed."""


class TargetUnavailable(MultiConnectError):
    """Broadcast target has no live terminal."""

    def __init__(self, alias: str):
        """Initialize with the unavailable alias.

        Args:
            alias: Broadcast target without a terminal
        """
        self.alias = alias
        super().__init__(f"No live terminal for '{alias}'")
