"""Connection record data model."""

from dataclasses import dataclass, field


@dataclass
class ConnectionRecord:
    """A connection block from the SSH client config.

    The alias is the primary key across the whole server. Pass-through
    options (ProxyCommand, ForwardAgent, ...) are kept verbatim and in file
    order; the registry never interprets them.
    """

    alias: str
    hostname: str
    user: str | None = None
    port: int = 22
    identity_file: str | None = None
    folder_tag: str | None = None
    options: list[tuple[str, str]] = field(default_factory=list)

    @property
    def uses_key_auth(self) -> bool:
        """Whether the connection authenticates with a private key."""
        return bool(self.identity_file)

    @property
    def label(self) -> str:
        """Display label, ``user@hostname`` when the user is known."""
        if self.user:
            return f"{self.user}@{self.hostname}"
        return self.hostname

    @property
    def folder_parts(self) -> tuple[str, ...]:
        """Folder tag split into its path components."""
        if not self.folder_tag:
            return ()
        return tuple(p for p in self.folder_tag.split("/") if p)

    def option(self, key: str) -> str | None:
        """Look up a pass-through option (case-insensitive, first match)."""
        wanted = key.lower()
        for name, value in self.options:
            if name.lower() == wanted:
                return value
        return None
