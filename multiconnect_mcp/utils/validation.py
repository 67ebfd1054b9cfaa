"""Input validation for connection records and remote names."""

import posixpath
from typing import Final

# Characters that would break an ssh_config line or a Host pattern
_ALIAS_FORBIDDEN: Final[frozenset[str]] = frozenset("*?!#\"'=,/\\")
_INJECTION_CHARS: Final[tuple[str, ...]] = (";", "&", "|", "$", "`", "\n", "\r", "\x00")


def _has_control_chars(value: str) -> bool:
    return any(ord(ch) < 32 or ord(ch) == 127 for ch in value)


def validate_alias(alias: str) -> str:
    """Validate a connection alias.

    Args:
        alias: Proposed Host alias

    Returns:
        Stripped alias

    Raises:
        ValueError: If the alias is empty, contains whitespace, or would be
            read as a Host pattern
    """
    alias = (alias or "").strip()
    if not alias:
        raise ValueError("Alias cannot be empty")
    if any(ch.isspace() for ch in alias):
        raise ValueError(f"Alias cannot contain whitespace: {alias!r}")
    bad = sorted(_ALIAS_FORBIDDEN & set(alias))
    if bad:
        raise ValueError(f"Alias contains invalid characters {''.join(bad)!r}: {alias}")
    return alias


def validate_hostname(host: str) -> str:
    """Validate a host name or address.

    Raises:
        ValueError: If host name is invalid
    """
    host = (host or "").strip()
    if not host:
        raise ValueError("Host cannot be empty")

    if len(host) > 253:
        raise ValueError(f"Host name too long: {len(host)} chars")

    if any(ch.isspace() for ch in host) or any(ch in host for ch in _INJECTION_CHARS):
        raise ValueError(f"Host contains invalid characters: {host!r}")

    return host


def validate_port(port: int | str) -> int:
    """Validate a TCP port.

    Raises:
        ValueError: If port is not an integer in 1-65535
    """
    try:
        value = int(port)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid port: {port!r}") from e
    if not 1 <= value <= 65535:
        raise ValueError(f"Port out of range: {value}")
    return value


def validate_remote_name(name: str) -> str:
    """Validate a single file or folder name for creation.

    Raises:
        ValueError: If the name is empty, a path, or a dot entry
    """
    name = (name or "").strip()
    if not name:
        raise ValueError("Name cannot be empty")
    if "/" in name or "\x00" in name:
        raise ValueError(f"Name must not contain '/' or null bytes: {name!r}")
    if name in (".", ".."):
        raise ValueError(f"Invalid name: {name}")
    return name


def validate_config_value(value: str | None, field: str) -> str | None:
    """Strip an optional single-line config value.

    Raises:
        ValueError: If the value contains control characters such as newlines
    """
    value = (value or "").strip()
    if _has_control_chars(value):
        raise ValueError(f"{field} contains control characters: {value!r}")
    return value or None


def join_remote(parent: str, name: str) -> str:
    """Join a remote directory and an entry name (POSIX semantics)."""
    return posixpath.join(parent or ".", name)


def normalize_folder_tag(tag: str | None) -> str | None:
    """Collapse a folder tag to ``a/b`` form.

    Empty components are dropped, so ``/a//b/`` becomes ``a/b``. A blank
    tag means no folder.

    Returns:
        Normalized tag, or None for a blank tag

    Raises:
        ValueError: If the tag contains control characters
    """
    if tag is None:
        return None
    if _has_control_chars(tag):
        raise ValueError(f"Folder tag contains control characters: {tag!r}")
    parts = [part.strip() for part in tag.split("/")]
    normalized = "/".join(part for part in parts if part)
    return normalized or None
