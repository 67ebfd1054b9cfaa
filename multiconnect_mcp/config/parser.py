"""SSH config file parser and serializer.

Reads and writes the block-structured OpenSSH client config. A block starts
at a ``Host`` or ``Match`` line and runs until the next one. Connection
records are derived from single-alias ``Host`` blocks; every other line of
the file is preserved so other SSH tooling keeps working on the same file.

A private ``# folderTag: a/b`` comment directly above a ``Host`` line
attaches a display folder to that connection. OpenSSH ignores it.
"""

import logging
import re
from dataclasses import dataclass, field

from multiconnect_mcp.models import ConnectionRecord

logger = logging.getLogger(__name__)

INDENT = "    "
DEFAULT_PORT = 22
FOLDER_TAG_KEY = "folderTag"

_MARKER_RE = re.compile(r"^\s*(Host|Match)(?:\s*=\s*|\s+)(.*?)\s*$", re.IGNORECASE)
_KEY_LINE_RE = re.compile(r"^([A-Za-z][A-Za-z0-9]*)(?:\s*=\s*|\s+)(.*?)$")
_FOLDER_TAG_RE = re.compile(r"^\s*#\s*folderTag:\s*(.*?)\s*$")
_PATTERN_CHARS = frozenset("*?!")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def _quote(value: str) -> str:
    if any(ch.isspace() for ch in value):
        return f'"{value}"'
    return value


@dataclass
class ConfigBlock:
    """A Host/Match block with its raw body lines."""

    keyword: str
    argument: str
    body: list[str] = field(default_factory=list)
    folder_tag: str | None = None

    @property
    def alias(self) -> str | None:
        """Alias for single-name Host blocks, None for patterns and Match."""
        if self.keyword != "host":
            return None
        tokens = self.argument.split()
        if len(tokens) != 1 or _PATTERN_CHARS & set(tokens[0]):
            return None
        return tokens[0]

    def header(self) -> str:
        """Record-start line."""
        return f"{self.keyword.capitalize()} {self.argument}"

    def lines(self) -> list[str]:
        """Block rendered with a normalized four-space body indent."""
        out = []
        if self.folder_tag:
            out.append(f"# {FOLDER_TAG_KEY}: {self.folder_tag}")
        out.append(self.header())
        for raw in self.body:
            stripped = raw.strip()
            out.append(f"{INDENT}{stripped}" if stripped else "")
        while len(out) > 1 and not out[-1]:
            out.pop()
        return out

    def to_record(self) -> ConnectionRecord | None:
        """Derive a connection record from the block body.

        Returns:
            ConnectionRecord, or None if the block is not a connection block
        """
        alias = self.alias
        if alias is None:
            return None

        recognized: dict[str, str] = {}
        options: list[tuple[str, str]] = []

        for raw in self.body:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            match = _KEY_LINE_RE.match(line)
            if not match or not match.group(2):
                logger.debug("Ignoring malformed line in Host %s: %r", alias, line)
                continue
            key, value = match.group(1), match.group(2)
            lowered = key.lower()
            if lowered in ("hostname", "user", "port", "identityfile") and lowered not in recognized:
                recognized[lowered] = _unquote(value)
            else:
                options.append((key, value))

        try:
            port = int(recognized.get("port", DEFAULT_PORT))
        except ValueError:
            logger.warning(
                "Invalid Port %r for Host %s, using %d",
                recognized.get("port"),
                alias,
                DEFAULT_PORT,
            )
            port = DEFAULT_PORT

        return ConnectionRecord(
            alias=alias,
            hostname=recognized.get("hostname") or alias,
            user=recognized.get("user") or None,
            port=port,
            identity_file=recognized.get("identityfile") or None,
            folder_tag=self.folder_tag or None,
            options=options,
        )

    @classmethod
    def from_record(cls, record: ConnectionRecord) -> "ConfigBlock":
        """Build the canonical block for a record.

        Raises:
            ValueError: If any value would span more than one config line
        """
        fields = [
            record.alias,
            record.hostname,
            record.user or "",
            record.identity_file or "",
            record.folder_tag or "",
        ]
        fields.extend(part for option in record.options for part in option)
        for value in fields:
            if "\n" in value or "\r" in value:
                raise ValueError(f"Config value must be a single line: {value!r}")

        body = [f"HostName {record.hostname}"]
        if record.user:
            body.append(f"User {record.user}")
        body.append(f"Port {record.port}")
        if record.identity_file:
            body.append(f"IdentityFile {_quote(record.identity_file)}")
        body.extend(f"{key} {value}" for key, value in record.options)
        return cls(
            keyword="host",
            argument=record.alias,
            body=body,
            folder_tag=record.folder_tag or None,
        )


@dataclass
class ParsedConfig:
    """Whole config file: preamble lines plus ordered blocks."""

    preamble: list[str] = field(default_factory=list)
    blocks: list[ConfigBlock] = field(default_factory=list)

    def records(self) -> list[ConnectionRecord]:
        """Connection records in file order, first block wins on duplicates."""
        records: list[ConnectionRecord] = []
        seen: set[str] = set()
        for block in self.blocks:
            record = block.to_record()
            if record is None:
                continue
            if record.alias in seen:
                logger.warning("Duplicate Host %s ignored", record.alias)
                continue
            seen.add(record.alias)
            records.append(record)
        return records

    def _indexes(self, alias: str) -> list[int]:
        return [i for i, block in enumerate(self.blocks) if block.alias == alias]

    def upsert(self, record: ConnectionRecord) -> bool:
        """Replace the record's block in place or append a new one.

        Later duplicate blocks for the same alias are merged away.

        Returns:
            True if an existing block was replaced
        """
        new_block = ConfigBlock.from_record(record)
        indexes = self._indexes(record.alias)
        if not indexes:
            self.blocks.append(new_block)
            return False

        self.blocks[indexes[0]] = new_block
        for index in reversed(indexes[1:]):
            del self.blocks[index]
        return True

    def remove(self, alias: str) -> bool:
        """Drop every block for the alias (with its folder tag).

        Returns:
            True if anything was removed
        """
        indexes = self._indexes(alias)
        for index in reversed(indexes):
            del self.blocks[index]
        return bool(indexes)

    def render(self) -> str:
        """Serialize with the formatting pass applied."""
        sections: list[list[str]] = []
        preamble = _collapse_blank_lines([line.rstrip() for line in self.preamble])
        if preamble:
            sections.append(preamble)
        for block in self.blocks:
            sections.append(_collapse_blank_lines(block.lines()))

        if not sections:
            return ""
        return "\n\n".join("\n".join(section) for section in sections) + "\n"


def _collapse_blank_lines(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if not line and (not out or not out[-1]):
            continue
        out.append(line)
    while out and not out[-1]:
        out.pop()
    return out


def _pop_folder_tag(lines: list[str]) -> str | None:
    """Remove a trailing folder-tag comment from lines and return its value."""
    index = len(lines) - 1
    while index >= 0 and not lines[index].strip():
        index -= 1
    if index < 0:
        return None
    match = _FOLDER_TAG_RE.match(lines[index])
    if not match:
        return None
    del lines[index:]
    return match.group(1) or None


def parse_config(text: str) -> ParsedConfig:
    """Parse SSH config text into preamble and blocks.

    Args:
        text: Full config file content

    Returns:
        ParsedConfig preserving every non-record line
    """
    parsed = ParsedConfig()
    current: ConfigBlock | None = None

    for line in text.splitlines():
        marker = _MARKER_RE.match(line)
        if marker:
            previous = current.body if current is not None else parsed.preamble
            current = ConfigBlock(
                keyword=marker.group(1).lower(),
                argument=marker.group(2),
                folder_tag=_pop_folder_tag(previous),
            )
            parsed.blocks.append(current)
        elif current is None:
            parsed.preamble.append(line)
        else:
            current.body.append(line)

    return parsed


def render_record(record: ConnectionRecord) -> str:
    """Serialize a single record as a config block."""
    return "\n".join(ConfigBlock.from_record(record).lines()) + "\n"


def format_config(text: str) -> str:
    """Re-indent block bodies and collapse redundant blank lines."""
    return parse_config(text).render()
