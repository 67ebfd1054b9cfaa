"""Tests for the SSH config parser and serializer."""

from multiconnect_mcp.config.parser import format_config, parse_config, render_record
from multiconnect_mcp.models import ConnectionRecord

SAMPLE = """\
# global options
ServerAliveInterval 30

# folderTag: prod/web
Host web1
    HostName 10.0.0.1
    User deploy
    Port 2222
    IdentityFile "~/.ssh/my key"
    ForwardAgent yes

Host db1
  hostname=10.0.0.2
  ProxyJump bastion

Host *.internal
    User ops

Match host bastion
    User jump
"""


def test_parse_connection_blocks_only() -> None:
    """Only single-name Host blocks become records."""
    records = parse_config(SAMPLE).records()

    assert [r.alias for r in records] == ["web1", "db1"]


def test_parse_recognized_keys() -> None:
    """HostName, User, Port and IdentityFile are extracted and unquoted."""
    web = parse_config(SAMPLE).records()[0]

    assert web.hostname == "10.0.0.1"
    assert web.user == "deploy"
    assert web.port == 2222
    assert web.identity_file == "~/.ssh/my key"
    assert web.folder_tag == "prod/web"
    assert web.options == [("ForwardAgent", "yes")]


def test_parse_equals_syntax_and_defaults() -> None:
    """Key=value lines work and port defaults to 22."""
    db = parse_config(SAMPLE).records()[1]

    assert db.hostname == "10.0.0.2"
    assert db.user is None
    assert db.port == 22
    assert db.folder_tag is None
    assert db.options == [("ProxyJump", "bastion")]


def test_parse_hostname_defaults_to_alias() -> None:
    """A block without HostName connects to its alias."""
    record = parse_config("Host plain\n    User me\n").records()[0]

    assert record.hostname == "plain"


def test_parse_ignores_malformed_lines() -> None:
    """A key without a value is skipped, not fatal."""
    record = parse_config("Host box\n    HostName 1.2.3.4\n    User\n").records()[0]

    assert record.user is None
    assert record.hostname == "1.2.3.4"


def test_parse_invalid_port_falls_back() -> None:
    """A non-numeric port falls back to 22."""
    record = parse_config("Host box\n    Port abc\n").records()[0]

    assert record.port == 22


def test_duplicate_alias_first_wins() -> None:
    """The first block of a duplicated alias is the record."""
    text = "Host dup\n    HostName first\n\nHost dup\n    HostName second\n"

    records = parse_config(text).records()

    assert len(records) == 1
    assert records[0].hostname == "first"


def test_upsert_merges_duplicates() -> None:
    """Upsert replaces the first duplicate and drops the rest."""
    parsed = parse_config("Host dup\n    HostName a\n\nHost dup\n    HostName b\n")

    replaced = parsed.upsert(ConnectionRecord(alias="dup", hostname="c"))

    assert replaced is True
    assert [b.alias for b in parsed.blocks] == ["dup"]
    assert parsed.records()[0].hostname == "c"


def test_render_preserves_other_blocks() -> None:
    """Pattern and Match blocks and the preamble survive a round trip."""
    rendered = parse_config(SAMPLE).render()

    assert rendered.startswith("# global options\nServerAliveInterval 30\n\n")
    assert "Host *.internal\n    User ops" in rendered
    assert "Match host bastion\n    User jump" in rendered


def test_remove_drops_folder_tag() -> None:
    """Removing a block removes its folder-tag comment too."""
    parsed = parse_config(SAMPLE)

    assert parsed.remove("web1") is True
    rendered = parsed.render()

    assert "folderTag" not in rendered
    assert "Host web1" not in rendered
    assert parsed.remove("web1") is False


def test_render_record_layout() -> None:
    """Records serialize with folder tag, Host line and indented keys."""
    record = ConnectionRecord(
        alias="app",
        hostname="app.example.com",
        user="root",
        port=22,
        identity_file="/keys/with space",
        folder_tag="a/b",
        options=[("ForwardAgent", "no")],
    )

    assert render_record(record) == (
        "# folderTag: a/b\n"
        "Host app\n"
        "    HostName app.example.com\n"
        "    User root\n"
        "    Port 22\n"
        '    IdentityFile "/keys/with space"\n'
        "    ForwardAgent no\n"
    )


def test_format_config_normalizes_whitespace() -> None:
    """Formatting re-indents bodies and keeps one blank line between blocks."""
    messy = "\n\nHost a\n\tHostName 1.1.1.1\n\n\n\nHost b\n  HostName 2.2.2.2   \n\n\n"

    assert format_config(messy) == (
        "Host a\n    HostName 1.1.1.1\n\nHost b\n    HostName 2.2.2.2\n"
    )


def test_format_config_empty() -> None:
    """An empty file stays empty."""
    assert format_config("") == ""
