"""Tests for the SSH config file watcher."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from watchdog.events import FileModifiedEvent, FileMovedEvent

from multiconnect_mcp.config import ConfigWatcher
from multiconnect_mcp.config.watcher import _ConfigFileHandler


def test_handler_matches_config_file(tmp_path: Path) -> None:
    """Events for the watched file are forwarded."""
    path = tmp_path / "config"
    callback = MagicMock()
    handler = _ConfigFileHandler(path, callback)

    handler.on_any_event(FileModifiedEvent(str(path)))

    callback.assert_called_once()


def test_handler_ignores_other_files(tmp_path: Path) -> None:
    """Events for sibling files are dropped."""
    callback = MagicMock()
    handler = _ConfigFileHandler(tmp_path / "config", callback)

    handler.on_any_event(FileModifiedEvent(str(tmp_path / "known_hosts")))

    callback.assert_not_called()


def test_handler_matches_atomic_replace(tmp_path: Path) -> None:
    """Editors that save by renaming onto the file still trigger."""
    path = tmp_path / "config"
    callback = MagicMock()
    handler = _ConfigFileHandler(path, callback)

    handler.on_any_event(FileMovedEvent(str(tmp_path / "config.swp"), str(path)))

    callback.assert_called_once()


@pytest.mark.asyncio
async def test_bursts_are_debounced(tmp_path: Path) -> None:
    """Several events in a burst run the callback once."""
    on_change = AsyncMock()
    watcher = ConfigWatcher(
        tmp_path / "config",
        on_change,
        loop=asyncio.get_running_loop(),
        debounce=0.05,
    )

    for _ in range(5):
        watcher._notify()
    await asyncio.sleep(0.3)

    on_change.assert_awaited_once()


@pytest.mark.asyncio
async def test_callback_failure_is_logged(tmp_path: Path) -> None:
    """A failing reload does not escape the watcher."""
    on_change = AsyncMock(side_effect=RuntimeError("boom"))
    watcher = ConfigWatcher(
        tmp_path / "config",
        on_change,
        loop=asyncio.get_running_loop(),
        debounce=0.01,
    )

    watcher._notify()
    await asyncio.sleep(0.2)

    on_change.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_and_stop(tmp_path: Path) -> None:
    """start() schedules the observer on the parent directory."""
    observer = MagicMock()
    watcher = ConfigWatcher(tmp_path / "config", AsyncMock())

    with patch("multiconnect_mcp.config.watcher.Observer", return_value=observer):
        watcher.start()
        assert watcher.running
        watcher.start()

    observer.schedule.assert_called_once()
    assert observer.schedule.call_args.args[1] == str(tmp_path)
    observer.start.assert_called_once()

    watcher.stop()

    assert not watcher.running
    observer.stop.assert_called_once()
    observer.join.assert_called_once()
