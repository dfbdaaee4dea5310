"""Unit tests for config hot reload."""

import asyncio
import sys
from unittest.mock import MagicMock

import pytest
from watchdog.events import FileClosedEvent, FileModifiedEvent, FileMovedEvent

from clip_actions.config import ActionConfig, QrCodeAction
from clip_actions.config.store import ActionConfigStore, save_config
from clip_actions.config.watcher import ConfigFileHandler, ConfigWatcher


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "actions.json"
    save_config(path, ActionConfig(actions=[QrCodeAction(id="before", name="Before")]))
    return path


class TestConfigFileHandler:
    """Test which filesystem events trigger a reload."""

    def make_handler(self, path):
        watcher = MagicMock()
        watcher.path = path.resolve()
        return ConfigFileHandler(watcher), watcher

    def test_closed_config_file(self, config_path):
        handler, watcher = self.make_handler(config_path)

        handler.on_closed(FileClosedEvent(str(config_path)))

        watcher.notify.assert_called_once()

    def test_closed_other_file(self, config_path):
        handler, watcher = self.make_handler(config_path)

        handler.on_closed(FileClosedEvent(str(config_path.parent / "other.json")))

        watcher.notify.assert_not_called()

    def test_renamed_onto_config_file(self, config_path):
        handler, watcher = self.make_handler(config_path)
        tmp_file = config_path.parent / ".actions.json.tmp"

        handler.on_moved(FileMovedEvent(str(tmp_file), str(config_path)))

        watcher.notify.assert_called_once()

    def test_renamed_away_from_config_file(self, config_path):
        handler, watcher = self.make_handler(config_path)

        handler.on_moved(FileMovedEvent(str(config_path), str(config_path) + ".bak"))

        watcher.notify.assert_not_called()

    def test_partial_write_is_ignored(self, config_path):
        """Test that modifications alone never reload a half-written file."""
        handler, watcher = self.make_handler(config_path)

        handler.dispatch(FileModifiedEvent(str(config_path)))

        watcher.notify.assert_not_called()


class TestConfigWatcher:
    """Test ConfigWatcher."""

    @pytest.mark.asyncio
    async def test_notifications_are_debounced(self, config_path):
        store = ActionConfigStore(config_path)
        store.load()
        listener = MagicMock()
        store.connect(listener)
        watcher = ConfigWatcher(store, asyncio.get_running_loop(), debounce_seconds=0.05)

        save_config(config_path, ActionConfig(actions=[QrCodeAction(id="after", name="After")]))
        for _ in range(3):
            watcher.notify()
        await asyncio.sleep(0.3)

        listener.assert_called_once()
        assert store.find_action_by_id("after") is not None

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_reload(self, config_path):
        store = ActionConfigStore(config_path)
        listener = MagicMock()
        store.connect(listener)
        watcher = ConfigWatcher(store, asyncio.get_running_loop(), debounce_seconds=0.05)

        watcher.notify()
        await asyncio.sleep(0.01)
        watcher.stop()
        await asyncio.sleep(0.2)

        listener.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform != "linux", reason="close events require inotify")
    async def test_reloads_after_file_rewrite(self, config_path):
        store = ActionConfigStore(config_path)
        store.load()
        reloaded = asyncio.Event()
        store.connect(lambda config: reloaded.set())
        watcher = ConfigWatcher(store, asyncio.get_running_loop(), debounce_seconds=0.05)

        watcher.start()
        try:
            assert watcher.is_running()
            await asyncio.sleep(0.1)
            save_config(config_path, ActionConfig(actions=[QrCodeAction(id="after", name="After")]))
            await asyncio.wait_for(reloaded.wait(), timeout=5)
        finally:
            watcher.stop()

        assert not watcher.is_running()
        assert store.find_action_by_id("before") is None
        assert store.find_action_by_id("after") is not None
