"""Pytest configuration and fixtures for clip-actions tests."""

from functools import partial

import pytest

from clip_actions.actions import ActionEngine, ContentEntry
from clip_actions.config import (
    ActionConfig,
    ActionOutput,
    ActionSubmenu,
    AppSettings,
    ColorAction,
    CommandAction,
    ContentType,
    QrCodeAction,
)
from clip_actions.config.store import ActionConfigStore
from clip_actions.utils.color import ColorSpace


class SignalRecorder:
    """Collects the output signals emitted by an engine."""

    def __init__(self, engine: ActionEngine) -> None:
        self.events: list[tuple[str, str]] = []
        for signal in ("copy", "paste", "qr-code"):
            engine.connect(signal, partial(self._record, signal))

    def _record(self, signal: str, text: str) -> None:
        self.events.append((signal, text))


@pytest.fixture
def app_settings(tmp_path):
    """Provide test application settings."""
    return AppSettings(
        log_level="DEBUG",
        config_path=tmp_path / "actions.json",
        command_timeout=5,
        reload_debounce_seconds=0.05,
    )


@pytest.fixture
def sample_config():
    """Provide a configuration covering every action kind."""
    return ActionConfig(
        actions=[
            CommandAction(
                id="echo-url",
                name="Echo URL",
                pattern=r"^(https?://.*)$",
                command='echo "$1"',
                output=ActionOutput.COPY,
            ),
            CommandAction(
                id="upper",
                name="Uppercase",
                shortcut=["<Ctrl>u"],
                types=[ContentType.TEXT],
                command="tr '[:lower:]' '[:upper:]'",
                output=ActionOutput.PASTE,
            ),
            ActionSubmenu(
                name="Color",
                actions=[
                    ColorAction(
                        id="to-hsl",
                        name="To HSL",
                        types=[ContentType.COLOR],
                        space=ColorSpace.HSL,
                        output=ActionOutput.PASTE,
                    ),
                    ColorAction(
                        id="to-rgb",
                        name="To RGB",
                        types=[ContentType.COLOR],
                        space=ColorSpace.RGB,
                    ),
                ],
            ),
            QrCodeAction(id="qr", name="QR Code", types=[ContentType.LINK]),
        ],
        defaults={
            ContentType.LINK: "echo-url",
            ContentType.COLOR: "to-hsl",
        },
    )


@pytest.fixture
def config_store(tmp_path, sample_config):
    """Provide a store holding the sample configuration."""
    store = ActionConfigStore(tmp_path / "actions.json")
    store.replace(sample_config)
    return store


@pytest.fixture
async def engine(config_store):
    """Provide an ActionEngine that is shut down after the test."""
    engine = ActionEngine(config_store, command_timeout=5)
    yield engine
    await engine.shutdown()


@pytest.fixture
def recorder(engine):
    """Record copy, paste and qr-code signals of the engine."""
    return SignalRecorder(engine)


@pytest.fixture
def link_entry():
    return ContentEntry("http://x", ContentType.LINK)


@pytest.fixture
def color_entry():
    return ContentEntry("#ff0000", ContentType.COLOR)
