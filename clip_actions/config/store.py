"""Loading, persisting and hot-replacing the action configuration."""

import os
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

import structlog
from pydantic import ValidationError

from ..actions.base import ContentEntry, find_action_by_id, find_default_action
from ..utils.color import ColorSpace
from .settings import (
    ActionConfig,
    ActionOutput,
    ActionSubmenu,
    BaseAction,
    ColorAction,
    CommandAction,
    ContentType,
    QrCodeAction,
)

logger = structlog.get_logger(__name__)

ConfigListener = Callable[[ActionConfig], None]


def default_config() -> ActionConfig:
    """Build the configuration installed on first run."""
    color_actions = [
        ColorAction(
            id=f"color-{space.value}",
            name=f"Convert to {space.value.upper()}",
            types=[ContentType.COLOR],
            space=space,
            output=ActionOutput.COPY,
        )
        for space in ColorSpace
    ]

    return ActionConfig(
        actions=[
            CommandAction(
                id="open-link",
                name="Open Link",
                shortcut=["<Ctrl>o"],
                pattern=r"^\s*(https?://\S+)\s*$",
                types=[ContentType.LINK, ContentType.TEXT],
                command='xdg-open "$1"',
            ),
            CommandAction(
                id="uppercase",
                name="Uppercase",
                types=[ContentType.TEXT, ContentType.CODE],
                command="tr '[:lower:]' '[:upper:]'",
                output=ActionOutput.PASTE,
            ),
            ActionSubmenu(name="Color", actions=color_actions),
            QrCodeAction(
                id="qr-code",
                name="QR Code",
                types=[ContentType.TEXT, ContentType.LINK, ContentType.CODE],
            ),
        ],
        defaults={
            ContentType.LINK: "open-link",
            ContentType.COLOR: "color-hex",
        },
    )


def save_config(path: Path, config: ActionConfig) -> None:
    """Write the canonical form of a configuration.

    Args:
        path: Destination file, parent directories are created
        config: Configuration to serialize
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump_json(indent=2, exclude_none=True)

    # Replace atomically so watchers never observe a partial file
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data + "\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_config(path: Path, persist: bool = False) -> ActionConfig:
    """Load the action configuration.

    A missing file yields the default configuration. A file that cannot be
    read or validated yields an empty configuration; this function never
    raises for a bad config.

    Args:
        path: JSON configuration file
        persist: Write the normalized configuration back after loading

    Returns:
        Loaded configuration
    """
    try:
        if path.exists():
            config = ActionConfig.model_validate_json(path.read_text(encoding="utf-8"))
        else:
            logger.info("No action config found, using defaults", path=str(path))
            config = default_config()
    except (OSError, UnicodeDecodeError, ValidationError) as e:
        logger.warning("Failed to load action config", path=str(path), error=str(e))
        return ActionConfig()

    if persist:
        try:
            save_config(path, config)
        except OSError as e:
            logger.warning("Failed to save action config", path=str(path), error=str(e))

    return config


class ActionConfigStore:
    """Holds the active configuration and notifies listeners on replacement."""

    def __init__(self, path: Path) -> None:
        """Initialize the store with an empty configuration.

        Args:
            path: JSON configuration file backing this store
        """
        self.path = path
        self._config = ActionConfig()
        self._listeners: List[ConfigListener] = []

    @property
    def config(self) -> ActionConfig:
        """Current configuration snapshot."""
        return self._config

    def connect(self, listener: ConfigListener) -> None:
        self._listeners.append(listener)

    def disconnect(self, listener: ConfigListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def load(self, persist: bool = False) -> ActionConfig:
        """Load the backing file and install it as the active configuration."""
        config = load_config(self.path, persist)
        self.replace(config)
        return config

    def reload(self) -> None:
        """Reload after an external change to the backing file."""
        logger.info("Reloading action config", path=str(self.path))
        self.load()

    def replace(self, config: ActionConfig) -> None:
        """Install a new configuration and notify every listener once."""
        self._config = config

        logger.debug(
            "Installed action config",
            actions=len(config.actions),
            defaults=len(config.defaults),
        )

        for listener in list(self._listeners):
            try:
                listener(config)
            except Exception:
                logger.exception("Action config listener failed")

    def find_action_by_id(self, action_id: str) -> Optional[BaseAction]:
        return find_action_by_id(self._config, action_id)

    def find_default_action(self, entry: ContentEntry) -> Optional[BaseAction]:
        return find_default_action(self._config, entry)
