"""Toolkit-independent menu model bound to the action engine."""

from dataclasses import dataclass, field
from typing import List, Optional, Union

import structlog

from .actions.base import ContentEntry, is_default_action, test_action
from .actions.engine import ActionEngine
from .config.settings import Action, ActionConfig, ActionSubmenu

logger = structlog.get_logger(__name__)


@dataclass
class ActionMenuItem:
    """Menu entry for one executable action."""

    action: Action
    visible: bool = False
    is_default: bool = False

    @property
    def label(self) -> str:
        return self.action.name

    @property
    def shortcut_label(self) -> Optional[str]:
        """First shortcut, hidden while the item is marked as default."""
        if self.is_default or not self.action.shortcut:
            return None
        return self.action.shortcut[0]

    def update(self, config: ActionConfig, entry: ContentEntry) -> bool:
        self.is_default = is_default_action(config, entry, self.action)
        self.visible = test_action(entry, self.action)
        return self.visible


@dataclass
class ActionSubmenuItem:
    """Menu entry grouping the items of a submenu."""

    name: str
    items: List[ActionMenuItem] = field(default_factory=list)
    visible: bool = False

    @property
    def label(self) -> str:
        return self.name

    def update(self, config: ActionConfig, entry: ContentEntry) -> bool:
        # Update every child, not just until the first visible one
        results = [item.update(config, entry) for item in self.items]
        self.visible = any(results)
        return self.visible


MenuItem = Union[ActionMenuItem, ActionSubmenuItem]


class ActionMenu:
    """Keeps a list of menu items in sync with the engine's configuration."""

    def __init__(self, engine: ActionEngine) -> None:
        self.engine = engine
        self.items: List[MenuItem] = []
        self._entry: Optional[ContentEntry] = None

        engine.connect("actions-changed", self.rebuild)
        self.rebuild()

    @property
    def entry(self) -> Optional[ContentEntry]:
        return self._entry

    @entry.setter
    def entry(self, entry: ContentEntry) -> None:
        config = self.engine.config
        for item in self.items:
            item.update(config, entry)
        self._entry = entry

    def rebuild(self) -> None:
        """Discard every item and build new ones from the current config."""
        config = self.engine.config
        items: List[MenuItem] = []
        for action in config.actions:
            if isinstance(action, ActionSubmenu):
                items.append(
                    ActionSubmenuItem(
                        name=action.name,
                        items=[ActionMenuItem(a) for a in action.actions],
                    )
                )
            else:
                items.append(ActionMenuItem(action))
        self.items = items

        if self._entry is not None:
            for item in self.items:
                item.update(config, self._entry)

        logger.debug("Rebuilt action menu", items=len(self.items))

    def visible_items(self) -> List[MenuItem]:
        return [item for item in self.items if item.visible]

    def activate(self, item: ActionMenuItem) -> bool:
        """Run the item's action on the current entry."""
        if self._entry is None:
            return False
        return self.engine.activate_action(self._entry, item.action.id)

    def close(self) -> None:
        self.engine.disconnect("actions-changed", self.rebuild)
        self.items = []
