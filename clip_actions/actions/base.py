"""Base classes for action handlers and action matching."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Iterator, List, Mapping, Optional

import structlog

from ..config.settings import ActionConfig, ActionSubmenu, BaseAction, ContentType

logger = structlog.get_logger(__name__)

Emit = Callable[..., None]


class ActionStatus(Enum):
    """Terminal state of an action invocation."""

    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"


@dataclass
class ActionResult:
    """Result of action execution."""

    status: ActionStatus
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    execution_time_seconds: float = 0.0


@dataclass(frozen=True)
class ContentEntry:
    """Clipboard content an action is tested against and executed on."""

    content: str
    type: ContentType = ContentType.TEXT
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def mime(self) -> Optional[str]:
        """MIME type hint from the metadata, if any."""
        return self.metadata.get("mime")


def _mime_accepted(mime: Optional[str], accepted: List[str]) -> bool:
    if not mime:
        return False
    mime = mime.lower()
    family = mime.split("/", 1)[0] + "/*"
    return any(m.lower() in (mime, family) for m in accepted)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> "re.Pattern[str]":
    return re.compile(pattern)


def match_action(entry: ContentEntry, action: BaseAction) -> Optional[List[Optional[str]]]:
    """Match an action against an entry.

    Args:
        entry: Entry to match
        action: Action whose pattern, types and MIME types are checked

    Returns:
        The whole match followed by every capture group (None for groups
        that did not participate), or None if the action does not apply
    """
    if action.types is not None and entry.type not in action.types:
        return None
    if action.mimes is not None and not _mime_accepted(entry.mime, action.mimes):
        return None

    match = _compile(action.pattern or "").search(entry.content)
    if match is None:
        return None
    return [match.group(0), *match.groups()]


def test_action(entry: ContentEntry, action: BaseAction) -> bool:
    """Check whether an action applies to an entry."""
    return match_action(entry, action) is not None


def iter_actions(config: ActionConfig) -> Iterator[BaseAction]:
    """Yield every executable action in load order, submenus expanded."""
    for item in config.actions:
        if isinstance(item, ActionSubmenu):
            yield from item.actions
        else:
            yield item


def is_default_action(config: ActionConfig, entry: ContentEntry, action: BaseAction) -> bool:
    """Check whether an action is the applicable default for an entry."""
    if config.defaults.get(entry.type) != action.id:
        return False
    return test_action(entry, action)


def find_default_action(config: ActionConfig, entry: ContentEntry) -> Optional[BaseAction]:
    """Find the first default action for the entry's classification."""
    for action in iter_actions(config):
        if is_default_action(config, entry, action):
            return action
    return None


def find_action_by_id(config: ActionConfig, action_id: str) -> Optional[BaseAction]:
    """Look up an action by its id."""
    for action in iter_actions(config):
        if action.id == action_id:
            return action
    return None


class ActionHandler(ABC):
    """Base class for all action handlers."""

    def __init__(self, name: str, description: str, emit: Emit) -> None:
        """Initialize action handler.

        Args:
            name: Action kind handled by this handler
            description: Human-readable description
            emit: Callback used to route output signals to the host
        """
        self.name = name
        self.description = description
        self._emit = emit

        logger.debug("Registered action handler", action=name, description=description)

    def can_handle(self, entry: ContentEntry, action: BaseAction) -> bool:
        """Determine if the action applies to the entry."""
        return test_action(entry, action)

    @abstractmethod
    async def execute(self, entry: ContentEntry, action: Any) -> ActionResult:
        """Execute the action.

        Args:
            entry: Entry the action runs on
            action: Action of the kind this handler supports

        Returns:
            Result of action execution
        """
        pass
