"""Configuration models using Pydantic."""

import os
import re
import uuid
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..utils.color import ColorSpace


class ContentType(str, Enum):
    """Classification of a clipboard entry."""

    TEXT = "text"
    CODE = "code"
    IMAGE = "image"
    FILE = "file"
    FILES = "files"
    LINK = "link"
    CHARACTER = "character"
    COLOR = "color"


class ActionOutput(str, Enum):
    """Host channel that receives the result of an action."""

    COPY = "copy"
    PASTE = "paste"


def _new_action_id() -> str:
    return uuid.uuid4().hex


class BaseAction(BaseModel):
    """Fields shared by every executable action."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(
        default_factory=_new_action_id,
        min_length=1,
        description="Stable identifier used for direct invocation"
    )
    name: str = Field(
        min_length=1,
        description="Display name"
    )
    shortcut: Optional[List[str]] = Field(
        default=None,
        description="Keyboard accelerators, the first one is displayed"
    )
    pattern: Optional[str] = Field(
        default=None,
        description="Regular expression the entry content must match"
    )
    types: Optional[List[ContentType]] = Field(
        default=None,
        description="Content classifications this action applies to"
    )
    mimes: Optional[List[str]] = Field(
        default=None,
        description="MIME types the entry must carry, \"image/*\" matches a whole family"
    )

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid pattern: {e}") from e
        return value


class CommandAction(BaseAction):
    """Run a shell command with the entry content on stdin."""

    type: Literal["command"] = "command"
    command: str = Field(
        min_length=1,
        description="Shell command, match groups are passed as $1, $2, ..."
    )
    output: ActionOutput = Field(
        default=ActionOutput.COPY,
        description="Channel receiving the trimmed stdout"
    )


class ColorAction(BaseAction):
    """Convert a color to another color space."""

    type: Literal["color"] = "color"
    space: ColorSpace = Field(
        description="Target color space"
    )
    output: ActionOutput = Field(
        default=ActionOutput.COPY,
        description="Channel receiving the converted color"
    )


class QrCodeAction(BaseAction):
    """Show the entry content as a QR code."""

    type: Literal["qrcode"] = "qrcode"


Action = Annotated[
    Union[CommandAction, ColorAction, QrCodeAction],
    Field(discriminator="type"),
]


class ActionSubmenu(BaseModel):
    """Named group of actions, used for presentation only."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["submenu"] = "submenu"
    name: str = Field(min_length=1)
    actions: Tuple[Action, ...] = Field(default_factory=tuple)


ActionItem = Annotated[
    Union[CommandAction, ColorAction, QrCodeAction, ActionSubmenu],
    Field(discriminator="type"),
]


class ActionConfig(BaseModel):
    """The complete, loaded list of actions.

    Instances are immutable snapshots, a new config replaces the old one.
    """

    model_config = ConfigDict(frozen=True)

    actions: Tuple[ActionItem, ...] = Field(
        default_factory=tuple,
        description="Actions and submenus in display order"
    )
    defaults: Mapping[ContentType, str] = Field(
        default_factory=dict,
        validate_default=True,
        description="Default action id per content classification"
    )

    @field_validator("actions")
    @classmethod
    def _assign_unique_ids(cls, actions: Tuple[ActionItem, ...]) -> Tuple[ActionItem, ...]:
        seen: set[str] = set()

        def unique(action: BaseAction) -> BaseAction:
            if action.id in seen:
                action = action.model_copy(update={"id": _new_action_id()})
            seen.add(action.id)
            return action

        items = []
        for item in actions:
            if isinstance(item, ActionSubmenu):
                item = item.model_copy(
                    update={"actions": tuple(unique(a) for a in item.actions)}
                )
            else:
                item = unique(item)
            items.append(item)
        return tuple(items)

    @field_validator("defaults")
    @classmethod
    def _freeze_defaults(cls, defaults: Mapping[ContentType, str]) -> Mapping[ContentType, str]:
        return MappingProxyType(dict(defaults))

    @field_serializer("defaults")
    def _serialize_defaults(self, defaults: Mapping[ContentType, str]) -> Dict[ContentType, str]:
        return dict(defaults)


def _default_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "clip-actions" / "actions.json"


class AppSettings(BaseSettings):
    """Global application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLIP_ACTIONS_",
        case_sensitive=False,
        validate_assignment=True,
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["json", "plain"] = Field(
        default="json",
        description="Log format (json, plain)"
    )

    # Action configuration file
    config_path: Path = Field(
        default_factory=_default_config_path,
        description="Path of the JSON action configuration"
    )
    reload_debounce_seconds: float = Field(
        default=0.2,
        ge=0,
        le=5,
        description="Delay before reloading after the config file was written"
    )

    # Command execution
    command_timeout: float = Field(
        default=30,
        gt=0,
        le=600,
        description="Wall-clock timeout for command actions in seconds"
    )
    shell: str = Field(
        default="sh",
        min_length=1,
        description="Shell used to interpret command actions"
    )
