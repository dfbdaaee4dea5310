"""Configuration management with Pydantic models."""

from .settings import (
    ActionConfig,
    ActionOutput,
    ActionSubmenu,
    AppSettings,
    ColorAction,
    CommandAction,
    ContentType,
    QrCodeAction,
)

__all__ = [
    "ActionConfig",
    "ActionOutput",
    "ActionSubmenu",
    "AppSettings",
    "ColorAction",
    "CommandAction",
    "ContentType",
    "QrCodeAction",
]
