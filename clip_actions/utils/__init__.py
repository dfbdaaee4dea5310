"""Utility functions and helpers."""

from .color import Color, ColorSpace
from .logging import setup_logging

__all__ = ["Color", "ColorSpace", "setup_logging"]
