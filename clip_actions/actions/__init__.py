"""Action matching and execution."""

from .base import ActionHandler, ActionResult, ActionStatus, ContentEntry
from .engine import ActionEngine
from .invocation import InvocationCancelled, InvocationToken, InvocationTracker

__all__ = [
    "ActionEngine",
    "ActionHandler",
    "ActionResult",
    "ActionStatus",
    "ContentEntry",
    "InvocationCancelled",
    "InvocationToken",
    "InvocationTracker",
]
