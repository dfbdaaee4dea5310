"""Run user-defined actions on clipboard content."""

__version__ = "0.1.0"
