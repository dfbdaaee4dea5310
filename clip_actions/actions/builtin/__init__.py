"""Built-in action handlers."""

from .color import ColorActionHandler
from .command import CommandActionHandler
from .qr_code import QrCodeActionHandler

__all__ = ["ColorActionHandler", "CommandActionHandler", "QrCodeActionHandler"]
