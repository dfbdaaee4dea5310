"""Built-in action for presenting content as a QR code."""

from ...config.settings import QrCodeAction
from ..base import ActionHandler, ActionResult, ActionStatus, ContentEntry, Emit


class QrCodeActionHandler(ActionHandler):
    """Asks the host to present the raw entry content as a QR code."""

    def __init__(self, emit: Emit) -> None:
        super().__init__("qrcode", "Show the entry content as a QR code", emit)

    async def execute(self, entry: ContentEntry, action: QrCodeAction) -> ActionResult:
        if not self.can_handle(entry, action):
            return ActionResult(
                status=ActionStatus.SKIPPED,
                message=f"Action '{action.name}' does not apply to this entry",
            )

        self._emit("qr-code", entry.content)
        return ActionResult(
            status=ActionStatus.COMPLETED,
            message="Presented QR code",
        )
