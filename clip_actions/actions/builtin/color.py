"""Built-in action for converting colors."""

import structlog

from ...config.settings import ColorAction
from ...utils.color import Color
from ..base import ActionHandler, ActionResult, ActionStatus, ContentEntry, Emit

logger = structlog.get_logger(__name__)


class ColorActionHandler(ActionHandler):
    """Action handler converting a color entry to another color space."""

    def __init__(self, emit: Emit) -> None:
        super().__init__("color", "Convert a color to another color space", emit)

    async def execute(self, entry: ContentEntry, action: ColorAction) -> ActionResult:
        """Execute color conversion action."""
        if not self.can_handle(entry, action):
            return ActionResult(
                status=ActionStatus.SKIPPED,
                message=f"Action '{action.name}' does not apply to this entry",
            )

        color = Color.parse(entry.content.strip())
        if color is None:
            logger.debug("Entry is not a color", action=action.name)
            return ActionResult(
                status=ActionStatus.SKIPPED,
                message="Entry content is not a color",
            )

        converted = str(color.to_color(action.space))
        self._emit(action.output.value, converted)

        return ActionResult(
            status=ActionStatus.COMPLETED,
            message=f"Converted color to {action.space.value}",
            details={"output": converted, "channel": action.output.value},
        )
