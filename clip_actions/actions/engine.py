"""Action execution engine: dispatch, output routing and invocation lifecycle."""

import asyncio
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Set, assert_never

import structlog
from prometheus_client import Counter, Gauge

from ..config.settings import (
    Action,
    ActionConfig,
    AppSettings,
    ColorAction,
    CommandAction,
    QrCodeAction,
)
from .base import (
    ActionResult,
    ActionStatus,
    ContentEntry,
    find_action_by_id,
    find_default_action,
    test_action,
)
from .builtin import ColorActionHandler, CommandActionHandler, QrCodeActionHandler
from .invocation import InvocationTracker

if TYPE_CHECKING:
    from ..config.store import ActionConfigStore

logger = structlog.get_logger(__name__)

# Prometheus metrics
INVOCATIONS_TOTAL = Counter(
    "clip_actions_invocations_total",
    "Total number of action invocations",
    ["kind", "status"],
)

LIVE_INVOCATIONS = Gauge(
    "clip_actions_live_invocations",
    "Number of command actions currently running",
)

SIGNALS = ("copy", "paste", "qr-code", "actions-changed")


class ActionEngine:
    """Runs actions on clipboard entries and routes their output to the host.

    Signals:
        copy(text): place text on the clipboard
        paste(text): paste text into the focused window
        qr-code(text): present text as a QR code
        actions-changed(): the action configuration was replaced
    """

    def __init__(
        self,
        store: "ActionConfigStore",
        settings: Optional[AppSettings] = None,
        *,
        command_timeout: Optional[float] = None,
        shell: Optional[str] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Source of the active action configuration
            settings: Application settings supplying timeout and shell
            command_timeout: Overrides the command timeout in seconds
            shell: Overrides the shell used for command actions
        """
        if command_timeout is None:
            command_timeout = settings.command_timeout if settings else 30
        if shell is None:
            shell = settings.shell if settings else "sh"

        self._store = store
        self._tracker = InvocationTracker()
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False
        self._signals: Dict[str, List[Callable[..., Any]]] = {name: [] for name in SIGNALS}

        self._command = CommandActionHandler(self.emit, self._tracker, command_timeout, shell)
        self._color = ColorActionHandler(self.emit)
        self._qr_code = QrCodeActionHandler(self.emit)

        store.connect(self._on_config_changed)

        logger.info("Initialized ActionEngine", command_timeout=command_timeout, shell=shell)

    @property
    def store(self) -> "ActionConfigStore":
        return self._store

    @property
    def config(self) -> ActionConfig:
        return self._store.config

    @property
    def live_invocations(self) -> int:
        """Number of command invocations still holding a token."""
        return len(self._tracker)

    def connect(self, signal: str, callback: Callable[..., Any]) -> None:
        """Connect a callback to one of the engine signals."""
        if signal not in self._signals:
            raise ValueError(f"Unknown signal '{signal}'")
        self._signals[signal].append(callback)

    def disconnect(self, signal: str, callback: Callable[..., Any]) -> None:
        handlers = self._signals.get(signal, [])
        if callback in handlers:
            handlers.remove(callback)

    def emit(self, signal: str, *args: Any) -> None:
        """Invoke every callback connected to a signal."""
        for callback in list(self._signals[signal]):
            try:
                callback(*args)
            except Exception:
                logger.exception("Signal handler failed", signal=signal)

    def _on_config_changed(self, config: ActionConfig) -> None:
        self.emit("actions-changed")

    async def run(self, entry: ContentEntry, action: Action) -> ActionResult:
        """Execute an action on an entry.

        Never raises: failures are logged and reported in the result.

        Args:
            entry: Entry the action runs on
            action: Action to execute

        Returns:
            Result of action execution
        """
        start_time = time.monotonic()
        kind = getattr(action, "type", type(action).__name__)

        if self._closed:
            return ActionResult(
                status=ActionStatus.CANCELLED,
                message="Action engine is shut down",
            )

        try:
            if isinstance(action, CommandAction):
                with LIVE_INVOCATIONS.track_inprogress():
                    result = await self._command.execute(entry, action)
            elif isinstance(action, ColorAction):
                result = await self._color.execute(entry, action)
            elif isinstance(action, QrCodeAction):
                result = await self._qr_code.execute(entry, action)
            else:
                assert_never(action)

        except Exception as e:
            logger.exception(
                "Action execution failed",
                action=getattr(action, "name", None),
                error=str(e),
            )
            result = ActionResult(
                status=ActionStatus.FAILED,
                message=f"Action failed: {str(e)}",
                details={"error": str(e), "error_type": type(e).__name__},
            )

        result.execution_time_seconds = time.monotonic() - start_time
        INVOCATIONS_TOTAL.labels(kind=kind, status=result.status.value).inc()

        logger.debug(
            "Action execution completed",
            action=getattr(action, "name", None),
            status=result.status.value,
            execution_time=result.execution_time_seconds,
        )

        return result

    def activate_default_action(self, entry: ContentEntry) -> bool:
        """Run the default action for the entry's classification.

        Returns:
            True if an applicable default action was scheduled
        """
        action = find_default_action(self._store.config, entry)
        if action is None or not test_action(entry, action):
            return False
        return self._schedule(entry, action)

    def activate_action(self, entry: ContentEntry, action_id: str) -> bool:
        """Run a specific action by id.

        Returns:
            True if the action exists, applies to the entry and was scheduled
        """
        action = find_action_by_id(self._store.config, action_id)
        if action is None or not test_action(entry, action):
            return False
        return self._schedule(entry, action)

    def _schedule(self, entry: ContentEntry, action: Action) -> bool:
        if self._closed:
            logger.warning("Ignoring activation after shutdown", action=action.name)
            return False

        task = asyncio.get_running_loop().create_task(self.run(entry, action))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def join(self) -> None:
        """Wait until every scheduled activation has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel every live invocation and stop accepting new ones."""
        if self._closed:
            return
        self._closed = True
        self._store.disconnect(self._on_config_changed)

        cancelled = self._tracker.cancel_all()
        await self.join()

        logger.info("Action engine shut down", cancelled=cancelled)

    def get_stats(self) -> Dict[str, Any]:
        """Get engine statistics.

        Returns:
            Dictionary with statistics
        """
        return {
            "live_invocations": len(self._tracker),
            "scheduled_runs": len(self._tasks),
            "closed": self._closed,
        }
