"""Built-in action for running shell commands."""

import asyncio
import os
import signal

import structlog

from ...config.settings import CommandAction
from ..base import ActionHandler, ActionResult, ActionStatus, ContentEntry, Emit, match_action
from ..invocation import InvocationCancelled, InvocationTracker

logger = structlog.get_logger(__name__)


class CommandActionHandler(ActionHandler):
    """Action handler for running a shell command on the entry content."""

    def __init__(
        self,
        emit: Emit,
        tracker: InvocationTracker,
        timeout: float = 30,
        shell: str = "sh",
    ) -> None:
        """Initialize the command action.

        Args:
            emit: Callback used to route output signals to the host
            tracker: Live set the invocation tokens are registered in
            timeout: Wall-clock timeout in seconds, measured from spawn
            shell: Shell used to interpret the command string
        """
        super().__init__("command", "Run a shell command on the entry content", emit)
        self.tracker = tracker
        self.timeout = timeout
        self.shell = shell

    def build_argv(self, action: CommandAction, groups: list) -> list[str]:
        """Build the process argument vector.

        ``$0`` is a placeholder so capture groups start at ``$1``.
        """
        captures = [group or "" for group in groups[1:]]
        return [self.shell, "-c", action.command, "_", *captures]

    async def execute(self, entry: ContentEntry, action: CommandAction) -> ActionResult:
        """Execute command action."""
        groups = match_action(entry, action)
        if groups is None:
            return ActionResult(
                status=ActionStatus.SKIPPED,
                message=f"Action '{action.name}' does not apply to this entry",
            )

        argv = self.build_argv(action, groups)
        # Lone surrogates come from undecodable input bytes, write those bytes back
        stdin = entry.content.encode("utf-8", errors="surrogateescape")
        token = self.tracker.open(self.timeout)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )

            logger.debug("Spawned command action", action=action.name, pid=process.pid)

            try:
                stdout, stderr = await token.race(process.communicate(stdin))
            except InvocationCancelled as cancelled:
                self._terminate(process)
                logger.debug(
                    "Command action cancelled",
                    action=action.name,
                    timed_out=cancelled.timed_out,
                )
                return ActionResult(
                    status=ActionStatus.TIMED_OUT if cancelled.timed_out else ActionStatus.CANCELLED,
                    message=f"Action '{action.name}' {cancelled}",
                    details={"timeout_seconds": self.timeout} if cancelled.timed_out else {},
                )
            except BaseException:
                self._terminate(process)
                raise
        finally:
            token.cancel()

        output = stdout.decode("utf-8", errors="replace").strip()
        if process.returncode != 0:
            error_output = stderr.decode("utf-8", errors="replace")
            logger.error(
                "Command action failed",
                action=action.name,
                exit_code=process.returncode,
                stderr=error_output,
            )
            return ActionResult(
                status=ActionStatus.FAILED,
                message=f"Action '{action.name}' exited with status {process.returncode}",
                details={"exit_code": process.returncode, "stderr": error_output},
            )

        if not output:
            return ActionResult(
                status=ActionStatus.COMPLETED,
                message=f"Action '{action.name}' produced no output",
                details={"exit_code": 0},
            )

        self._emit(action.output.value, output)
        return ActionResult(
            status=ActionStatus.COMPLETED,
            message=f"Action '{action.name}' routed output to {action.output.value}",
            details={"exit_code": 0, "output": output, "channel": action.output.value},
        )

    def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Kill the process group without waiting for it to exit."""
        if process.returncode is not None:
            return
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
