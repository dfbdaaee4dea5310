"""Cancellation and timeout handles for in-flight command invocations."""

import asyncio
from typing import Awaitable, Callable, Optional, Set, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class InvocationCancelled(Exception):
    """Raised when an invocation lost the race against its token."""

    def __init__(self, timed_out: bool) -> None:
        super().__init__("timed out" if timed_out else "cancelled")
        self.timed_out = timed_out


class InvocationToken:
    """Cancellation handle and timer for one in-flight invocation.

    The token is released exactly once: by normal completion (``disarm``),
    by an explicit ``cancel`` or by its timer. Releasing disarms the timer
    and removes the token from its tracker.
    """

    def __init__(
        self,
        timeout: float,
        on_release: Callable[["InvocationToken"], None],
    ) -> None:
        loop = asyncio.get_running_loop()
        self.timed_out = False
        self._released = False
        self._cancelled = asyncio.Event()
        self._on_release = on_release
        self._timer: Optional[asyncio.TimerHandle] = loop.call_later(timeout, self._expire)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def released(self) -> bool:
        return self._released

    def cancel(self) -> None:
        """Cancel the invocation; no-op once released."""
        if self._released:
            return
        self._cancelled.set()
        self._release()

    def disarm(self) -> None:
        """Mark the invocation as completed."""
        self._release()

    def _expire(self) -> None:
        self._timer = None
        if self._released:
            return
        self.timed_out = True
        self.cancel()

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._on_release(self)

    async def race(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the token is cancelled first.

        Completion disarms the token before returning.

        Raises:
            InvocationCancelled: The token was cancelled or timed out first
        """
        work = asyncio.ensure_future(awaitable)
        if self.cancelled:
            work.cancel()
            raise InvocationCancelled(self.timed_out)

        waiter = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()

        if self.cancelled:
            if work.done() and not work.cancelled():
                # Result is discarded, retrieve it so asyncio does not warn
                work.exception()
            raise InvocationCancelled(self.timed_out)

        self.disarm()
        return work.result()


class InvocationTracker:
    """Live set of outstanding invocation tokens."""

    def __init__(self) -> None:
        self._tokens: Set[InvocationToken] = set()

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        return token in self._tokens

    def open(self, timeout: float) -> InvocationToken:
        """Create and register a token whose timer starts now."""
        token = InvocationToken(timeout, self._tokens.discard)
        self._tokens.add(token)
        return token

    def cancel_all(self) -> int:
        """Cancel every live token.

        Returns:
            Number of tokens cancelled
        """
        # Iterate a snapshot, each cancel removes its own token
        tokens = list(self._tokens)
        for token in tokens:
            token.cancel()

        if tokens:
            logger.info("Cancelled live invocations", count=len(tokens))
        return len(tokens)
