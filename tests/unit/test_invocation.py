"""Unit tests for invocation tokens and the live set."""

import asyncio

import pytest

from clip_actions.actions.invocation import (
    InvocationCancelled,
    InvocationTracker,
)


class TestInvocationToken:
    """Test InvocationToken."""

    @pytest.mark.asyncio
    async def test_open_registers_token(self):
        tracker = InvocationTracker()

        token = tracker.open(timeout=10)

        assert token in tracker
        assert len(tracker) == 1
        token.cancel()

    @pytest.mark.asyncio
    async def test_completion_disarms_timer(self):
        tracker = InvocationTracker()
        token = tracker.open(timeout=0.05)

        result = await token.race(asyncio.sleep(0, result="done"))
        await asyncio.sleep(0.1)

        assert result == "done"
        assert token.released
        assert not token.cancelled
        assert not token.timed_out
        assert len(tracker) == 0

    @pytest.mark.asyncio
    async def test_timer_cancels_token(self):
        tracker = InvocationTracker()
        token = tracker.open(timeout=0.05)

        with pytest.raises(InvocationCancelled) as exc_info:
            await token.race(asyncio.sleep(5))

        assert exc_info.value.timed_out
        assert token.cancelled
        assert token.timed_out
        assert len(tracker) == 0

    @pytest.mark.asyncio
    async def test_explicit_cancel(self):
        tracker = InvocationTracker()
        token = tracker.open(timeout=10)
        asyncio.get_running_loop().call_later(0.05, token.cancel)

        with pytest.raises(InvocationCancelled) as exc_info:
            await token.race(asyncio.sleep(5))

        assert not exc_info.value.timed_out
        assert not token.timed_out
        assert len(tracker) == 0

    @pytest.mark.asyncio
    async def test_race_after_cancel_fails_fast(self):
        tracker = InvocationTracker()
        token = tracker.open(timeout=10)
        token.cancel()
        work = asyncio.ensure_future(asyncio.sleep(5))

        with pytest.raises(InvocationCancelled):
            await token.race(work)

        await asyncio.sleep(0.01)
        assert work.cancelled()

    @pytest.mark.asyncio
    async def test_cancelled_work_is_stopped(self):
        tracker = InvocationTracker()
        token = tracker.open(timeout=0.05)
        work = asyncio.ensure_future(asyncio.sleep(5))

        with pytest.raises(InvocationCancelled):
            await token.race(work)

        await asyncio.sleep(0.01)
        assert work.cancelled()

    @pytest.mark.asyncio
    async def test_release_happens_once(self):
        released = []
        tracker = InvocationTracker()
        token = tracker.open(timeout=10)
        token._on_release = released.append

        token.cancel()
        token.cancel()
        token.disarm()

        assert released == [token]

    @pytest.mark.asyncio
    async def test_cancel_after_completion_is_noop(self):
        tracker = InvocationTracker()
        token = tracker.open(timeout=10)

        await token.race(asyncio.sleep(0))
        token.cancel()

        assert not token.cancelled

    @pytest.mark.asyncio
    async def test_work_exception_propagates(self):
        tracker = InvocationTracker()
        token = tracker.open(timeout=10)

        async def fail():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await token.race(fail())

        assert len(tracker) == 0


class TestInvocationTracker:
    """Test InvocationTracker.cancel_all."""

    @pytest.mark.asyncio
    async def test_cancel_all_empties_live_set(self):
        tracker = InvocationTracker()
        tokens = [tracker.open(timeout=10) for _ in range(5)]

        cancelled = tracker.cancel_all()

        assert cancelled == 5
        assert len(tracker) == 0
        assert all(token.cancelled for token in tokens)

    @pytest.mark.asyncio
    async def test_cancel_all_wakes_every_race(self):
        tracker = InvocationTracker()
        races = [
            asyncio.ensure_future(tracker.open(timeout=10).race(asyncio.sleep(5)))
            for _ in range(3)
        ]
        await asyncio.sleep(0.01)

        tracker.cancel_all()
        results = await asyncio.gather(*races, return_exceptions=True)

        assert all(isinstance(r, InvocationCancelled) for r in results)
        assert all(not r.timed_out for r in results)

    def test_cancel_all_on_empty_tracker(self):
        assert InvocationTracker().cancel_all() == 0
