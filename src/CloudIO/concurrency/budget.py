"""Process-wide concurrency budget for outbound network operations.

Every budgeted operation (bucket-region probes, downloads issued by callers
of the object stores) acquires one or more permits before opening a
connection, so the process never saturates its connection limits no matter
how many independent subsystems are active.

Key design:
- **Weighted permits**: An operation may request several permits; requests
  larger than the whole budget are clamped to the budget so they can still run.
- **Per event loop**: asyncio primitives are loop-bound, so waiter state is
  kept per running loop. Permits are only shared within a loop.
- **Cancellation safe**: Permits are released in ``finally``; a cancelled
  waiter never leaks permits.
- **Lazy singleton**: :func:`get_concurrency_budget` creates the shared budget
  on first use and rebuilds it in forked children.

Example:
    >>> budget = ConcurrencyBudget(4)
    >>> async def probe():
    ...     async with budget.acquire(1):
    ...         ...
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _LoopState:
    __slots__ = ("available", "condition")

    def __init__(self, limit: int) -> None:
        self.available = limit
        self.condition = asyncio.Condition()


class ConcurrencyBudget:
    """Counting semaphore with weighted acquisition for asyncio code."""

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"Concurrency budget must be positive, got: {limit}")
        self._limit = limit
        self._states: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, _LoopState]" = (
            weakref.WeakKeyDictionary()
        )
        self._states_lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    def available(self) -> int:
        """Return the permits currently free on the running loop (or the full limit)."""

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return self._limit
        with self._states_lock:
            state = self._states.get(loop)
        return self._limit if state is None else state.available

    def _state(self) -> _LoopState:
        loop = asyncio.get_running_loop()
        with self._states_lock:
            state = self._states.get(loop)
            if state is None:
                state = _LoopState(self._limit)
                self._states[loop] = state
            return state

    @asynccontextmanager
    async def acquire(self, weight: int = 1) -> AsyncIterator[int]:
        """Hold *weight* permits for the duration of the ``async with`` block.

        Args:
            weight: Number of permits to hold; clamped to ``[1, limit]``.

        Yields:
            The number of permits actually held.
        """
        granted = min(max(weight, 1), self._limit)
        state = self._state()
        async with state.condition:
            await state.condition.wait_for(lambda: state.available >= granted)
            state.available -= granted
        try:
            yield granted
        finally:
            # Restored before any await so a repeated cancellation cannot leak permits.
            state.available += granted
            await asyncio.shield(_notify_waiters(state))


async def _notify_waiters(state: _LoopState) -> None:
    async with state.condition:
        state.condition.notify_all()


async def with_concurrency_budget(
    weight: int,
    fn: Callable[[], Awaitable[T]],
    budget: Optional[ConcurrencyBudget] = None,
) -> T:
    """Await ``fn()`` while holding *weight* permits of *budget*.

    Args:
        weight: Permits required by the operation.
        fn: Zero-argument coroutine factory, invoked only once permits are held.
        budget: Budget to draw from; defaults to the process-wide budget.

    Returns:
        Whatever ``fn()`` resolves to.
    """
    budget = budget or get_concurrency_budget()
    async with budget.acquire(weight):
        return await fn()


# ============================================================================
# Global Budget State
# ============================================================================

_budget: Optional[ConcurrencyBudget] = None
_budget_lock = threading.Lock()
_budget_pid: Optional[int] = None


def get_concurrency_budget() -> ConcurrencyBudget:
    """Get or create the process-wide :class:`ConcurrencyBudget`.

    The limit comes from ``CLOUDIO_CONCURRENCY_BUDGET`` (see
    :class:`CloudIO.ObjectStore.settings.CloudSettings`).
    """
    global _budget, _budget_pid

    with _budget_lock:
        if _budget is not None and _budget_pid == os.getpid():
            return _budget

        from CloudIO.ObjectStore.settings import get_settings

        _budget = ConcurrencyBudget(get_settings().concurrency_budget)
        _budget_pid = os.getpid()
        logger.debug(
            "Concurrency budget initialized",
            extra={"limit": _budget.limit, "pid": _budget_pid},
        )
        return _budget


def reset_concurrency_budget() -> None:
    """Discard the process-wide budget; the next call to the getter rebuilds it."""

    global _budget, _budget_pid

    with _budget_lock:
        _budget = None
        _budget_pid = None


__all__ = [
    "ConcurrencyBudget",
    "get_concurrency_budget",
    "reset_concurrency_budget",
    "with_concurrency_budget",
]
