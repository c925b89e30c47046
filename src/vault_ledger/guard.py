from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator

from .errors import ReentrantCall


class ReentrancyGuard:
    """Lock shared by all mutating entry points of one vault.

    The operation holding the guard is recorded in a context variable, so
    anything running in its context (an oracle or transfer callback, or a
    task spawned from one) fails immediately with ``ReentrantCall``.
    Independent tasks wait on the lock and run one after the other.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._holder: ContextVar[str | None] = ContextVar(
            f"reentrancy_guard_{id(self):x}", default=None
        )

    @property
    def entered(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def hold(self, operation: str) -> AsyncIterator[None]:
        current = self._holder.get()
        if current is not None:
            raise ReentrantCall(f"{operation} called while {current} is in progress")
        async with self._lock:
            token = self._holder.set(operation)
            try:
                yield
            finally:
                self._holder.reset(token)
