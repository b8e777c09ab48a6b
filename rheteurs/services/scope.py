"""
Lifetime scope for in-flight requests.

Each controller owns one ViewScope. Requests awaited or spawned through it
are cancelled when the controller closes, and a result that would land
after close() is dropped instead of being written into torn-down state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from rheteurs.errors import RheteursError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScopeClosed(Exception):
    """The owning view closed before the request finished."""

    pass


class ViewScope:
    """Tracks the requests started on behalf of one view."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._inflight: set[asyncio.Future[Any]] = set()
        self._spawned: set[asyncio.Task[Any]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._inflight)

    async def run(self, work: Awaitable[T]) -> T:
        """
        Await a request tied to this scope.

        Raises:
            ScopeClosed: If the scope was closed before or while waiting.
                Cancellation of the caller itself propagates unchanged.
        """
        if self._closed:
            if asyncio.iscoroutine(work):
                work.close()
            raise ScopeClosed(self.name)

        future = asyncio.ensure_future(work)
        self._inflight.add(future)
        try:
            result = await future
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._closed and current is not None and not current.cancelling():
                raise ScopeClosed(self.name) from None
            raise
        finally:
            self._inflight.discard(future)
        if self._closed:
            raise ScopeClosed(self.name)
        return result

    def spawn(
        self,
        work: Coroutine[Any, Any, T],
        on_result: Callable[[T], None] | None = None,
    ) -> asyncio.Task[T | None]:
        """
        Start a request in the background.

        ``on_result`` runs only if the scope is still open when the request
        completes. Backend errors are logged; nothing is applied.
        """

        async def runner() -> T | None:
            try:
                result = await self.run(work)
            except ScopeClosed:
                logger.debug("%s: discarded result after close", self.name)
                return None
            except RheteursError as e:
                logger.warning("%s: background request failed: %s", self.name, e.message)
                return None
            if on_result is not None and not self._closed:
                on_result(result)
            return result

        task = asyncio.create_task(runner())
        self._spawned.add(task)
        task.add_done_callback(self._spawned.discard)
        return task

    async def close(self) -> None:
        """Cancel everything in flight and wait for it to unwind. Idempotent."""
        if self._closed:
            return
        self._closed = True
        inflight = list(self._inflight)
        for future in inflight:
            future.cancel()
        await asyncio.gather(*inflight, *self._spawned, return_exceptions=True)
        logger.debug("%s: closed (%d request(s) cancelled)", self.name, len(inflight))
