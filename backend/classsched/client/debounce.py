from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_DELAY_SECONDS = 0.5


class Debouncer(Generic[T]):
    """Delays a call until input has been quiet for `delay` seconds.

    Every `schedule` or `cancel` starts a new generation. A timer that has not
    fired yet is cancelled outright; a call that is already in flight keeps
    running, but its outcome is dropped unless its generation is still the
    latest one.
    """

    def __init__(self, delay: float = DEFAULT_DELAY_SECONDS) -> None:
        self._delay = delay
        self._generation = 0
        self._timer: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def schedule(
        self,
        factory: Callable[[], Awaitable[T]],
        on_result: Callable[[T], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> int:
        self.cancel()
        generation = self._generation
        self._timer = asyncio.get_running_loop().create_task(
            self._fire(generation, factory, on_result, on_error)
        )
        return generation

    def cancel(self) -> None:
        self._generation += 1
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def drain(self) -> None:
        """Wait for the pending timer and every in-flight call to finish."""
        tasks = set(self._in_flight)
        if self._timer is not None:
            tasks.add(self._timer)
        if tasks:
            await asyncio.wait(tasks)

    async def _fire(
        self,
        generation: int,
        factory: Callable[[], Awaitable[T]],
        on_result: Callable[[T], None],
        on_error: Callable[[Exception], None] | None,
    ) -> None:
        await asyncio.sleep(self._delay)
        if not self.is_current(generation):
            return

        task = asyncio.current_task()
        self._timer = None
        self._in_flight.add(task)
        try:
            try:
                result = await factory()
            except Exception as exc:
                if not self.is_current(generation):
                    return
                if on_error is None:
                    raise
                on_error(exc)
                return
            if self.is_current(generation):
                on_result(result)
        finally:
            self._in_flight.discard(task)
