from __future__ import annotations

import asyncio

DEFAULT_BANNER_SECONDS = 3.0


class TimedBanner:
    """Error message that clears itself after a fixed delay."""

    def __init__(self, duration: float = DEFAULT_BANNER_SECONDS) -> None:
        self.duration = duration
        self.message: str | None = None
        self._handle: asyncio.TimerHandle | None = None

    def show(self, message: str) -> None:
        self.dismiss()
        self.message = message
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the message stays until dismissed.
            return
        self._handle = loop.call_later(self.duration, self._expire)

    def dismiss(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.message = None

    def _expire(self) -> None:
        self._handle = None
        self.message = None
