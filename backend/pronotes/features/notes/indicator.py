"""
Notes feature: transient "Saved!" feedback.
"""

import time
from typing import Callable


class SavedIndicator:
    """Ephemeral success message that clears itself after a fixed delay.

    Holds no durable state: reading `message` after the delay returns "".
    """

    def __init__(self, delay: float = 1.5, clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self._clock = clock
        self._message = ""
        self._expires_at = 0.0

    def show(self, message: str = "Saved!", delay: float | None = None) -> None:
        self._message = message
        self._expires_at = self._clock() + (self.delay if delay is None else delay)

    @property
    def message(self) -> str:
        if self._message and self._clock() >= self._expires_at:
            self._message = ""
        return self._message

    def clear(self) -> None:
        self._message = ""
