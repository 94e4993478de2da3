"""Progress reporting for long repair runs (observational only)."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class Progress:
    """A bounded position with a message.  The base class just tracks values."""

    def __init__(self) -> None:
        self.minimum = 0
        self.maximum = 100
        self.position = 0
        self.message = ""

    def set_range(self, minimum: int, maximum: int) -> None:
        self.minimum = minimum
        self.maximum = max(maximum, minimum)
        self.position = minimum

    def set_message(self, message: str) -> None:
        self.message = message

    def step(self, amount: int = 1) -> None:
        self.position += amount
        if self.position > self.maximum:
            self.position = self.minimum


class LoggingProgress(Progress):
    """Reports the message and every ``percent_step`` percent to the log."""

    def __init__(self, percent_step: int = 10) -> None:
        super().__init__()
        self._percent_step = percent_step
        self._last_reported = -1

    def set_range(self, minimum: int, maximum: int) -> None:
        super().set_range(minimum, maximum)
        self._last_reported = -1

    def set_message(self, message: str) -> None:
        super().set_message(message)
        logger.info(message)

    def step(self, amount: int = 1) -> None:
        super().step(amount)
        span = self.maximum - self.minimum
        if span <= 0:
            return
        percent = (self.position - self.minimum) * 100 // span
        bucket = percent // self._percent_step
        if bucket != self._last_reported:
            self._last_reported = bucket
            logger.debug(f"{self.message} {percent}%")
