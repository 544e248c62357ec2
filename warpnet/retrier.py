"""Retrying of a callable with optional back-off between attempts."""

from __future__ import annotations

import enum
import random
import threading
import time
from concurrent.futures import CancelledError
from typing import Any, Callable, Optional


class RetrierError(Exception):
    """Base of the retrier's own errors."""


class DeadlineReachedError(RetrierError):
    """Raised when every attempt has failed."""

    def __init__(self, last_error: Optional[BaseException] = None):
        message = "retrier: deadline reached"
        if last_error is not None:
            message = f"{last_error} {message}"
        super().__init__(message)
        self.last_error = last_error


class StopTrying(RetrierError):
    """Raised by a retried callable to end retrying at once."""

    def __init__(self, message: str = "retrier: stop trying"):
        super().__init__(message)


class Backoff(enum.IntEnum):
    NONE = 0
    ARITHMETICAL = 1
    EXPONENTIAL = 2


def _jitter(min_interval: float) -> float:
    return random.random() * (min_interval / 2)


class Retrier:
    """Calls a function until it succeeds, up to ``max_attempts`` times.

    Intervals are in seconds. After each failure the interval grows by the
    chosen back-off and a random jitter of up to half the minimum interval is
    added before sleeping.
    """

    def __init__(
        self,
        min_interval: float,
        max_attempts: int,
        backoff: Backoff = Backoff.NONE,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must not be negative")
        if max_attempts < 0:
            raise ValueError("max_attempts must not be negative")
        self.min_interval = min_interval
        self.max_attempts = max_attempts
        self.backoff = Backoff(backoff)
        self._sleep = sleep

    def run(self, func: Callable[[], Any], cancel: Optional[threading.Event] = None) -> Any:
        """Return what ``func`` returns on its first successful call.

        A ``StopTrying`` raised by ``func`` propagates unchanged; when all
        attempts fail, ``DeadlineReachedError`` is raised from the last error;
        a set ``cancel`` event ends the loop with ``CancelledError``.
        """
        interval = self.min_interval
        last_error: Optional[Exception] = None

        for _ in range(self.max_attempts):
            if cancel is not None and cancel.is_set():
                raise CancelledError()
            try:
                return func()
            except StopTrying:
                raise
            except Exception as exc:
                last_error = exc

            if self.backoff is Backoff.ARITHMETICAL:
                interval = interval + interval
            elif self.backoff is Backoff.EXPONENTIAL:
                interval = interval * interval
            self._sleep(interval + _jitter(self.min_interval))

        raise DeadlineReachedError(last_error) from last_error