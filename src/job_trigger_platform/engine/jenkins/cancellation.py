"""Cooperative cancellation for blocking trigger calls.

Every remote call and every backoff wait in the engine is a suspension point.
They all consult a :class:`CancellationToken`, so one ``cancel()`` (or an
expired deadline) stops the whole call at the next suspension point.
"""

from __future__ import annotations

import threading
import time


class OperationCancelled(Exception):
    """Raised at a suspension point once the token has fired."""

    def __init__(self, reason: str = "cancelled") -> None:
        super().__init__(reason)
        self.reason = reason


class CancellationToken:
    def __init__(self, *, deadline: float | None = None) -> None:
        self._event = threading.Event()
        # Absolute time.monotonic() value; None means no deadline.
        self._deadline = deadline

    @classmethod
    def none(cls) -> CancellationToken:
        """A token that only fires when ``cancel()`` is called explicitly."""

        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> CancellationToken:
        if seconds <= 0:
            raise ValueError("seconds must be > 0")
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def deadline_expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.deadline_expired

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("cancelled")
        if self.deadline_expired:
            raise OperationCancelled("deadline exceeded")

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def sleep(self, seconds: float) -> None:
        """Wait ``seconds`` unless the token fires first.

        Raises:
            OperationCancelled: if the token fired before or during the wait.
        """

        self.raise_if_cancelled()
        timeout = max(seconds, 0.0)
        remaining = self.remaining()
        if remaining is not None and remaining < timeout:
            self._event.wait(remaining)
        else:
            self._event.wait(timeout)
        self.raise_if_cancelled()
