"""
Single-slot synchronous handoff between the reader and update threads,
plus the cancellation token shared by every blocking point.
"""

import threading
from typing import Any, Callable

from loguru import logger

_EMPTY = object()
_POLL_INTERVAL = 0.1  # seconds between cancellation checks while blocked


class CancelToken:
    """One-shot cancellation flag that fans out to registered callbacks."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], Any]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def add_callback(self, callback: Callable[[], Any]) -> None:
        """Run `callback` on cancel; runs it now if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        self._run(callback)

    def cancel(self) -> None:
        """Idempotent. Callbacks run once, in registration order."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        logger.debug(f"Cancellation requested, notifying {len(callbacks)} callback(s)")
        for callback in callbacks:
            self._run(callback)

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    @staticmethod
    def _run(callback: Callable[[], Any]) -> None:
        try:
            callback()
        except Exception as e:
            logger.warning(f"Cancel callback {getattr(callback, '__name__', callback)!r} failed: {e}")


class Handoff:
    """
    Unbuffered rendezvous channel.

    `send` returns only once a receiver has taken the value, so a slow
    consumer stalls the producer instead of samples piling up or being
    dropped.
    """

    def __init__(self, token: CancelToken):
        self._token = token
        self._cond = threading.Condition()
        self._slot: Any = _EMPTY
        token.add_callback(self._wake)

    def send(self, value: float) -> bool:
        """
        Hand `value` to the receiver.

        Returns:
            True once the value was taken, False if cancelled first
        """
        with self._cond:
            while self._slot is not _EMPTY:
                if self._token.cancelled:
                    return False
                self._cond.wait(_POLL_INTERVAL)

            self._slot = value
            self._cond.notify_all()

            while self._slot is value:
                if self._token.cancelled:
                    self._slot = _EMPTY
                    return False
                self._cond.wait(_POLL_INTERVAL)
            return True

    def receive(self) -> float | None:
        """Block for the next value; None once cancelled."""
        with self._cond:
            while self._slot is _EMPTY:
                if self._token.cancelled:
                    return None
                self._cond.wait(_POLL_INTERVAL)

            value, self._slot = self._slot, _EMPTY
            self._cond.notify_all()
            return value

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()
