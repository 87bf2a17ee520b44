"""Cooperative cancellation signal shared between a caller and a search."""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe one-shot trigger carrying an optional reason.

    Usage:
        token = CancellationToken()
        threading.Timer(30, token.cancel, args=("timed out",)).start()
        coordinator.run(config, token)
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason = None
        self._callbacks: list[Callable] = []

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self):
        """The reason passed to the first cancel() call, or None."""
        return self._reason

    def cancel(self, reason=None) -> None:
        """Trigger the token. Only the first call has any effect."""
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            self._invoke(callback)

    def add_callback(self, callback: Callable) -> None:
        """Call ``callback(reason)`` once the token fires.

        Runs immediately if the token is already cancelled.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        self._invoke(callback)

    def remove_callback(self, callback: Callable) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def wait(self, timeout: float = None) -> bool:
        return self._event.wait(timeout)

    def _invoke(self, callback: Callable) -> None:
        try:
            callback(self._reason)
        except Exception:
            logger.exception("Cancellation callback %r failed", callback)
