# File: voxredact/core/cancellation.py

import logging
from threading import Event, Lock
from typing import Callable, List

from voxredact.core.errors import PipelineCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Cooperative cancellation handle passed down through a pipeline run.

    Stages poll `raise_if_cancelled()` between steps. Network adapters register
    a callback with `on_cancel()` that closes their in-flight HTTP client, so a
    blocked request is interrupted instead of waiting for its timeout.
    """

    def __init__(self):
        self._event = Event()
        self._lock = Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cancellation callback failed: {e}")

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Registers a callback. Runs immediately if already cancelled.
        Returns a function that unregisters it.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._remove(callback)
        callback()
        return lambda: None

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelledError()

    def _remove(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
