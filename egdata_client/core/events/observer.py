"""
Core - Signal

Synchronous in-process notification used for settings changes and the
notification stream. Receivers run on the emitting thread.
"""
import threading
from typing import Callable, List
from loguru import logger


class Signal:
    """
    Named list of receivers called in connection order.

    Settings may be replaced from a UI thread while the scheduler loops
    connect and disconnect on the event loop thread, so the receiver list
    is guarded and `emit()` works on a copy taken under the guard.
    """

    def __init__(self, name: str = "Signal"):
        self.name = name
        self._receivers: List[Callable] = []
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._receivers)

    def connect(self, receiver: Callable) -> None:
        with self._guard:
            if receiver not in self._receivers:
                self._receivers.append(receiver)

    def disconnect(self, receiver: Callable) -> None:
        with self._guard:
            if receiver in self._receivers:
                self._receivers.remove(receiver)

    def emit(self, *args, **kwargs) -> int:
        """
        Call every receiver with the given arguments.

        Returns:
            Number of receivers that returned without raising
        """
        with self._guard:
            receivers = list(self._receivers)

        delivered = 0
        for receiver in receivers:
            try:
                receiver(*args, **kwargs)
                delivered += 1
            except Exception as e:
                logger.error(f"{self.name}: receiver {getattr(receiver, '__qualname__', receiver)} failed: {e}")
        return delivered
