# application/services/cancellation.py
from __future__ import annotations

import threading


class CancellationToken:
    """
    Cooperative cancellation for one execution.
    wait() doubles as the cancellable sleep used for step delays.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """
        Sleep up to `seconds`. Returns True when cancelled during the wait.
        """
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(seconds)
