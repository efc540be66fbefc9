from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from config import ENABLE_DEBUG

_logger = logging.getLogger(__name__)
if ENABLE_DEBUG and not logging.getLogger().handlers:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s | %(message)s")


class RepeatingTimer:
    """
    Calls *callback* every *interval* seconds on a daemon thread until
    :meth:`cancel` is called.

    Cancelling only prevents future ticks; a callback that is already running
    is left to finish.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: Optional[str] = None) -> None:
        self.interval = interval
        self._callback = callback
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name or "repeating-timer", daemon=True)

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._cancelled.is_set()

    def start(self) -> "RepeatingTimer":
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._cancelled.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._cancelled.wait(self.interval):
            try:
                self._callback()
            except Exception:
                _logger.exception("Timer callback %r failed", self._callback)
