from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List

from config import ENABLE_DEBUG

_logger = logging.getLogger(__name__)
if ENABLE_DEBUG and not logging.getLogger().handlers:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s | %(message)s")

Listener = Callable[..., None]


class EventEmitter:
    """
    Minimal publish/subscribe hub over a fixed set of named channels.

    Listeners run synchronously on the emitting thread in registration
    order. A listener that raises is logged and does not prevent the
    remaining listeners from running.
    """

    def __init__(self, event_names: Iterable[str]) -> None:
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in event_names}
        self._listeners_lock = threading.Lock()

    def _check(self, event: str) -> None:
        if event not in self._listeners:
            known = ", ".join(self._listeners)
            raise ValueError(f"Unknown event {event!r} (expected one of: {known})")

    # ──────────────────────────────────────────────────────────
    # public API
    # ──────────────────────────────────────────────────────────

    def event_names(self) -> List[str]:
        return list(self._listeners)

    def on(self, event: str, listener: Listener) -> Listener:
        """Register *listener* for *event*; returns it so this can be a decorator."""
        self._check(event)
        with self._listeners_lock:
            self._listeners[event].append(listener)
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Register *listener* to fire on the next *event* only."""
        fired = threading.Event()

        def _wrapper(*args) -> None:
            if fired.is_set():
                return
            fired.set()
            self.off(event, _wrapper)
            listener(*args)

        _wrapper.listener = listener  # type: ignore[attr-defined]
        return self.on(event, _wrapper)

    def off(self, event: str, listener: Listener) -> None:
        """Remove *listener* (or a :meth:`once` wrapper around it); no-op if absent."""
        self._check(event)
        with self._listeners_lock:
            registered = self._listeners[event]
            for idx, candidate in enumerate(registered):
                if candidate is listener or getattr(candidate, "listener", None) is listener:
                    del registered[idx]
                    return

    def listeners(self, event: str) -> List[Listener]:
        self._check(event)
        with self._listeners_lock:
            return list(self._listeners[event])

    def emit(self, event: str, *args) -> bool:
        """
        Invoke every listener of *event* with *args*.

        Returns ``True`` when at least one listener was registered.
        """
        snapshot = self.listeners(event)
        for listener in snapshot:
            try:
                listener(*args)
            except Exception:
                _logger.exception("Listener %r for %r event failed", listener, event)
        return bool(snapshot)
