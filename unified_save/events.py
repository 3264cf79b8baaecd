"""
Save Events

Observer lists for save/load notifications. Handlers are called
synchronously in subscription order; a failing handler is logged and
the remaining handlers still run.
"""

import logging
import threading
from typing import Any, Callable, Dict, List

logger = logging.getLogger("unified_save.events")

BEFORE_SAVE = "before_save"
AFTER_SAVE = "after_save"
BEFORE_LOAD = "before_load"
AFTER_LOAD = "after_load"

EVENT_NAMES = (BEFORE_SAVE, AFTER_SAVE, BEFORE_LOAD, AFTER_LOAD)


class SaveEvents:
    """
    Event channel used by the coordinator.

    before_save(slot_key), after_save(slot_key, success),
    before_load(slot_key), after_load(slot_key, success)
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._handlers: Dict[str, List[Callable[..., Any]]] = {name: [] for name in EVENT_NAMES}

    def subscribe(self, event: str, handler: Callable[..., Any]) -> None:
        if event not in self._handlers:
            raise ValueError(f"Unknown save event: {event}")
        with self._lock:
            if handler not in self._handlers[event]:
                self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Callable[..., Any]) -> None:
        with self._lock:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

    def clear(self) -> None:
        with self._lock:
            for handlers in self._handlers.values():
                handlers.clear()

    def emit(self, event: str, *args: Any) -> None:
        with self._lock:
            handlers = list(self._handlers.get(event, []))
        for handler in handlers:
            try:
                handler(*args)
            except Exception as e:
                logger.error(f"Handler for '{event}' failed: {e}")

    # Decorator-style shortcuts

    def before_save(self, handler: Callable[[str], Any]) -> Callable[[str], Any]:
        self.subscribe(BEFORE_SAVE, handler)
        return handler

    def after_save(self, handler: Callable[[str, bool], Any]) -> Callable[[str, bool], Any]:
        self.subscribe(AFTER_SAVE, handler)
        return handler

    def before_load(self, handler: Callable[[str], Any]) -> Callable[[str], Any]:
        self.subscribe(BEFORE_LOAD, handler)
        return handler

    def after_load(self, handler: Callable[[str, bool], Any]) -> Callable[[str, bool], Any]:
        self.subscribe(AFTER_LOAD, handler)
        return handler
