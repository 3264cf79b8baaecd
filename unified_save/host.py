"""
Host collaborators: a service lookup and a one-shot readiness signal.
"""

import asyncio
import inspect
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("unified_save.host")


class HostContext:
    """Type-keyed service store the coordinator registers itself in."""

    def __init__(self):
        self._services: Dict[type, Any] = {}
        self._lock = threading.RLock()

    def register(self, service_type: type, instance: Any) -> None:
        with self._lock:
            if service_type in self._services:
                logger.warning(f"Replacing registered service: {service_type.__name__}")
            self._services[service_type] = instance

    def unregister(self, service_type: type) -> None:
        with self._lock:
            self._services.pop(service_type, None)

    def get(self, service_type: type) -> Optional[Any]:
        with self._lock:
            return self._services.get(service_type)

    def __contains__(self, service_type: type) -> bool:
        return service_type in self._services


class BootstrapSignal:
    """
    Fires once when the host finishes bootstrapping.

    Subscribers added after completion are not called; check is_ready
    first. Coroutine callbacks are scheduled on the running loop.
    """

    def __init__(self):
        self._ready = False
        self._subscribers: List[Callable[[], Any]] = []
        self._lock = threading.Lock()
        self._tasks: set = set()

    @property
    def is_ready(self) -> bool:
        return self._ready

    def subscribe(self, callback: Callable[[], Any]) -> None:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[], Any]) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def complete(self) -> None:
        """Mark bootstrap complete and notify subscribers once."""
        with self._lock:
            if self._ready:
                return
            self._ready = True
            subscribers, self._subscribers = self._subscribers, []

        logger.debug(f"Bootstrap complete, notifying {len(subscribers)} subscribers")
        for callback in subscribers:
            try:
                result = callback()
                if inspect.isawaitable(result):
                    self._schedule(result)
            except Exception as e:
                logger.error(f"Bootstrap subscriber failed: {e}")

    def _schedule(self, awaitable) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop in this thread: run to completion
            asyncio.run(_await(awaitable))
            return
        task = loop.create_task(_await(awaitable))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


async def _await(awaitable) -> Any:
    return await awaitable
