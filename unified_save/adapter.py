"""
Subsystem Adapters

A subsystem takes part in save/load by exposing an adapter: a stable id,
a priority, the payload kind its state is stored as, capture/restore and
four lifecycle hooks.
"""

from abc import ABC, abstractmethod
from typing import Optional, Any, Callable, Type

from pydantic import BaseModel

from .snapshot.codec import JSON_KIND, PayloadCodecRegistry


class SubsystemAdapter(ABC):
    """
    Base class for saveable subsystems.

    Lower priority runs first for both capture and restore. Returning
    None from capture_snapshot means "nothing to persist" and is not an
    error.
    """

    system_id: str = ""
    priority: int = 0
    payload_kind: str = JSON_KIND

    @abstractmethod
    def capture_snapshot(self) -> Optional[Any]:
        """Return the state to persist, or None to skip this subsystem."""

    @abstractmethod
    def restore_snapshot(self, payload: Any) -> bool:
        """Apply a decoded payload. Returns True on success."""

    def register_codecs(self, codecs: PayloadCodecRegistry) -> None:
        """Install any codec this adapter's payload kind needs."""

    def on_before_save(self) -> None:
        pass

    def on_after_save(self, success: bool) -> None:
        pass

    def on_before_load(self) -> None:
        pass

    def on_after_load(self, success: bool) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.system_id!r} priority={self.priority}>"


class CallbackAdapter(SubsystemAdapter):
    """Adapter assembled from plain callables."""

    def __init__(
        self,
        system_id: str,
        capture: Callable[[], Optional[Any]],
        restore: Callable[[Any], Optional[bool]],
        priority: int = 0,
        payload_kind: str = JSON_KIND,
        before_save: Callable[[], None] = None,
        after_save: Callable[[bool], None] = None,
        before_load: Callable[[], None] = None,
        after_load: Callable[[bool], None] = None,
    ):
        self.system_id = system_id
        self.priority = priority
        self.payload_kind = payload_kind
        self._capture = capture
        self._restore = restore
        self._before_save = before_save
        self._after_save = after_save
        self._before_load = before_load
        self._after_load = after_load

    def capture_snapshot(self) -> Optional[Any]:
        return self._capture()

    def restore_snapshot(self, payload: Any) -> bool:
        # A restore callback without a return value counts as success
        result = self._restore(payload)
        return True if result is None else bool(result)

    def on_before_save(self) -> None:
        if self._before_save:
            self._before_save()

    def on_after_save(self, success: bool) -> None:
        if self._after_save:
            self._after_save(success)

    def on_before_load(self) -> None:
        if self._before_load:
            self._before_load()

    def on_after_load(self, success: bool) -> None:
        if self._after_load:
            self._after_load(success)


class ModelAdapter(SubsystemAdapter):
    """
    Adapter for subsystems whose state is a single pydantic model.

    The payload kind defaults to the model class name; the codec is
    installed when the adapter is registered with a coordinator.
    """

    def __init__(
        self,
        system_id: str,
        model_cls: Type[BaseModel],
        getter: Callable[[], Optional[BaseModel]],
        setter: Callable[[BaseModel], Optional[bool]],
        priority: int = 0,
        payload_kind: Optional[str] = None,
    ):
        self.system_id = system_id
        self.priority = priority
        self.model_cls = model_cls
        self.payload_kind = payload_kind or model_cls.__name__
        self._getter = getter
        self._setter = setter

    def register_codecs(self, codecs: PayloadCodecRegistry) -> None:
        if self.payload_kind not in codecs:
            codecs.register_model(self.model_cls, kind=self.payload_kind)

    def capture_snapshot(self) -> Optional[BaseModel]:
        return self._getter()

    def restore_snapshot(self, payload: Any) -> bool:
        if not isinstance(payload, self.model_cls):
            return False
        result = self._setter(payload)
        return True if result is None else bool(result)
