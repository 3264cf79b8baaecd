"""
Payload Codec Registry

Maps payload kind tags to encode/decode functions. Stored snapshots
carry the tag next to each payload, and restore resolves the decoder
through this table.
"""

import dataclasses
import json
import logging
import threading
from dataclasses import dataclass
from typing import Optional, Dict, List, Any, Callable, Type

from pydantic import BaseModel, TypeAdapter

from ..errors import UnknownPayloadKindError, PayloadEncodeError, PayloadDecodeError

logger = logging.getLogger("unified_save.snapshot.codec")

JSON_KIND = "json"

Encoder = Callable[[Any, bool], str]
Decoder = Callable[[str], Any]


@dataclass(frozen=True)
class PayloadCodec:
    """Encode/decode pair for one payload kind."""
    kind: str
    encode: Encoder
    decode: Decoder


def _json_encode(value: Any, pretty: bool) -> str:
    return json.dumps(value, indent=2 if pretty else None, sort_keys=pretty)


def _json_decode(payload: str) -> Any:
    return json.loads(payload)


class PayloadCodecRegistry:
    """
    Strategy table of payload codecs.

    Populated at startup next to subsystem registration. The built-in
    "json" kind handles plain JSON values.
    """

    def __init__(self, include_json: bool = True):
        self._codecs: Dict[str, PayloadCodec] = {}
        self._lock = threading.RLock()
        if include_json:
            self.register(JSON_KIND, _json_encode, _json_decode)

    def register(self, kind: str, encode: Encoder, decode: Decoder) -> PayloadCodec:
        """Register a codec; an existing codec for the same kind is replaced."""
        if not kind:
            raise ValueError("Payload kind must be a non-empty string")

        codec = PayloadCodec(kind=kind, encode=encode, decode=decode)
        with self._lock:
            if kind in self._codecs:
                logger.warning(f"Replacing codec for payload kind '{kind}'")
            self._codecs[kind] = codec
        logger.debug(f"Registered codec: {kind}")
        return codec

    def register_model(self, model_cls: Type[BaseModel], kind: Optional[str] = None) -> str:
        """Register a pydantic model as a payload kind. Returns the kind tag."""
        kind = kind or model_cls.__name__

        def encode(value: Any, pretty: bool) -> str:
            if not isinstance(value, model_cls):
                value = model_cls.model_validate(value)
            return value.model_dump_json(indent=2 if pretty else None)

        self.register(kind, encode, model_cls.model_validate_json)
        return kind

    def register_dataclass(self, cls: type, kind: Optional[str] = None) -> str:
        """
        Register a dataclass as a payload kind. Returns the kind tag.

        Field annotations drive decoding, so nested dataclasses and
        containers of them come back as instances, not dicts.
        """
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"{cls!r} is not a dataclass")
        kind = kind or cls.__name__
        adapter = TypeAdapter(cls)

        def encode(value: Any, pretty: bool) -> str:
            return adapter.dump_json(value, indent=2 if pretty else None).decode("utf-8")

        def decode(payload: str) -> Any:
            return adapter.validate_json(payload)

        self.register(kind, encode, decode)
        return kind

    def unregister(self, kind: str) -> bool:
        with self._lock:
            return self._codecs.pop(kind, None) is not None

    def get(self, kind: str) -> PayloadCodec:
        """Resolve the codec for a kind."""
        with self._lock:
            codec = self._codecs.get(kind)
        if codec is None:
            raise UnknownPayloadKindError(kind)
        return codec

    def encode(self, kind: str, value: Any, pretty: bool = False) -> str:
        codec = self.get(kind)
        try:
            return codec.encode(value, pretty)
        except Exception as e:
            raise PayloadEncodeError(f"Failed to encode '{kind}' payload: {e}") from e

    def decode(self, kind: str, payload: str) -> Any:
        codec = self.get(kind)
        try:
            return codec.decode(payload)
        except Exception as e:
            raise PayloadDecodeError(f"Failed to decode '{kind}' payload: {e}") from e

    def kinds(self) -> List[str]:
        with self._lock:
            return sorted(self._codecs)

    def __contains__(self, kind: str) -> bool:
        with self._lock:
            return kind in self._codecs

    def __len__(self) -> int:
        return len(self._codecs)
