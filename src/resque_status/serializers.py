"""
Pluggable encoding of worker runtime arguments.

The store only sees opaque text; what a worker's args bag looks like is
understood by the caller alone. A :class:`Serializer` turns the bag into
that text and back, and is injected into the registry rather than fixed
as one global format.

Architecture:
    ::

        Serializer (Protocol)
        ├── JsonSerializer    — default, portable across languages
        └── PickleSerializer  — any picklable object, trusted clusters only

        API: encode(args) → str
             decode(payload) → args

Guardrails:
    ❌ DON'T: Use PickleSerializer when untrusted processes can write the store
    ✅ DO: Keep args to JSON-compatible values and use the default

Tags:
    serialization, json, pickle, protocol, resque-status

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import base64
import binascii
import json
import pickle
from enum import Enum
from typing import Any, Protocol

from .errors import ConfigError, PayloadDecodeError, PayloadEncodeError


class SerializerKind(str, Enum):
    """Built-in payload formats."""

    JSON = "json"
    PICKLE = "pickle"


class Serializer(Protocol):
    """Protocol for args-bag encoders."""

    def encode(self, args: Any) -> str:
        """Encode *args* to the text stored in the worker table.

        Raises:
            PayloadEncodeError: If *args* cannot be represented.
        """
        ...

    def decode(self, payload: str) -> Any:
        """Decode a stored payload back to its structured form.

        Raises:
            PayloadDecodeError: If *payload* is not valid for this format.
        """
        ...


class JsonSerializer:
    """JSON payloads (dicts, lists, strings, numbers, booleans, null)."""

    def __init__(self, *, sort_keys: bool = False):
        self._sort_keys = sort_keys

    def encode(self, args: Any) -> str:
        try:
            return json.dumps(args, sort_keys=self._sort_keys)
        except (TypeError, ValueError) as exc:
            raise PayloadEncodeError(
                f"Worker args are not JSON-serializable: {exc}", cause=exc
            ) from exc

    def decode(self, payload: str) -> Any:
        try:
            return json.loads(payload)
        except (TypeError, ValueError) as exc:
            raise PayloadDecodeError(
                f"Stored worker args are not valid JSON: {exc}", cause=exc
            ) from exc


class PickleSerializer:
    """Base64-wrapped pickle payloads for arbitrary Python objects."""

    def __init__(self, *, protocol: int = pickle.DEFAULT_PROTOCOL):
        self._protocol = protocol

    def encode(self, args: Any) -> str:
        try:
            raw = pickle.dumps(args, protocol=self._protocol)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise PayloadEncodeError(
                f"Worker args are not picklable: {exc}", cause=exc
            ) from exc
        return base64.b64encode(raw).decode("ascii")

    def decode(self, payload: str) -> Any:
        try:
            raw = base64.b64decode(payload, validate=True)
            return pickle.loads(raw)
        except (
            binascii.Error,
            pickle.UnpicklingError,
            EOFError,
            ValueError,
            TypeError,
            AttributeError,
            ImportError,
            IndexError,
            KeyError,
        ) as exc:
            raise PayloadDecodeError(
                f"Stored worker args are not a pickle payload: {exc}", cause=exc
            ) from exc


_SERIALIZERS: dict[SerializerKind, type] = {
    SerializerKind.JSON: JsonSerializer,
    SerializerKind.PICKLE: PickleSerializer,
}


def get_serializer(kind: SerializerKind | str) -> Serializer:
    """Instantiate the built-in serializer named by *kind*."""
    try:
        kind = SerializerKind(kind)
    except ValueError as exc:
        valid = ", ".join(k.value for k in SerializerKind)
        raise ConfigError(
            f"Unknown serializer {kind!r} (expected one of: {valid})", cause=exc
        ) from exc
    return _SERIALIZERS[kind]()


__all__ = [
    "SerializerKind",
    "Serializer",
    "JsonSerializer",
    "PickleSerializer",
    "get_serializer",
]
