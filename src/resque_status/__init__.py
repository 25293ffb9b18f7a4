"""
resque-status - Shared worker, scheduler, and pause status for Resque-style worker pools.

Public API:
- StatusRegistry: worker table, scheduler slot, and paused set operations
- StatusStore / RedisStatusStore / InMemoryStatusStore: store backends
- Liveness / select_probe: process liveness probing
- StatusKeys / ResqueStatusSettings: key names and configuration
"""

__version__ = "0.1.0"

from resque_status.errors import (
    ConfigError,
    ErrorCategory,
    MalformedIdentifierError,
    PayloadDecodeError,
    PayloadEncodeError,
    ResqueStatusError,
    SerializationError,
    StoreUnavailableError,
)
from resque_status.liveness import Liveness, LivenessProbe, select_probe
from resque_status.registry import StatusRegistry
from resque_status.serializers import (
    JsonSerializer,
    PickleSerializer,
    Serializer,
    SerializerKind,
    get_serializer,
)
from resque_status.settings import ResqueStatusSettings, StatusKeys, get_settings
from resque_status.store import InMemoryStatusStore, RedisStatusStore, StatusStore

__all__ = [
    "StatusRegistry",
    "StatusStore",
    "RedisStatusStore",
    "InMemoryStatusStore",
    "StatusKeys",
    "ResqueStatusSettings",
    "get_settings",
    "Liveness",
    "LivenessProbe",
    "select_probe",
    "Serializer",
    "SerializerKind",
    "JsonSerializer",
    "PickleSerializer",
    "get_serializer",
    "ErrorCategory",
    "ResqueStatusError",
    "StoreUnavailableError",
    "MalformedIdentifierError",
    "SerializationError",
    "PayloadEncodeError",
    "PayloadDecodeError",
    "ConfigError",
]
