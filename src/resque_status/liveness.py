"""
Best-effort process liveness probes.

A probe answers "does this pid belong to a running process on this host?"
with one of three outcomes. ``UNKNOWN`` is a first-class answer, returned
when the host exposes no way to ask; it is never turned into a guess.

The probe is picked once per process by :func:`select_probe` from the
platform name, so the per-call path never branches on the OS.

Architecture:
    ::

        LivenessProbe (Protocol)
        ├── PosixProbe        — os.getpgid()          linux / freebsd / darwin
        ├── ProcfsProbe       — /proc/<pid> exists     same platforms, no getpgid
        ├── PlatformApiProbe  — psutil.pid_exists()    windows
        └── UnsupportedProbe  — always UNKNOWN         anything else

Guardrails:
    ❌ DON'T: Treat ALIVE as proof of identity (the OS may have reused the pid)
    ✅ DO: Use it only to reclaim registrations that are clearly dead

Tags:
    liveness, process, pid, posix, procfs, psutil, resque-status

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import os
import platform
from enum import Enum
from pathlib import Path
from typing import Protocol

import psutil

from .logging import get_logger

logger = get_logger(__name__)

_POSIX_SYSTEMS = ("linux", "freebsd", "darwin")
_WINDOWS_SYSTEMS = ("win", "windows")


class Liveness(str, Enum):
    """Outcome of a liveness probe."""

    ALIVE = "alive"
    DEAD = "dead"
    UNKNOWN = "unknown"

    @classmethod
    def from_bool(cls, value: bool) -> Liveness:
        return cls.ALIVE if value else cls.DEAD

    def as_optional_bool(self) -> bool | None:
        """``True``/``False`` for a definite answer, ``None`` for UNKNOWN."""
        if self is Liveness.UNKNOWN:
            return None
        return self is Liveness.ALIVE


class LivenessProbe(Protocol):
    """Protocol for process-existence checks."""

    name: str

    def __call__(self, pid: int) -> Liveness:
        ...


class PosixProbe:
    """Process-group lookup via ``getpgid(2)``."""

    name = "posix"

    def __call__(self, pid: int) -> Liveness:
        if pid <= 0:
            return Liveness.DEAD
        try:
            os.getpgid(pid)
        except (ProcessLookupError, OverflowError):
            # OverflowError: beyond pid_t, never a live process
            return Liveness.DEAD
        except PermissionError:
            # EPERM: the process exists but lives in another session
            return Liveness.ALIVE
        return Liveness.ALIVE


class ProcfsProbe:
    """Process-table filesystem lookup (``/proc/<pid>``)."""

    name = "procfs"

    def __init__(self, root: str | Path = "/proc"):
        self._root = Path(root)

    def __call__(self, pid: int) -> Liveness:
        if pid <= 0:
            return Liveness.DEAD
        return Liveness.from_bool((self._root / str(pid)).exists())


class PlatformApiProbe:
    """Native process-table API through psutil."""

    name = "platform-api"

    def __call__(self, pid: int) -> Liveness:
        if pid <= 0:
            return Liveness.DEAD
        return Liveness.from_bool(psutil.pid_exists(pid))


class UnsupportedProbe:
    """Host without any process-introspection facility."""

    name = "unsupported"

    def __call__(self, pid: int) -> Liveness:
        return Liveness.UNKNOWN


def select_probe(system: str | None = None) -> LivenessProbe:
    """Pick the probe for *system* (defaults to ``platform.system()``)."""
    os_name = (system if system is not None else platform.system()).lower()

    probe: LivenessProbe
    if os_name in _POSIX_SYSTEMS:
        if hasattr(os, "getpgid"):
            probe = PosixProbe()
        else:
            probe = ProcfsProbe()
    elif os_name in _WINDOWS_SYSTEMS:
        probe = PlatformApiProbe()
    else:
        probe = UnsupportedProbe()

    logger.debug("liveness_probe_selected", system=os_name, probe=probe.name)
    return probe


__all__ = [
    "Liveness",
    "LivenessProbe",
    "PosixProbe",
    "ProcfsProbe",
    "PlatformApiProbe",
    "UnsupportedProbe",
    "select_probe",
]
