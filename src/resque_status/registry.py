"""
Shared worker and scheduler status registry.

``StatusRegistry`` is a thin, stateless view over three records in the
key-value store:

- **WorkerTable** (hash): worker pid → encoded runtime arguments, used to
  restart workers with the settings they were started with.
- **SchedulerSlot** (string): pid of the registered scheduler worker.
- **PausedSet** (set): names (``host:pid:queue``) of paused workers.

Every operation is a bounded number of store round-trips. Nothing is
cached; state is always read back from the store.

Manifesto:
    Many processes on many hosts read and write these records at once.
    The registry keeps the rules simple enough that any interleaving of
    its steps leaves the store in a state a later call can repair.

    - **Last writer wins:** Writes overwrite; there is no CAS on registration
    - **Lazy validation:** Stale entries are detected on read, not on write
    - **Self-healing slot:** A scheduler registration whose pid left the
      worker table is removed by the next running check
    - **Idempotent steps:** Every write can be repeated safely

Architecture:
    ::

        caller ──► StatusRegistry ──► StatusStore ──► Redis
                         │
                         └──► LivenessProbe (selected once)

        is_running_scheduler_worker():
            slot = GET scheduler        pids = HKEYS worker
            slot empty            → False
            slot not in pids      → compare-and-DEL slot, False
            probe(slot) ALIVE     → True
            probe(slot) DEAD      → False
            probe(slot) UNKNOWN   → True

Examples:
    >>> from resque_status import StatusRegistry, InMemoryStatusStore
    >>> registry = StatusRegistry(InMemoryStatusStore())
    >>> registry.add_worker(30677, {"queue": "default", "interval": 5})
    True
    >>> registry.get_workers()
    {30677: {'queue': 'default', 'interval': 5}}
    >>> registry.register_scheduler_worker(30677)
    True
    >>> registry.is_scheduler_worker("localhost:30677:default")
    True

Guardrails:
    ❌ DON'T: Register a scheduler without checking is_running_scheduler_worker() first
    ✅ DO: Treat the check-then-register window as a known race

    ❌ DON'T: Use the worker table as proof a process is alive
    ✅ DO: Let is_running_scheduler_worker() consult the liveness probe

Tags:
    registry, workers, scheduler, pause, redis, liveness, resque-status

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

from typing import Any

from .errors import MalformedIdentifierError, PayloadDecodeError, StoreUnavailableError
from .liveness import Liveness, LivenessProbe, select_probe
from .logging import get_logger
from .serializers import JsonSerializer, Serializer, get_serializer
from .settings import ResqueStatusSettings, StatusKeys, get_settings
from .store import RedisStatusStore, StatusStore

logger = get_logger(__name__)


class StatusRegistry:
    """Worker, scheduler, and pause status held in a shared store.

    Args:
        store: Backend holding the three records.
        keys: Store key names (defaults match existing deployments).
        serializer: Encoder for worker runtime arguments.
        probe: Liveness probe; selected for the current platform when omitted.
    """

    def __init__(
        self,
        store: StatusStore,
        *,
        keys: StatusKeys | None = None,
        serializer: Serializer | None = None,
        probe: LivenessProbe | None = None,
    ):
        self._store = store
        self._keys = keys or StatusKeys()
        self._serializer = serializer or JsonSerializer()
        self._probe = probe if probe is not None else select_probe()

    @classmethod
    def from_settings(
        cls,
        settings: ResqueStatusSettings | None = None,
        *,
        probe: LivenessProbe | None = None,
    ) -> StatusRegistry:
        """Build a Redis-backed registry from settings (env when omitted)."""
        settings = settings or get_settings()
        store = RedisStatusStore.from_url(
            settings.redis_url,
            socket_timeout=settings.socket_timeout,
        )
        return cls(
            store,
            keys=settings.keys(),
            serializer=get_serializer(settings.serializer),
            probe=probe,
        )

    @property
    def keys(self) -> StatusKeys:
        return self._keys

    @property
    def store(self) -> StatusStore:
        return self._store

    @property
    def probe(self) -> LivenessProbe:
        return self._probe

    # ------------------------------------------------------------------ #
    # Worker table
    # ------------------------------------------------------------------ #

    def add_worker(self, pid: int, args: Any) -> bool:
        """Save a worker's runtime arguments, used when restarting it.

        Overwrites any entry already stored for *pid*.

        Args:
            pid: Worker process id, e.g. ``30677``.
            args: Worker settings, encoded by the registry's serializer.

        Returns:
            ``True`` once stored, ``False`` if the store write failed.

        Raises:
            PayloadEncodeError: If *args* cannot be encoded.
        """
        payload = self._serializer.encode(args)
        try:
            self._store.hset(self._keys.worker, str(pid), payload)
        except StoreUnavailableError as exc:
            logger.error("worker_add_failed", pid=pid, **exc.to_dict())
            return False
        logger.debug("worker_added", pid=pid)
        return True

    def get_workers(self) -> dict[int, Any]:
        """Return every started worker's runtime arguments, keyed by pid.

        The worker table is shared with other tooling, so entries are read
        one by one: a field that is not a pid is skipped, and a payload this
        registry's serializer cannot decode maps to ``None``.
        """
        entries = self._store.hgetall(self._keys.worker)
        workers: dict[int, Any] = {}
        for field, payload in entries.items():
            try:
                pid = int(field)
            except ValueError:
                logger.warning("worker_pid_invalid", key=self._keys.worker, field=field)
                continue
            try:
                workers[pid] = self._serializer.decode(payload)
            except PayloadDecodeError as exc:
                logger.warning("worker_payload_undecodable", pid=pid, error=exc.message)
                workers[pid] = None
        return workers

    def remove_worker(self, pid: int) -> None:
        """Remove a worker's runtime arguments (no-op when absent)."""
        removed = self._store.hdel(self._keys.worker, str(pid))
        logger.debug("worker_removed", pid=pid, existed=bool(removed))

    def clear_workers(self) -> None:
        """Reset the worker table and the paused set together.

        Both keys go in a single multi-key delete, so other processes see
        either both records or neither. Safe to call again after a failure.
        """
        removed = self._store.delete(self._keys.worker, self._keys.paused)
        logger.info("workers_cleared", keys_removed=removed)

    # ------------------------------------------------------------------ #
    # Scheduler slot
    # ------------------------------------------------------------------ #

    def register_scheduler_worker(self, pid: int) -> bool:
        """Register *pid* as the scheduler worker, replacing any previous one.

        Performs no uniqueness check; callers coordinate by consulting
        :meth:`is_running_scheduler_worker` beforehand.

        Returns:
            ``True`` once stored, ``False`` if the store write failed.
        """
        try:
            self._store.set(self._keys.scheduler, str(pid))
        except StoreUnavailableError as exc:
            logger.error("scheduler_register_failed", pid=pid, **exc.to_dict())
            return False
        logger.info("scheduler_registered", pid=pid)
        return True

    def get_scheduler_worker(self) -> str | None:
        """Return the registered scheduler pid as stored, unvalidated."""
        return self._store.get(self._keys.scheduler)

    def is_scheduler_worker(self, worker: Any) -> bool:
        """Test if a worker is the registered scheduler worker.

        Args:
            worker: Worker name such as ``'localhost:30677:default'``, or any
                object whose ``str()`` is that name.

        Raises:
            MalformedIdentifierError: If the name has no pid field.
        """
        name = str(worker)
        parts = name.split(":")
        if len(parts) < 2:
            raise MalformedIdentifierError(
                f"Worker name {name!r} is not of the form host:pid:queue"
            ).with_context(worker=name)
        pid = parts[1]
        return pid == self._store.get(self._keys.scheduler)

    def is_running_scheduler_worker(self) -> bool:
        """Check if the registered scheduler worker is still running.

        A registration whose pid is no longer in the worker table is stale
        and gets removed. Once the pid is confirmed in the table, a definite
        liveness answer is returned as is; an unknown one counts as running.
        Membership is not re-read after the probe.
        """
        scheduler_pid = self._store.get(self._keys.scheduler)
        pids = self._store.hkeys(self._keys.worker)

        if scheduler_pid is None:
            return False

        if scheduler_pid not in pids:
            # Only drop the slot if nobody re-registered in the meantime
            removed = self._store.delete_if_equals(self._keys.scheduler, scheduler_pid)
            logger.info(
                "scheduler_registration_stale",
                pid=scheduler_pid,
                removed=removed,
            )
            return False

        liveness = self._liveness(scheduler_pid)
        if liveness is Liveness.UNKNOWN:
            logger.debug("scheduler_liveness_unknown", pid=scheduler_pid, probe=self._probe.name)
            return True
        return liveness is Liveness.ALIVE

    def unregister_scheduler_worker(self) -> bool:
        """Unregister the scheduler worker.

        Returns:
            ``True`` if a registration existed and was removed.
        """
        removed = self._store.delete(self._keys.scheduler) > 0
        logger.info("scheduler_unregistered", existed=removed)
        return removed

    def proc_is_active(self, pid: int | str) -> bool | None:
        """Check if *pid* belongs to a running process on this host.

        Returns:
            ``True``/``False`` on a definite answer, ``None`` when this host
            offers no way to tell.
        """
        return self._liveness(pid).as_optional_bool()

    def _liveness(self, pid: int | str) -> Liveness:
        try:
            numeric = int(pid)
        except ValueError:
            # Not a pid this host could ever have issued
            return Liveness.DEAD
        return self._probe(numeric)

    # ------------------------------------------------------------------ #
    # Paused set
    # ------------------------------------------------------------------ #

    def set_paused_worker(self, worker: Any, paused: bool = True) -> None:
        """Mark a worker as paused or active.

        Args:
            worker: Worker name, e.g. ``'localhost:30677:default'``.
            paused: Whether to mark the worker as paused or active.
        """
        name = str(worker)
        if paused:
            self._store.sadd(self._keys.paused, name)
        else:
            self._store.srem(self._keys.paused, name)
        logger.debug("worker_pause_set", worker=name, paused=paused)

    def get_paused_worker(self) -> set[str]:
        """Return the names of paused workers."""
        return self._store.smembers(self._keys.paused)


__all__ = ["StatusRegistry"]
