"""Best-effort audit trail: a bounded queue drained by one background writer thread.

Recording never raises and never blocks the caller. When the queue is full, the
dispatcher is stopped, or a write fails, the record is dropped with a warning;
the primary operation's outcome is never affected.
"""

from __future__ import annotations

import logging
import queue
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.models import AuditLog

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000
STOP_TIMEOUT_SEC = 5.0


@dataclass(frozen=True)
class AuditEvent:
    """One security-relevant action, as handed to the writer."""

    action: str
    resource_type: str
    resource_id: str | None = None
    actor_id: uuid.UUID | None = None
    details: str | None = None
    status: str = "success"
    created_at: datetime = field(default_factory=utcnow)


_STOP = object()


class AuditDispatcher:
    """Fire-and-forget audit sink backed by a bounded queue and a daemon worker."""

    def __init__(self) -> None:
        self._queue: queue.Queue = queue.Queue(maxsize=DEFAULT_QUEUE_SIZE)
        self._session_factory: Callable[[], Session] | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        # Separate from _lock: stop() holds _lock while joining the writer, which also counts drops.
        self._dropped_lock = threading.Lock()
        self._dropped = 0

    @property
    def dropped(self) -> int:
        """Records lost to a full queue or a failed write since construction."""
        with self._dropped_lock:
            return self._dropped

    def _count_drop(self) -> None:
        with self._dropped_lock:
            self._dropped += 1

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(
        self,
        session_factory: Callable[[], Session],
        maxsize: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        """Start the writer thread. Calling start on a running dispatcher is a no-op."""
        with self._lock:
            if self.running:
                return
            self._session_factory = session_factory
            self._queue = queue.Queue(maxsize=maxsize)
            self._thread = threading.Thread(
                target=self._run, name="audit-writer", daemon=True
            )
            self._thread.start()
        logger.info("Audit dispatcher started (queue size %s)", maxsize)

    def stop(self, timeout: float = STOP_TIMEOUT_SEC) -> None:
        """Drain queued records and stop the writer thread."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                logger.warning("Audit queue still full at shutdown; pending records may be lost")
            thread.join(timeout=timeout)
            self._thread = None
        logger.info("Audit dispatcher stopped (dropped %s records)", self.dropped)

    def record(
        self,
        action: str,
        resource_type: str,
        resource_id: str | uuid.UUID | None = None,
        actor_id: uuid.UUID | None = None,
        details: str | None = None,
        status: str = "success",
    ) -> None:
        """Queue an audit record. Never raises."""
        if not self.running:
            logger.debug("Audit dispatcher not running; dropping %s", action)
            return
        event = AuditEvent(
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            actor_id=actor_id,
            details=details,
            status=status,
        )
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._count_drop()
            logger.warning("Audit queue full; dropping %s record", action)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._write(item)
            except Exception as e:
                self._count_drop()
                logger.warning("Audit write failed for %s: %s", item.action, e)
            finally:
                self._queue.task_done()

    def _write(self, event: AuditEvent) -> None:
        db = self._session_factory()
        try:
            db.add(
                AuditLog(
                    actor_id=event.actor_id,
                    action=event.action,
                    resource_type=event.resource_type,
                    resource_id=event.resource_id,
                    details=event.details,
                    status=event.status,
                    created_at=event.created_at,
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


audit_dispatcher = AuditDispatcher()


def record_audit(
    action: str,
    resource_type: str,
    resource_id: str | uuid.UUID | None = None,
    actor_id: uuid.UUID | None = None,
    details: str | None = None,
    status: str = "success",
) -> None:
    """Record an audit event on the process-wide dispatcher."""
    audit_dispatcher.record(
        action,
        resource_type,
        resource_id=resource_id,
        actor_id=actor_id,
        details=details,
        status=status,
    )
