"""Audit trail of backend lifecycle and ban decisions.

Each event is one JSON object per line. Appends take an exclusive
``flock`` so concurrent bouncer runs never interleave partial lines, and
the file is rotated to ``audit.1`` .. ``audit.N`` once it grows past
the size limit. Audit failures are reported at debug level only; they
never stop a decision from being enforced.
"""

import fcntl
import json
import os
import uuid
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Generator, Optional

from fwb.core.output import console

if TYPE_CHECKING:
    from fwb.backends.base import Decision


class AuditEventType(Enum):
    BACKEND_INIT = "backend.init"
    BACKEND_SHUTDOWN = "backend.shutdown"
    DECISION_ADD = "decision.add"
    DECISION_DELETE = "decision.delete"


class AuditResult(Enum):
    SUCCESS = "success"
    TOLERATED = "tolerated"
    SKIPPED = "skipped"
    FAILURE = "failure"
    DRY_RUN = "dry_run"


DECISION_EVENTS = {
    "add": AuditEventType.DECISION_ADD,
    "delete": AuditEventType.DECISION_DELETE,
}


@dataclass
class AuditEvent:
    """One line of the audit trail.

    Decision events fill the ``value`` .. ``kind`` fields; lifecycle
    events leave them empty.
    """
    event_type: AuditEventType
    result: AuditResult
    backend: Optional[str] = None

    value: Optional[str] = None
    family: Optional[str] = None
    duration: Optional[str] = None
    scenario: Optional[str] = None
    origin: Optional[str] = None
    kind: Optional[str] = None

    message: Optional[str] = None
    error: Optional[str] = None

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: Optional[str] = None
    correlation_id: Optional[str] = None

    def to_json(self) -> str:
        record = asdict(self)
        record["event_type"] = self.event_type.value
        record["result"] = self.result.value
        record["timestamp"] = self.timestamp.isoformat()
        return json.dumps(record)


class AuditLogger:
    """Appends AuditEvents to a JSON-lines file."""

    def __init__(
        self,
        log_path: Path,
        max_size_mb: int = 100,
        backup_count: int = 10,
        enabled: bool = True,
    ) -> None:
        self.log_path = log_path
        self.max_bytes = max_size_mb * 1024 * 1024
        self.backup_count = backup_count
        self.enabled = enabled
        self.session_id = uuid.uuid4().hex
        self._batch_id: Optional[str] = None

    @contextmanager
    def correlation(self, operation: str) -> Generator[str, None, None]:
        """Tag every event logged inside the block with a shared batch id."""
        outer = self._batch_id
        self._batch_id = f"{operation}_{uuid.uuid4().hex[:8]}"
        try:
            yield self._batch_id
        finally:
            self._batch_id = outer

    def log(self, event: AuditEvent) -> None:
        if not self.enabled:
            return
        event.session_id = self.session_id
        event.correlation_id = self._batch_id

        try:
            self.log_path.parent.mkdir(mode=0o750, parents=True, exist_ok=True)
            self._append(event.to_json() + "\n")
        except OSError as e:
            console.debug(f"audit: cannot write {self.log_path}: {e}")
            return

        try:
            if self.log_path.stat().st_size > self.max_bytes:
                self._rotate()
        except OSError as e:
            console.debug(f"audit: rotation of {self.log_path} failed: {e}")

    def _append(self, line: str) -> None:
        fd = os.open(self.log_path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o640)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            os.write(fd, line.encode())
            os.fsync(fd)
        finally:
            os.close(fd)

    def _backup(self, index: int) -> Path:
        return self.log_path.with_suffix(f".{index}")

    def _rotate(self) -> None:
        # audit.N-1 -> audit.N, ..., audit -> audit.1; the oldest is overwritten
        for index in range(self.backup_count - 1, 0, -1):
            if self._backup(index).exists():
                self._backup(index).replace(self._backup(index + 1))
        self.log_path.replace(self._backup(1))
        self.log_path.touch(mode=0o640)

    def log_backend(
        self,
        event_type: AuditEventType,
        result: AuditResult,
        *,
        backend: str,
        error: Optional[str] = None,
    ) -> None:
        """Record a backend init/shutdown."""
        self.log(AuditEvent(event_type, result, backend=backend, error=error))

    def log_decision(
        self,
        action: str,
        decision: "Decision",
        result: AuditResult,
        *,
        backend: str,
        family: Optional[str] = None,
        message: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Record what happened to one add/delete decision."""
        self.log(AuditEvent(
            DECISION_EVENTS[action],
            result,
            backend=backend,
            value=decision.value,
            family=family or decision.family.value,
            duration=decision.duration,
            scenario=decision.scenario,
            origin=decision.origin,
            kind=decision.kind,
            message=message,
            error=error,
        ))
