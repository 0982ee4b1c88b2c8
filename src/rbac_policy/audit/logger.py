"""Append-only JSONL audit trail for policy edits.

Each accepted edit becomes one JSON line holding the event name, the
subject it concerned, the revision it was based on and the revision it
produced, and the record counts before and after. Every line also carries
a UTC ISO-8601 timestamp and the writer's session identifier.

Writes and reads share a threading.Lock so one logger can be used from
several threads in the same process.

Example
-------
>>> from pathlib import Path
>>> audit = AuditLogger(Path("/tmp/rbac_audit.jsonl"))
>>> _ = audit.record_edit(
...     "policy_subject_cleared", "bob",
...     base_revision="a1", revision="b2", records_before=3, records_after=1,
... )
>>> audit.history(subject="bob")[-1]["event"]
'policy_subject_cleared'
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


class AuditLogger:
    """Append-only JSONL log of policy edits.

    Parameters
    ----------
    log_path:
        Path to the ``.jsonl`` audit file.  Parent directories are created
        on first write.
    session_id:
        Identifier stamped on every record.  A random UUID is used if not
        supplied.
    """

    def __init__(
        self,
        log_path: Path,
        session_id: str | None = None,
    ) -> None:
        self._log_path = Path(log_path)
        self._session_id: str = session_id or str(uuid.uuid4())
        self._lock = threading.Lock()

    @property
    def log_path(self) -> Path:
        return self._log_path

    @property
    def session_id(self) -> str:
        return self._session_id

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def record_edit(
        self,
        event: str,
        subject: str | None,
        *,
        base_revision: str,
        revision: str,
        records_before: int,
        records_after: int,
        **details: object,
    ) -> dict[str, object]:
        """Append one edit and return the record as written.

        *details* carries event-specific fields such as ``project``,
        ``replace`` or ``count``. ``timestamp`` and ``session_id`` are
        always set by the logger.
        """
        record: dict[str, object] = {
            **details,
            "event": event,
            "subject": subject,
            "base_revision": base_revision,
            "revision": revision,
            "records_before": records_before,
            "records_after": records_after,
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "session_id": self._session_id,
        }
        self._write(record)
        return record

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read_all(self) -> list[dict[str, object]]:
        """All records in the order written; empty if the file is absent."""
        return list(self._iter_records())

    def history(
        self,
        subject: str | None = None,
        event: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, object]]:
        """Edits oldest first, optionally filtered and cut to the last *limit*."""
        records = [
            record
            for record in self._iter_records()
            if (subject is None or record.get("subject") == subject)
            and (event is None or record.get("event") == event)
        ]
        if limit is None:
            return records
        return records[-limit:] if limit > 0 else []

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write(self, record: dict[str, object]) -> None:
        with self._lock:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            with self._log_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(record, default=str) + "\n")

    def _iter_records(self) -> Iterator[dict[str, object]]:
        if not self._log_path.exists():
            return
        with self._lock:
            lines = self._log_path.read_text(encoding="utf-8").splitlines()
        for line_no, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping malformed audit line %d in %s", line_no, self._log_path)
