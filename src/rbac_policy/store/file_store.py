"""YAML-file-backed policy store.

The file holds the envelope as YAML. A missing file reads as an empty
envelope. Writes go to a sibling temporary file that is then renamed over
the target, under a lock shared by every store instance in the process
that points at the same path.

Example
-------
>>> store = FilePolicyStore(Path("rbac-config.yaml"))
>>> snapshot = store.get()
>>> store.put(snapshot.config.with_policy("g, alice, role:dev"), snapshot.revision)
"""
from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from rbac_policy.config.envelope import RBACConfig, dump_envelope, load_envelope_string
from rbac_policy.store.base import StaleRevisionError, StoredPolicy

logger = logging.getLogger(__name__)

_PATH_LOCKS: dict[Path, threading.Lock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _PATH_LOCKS_GUARD:
        return _PATH_LOCKS.setdefault(path, threading.Lock())


class FilePolicyStore:
    """Stores the envelope in a YAML file.

    Parameters
    ----------
    path:
        Envelope file. Parent directories are created on first write.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = _lock_for(self._path.resolve())

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> StoredPolicy:
        with self._lock:
            return self._read()

    def put(self, config: RBACConfig, expected_revision: str | None) -> StoredPolicy:
        with self._lock:
            current = self._read()
            if expected_revision is not None and expected_revision != current.revision:
                raise StaleRevisionError(expected_revision, current.revision)
            self._write(config)
            stored = self._read()
            logger.info(
                "Wrote policy revision %s to %s", stored.revision[:12], self._path
            )
            return stored

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(self) -> StoredPolicy:
        if not self._path.exists():
            return StoredPolicy.of(RBACConfig())
        text = self._path.read_text(encoding="utf-8")
        return StoredPolicy.of(load_envelope_string(text, str(self._path)))

    def _write(self, config: RBACConfig) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(f".{self._path.name}.tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as fh:
                fh.write(dump_envelope(config))
            os.replace(tmp_path, self._path)
        finally:
            tmp_path.unlink(missing_ok=True)
