"""Process-local policy store."""
from __future__ import annotations

import logging
import threading

from rbac_policy.config.envelope import RBACConfig
from rbac_policy.store.base import StaleRevisionError, StoredPolicy

logger = logging.getLogger(__name__)


class InMemoryPolicyStore:
    """Holds one envelope in memory behind a lock.

    Parameters
    ----------
    initial:
        Starting envelope. Defaults to an empty policy.
    """

    def __init__(self, initial: RBACConfig | None = None) -> None:
        self._lock = threading.Lock()
        self._current = StoredPolicy.of(initial or RBACConfig())

    def get(self) -> StoredPolicy:
        with self._lock:
            return self._current

    def put(self, config: RBACConfig, expected_revision: str | None) -> StoredPolicy:
        with self._lock:
            if expected_revision is not None and expected_revision != self._current.revision:
                raise StaleRevisionError(expected_revision, self._current.revision)
            self._current = StoredPolicy.of(config)
            logger.info("Stored policy revision %s", self._current.revision[:12])
            return self._current
