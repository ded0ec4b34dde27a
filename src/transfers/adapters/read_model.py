"""
In-process read model: derived-state cache, change version and
per-transfer locks.

All three are disposable. They are rebuilt from the event log and live as
long as the process does.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set, Tuple

from transfers.domain.model import Transfer

logger = logging.getLogger(__name__)


class TransferCache:
    """Latest derived Transfer per transfer_id, swapped in whole."""

    def __init__(self):
        self._transfers: Dict[str, Transfer] = {}
        self._lock = threading.Lock()

    def put(self, transfer: Transfer) -> None:
        with self._lock:
            self._transfers[transfer.transfer_id] = transfer

    def get(self, transfer_id: str) -> Optional[Transfer]:
        with self._lock:
            return self._transfers.get(transfer_id)

    def list(self) -> List[Transfer]:
        with self._lock:
            return list(self._transfers.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._transfers)

    def clear(self) -> None:
        with self._lock:
            self._transfers.clear()


class VersionTracker:
    """
    Monotonic change counter plus the set of transfer_ids touched since
    the last drain.

    Pollers compare versions and only fetch the ids handed out by a drain.
    """

    def __init__(self):
        self._version = 0
        self._affected: Set[str] = set()
        self._lock = threading.Lock()

    def on_mutation(self, transfer_id: str) -> int:
        with self._lock:
            self._version += 1
            self._affected.add(transfer_id)
            return self._version

    def get_version(self) -> int:
        with self._lock:
            return self._version

    def drain_affected(self) -> Set[str]:
        """Return the accumulated ids and clear them. A second call returns an empty set."""
        with self._lock:
            affected, self._affected = self._affected, set()
            return affected

    def snapshot(self) -> Tuple[int, Set[str]]:
        """Read the version and drain the affected ids as one step."""
        with self._lock:
            affected, self._affected = self._affected, set()
            return self._version, affected

    def reset(self) -> None:
        with self._lock:
            self._version = 0
            self._affected = set()


class TransferLocks:
    """One mutex per transfer_id. Different transfers never block each other."""

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, transfer_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(transfer_id)
            if lock is None:
                lock = self._locks[transfer_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, transfer_id: str) -> Iterator[None]:
        lock = self._lock_for(transfer_id)
        with lock:
            logger.debug(f"Holding lock for transfer {transfer_id}")
            yield
