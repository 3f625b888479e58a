"""
Nitya Proxy - Lock Management
Per-prospect locks with acquisition tracking and statistics
"""

import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Any

from core.logger import log_warning, log_section, log_subsection


@dataclass
class LockStats:
    """Statistics for a single lock."""
    acquisitions: int = 0
    contentions: int = 0  # Times lock was already held by another thread
    total_wait_time: float = 0.0
    total_hold_time: float = 0.0
    max_wait_time: float = 0.0
    max_hold_time: float = 0.0
    last_acquired: Optional[datetime] = None
    last_released: Optional[datetime] = None


class ProspectLockManager:
    """
    One re-entrant lock per prospect, created on first use.

    Serializes chat runs and data writes for the same prospect so tool
    reads never interleave with a half-finished save. Different prospects
    never contend.
    """

    def __init__(self, enabled: bool = True, default_timeout: Optional[float] = None):
        """
        Initialize the manager.

        Args:
            enabled: When False, acquire() is a no-op
            default_timeout: Seconds to wait when acquire() gets no timeout
        """
        self.enabled = enabled
        self.default_timeout = default_timeout
        self._locks: Dict[str, threading.RLock] = {}
        self._stats: Dict[str, LockStats] = defaultdict(LockStats)
        self._meta_lock = threading.Lock()  # Protects the dictionaries
        self._active_holders: Dict[str, Optional[int]] = {}  # user_id -> thread_id
        self._hold_depth: Dict[str, int] = defaultdict(int)

    def _get_lock(self, user_id: str) -> threading.RLock:
        with self._meta_lock:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[user_id] = lock
            return lock

    @contextmanager
    def acquire(self, user_id: str, timeout: Optional[float] = None):
        """
        Hold the lock for one prospect.

        Args:
            user_id: Prospect identifier
            timeout: Optional timeout in seconds (defaults to default_timeout)

        Yields:
            None (just provides context management)

        Raises:
            TimeoutError: If timeout expires before lock acquired
        """
        if not self.enabled:
            yield
            return

        lock = self._get_lock(user_id)
        timeout = self.default_timeout if timeout is None else timeout
        thread_id = threading.current_thread().ident
        start_wait = time.time()

        # Check if this would be a contention
        with self._meta_lock:
            current_holder = self._active_holders.get(user_id)
            if current_holder is not None and current_holder != thread_id:
                self._stats[user_id].contentions += 1

        if timeout is not None:
            if not lock.acquire(timeout=timeout):
                log_warning(f"Timed out after {timeout}s waiting for prospect lock: {user_id}")
                raise TimeoutError(f"Timeout waiting for prospect lock: {user_id}")
        else:
            lock.acquire()

        wait_time = time.time() - start_wait
        acquire_time = time.time()

        with self._meta_lock:
            stats = self._stats[user_id]
            stats.acquisitions += 1
            stats.total_wait_time += wait_time
            stats.max_wait_time = max(stats.max_wait_time, wait_time)
            stats.last_acquired = datetime.now()
            self._active_holders[user_id] = thread_id
            self._hold_depth[user_id] += 1

        try:
            yield
        finally:
            hold_time = time.time() - acquire_time

            with self._meta_lock:
                stats = self._stats[user_id]
                stats.total_hold_time += hold_time
                stats.max_hold_time = max(stats.max_hold_time, hold_time)
                stats.last_released = datetime.now()
                self._hold_depth[user_id] -= 1
                if self._hold_depth[user_id] == 0:
                    self._active_holders[user_id] = None

            lock.release()

    def is_held(self, user_id: str) -> bool:
        """Check if any thread currently holds the prospect's lock."""
        with self._meta_lock:
            return self._active_holders.get(user_id) is not None

    def get_stats(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Get statistics for locks.

        Args:
            user_id: Specific prospect, or None for all

        Returns:
            Dict of lock statistics
        """
        def summarize(name: str, stats: LockStats) -> Dict[str, Any]:
            return {
                "acquisitions": stats.acquisitions,
                "contentions": stats.contentions,
                "avg_wait_time": stats.total_wait_time / max(stats.acquisitions, 1),
                "max_wait_time": stats.max_wait_time,
                "avg_hold_time": stats.total_hold_time / max(stats.acquisitions, 1),
                "max_hold_time": stats.max_hold_time,
                "currently_held": self._active_holders.get(name) is not None
            }

        with self._meta_lock:
            if user_id:
                if user_id in self._stats:
                    return {"lock_name": user_id, **summarize(user_id, self._stats[user_id])}
                return {}
            return {name: summarize(name, stats) for name, stats in self._stats.items()}

    def log_stats(self) -> None:
        """Log current lock statistics."""
        stats = self.get_stats()

        log_section("Prospect Lock Statistics", "🔒")

        for name, data in stats.items():
            if data["acquisitions"] > 0:
                log_subsection(
                    f"{name}: {data['acquisitions']} acq, "
                    f"{data['contentions']} contentions, "
                    f"avg wait {data['avg_wait_time']*1000:.1f}ms, "
                    f"avg hold {data['avg_hold_time']*1000:.1f}ms"
                )
