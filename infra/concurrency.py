"""
Bounded-concurrency admission for pipeline stages.

Each stage (rasterization, enhancement, recognition) owns one gate. A gate
admits at most `limit` holders at a time; when a holder releases and callers
are queued, the permit is handed straight to the longest-waiting caller.

Usage:
    gate = ConcurrencyGate("recognition", limit=2)

    with gate:
        call_remote_service()
"""

import threading
from collections import deque
from contextlib import contextmanager
from typing import Deque, Dict


class ConcurrencyGate:
    """Thread-safe FIFO counting gate with instrumentation."""

    def __init__(self, name: str, limit: int):
        if limit < 1:
            raise ValueError(f"{name} gate limit must be >= 1, got {limit}")

        self.name = name
        self.limit = limit

        self._lock = threading.Lock()
        self._waiters: Deque[threading.Event] = deque()
        self._active = 0
        self._peak = 0
        self._granted = 0

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak

    @property
    def waiting(self) -> int:
        with self._lock:
            return len(self._waiters)

    def acquire(self):
        """Block until a permit is available, then take it."""
        with self._lock:
            if self._active < self.limit and not self._waiters:
                self._take()
                return
            ticket = threading.Event()
            self._waiters.append(ticket)

        # The releasing thread transfers its permit before setting the ticket
        ticket.wait()

    def release(self):
        """Return a permit, admitting the longest waiter if there is one."""
        with self._lock:
            if self._active < 1:
                raise RuntimeError(f"{self.name} gate released more times than acquired")

            if self._waiters:
                ticket = self._waiters.popleft()
                self._granted += 1
                ticket.set()
            else:
                self._active -= 1

    def _take(self):
        self._active += 1
        self._granted += 1
        if self._active > self._peak:
            self._peak = self._active

    @contextmanager
    def permit(self):
        """Hold a permit for the duration of the block."""
        self.acquire()
        try:
            yield self
        finally:
            self.release()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False

    def get_status(self) -> Dict:
        with self._lock:
            return {
                'name': self.name,
                'limit': self.limit,
                'active': self._active,
                'peak': self._peak,
                'waiting': len(self._waiters),
                'total_granted': self._granted,
            }

    def __repr__(self) -> str:
        return f"ConcurrencyGate(name={self.name!r}, limit={self.limit})"
