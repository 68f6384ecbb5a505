"""
Shared state for one crawl run: visited set, concurrency limiter and link sink.

Every structure here is safe to mutate from any worker thread without
caller-side locking.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Set


class VisitedSet:
    """URLs claimed for fetching. Entries are never removed during a run."""

    def __init__(self) -> None:
        self._urls: Set[str] = set()
        self._lock = threading.Lock()

    def claim(self, url: str) -> bool:
        """Atomically add ``url``; True only for the first caller."""
        with self._lock:
            if url in self._urls:
                return False
            self._urls.add(url)
            return True

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)


class ConcurrencyLimiter:
    """
    Fixed pool of ``capacity`` tokens bounding in-flight fetch+extract cycles.

    ``in_flight`` and ``peak`` are kept for observability and tests.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._sem = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._in_use = 0
        self.peak = 0

    def acquire(self, blocking: bool = True) -> bool:
        if not self._sem.acquire(blocking):
            return False
        with self._lock:
            self._in_use += 1
            self.peak = max(self.peak, self._in_use)
        return True

    def try_acquire(self) -> bool:
        return self.acquire(blocking=False)

    def release(self) -> None:
        with self._lock:
            self._in_use -= 1
        self._sem.release()

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._in_use

    @contextmanager
    def held(self) -> Iterator[None]:
        """Release a token acquired earlier when the ``with`` block exits."""
        try:
            yield
        finally:
            self.release()

    @contextmanager
    def token(self) -> Iterator[None]:
        """Hold one token for the body of the ``with`` block."""
        self.acquire()
        with self.held():
            yield


class LinkSink:
    """
    Collector of ``(url, parent)`` reports from concurrent workers.

    The first report of a url appends it to ``links`` and fixes its parent;
    later reports of the same url are ignored. Nothing is ever discarded for
    lack of capacity.
    """

    def __init__(self) -> None:
        self._links: List[str] = []
        self._parent_of: Dict[str, str] = {}
        self._lock = threading.Lock()
        self.reports = 0

    def report(self, url: str, parent: str) -> bool:
        """Record one discovery; True if ``url`` was new to the sink."""
        with self._lock:
            self.reports += 1
            if url in self._parent_of:
                return False
            self._parent_of[url] = parent
            self._links.append(url)
            return True

    def links(self) -> List[str]:
        with self._lock:
            return list(self._links)

    def parent_of(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._parent_of)

    def __len__(self) -> int:
        with self._lock:
            return len(self._links)
