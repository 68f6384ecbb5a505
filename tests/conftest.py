"""
Shared fixtures: an in-memory web served through a fake fetcher.
"""
from __future__ import annotations

import threading
import time
from collections import Counter
from typing import Dict, Union

import pytest

from linkcrawler.errors import CrawlError, HTTPStatusError

Page = Union[str, int, CrawlError]


def page(*links: str) -> str:
    """Minimal HTML document linking to ``links`` in order."""
    anchors = "".join(f'<li><a href="{link}">{link}</a></li>' for link in links)
    return f"<html><head><title>t</title></head><body><ul>{anchors}</ul></body></html>"


class FakeWeb:
    """
    Stands in for ``Fetcher``. ``pages`` maps url to HTML, an HTTP status to
    fail with, or an exception to raise. Unknown urls answer 404.
    """

    def __init__(self, pages: Dict[str, Page], delay: float = 0.0) -> None:
        self.pages = pages
        self.delay = delay
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.peak = 0
        self.closed = False
        self._lock = threading.Lock()

    def fetch(self, url: str) -> bytes:
        with self._lock:
            self.calls[url] += 1
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            body = self.pages.get(url, 404)
            if isinstance(body, CrawlError):
                raise body
            if isinstance(body, int):
                raise HTTPStatusError(url, body)
            return body.encode("utf-8")
        finally:
            with self._lock:
                self.in_flight -= 1

    def close(self) -> None:
        self.closed = True


A = "https://a.test/"
B = "https://b.test/"
C = "https://c.test/"
D = "https://d.test/"
E = "https://e.test/"


@pytest.fixture
def diamond() -> FakeWeb:
    """A links to B and C, both of which link to D."""
    return FakeWeb({
        A: page(B, C),
        B: page(D),
        C: page(D),
        D: page(),
    })
