"""
Failure taxonomy for the crawler.

Per-page failures (``CrawlError`` subclasses) are local to one task: the
controller logs them, counts them and moves on. Only ``ConfigError`` and
``StorageError`` ever reach the caller.
"""
from __future__ import annotations

from typing import Optional


class CrawlError(Exception):
    """A page could not be fetched or parsed."""

    kind = "crawl_error"

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url


class RequestConstructionError(CrawlError):
    kind = "request_error"


class FetchError(CrawlError):
    """Network failure or timeout."""

    kind = "connection_error"


class HTTPStatusError(CrawlError):
    kind = "http_status"

    def __init__(self, url: str, status_code: int, reason: Optional[str] = None) -> None:
        super().__init__(url, f"HTTP {status_code} {reason or ''}".rstrip())
        self.status_code = status_code


class ParseError(CrawlError):
    kind = "parse_error"


class ConfigError(ValueError):
    """Invalid crawl parameters, raised before traversal starts."""


class StorageError(RuntimeError):
    """The link store could not be opened or written."""
