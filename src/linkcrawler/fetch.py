"""
Single-request HTTP fetching.
"""
from __future__ import annotations

import logging
from typing import Optional

import requests
from urllib3.exceptions import LocationValueError

from linkcrawler.config import DEFAULT_TIMEOUT_S, DEFAULT_USER_AGENT
from linkcrawler.errors import FetchError, HTTPStatusError, RequestConstructionError

log = logging.getLogger(__name__)

# requests raises these before anything goes on the wire
_CONSTRUCTION_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
    # malformed host labels surface from urllib3 at connect time
    LocationValueError,
)


class Fetcher:
    """
    Issue one bounded-timeout GET per call over a shared session.

    ``requests.Session`` is safe to share between worker threads for plain
    GETs; the connection pool is sized to the crawl's concurrency.
    """

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
        pool_size: int = 10,
    ) -> None:
        self.timeout_s = timeout_s
        if session is None:
            session = requests.Session()
            adapter = requests.adapters.HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        session.headers["User-Agent"] = user_agent
        self.session = session

    def fetch(self, url: str) -> bytes:
        """
        Return the response body of ``url``.

        Raises:
            RequestConstructionError: the URL cannot be turned into a request.
            FetchError: network failure or timeout.
            HTTPStatusError: any status other than 200.
        """
        try:
            resp = self.session.get(url, timeout=self.timeout_s, allow_redirects=True)
        except _CONSTRUCTION_ERRORS as e:
            raise RequestConstructionError(url, f"cannot build request: {e}") from e
        except requests.RequestException as e:
            raise FetchError(url, f"fetch failed: {e}") from e

        try:
            if resp.status_code != 200:
                raise HTTPStatusError(url, resp.status_code, resp.reason)
            log.debug("fetched %s (%d bytes)", url, len(resp.content))
            return resp.content
        finally:
            resp.close()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
