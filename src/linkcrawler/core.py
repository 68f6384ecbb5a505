"""
Traversal engine: depth-bounded, concurrency-bounded link discovery.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, List, Optional, Set

from bs4 import BeautifulSoup

from linkcrawler.config import (
    ADMISSION_BLOCK,
    ADMISSION_DROP,
    DEFAULT_TIMEOUT_S,
    DEFAULT_USER_AGENT,
    CrawlConfig,
)
from linkcrawler.errors import CrawlError, HTTPStatusError
from linkcrawler.fetch import Fetcher
from linkcrawler.links import extract_links, parse_document
from linkcrawler.state import ConcurrencyLimiter, LinkSink, VisitedSet

log = logging.getLogger(__name__)

ParseFn = Callable[[bytes, str], BeautifulSoup]
ExtractFn = Callable[[BeautifulSoup], List[str]]


@dataclass(frozen=True, slots=True)
class Task:
    """A URL to crawl with the number of levels still allowed below it."""
    url: str
    depth: int


@dataclass(slots=True)
class CrawlStats:
    """Counters collected during one crawl."""
    pages_fetched: int = 0
    duplicates_skipped: int = 0
    depth_exhausted: int = 0
    dropped: int = 0
    error_counts: Dict[str, int] = field(default_factory=dict)

    def record_error(self, error: CrawlError) -> None:
        """Record an error by category (HTTP errors by status code)."""
        key = str(error.status_code) if isinstance(error, HTTPStatusError) else error.kind
        self.error_counts[key] = self.error_counts.get(key, 0) + 1

    @property
    def errors(self) -> int:
        return sum(self.error_counts.values())


@dataclass(slots=True)
class CrawlResult:
    """Discovered links in first-arrival order plus the parent of each."""
    seed: str
    links: List[str]
    parent_of: Dict[str, str]
    stats: CrawlStats
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "seed": self.seed,
            "links": list(self.links),
            "parent_urls": dict(self.parent_of),
            "duration_seconds": self.duration_seconds,
            "stats": asdict(self.stats),
        }


class Crawler:
    """
    Crawl from ``config.seed`` with a pool of ``config.concurrency`` threads.

    Each task claims its URL in the visited set, fetches and extracts under a
    limiter token, reports every extracted link to the sink and admits
    children at ``depth - 1``. The token is released before children are
    dispatched.

    Admission when the limiter is saturated:

    * ``block``: children are always queued and wait for a token, so every
      page reachable within ``max_depth`` is fetched.
    * ``drop``: a child is admitted only if a token can be reserved at spawn
      time; otherwise it is reported but never fetched (``stats.dropped``).

    A ``Crawler`` runs once; its state belongs to that run.
    """

    def __init__(
        self,
        config: CrawlConfig,
        fetcher: Optional[Fetcher] = None,
        parse: ParseFn = parse_document,
        extract: ExtractFn = extract_links,
    ) -> None:
        config.validate()
        self.config = config
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(
            timeout_s=config.timeout_s,
            user_agent=config.user_agent,
            pool_size=config.concurrency,
        )
        self.parse = parse
        self.extract = extract

        self.visited = VisitedSet()
        self.limiter = ConcurrencyLimiter(config.concurrency)
        self.sink = LinkSink()
        self.stats = CrawlStats()

        self._stats_lock = threading.Lock()
        # Join barrier: number of submitted tasks not yet finished
        self._pending = 0
        self._idle = threading.Condition()
        self._failures: List[BaseException] = []
        self._executor: Optional[ThreadPoolExecutor] = None
        self._started = False

    def run(self) -> CrawlResult:
        if self._started:
            raise RuntimeError("Crawler instances run only once")
        self._started = True

        cfg = self.config
        log.info(
            "crawl start seed=%s depth=%d concurrency=%d admission=%s",
            cfg.seed, cfg.max_depth, cfg.concurrency, cfg.admission,
        )
        started = time.monotonic()
        try:
            with ThreadPoolExecutor(max_workers=cfg.concurrency, thread_name_prefix="crawl") as executor:
                self._executor = executor
                self._submit(Task(cfg.seed, cfg.max_depth))
                with self._idle:
                    self._idle.wait_for(lambda: self._pending == 0)
        finally:
            self._executor = None
            if self._owns_fetcher:
                self.fetcher.close()
        duration = time.monotonic() - started

        if self._failures:
            raise self._failures[0]

        result = CrawlResult(
            seed=cfg.seed,
            links=self.sink.links(),
            parent_of=self.sink.parent_of(),
            stats=self.stats,
            duration_seconds=duration,
        )
        log.info(
            "crawl done links=%d fetched=%d errors=%d dropped=%d in %.2fs",
            len(result.links), self.stats.pages_fetched, self.stats.errors,
            self.stats.dropped, duration,
        )
        return result

    # Scheduling

    def _submit(self, task: Task, reserved: bool = False) -> None:
        if self._executor is None:
            raise RuntimeError("tasks can only be submitted while the crawl is running")
        with self._idle:
            self._pending += 1
        future = self._executor.submit(self._process, task, reserved)
        future.add_done_callback(self._finished)

    def _finished(self, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            log.error("unexpected failure in crawl task: %r", exc)
        with self._idle:
            if exc is not None:
                self._failures.append(exc)
            self._pending -= 1
            if self._pending == 0:
                self._idle.notify_all()

    def _admit(self, task: Task) -> None:
        if self.config.admission == ADMISSION_DROP:
            if not self.limiter.try_acquire():
                log.debug("limiter saturated, dropping %s", task.url)
                self._bump("dropped")
                return
            self._submit(task, reserved=True)
        else:
            self._submit(task)

    # Task lifecycle

    def _process(self, task: Task, reserved: bool) -> None:
        if task.depth <= 0:
            if reserved:
                self.limiter.release()
            self._bump("depth_exhausted")
            return
        if not self.visited.claim(task.url):
            if reserved:
                self.limiter.release()
            self._bump("duplicates_skipped")
            return

        # a reserved token was taken at spawn time and is handed over here
        slot = self.limiter.held() if reserved else self.limiter.token()
        try:
            with slot:
                links = self._fetch_links(task.url)
        except CrawlError as e:
            log.warning("skip %s: %s", task.url, e)
            with self._stats_lock:
                self.stats.record_error(e)
            return

        self._bump("pages_fetched")
        self._dispatch(task, links)

    def _fetch_links(self, url: str) -> List[str]:
        body = self.fetcher.fetch(url)
        document = self.parse(body, url)
        links = self.extract(document)
        log.debug("%s: %d links", url, len(links))
        return links

    def _dispatch(self, task: Task, links: List[str]) -> None:
        child_depth = task.depth - 1
        for link in links:
            self.sink.report(link, task.url)

        spawned: Set[str] = set()
        for link in links:
            if link in spawned or link in self.visited:
                continue
            spawned.add(link)
            if child_depth <= 0:
                self._bump("depth_exhausted")
                continue
            self._admit(Task(link, child_depth))

    def _bump(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self.stats, counter, getattr(self.stats, counter) + 1)


def crawl(
    seed: str,
    max_depth: int,
    concurrency: int,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    user_agent: str = DEFAULT_USER_AGENT,
    admission: str = ADMISSION_BLOCK,
    fetcher: Optional[Fetcher] = None,
) -> CrawlResult:
    """
    Crawl links reachable from ``seed`` within ``max_depth`` levels.

    Args:
        seed: Start URL.
        max_depth: Levels to fetch; 0 fetches nothing, 1 only the seed.
        concurrency: Maximum simultaneous fetch+extract cycles.
        timeout_s: Per-request timeout in seconds.
        user_agent: User-Agent header for requests.
        admission: ``"block"`` or ``"drop"``, see ``Crawler``.
        fetcher: Optional fetcher to use instead of a fresh one.

    Returns:
        The crawl result with links in first-discovery order.

    Raises:
        ConfigError: on invalid parameters, before any request is made.
    """
    config = CrawlConfig(
        seed=seed,
        max_depth=max_depth,
        concurrency=concurrency,
        timeout_s=timeout_s,
        user_agent=user_agent,
        admission=admission,
    )
    return Crawler(config, fetcher=fetcher).run()
