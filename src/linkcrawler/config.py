"""
Crawl parameters and process settings.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from linkcrawler.errors import ConfigError

DEFAULT_USER_AGENT = "LinkCrawler/1.0"
DEFAULT_TIMEOUT_S = 30.0
DEFAULT_PORT = 8080

# Admission policies for child tasks when the limiter is saturated
ADMISSION_BLOCK = "block"
ADMISSION_DROP = "drop"
ADMISSION_POLICIES: frozenset[str] = frozenset((ADMISSION_BLOCK, ADMISSION_DROP))


@dataclass(slots=True)
class CrawlConfig:
    """Parameters for one crawl run."""
    seed: str
    max_depth: int = 2
    concurrency: int = 10
    timeout_s: float = DEFAULT_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    admission: str = ADMISSION_BLOCK

    def validate(self) -> None:
        """Reject invalid parameters before any traversal starts."""
        if not self.seed or not self.seed.strip():
            raise ConfigError("seed URL must not be empty")
        if self.max_depth < 0:
            raise ConfigError(f"depth must be a non-negative integer (got {self.max_depth})")
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be at least 1 (got {self.concurrency})")
        if self.timeout_s <= 0:
            raise ConfigError(f"timeout must be positive (got {self.timeout_s})")
        if self.admission not in ADMISSION_POLICIES:
            raise ConfigError(
                f"admission must be one of {', '.join(sorted(ADMISSION_POLICIES))} "
                f"(got {self.admission!r})"
            )


@dataclass(slots=True)
class Settings:
    """Process-level settings read from the environment (and ``.env``)."""
    database_url: Optional[str] = None
    port: int = DEFAULT_PORT
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        load_dotenv(dotenv_path or find_dotenv(usecwd=True))
        port_raw = os.getenv("PORT") or str(DEFAULT_PORT)
        try:
            port = int(port_raw)
        except ValueError:
            raise ConfigError(f"PORT must be an integer (got {port_raw!r})") from None
        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            port=port,
            user_agent=os.getenv("LINKCRAWLER_USER_AGENT") or DEFAULT_USER_AGENT,
        )
