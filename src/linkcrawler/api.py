"""
HTTP API: run a crawl per request and return the result as JSON.

    POST /api/crawl  {"url": ..., "depth": 2, "concurrency": 10}
    GET  /health
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from linkcrawler import __version__
from linkcrawler.config import ADMISSION_BLOCK, CrawlConfig, Settings
from linkcrawler.core import Crawler
from linkcrawler.errors import ConfigError
from linkcrawler.fetch import Fetcher
from linkcrawler.logs import configure_logging

log = logging.getLogger(__name__)

_STARTED = time.monotonic()


class CrawlRequest(BaseModel):
    url: str = ""
    depth: int = 0
    concurrency: int = 0
    admission: str = ADMISSION_BLOCK


class CrawlResponse(BaseModel):
    links: List[str] = []
    parent_urls: Dict[str, str] = {}
    duration_seconds: float = 0.0
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    uptime: str


app = FastAPI(title="linkcrawler", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _error(message: str, status_code: int) -> JSONResponse:
    body = CrawlResponse(error=message).model_dump()
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    if any(err.get("type") == "json_invalid" for err in exc.errors()):
        return _error("Invalid JSON", 400)
    return _error("Invalid input", 400)


def get_fetcher() -> Optional[Fetcher]:
    """Fetcher for API crawls; None lets each crawl build its own."""
    return None


@app.post("/api/crawl", response_model=CrawlResponse, response_model_exclude_none=True)
def crawl_endpoint(req: CrawlRequest, fetcher: Optional[Fetcher] = Depends(get_fetcher)):
    config = CrawlConfig(
        seed=req.url,
        max_depth=req.depth,
        concurrency=req.concurrency,
        admission=req.admission,
    )
    try:
        crawler = Crawler(config, fetcher=fetcher)
    except ConfigError as e:
        log.info("rejected crawl request: %s", e)
        return _error("Invalid input", 400)

    result = crawler.run()
    return CrawlResponse(
        links=result.links,
        parent_urls=result.parent_of,
        duration_seconds=result.duration_seconds,
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
        uptime=str(timedelta(seconds=round(time.monotonic() - _STARTED))),
    )


def main() -> int:
    """Serve the API on 0.0.0.0:$PORT."""
    settings = Settings.from_env()
    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
