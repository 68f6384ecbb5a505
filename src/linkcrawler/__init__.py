"""
Concurrent link crawler: follows absolute http(s) links from a seed URL up to
a bounded depth and reports every discovered link with its parent page.
"""
__version__ = "1.0.0"

from linkcrawler.core import crawl, Crawler, CrawlResult, CrawlStats

__all__ = ["crawl", "Crawler", "CrawlResult", "CrawlStats", "__version__"]
