"""
sitemaper: crawl a website and generate or validate its XML sitemap.
"""

from __future__ import annotations

__version__ = "1.0.0"

from .config import CHANGEFREQ_VALUES, CrawlConfig, build_config, validate_output_path
from .crawler import CrawlQueueEntry, CrawlState, crawl, crawl_state
from .errors import (
    FetchFailed,
    InvalidConfig,
    InvalidUrl,
    RootFetchFailed,
    SerializationError,
    SitemaperError,
)
from .fetcher import FetchResult, PageFetcher
from .links import extract_links
from .sitemap import SitemapEntry, serialize, write_sitemap
from .urls import normalize, replace_origin
from .validator import ValidationResult, validate, validate_source


def generate_sitemap(
    website: str,
    replacer: str | None = None,
    depth: int = 10,
    output: str = "./sitemap.xml",
    changefreq: str = "daily",
    fetch=None,
) -> str:
    """Crawl ``website`` and write its sitemap to ``output``.

    Returns the XML text that was written. Nothing is written if the crawl
    or the serialization fails.
    """
    config = build_config(website=website, replacer=replacer, depth=depth, changefreq=changefreq)
    output_path = validate_output_path(output)
    fetcher = fetch or PageFetcher()
    try:
        xml_text = serialize(crawl(config, fetcher))
    finally:
        if fetch is None:
            fetcher.close()
    write_sitemap(output_path, xml_text)
    return xml_text


validate_sitemap = validate_source

__all__ = [
    "CHANGEFREQ_VALUES",
    "CrawlConfig",
    "CrawlQueueEntry",
    "CrawlState",
    "FetchFailed",
    "FetchResult",
    "InvalidConfig",
    "InvalidUrl",
    "PageFetcher",
    "RootFetchFailed",
    "SerializationError",
    "SitemapEntry",
    "SitemaperError",
    "ValidationResult",
    "build_config",
    "crawl",
    "crawl_state",
    "extract_links",
    "generate_sitemap",
    "normalize",
    "replace_origin",
    "serialize",
    "validate",
    "validate_sitemap",
    "validate_source",
    "write_sitemap",
]
