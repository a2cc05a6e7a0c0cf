"""
Breadth-first crawl scheduler.

A crawl starts at the configured root, follows same-origin links level by
level up to ``max_depth`` hops and returns one ``SitemapEntry`` per unique URL
in discovery order. All mutable state lives in a ``CrawlState`` created per
call, so independent crawls can run side by side in one process.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Callable, Iterator

from .config import CrawlConfig, validate_config
from .errors import FetchFailed, InvalidConfig, InvalidUrl, RootFetchFailed
from .fetcher import Fetch, FetchResult
from .links import extract_links
from .sitemap import SitemapEntry
from .urls import Origin, normalize, origin, publish_url, same_site

logger = logging.getLogger(__name__)

Extract = Callable[[str, str], list[str]]
Normalize = Callable[[str, str], str]
Allow = Callable[[str], bool]
Clock = Callable[[], str]


def today() -> str:
    return datetime.now(UTC).date().isoformat()


@dataclass(frozen=True)
class CrawlQueueEntry:
    url: str
    depth: int


@dataclass
class CrawlState:
    config: CrawlConfig
    root_url: str
    scope: set[Origin]
    visited: set[str] = field(default_factory=set)
    queue: deque[CrawlQueueEntry] = field(default_factory=deque)
    depths: dict[str, int] = field(default_factory=dict)
    entries: list[SitemapEntry] = field(default_factory=list)
    emitted: set[str] = field(default_factory=set)
    fetched: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    def in_scope(self, url: str) -> bool:
        try:
            return origin(url) in self.scope
        except InvalidUrl:
            return False

    def enqueue(self, url: str, depth: int) -> bool:
        # Membership test and insertion happen together on the scheduling thread.
        if url in self.visited:
            return False
        self.visited.add(url)
        self.depths[url] = depth
        self.queue.append(CrawlQueueEntry(url=url, depth=depth))
        return True

    def next_level(self) -> list[CrawlQueueEntry]:
        depth = self.queue[0].depth
        batch: list[CrawlQueueEntry] = []
        while self.queue and self.queue[0].depth == depth:
            batch.append(self.queue.popleft())
        return batch

    def emit(self, url: str, lastmod: str) -> SitemapEntry | None:
        loc = publish_url(url, self.scope, self.config.replacer_origin)
        if loc in self.emitted:
            return None
        self.emitted.add(loc)
        entry = SitemapEntry(loc=loc, lastmod=lastmod, changefreq=self.config.changefreq)
        self.entries.append(entry)
        return entry


FetchOutcome = tuple[CrawlQueueEntry, FetchResult | None, FetchFailed | None]


def fetch_level(fetch: Fetch, batch: list[CrawlQueueEntry], workers: int) -> Iterator[FetchOutcome]:
    """Fetch one BFS level, yielding outcomes in queue order.

    With one worker each entry is fetched only after the previous outcome was
    consumed. With more, at most ``workers`` requests are in flight and
    finished bodies are held only until the caller takes them.
    """

    def attempt(entry: CrawlQueueEntry) -> FetchOutcome:
        try:
            return entry, fetch(entry.url), None
        except FetchFailed as exc:
            return entry, None, exc

    if workers <= 1 or len(batch) <= 1:
        for entry in batch:
            yield attempt(entry)
        return
    size = min(workers, len(batch))
    with concurrent.futures.ThreadPoolExecutor(max_workers=size) as pool:
        for start in range(0, len(batch), size):
            yield from pool.map(attempt, batch[start : start + size])


def _links_of(extract: Extract, result: FetchResult, base_url: str) -> list[str]:
    try:
        return list(extract(result.html, base_url))
    except Exception as exc:
        logger.warning("Link extraction failed for %s: %s", base_url, exc)
        return []


def crawl_state(
    config: CrawlConfig,
    fetch: Fetch,
    extract: Extract = extract_links,
    normalize: Normalize = normalize,
    allow: Allow | None = None,
    clock: Clock | None = None,
) -> CrawlState:
    validate_config(config)
    clock = clock or today
    try:
        root_url = normalize(config.root_url, config.root_url)
    except InvalidUrl as exc:
        raise InvalidConfig(f"Invalid website URL: {config.root_url!r} ({exc})") from exc

    state = CrawlState(config=config, root_url=root_url, scope={origin(root_url)})
    state.enqueue(root_url, 0)
    logger.info("Crawling %s (max depth %d, %d worker(s))", root_url, config.max_depth, config.workers)

    while state.queue:
        batch = state.next_level()
        for entry, result, error in fetch_level(fetch, batch, config.workers):
            if error is not None:
                if entry.depth == 0:
                    raise RootFetchFailed(error.url, error.reason) from error
                logger.warning("Skipping links of %s: %s", entry.url, error.reason)
                state.failures[entry.url] = error.reason
                state.emit(entry.url, clock())
                continue

            state.fetched.append(entry.url)
            try:
                final_url = normalize(result.final_url, entry.url)
            except InvalidUrl:
                final_url = entry.url
            if entry.depth == 0 and same_site(final_url, root_url):
                # Root redirects within the site (http -> https, apex -> www) widen the scope.
                state.scope.add(origin(final_url))
            if final_url != entry.url and state.in_scope(final_url):
                state.visited.add(final_url)
            state.emit(entry.url, clock())

            if entry.depth >= config.max_depth or not result.is_html:
                continue
            for raw in _links_of(extract, result, final_url):
                try:
                    url = normalize(raw, final_url)
                except InvalidUrl:
                    continue
                if not state.in_scope(url) or url in state.visited:
                    continue
                if allow is not None and not allow(url):
                    logger.debug("Disallowed by robots.txt: %s", url)
                    state.visited.add(url)
                    continue
                if state.enqueue(url, entry.depth + 1):
                    logger.debug("Queued %s at depth %d", url, entry.depth + 1)

    logger.info(
        "Crawl of %s finished: %d entries, %d fetch failure(s)",
        root_url,
        len(state.entries),
        len(state.failures),
    )
    return state


def crawl(
    config: CrawlConfig,
    fetch: Fetch,
    extract: Extract = extract_links,
    normalize: Normalize = normalize,
    allow: Allow | None = None,
    clock: Clock | None = None,
) -> list[SitemapEntry]:
    return crawl_state(config, fetch, extract, normalize, allow, clock).entries
