"""
HTTP page fetcher used by the crawler.

The crawler only needs a callable ``fetch(url) -> FetchResult`` that raises
``FetchFailed``; ``PageFetcher`` is the requests-based implementation.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import time
from dataclasses import dataclass
from typing import Callable
from urllib import robotparser
from urllib.parse import urljoin, urlparse

import requests

from .errors import FetchFailed, InvalidUrl
from .urls import normalize

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; sitemaper/1.0; +https://www.sitemaps.org/protocol.html)"
HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.8",
    "Connection": "keep-alive",
}
MAX_REDIRECT_HOPS = 10
HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
TEXT_CONTENT_TYPES = ("text/", "xml")


@dataclass(frozen=True)
class FetchResult:
    html: str
    final_url: str
    status_code: int = 200
    is_html: bool = True


Fetch = Callable[[str], FetchResult]


def is_public_target(url: str) -> bool:
    host = urlparse(url).hostname
    if not host:
        return False
    try:
        info = socket.getaddrinfo(host, None)
    except (socket.gaierror, UnicodeError):
        # UnicodeError: empty or over-long IDNA label.
        return False
    for _, _, _, _, sockaddr in info:
        ip_text = sockaddr[0]
        try:
            ip = ipaddress.ip_address(ip_text)
        except ValueError:
            continue
        if ip.is_private or ip.is_loopback or ip.is_reserved or ip.is_link_local or ip.is_multicast:
            continue
        return True
    return False


def looks_like_html(content_type: str, text: str) -> bool:
    lowered = content_type.lower()
    if any(kind in lowered for kind in HTML_CONTENT_TYPES):
        return True
    if lowered and "xml" not in lowered and "text/plain" not in lowered:
        return False
    # Content-Type can be wrong or absent; fall back to sniffing the document.
    return "<html" in text[:4096].lower()


class PageFetcher:
    """Fetch pages over HTTP, following redirects by hand.

    Every hop is checked against the public-host guard unless ``allow_private``
    is set. Anything short of a 2xx page raises ``FetchFailed``.
    """

    def __init__(
        self,
        timeout: float = 20,
        delay: float = 0.0,
        allow_private: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.delay = delay
        self.allow_private = allow_private
        self.session = session or requests.Session()

    def __call__(self, url: str) -> FetchResult:
        return self.fetch(url)

    def close(self) -> None:
        self.session.close()

    def _check_target(self, url: str, current_url: str) -> None:
        if not self.allow_private and not is_public_target(current_url):
            raise FetchFailed(url, f"target {current_url} resolves to non-public or invalid host")

    def fetch(self, url: str) -> FetchResult:
        current_url = url
        redirects = 0
        try:
            while True:
                self._check_target(url, current_url)
                logger.debug("GET %s", current_url)
                response = self.session.get(
                    current_url, headers=HEADERS, timeout=self.timeout, allow_redirects=False
                )
                if 300 <= response.status_code < 400:
                    location = (response.headers.get("Location") or "").strip()
                    if not location:
                        raise FetchFailed(url, f"HTTP {response.status_code} without Location header")
                    if redirects >= MAX_REDIRECT_HOPS:
                        raise FetchFailed(url, f"Too many redirects (>{MAX_REDIRECT_HOPS})")
                    try:
                        current_url = normalize(location, current_url)
                    except InvalidUrl as exc:
                        raise FetchFailed(url, f"Invalid redirect URL: {exc}") from exc
                    redirects += 1
                    continue
                if not 200 <= response.status_code < 300:
                    raise FetchFailed(url, f"HTTP {response.status_code}")
                break
        except requests.exceptions.Timeout as exc:
            raise FetchFailed(url, f"timed out after {self.timeout}s") from exc
        except requests.exceptions.RequestException as exc:
            raise FetchFailed(url, str(exc)) from exc
        finally:
            if self.delay > 0:
                time.sleep(self.delay)

        content_type = str(response.headers.get("Content-Type", ""))
        lowered = content_type.lower()
        if lowered and not any(kind in lowered for kind in TEXT_CONTENT_TYPES):
            # Binary bodies (PDF, images, archives) are never decoded.
            return FetchResult(html="", final_url=current_url, status_code=response.status_code, is_html=False)
        text = response.text or ""
        is_html = looks_like_html(content_type, text)
        return FetchResult(
            html=text,
            final_url=current_url,
            status_code=response.status_code,
            is_html=is_html,
        )


def load_robots(root_url: str, fetch: Fetch) -> robotparser.RobotFileParser | None:
    robots_url = urljoin(root_url, "/robots.txt")
    try:
        result = fetch(robots_url)
    except FetchFailed as exc:
        logger.info("No usable robots.txt at %s: %s", robots_url, exc.reason)
        return None
    parser = robotparser.RobotFileParser()
    parser.set_url(result.final_url)
    parser.parse(result.html.splitlines())
    return parser


def robots_allows(parser: robotparser.RobotFileParser | None, url: str) -> bool:
    if parser is None:
        return True
    try:
        return parser.can_fetch(USER_AGENT, url)
    except Exception:
        return True
