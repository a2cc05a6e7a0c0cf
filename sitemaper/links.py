"""
Anchor link extraction.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

LINK_TAGS = ["a", "area"]
SKIPPED_PREFIXES = ("javascript:", "mailto:", "tel:", "data:")


def soup_of(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except Exception:
        return BeautifulSoup(html, "html.parser")


def extract_links(html: str, page_url: str) -> list[str]:
    """Return raw href values of anchor-like elements in document order.

    Duplicates keep their first position. Nothing is resolved or normalized.
    """
    if not html:
        return []
    try:
        soup = soup_of(html)
        anchors = soup.find_all(LINK_TAGS, href=True)
    except Exception as exc:
        logger.warning("Could not parse HTML from %s: %s", page_url, exc)
        return []

    links: list[str] = []
    seen: set[str] = set()
    for anchor in anchors:
        if anchor.has_attr("download"):
            continue
        href = str(anchor.get("href") or "").strip()
        if not href or href.lower().startswith(SKIPPED_PREFIXES):
            continue
        if href in seen:
            continue
        seen.add(href)
        links.append(href)
    logger.debug("Extracted %d links from %s", len(links), page_url)
    return links
