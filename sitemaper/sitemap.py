"""
Sitemap entries, XML serialization and the output sink.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .errors import SerializationError

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
# Characters outside the XML 1.0 Char production.
ILLEGAL_XML_CHARS_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


@dataclass(frozen=True)
class SitemapEntry:
    loc: str
    lastmod: str
    changefreq: str


def _checked(value: str, field: str, loc: str) -> str:
    if ILLEGAL_XML_CHARS_RE.search(value):
        raise SerializationError(f"{field} of {loc!r} contains characters not allowed in XML")
    return value


def build_urlset(entries: Iterable[SitemapEntry]) -> ET.Element:
    root = ET.Element("urlset", xmlns=SITEMAP_NS)
    for entry in entries:
        url_node = ET.SubElement(root, "url")
        ET.SubElement(url_node, "loc").text = _checked(entry.loc, "loc", entry.loc)
        ET.SubElement(url_node, "lastmod").text = _checked(entry.lastmod, "lastmod", entry.loc)
        ET.SubElement(url_node, "changefreq").text = _checked(entry.changefreq, "changefreq", entry.loc)
    return root


def serialize(entries: Iterable[SitemapEntry]) -> str:
    root = build_urlset(entries)
    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8") + "\n"


def write_sitemap(path: str | Path, xml_text: str) -> Path:
    """Write the document next to ``path`` and move it into place in one step."""
    target = Path(path)
    tmp_file = target.with_name(target.name + ".tmp")
    try:
        tmp_file.write_text(xml_text, encoding="utf-8")
        tmp_file.replace(target)
    except OSError:
        tmp_file.unlink(missing_ok=True)
        raise
    logger.info("Sitemap written to %s", target)
    return target
