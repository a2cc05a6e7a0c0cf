"""
Structural validation of sitemap documents against the sitemaps.org protocol.

Only the document is inspected; no URL is requested.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from .config import CHANGEFREQ_VALUES
from .sitemap import SITEMAP_NS

MAX_URLS = 50000
MAX_LOC_LENGTH = 2048
W3C_DATETIME_RE = re.compile(
    r"^\d{4}(-\d{2}(-\d{2}(T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:\d{2}))?)?)?$"
)


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    url_count: int = 0


def localname(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[-1]
    return tag


def namespace(tag: str) -> str:
    if tag.startswith("{") and "}" in tag:
        return tag[1:].split("}", 1)[0]
    return ""


def is_absolute_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
        parsed.port
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname) and not any(ch.isspace() for ch in value)


def check_priority(value: str) -> bool:
    try:
        number = float(value)
    except ValueError:
        return False
    return 0.0 <= number <= 1.0


def validate(xml_text: str | bytes) -> ValidationResult:
    try:
        data = xml_text.encode("utf-8") if isinstance(xml_text, str) else xml_text
        root = ET.fromstring(data)
    except (ET.ParseError, UnicodeEncodeError) as exc:
        return ValidationResult(valid=False, errors=[f"Invalid XML: {exc}"])

    errors: list[str] = []
    if localname(root.tag) != "urlset":
        errors.append(f"Root element must be <urlset>, found <{localname(root.tag)}>")
        return ValidationResult(valid=False, errors=errors)
    if namespace(root.tag) != SITEMAP_NS:
        errors.append(f"Root element must be in namespace {SITEMAP_NS}, found '{namespace(root.tag) or '(none)'}'")

    seen: dict[str, int] = {}
    url_count = 0
    for position, node in enumerate(root, start=1):
        if localname(node.tag) != "url":
            errors.append(f"Unexpected element <{localname(node.tag)}> at position {position}")
            continue
        url_count += 1
        label = f"URL entry #{url_count}"
        locs = [child for child in node if localname(child.tag) == "loc"]
        if not locs or not (locs[0].text or "").strip():
            errors.append(f"{label} is missing <loc>")
        else:
            if len(locs) > 1:
                errors.append(f"{label} has {len(locs)} <loc> elements")
            loc = (locs[0].text or "").strip()
            label = f"{label} ({loc})"
            if len(loc) > MAX_LOC_LENGTH:
                errors.append(f"{label}: <loc> is longer than {MAX_LOC_LENGTH} characters")
            if not is_absolute_url(loc):
                errors.append(f"{label}: <loc> is not a valid absolute URL")
            if loc in seen:
                errors.append(f"{label}: duplicate <loc> (first seen in entry #{seen[loc]})")
            else:
                seen[loc] = url_count

        for child in node:
            name = localname(child.tag)
            value = (child.text or "").strip()
            if name == "changefreq" and value not in CHANGEFREQ_VALUES:
                errors.append(f"{label}: invalid <changefreq> '{value}'")
            elif name == "lastmod" and not W3C_DATETIME_RE.match(value):
                errors.append(f"{label}: invalid <lastmod> '{value}'")
            elif name == "priority" and not check_priority(value):
                errors.append(f"{label}: <priority> must be between 0.0 and 1.0, found '{value}'")

    if url_count > MAX_URLS:
        errors.append(f"Sitemap has {url_count} URLs (max {MAX_URLS:,})")
    return ValidationResult(valid=not errors, errors=errors, url_count=url_count)


def validate_source(source: str | Path) -> ValidationResult:
    """Validate a sitemap given as a file path or as raw XML text."""
    if isinstance(source, str) and source.lstrip().startswith("<"):
        return validate(source)
    path = Path(source)
    if not path.is_file():
        return ValidationResult(valid=False, errors=[f"Sitemap file not found: {path}"])
    return validate(path.read_bytes())
