"""
Crawl configuration, defaults and validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import InvalidConfig, InvalidUrl
from .urls import normalize

CHANGEFREQ_VALUES = ("always", "hourly", "daily", "weekly", "monthly", "yearly", "never")

DEFAULT_WEBSITE = "https://www.example.com"
DEFAULT_DEPTH = 10
DEFAULT_OUTPUT = "./sitemap.xml"
DEFAULT_CHANGEFREQ = "daily"
DEFAULT_TIMEOUT = 20
DEFAULT_WORKERS = 1


@dataclass(frozen=True)
class CrawlConfig:
    root_url: str
    replacer_origin: str | None = None
    max_depth: int = DEFAULT_DEPTH
    changefreq: str = DEFAULT_CHANGEFREQ
    workers: int = DEFAULT_WORKERS
    respect_robots: bool = False


def validate_url(value: str, label: str) -> str:
    try:
        return normalize(value, value)
    except InvalidUrl as exc:
        raise InvalidConfig(f"Invalid {label} URL: {value!r} ({exc})") from exc


def validate_depth(value: int | str) -> int:
    try:
        depth = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfig("Depth must be a positive integer greater than 0.") from exc
    if depth < 1:
        raise InvalidConfig("Depth must be a positive integer greater than 0.")
    return depth


def validate_changefreq(value: str) -> str:
    if value not in CHANGEFREQ_VALUES:
        raise InvalidConfig(f"Invalid changefreq value. Accepted values are: {', '.join(CHANGEFREQ_VALUES)}")
    return value


def validate_workers(value: int | str) -> int:
    try:
        workers = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfig("Workers must be a positive integer.") from exc
    if workers < 1:
        raise InvalidConfig("Workers must be a positive integer.")
    return workers


def validate_output_path(value: str | Path) -> Path:
    path = Path(value)
    parent = path.parent
    if not parent.is_dir():
        raise InvalidConfig(f"The directory {parent} does not exist.")
    if path.is_dir():
        raise InvalidConfig(f"Output path {path} is a directory.")
    return path


def validate_config(config: CrawlConfig) -> CrawlConfig:
    validate_url(config.root_url, "website")
    if config.replacer_origin:
        validate_url(config.replacer_origin, "replacer")
    validate_depth(config.max_depth)
    validate_changefreq(config.changefreq)
    validate_workers(config.workers)
    return config


def build_config(
    website: str = DEFAULT_WEBSITE,
    replacer: str | None = None,
    depth: int | str = DEFAULT_DEPTH,
    changefreq: str = DEFAULT_CHANGEFREQ,
    workers: int | str = DEFAULT_WORKERS,
    respect_robots: bool = False,
) -> CrawlConfig:
    return CrawlConfig(
        root_url=validate_url(website, "website"),
        replacer_origin=validate_url(replacer, "replacer") if replacer else None,
        max_depth=validate_depth(depth),
        changefreq=validate_changefreq(changefreq),
        workers=validate_workers(workers),
        respect_robots=respect_robots,
    )
