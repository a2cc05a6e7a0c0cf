"""
Command-line entry point for sitemaper.

Usage:
    sitemaper generate -w https://example.com -d 3 -o ./sitemap.xml
    sitemaper generate -w https://staging.example.com -r https://www.example.com
    sitemaper validate ./sitemap.xml
"""

from __future__ import annotations

import argparse
import logging
from functools import partial

from . import __version__
from .config import (
    CHANGEFREQ_VALUES,
    DEFAULT_CHANGEFREQ,
    DEFAULT_DEPTH,
    DEFAULT_OUTPUT,
    DEFAULT_TIMEOUT,
    DEFAULT_WEBSITE,
    DEFAULT_WORKERS,
    build_config,
    validate_output_path,
)
from .crawler import crawl_state
from .errors import InvalidConfig, RootFetchFailed, SerializationError
from .fetcher import PageFetcher, load_robots, robots_allows
from .sitemap import serialize, write_sitemap
from .validator import validate_source

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    if verbosity < 3:
        logging.getLogger("urllib3").setLevel(logging.WARNING)


def run_generate(args: argparse.Namespace) -> int:
    try:
        config = build_config(
            website=args.website,
            replacer=args.replacer,
            depth=args.depth,
            changefreq=args.changefreq,
            workers=args.workers,
            respect_robots=args.respect_robots,
        )
        output_path = validate_output_path(args.output)
        if args.timeout <= 0:
            raise InvalidConfig("Timeout must be greater than 0.")
        if args.delay < 0:
            raise InvalidConfig("Delay must not be negative.")
    except InvalidConfig as exc:
        print(f"Error: {exc}")
        return 2

    fetcher = PageFetcher(
        timeout=args.timeout,
        delay=args.delay,
        allow_private=args.allow_private_hosts,
    )
    allow = None
    if config.respect_robots:
        robots = load_robots(config.root_url, fetcher)
        if robots is not None:
            allow = partial(robots_allows, robots)

    try:
        state = crawl_state(config, fetcher, allow=allow)
        xml_text = serialize(state.entries)
    except RootFetchFailed as exc:
        print(f"Error: could not fetch the website root {exc.url}: {exc.reason}")
        return 1
    except SerializationError as exc:
        print(f"Error: {exc}")
        return 1
    finally:
        fetcher.close()

    try:
        write_sitemap(output_path, xml_text)
    except OSError as exc:
        print(f"Error: could not write {output_path}: {exc}")
        return 1

    print(f"Website: {config.root_url}")
    if config.replacer_origin:
        print(f"Published under: {config.replacer_origin}")
    print(f"Pages fetched: {len(state.fetched)}")
    print(f"Fetch failures: {len(state.failures)}")
    print(f"Sitemap entries: {len(state.entries)}")
    print(f"Sitemap: {output_path}")
    return 0


def run_validate(args: argparse.Namespace) -> int:
    result = validate_source(args.source)
    if result.valid:
        print(f"Sitemap is valid ({result.url_count} URLs)")
        return 0
    print(f"Sitemap is invalid ({len(result.errors)} errors)")
    for error in result.errors:
        print(f"- {error}")
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitemaper",
        description="Simple tool for generating sitemaps for your website.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p_generate = sub.add_parser("generate", help="Crawl a website and write sitemap.xml")
    p_generate.add_argument("-w", "--website", default=DEFAULT_WEBSITE, help="The URL of the website to crawl")
    p_generate.add_argument("-r", "--replacer", default="", help="Origin that replaces the website origin in <loc>")
    p_generate.add_argument("-d", "--depth", default=DEFAULT_DEPTH, help="Depth of the website to crawl")
    p_generate.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help="Output path for the sitemap.xml")
    p_generate.add_argument(
        "-f",
        "--changefreq",
        default=DEFAULT_CHANGEFREQ,
        help=f"Change frequency for the sitemap ({', '.join(CHANGEFREQ_VALUES)})",
    )
    p_generate.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Per-request timeout in seconds")
    p_generate.add_argument("--workers", default=DEFAULT_WORKERS, help="Parallel fetches per crawl level")
    p_generate.add_argument("--delay", type=float, default=0.0, help="Pause in seconds after each request")
    p_generate.add_argument("--respect-robots", action="store_true", help="Skip URLs disallowed by robots.txt")
    p_generate.add_argument(
        "--allow-private-hosts",
        action="store_true",
        help="Allow crawling hosts that resolve to private or loopback addresses",
    )
    p_generate.add_argument("-v", "--verbose", action="count", default=0)
    p_generate.set_defaults(func=run_generate)

    p_validate = sub.add_parser("validate", help="Validate an existing sitemap file or XML string")
    p_validate.add_argument("source", help="Path to sitemap.xml or raw XML text")
    p_validate.add_argument("-v", "--verbose", action="count", default=0)
    p_validate.set_defaults(func=run_validate)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)

