"""
Exception types raised by sitemaper.
"""

from __future__ import annotations


class SitemaperError(Exception):
    pass


class InvalidConfig(SitemaperError, ValueError):
    pass


class InvalidUrl(SitemaperError, ValueError):
    pass


class FetchFailed(SitemaperError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class RootFetchFailed(FetchFailed):
    pass


class SerializationError(SitemaperError):
    pass
