from __future__ import annotations

import pytest

from sitemaper.errors import FetchFailed
from sitemaper.fetcher import FetchResult


class FakeSite:
    """In-memory page graph standing in for the HTTP fetcher."""

    def __init__(
        self,
        pages: dict[str, str],
        failing: set[str] | None = None,
        redirects: dict[str, str] | None = None,
        content_types: dict[str, str] | None = None,
    ) -> None:
        self.pages = pages
        self.failing = failing or set()
        self.redirects = redirects or {}
        self.content_types = content_types or {}
        self.requests: list[str] = []
        self.closed = False

    def __call__(self, url: str) -> FetchResult:
        self.requests.append(url)
        if url in self.failing:
            raise FetchFailed(url, "HTTP 500")
        final_url = self.redirects.get(url, url)
        if final_url not in self.pages:
            raise FetchFailed(url, "HTTP 404")
        content_type = self.content_types.get(final_url, "text/html")
        return FetchResult(
            html=self.pages[final_url],
            final_url=final_url,
            status_code=200,
            is_html=content_type == "text/html",
        )

    def close(self) -> None:
        self.closed = True


def html_page(*hrefs: str) -> str:
    anchors = "".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><head><title>t</title></head><body>{anchors}</body></html>"


@pytest.fixture
def page():
    return html_page


@pytest.fixture
def make_site():
    return FakeSite


@pytest.fixture
def fixed_clock():
    return lambda: "2024-05-01"


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", headers: dict[str, str] | None = None) -> None:
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}


class FakeSession:
    """Stands in for ``requests.Session``; routes map a URL to a response or an exception."""

    def __init__(self, routes: dict[str, object]) -> None:
        self.routes = routes
        self.calls: list[tuple[str, dict]] = []
        self.closed = False

    def get(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.routes[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


def html_response(body: str = "<html><body></body></html>") -> FakeResponse:
    return FakeResponse(200, body, {"Content-Type": "text/html; charset=utf-8"})


@pytest.fixture
def response():
    return FakeResponse


@pytest.fixture
def html():
    return html_response


@pytest.fixture
def make_session():
    return FakeSession
