from __future__ import annotations

import pytest
import requests

from sitemaper import fetcher as fetcher_module
from sitemaper.errors import FetchFailed
from sitemaper.fetcher import FetchResult, PageFetcher, is_public_target, load_robots, looks_like_html, robots_allows


@pytest.fixture
def make_fetcher(make_session):
    def factory(routes, **kwargs) -> PageFetcher:
        kwargs.setdefault("allow_private", True)
        return PageFetcher(session=make_session(routes), **kwargs)

    return factory


def test_returns_html_and_final_url(make_fetcher, html):
    fetcher = make_fetcher({"https://a.test/": html("<html>hi</html>")}, timeout=7)

    result = fetcher("https://a.test/")

    assert result == FetchResult(html="<html>hi</html>", final_url="https://a.test/", status_code=200, is_html=True)
    url, kwargs = fetcher.session.calls[0]
    assert kwargs["timeout"] == 7
    assert kwargs["allow_redirects"] is False
    assert "sitemaper" in kwargs["headers"]["User-Agent"]


def test_follows_redirects_and_reports_final_location(make_fetcher, response, html):
    fetcher = make_fetcher(
        {
            "https://a.test/docs": response(301, headers={"Location": "/docs/"}),
            "https://a.test/docs/": response(302, headers={"Location": "https://www.a.test/docs/#top"}),
            "https://www.a.test/docs/": html(),
        }
    )
    result = fetcher("https://a.test/docs")
    assert result.final_url == "https://www.a.test/docs/"


def test_redirect_loop_is_a_fetch_failure(make_fetcher, response):
    fetcher = make_fetcher(
        {
            "https://a.test/a": response(302, headers={"Location": "/b"}),
            "https://a.test/b": response(302, headers={"Location": "/a"}),
        }
    )
    with pytest.raises(FetchFailed, match="Too many redirects"):
        fetcher("https://a.test/a")


@pytest.mark.parametrize("status", [404, 500, 503])
def test_error_status_is_a_fetch_failure(make_fetcher, response, status):
    fetcher = make_fetcher({"https://a.test/": response(status, "oops", {"Content-Type": "text/html"})})
    with pytest.raises(FetchFailed) as excinfo:
        fetcher("https://a.test/")
    assert excinfo.value.url == "https://a.test/"
    assert excinfo.value.reason == f"HTTP {status}"


def test_timeout_is_a_fetch_failure(make_fetcher):
    fetcher = make_fetcher({"https://a.test/": requests.exceptions.ReadTimeout("slow")}, timeout=3)
    with pytest.raises(FetchFailed, match="timed out after 3s"):
        fetcher("https://a.test/")


def test_connection_error_is_a_fetch_failure(make_fetcher):
    fetcher = make_fetcher({"https://a.test/": requests.exceptions.ConnectionError("refused")})
    with pytest.raises(FetchFailed, match="refused"):
        fetcher("https://a.test/")


def test_private_hosts_are_refused_by_default(monkeypatch, make_session, html):
    monkeypatch.setattr(fetcher_module, "is_public_target", lambda url: False)
    fetcher = PageFetcher(session=make_session({"http://localhost/": html()}))
    with pytest.raises(FetchFailed, match="non-public"):
        fetcher("http://localhost/")
    assert fetcher.session.calls == []


def test_redirect_into_private_host_is_refused(monkeypatch, make_session, response):
    monkeypatch.setattr(fetcher_module, "is_public_target", lambda url: "internal" not in url)
    fetcher = PageFetcher(
        session=make_session({"https://a.test/": response(302, headers={"Location": "http://internal.test/"})})
    )
    with pytest.raises(FetchFailed, match="non-public"):
        fetcher("https://a.test/")


@pytest.mark.parametrize("host", ["x..y", "a" * 64 + ".test"])
def test_unencodable_host_names_are_not_public(host):
    assert is_public_target(f"https://{host}/") is False


def test_redirect_to_unencodable_host_is_a_fetch_failure(monkeypatch, make_session, response):
    real_check = fetcher_module.is_public_target
    monkeypatch.setattr(fetcher_module, "is_public_target", lambda url: "a.test" in url or real_check(url))
    fetcher = PageFetcher(
        session=make_session({"https://a.test/bad": response(302, headers={"Location": "https://x..y/"})})
    )
    with pytest.raises(FetchFailed, match="non-public or invalid host"):
        fetcher("https://a.test/bad")


def test_non_html_responses_are_flagged_without_a_body(make_fetcher, response):
    fetcher = make_fetcher({"https://a.test/doc.pdf": response(200, "%PDF-1.7", {"Content-Type": "application/pdf"})})

    result = fetcher("https://a.test/doc.pdf")

    assert result.is_html is False
    assert result.html == ""


def test_plain_text_bodies_are_kept(make_fetcher, response):
    body = "User-agent: *\nDisallow: /private/\n"
    fetcher = make_fetcher({"https://a.test/robots.txt": response(200, body, {"Content-Type": "text/plain"})})

    result = fetcher("https://a.test/robots.txt")

    assert result.is_html is False
    assert result.html == body


def test_html_sniffing_when_content_type_is_missing():
    assert looks_like_html("", "<!doctype html><html><body></body></html>")
    assert not looks_like_html("", "just text")
    assert not looks_like_html("image/png", "<html>")
    assert looks_like_html("application/xhtml+xml", "")


def test_close_closes_the_session(make_fetcher):
    fetcher = make_fetcher({})
    fetcher.close()
    assert fetcher.session.closed


def test_robots_rules_are_applied():
    body = "User-agent: *\nDisallow: /private/\n"

    def fetch(url):
        assert url == "https://a.test/robots.txt"
        return FetchResult(html=body, final_url=url, is_html=False)

    parser = load_robots("https://a.test/some/page", fetch)

    assert robots_allows(parser, "https://a.test/public")
    assert not robots_allows(parser, "https://a.test/private/area")


def test_missing_robots_allows_everything():
    def fetch(url):
        raise FetchFailed(url, "HTTP 404")

    parser = load_robots("https://a.test/", fetch)
    assert parser is None
    assert robots_allows(parser, "https://a.test/anything")
