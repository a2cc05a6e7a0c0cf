"""
URL normalization, origin scoping and origin replacement.
"""

from __future__ import annotations

from urllib.parse import ParseResult, urljoin, urlparse, urlunparse

from .errors import InvalidUrl

DEFAULT_PORTS = {"http": 80, "https": 443}

Origin = tuple[str, str, int]


def _split(url: str) -> tuple[ParseResult, str, str, int | None]:
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise InvalidUrl(f"Unsupported URL scheme: {parsed.scheme or '(none)'} in {url!r}")
    try:
        port = parsed.port
    except ValueError as exc:
        raise InvalidUrl(f"Invalid port in {url!r}") from exc
    host = (parsed.hostname or "").rstrip(".")
    if not host:
        raise InvalidUrl(f"Missing host in {url!r}")
    return parsed, scheme, host, port


def _netloc(scheme: str, host: str, port: int | None) -> str:
    if ":" in host:
        host = f"[{host}]"
    if port is None or port == DEFAULT_PORTS[scheme]:
        return host
    return f"{host}:{port}"


def normalize(raw: str, base: str) -> str:
    value = (raw or "").strip()
    try:
        joined = urljoin(base, value)
    except ValueError as exc:
        raise InvalidUrl(f"Cannot resolve {value!r} against {base!r}: {exc}") from exc
    parsed, scheme, host, port = _split(joined)
    path = parsed.path or "/"
    return urlunparse((scheme, _netloc(scheme, host, port), path, parsed.params, parsed.query, ""))


def origin(url: str) -> Origin:
    _parsed, scheme, host, port = _split(url)
    return scheme, host, port if port is not None else DEFAULT_PORTS[scheme]


def canonical_host(host: str | None) -> str:
    value = (host or "").strip().lower().rstrip(".")
    if value.startswith("www."):
        return value[4:]
    return value


def same_site(a: str, b: str) -> bool:
    """True when both URLs point at the same host, ignoring a leading ``www.``."""
    return canonical_host(urlparse(a).hostname) == canonical_host(urlparse(b).hostname)


def same_origin(a: str, b: str) -> bool:
    try:
        return origin(a) == origin(b)
    except InvalidUrl:
        return False


def replace_origin(url: str, replacer_origin: str) -> str:
    """Swap scheme, host and port of ``url`` for those of ``replacer_origin``.

    Path, params and query of ``url`` are kept; any path on the replacer is ignored.
    """
    parsed = urlparse(url)
    scheme, host, port = origin(replacer_origin)
    return urlunparse((scheme, _netloc(scheme, host, port), parsed.path or "/", parsed.params, parsed.query, ""))


def publish_url(url: str, scope: set[Origin], replacer_origin: str | None) -> str:
    if not replacer_origin:
        return url
    try:
        in_scope = origin(url) in scope
    except InvalidUrl:
        return url
    return replace_origin(url, replacer_origin) if in_scope else url
