"""Immutable request view consumed by the matching rules.

The router never reads a body and never writes a response. It needs
read access to the path, method, host, headers, cookies, server
variables, and whether the transport is secure. ``RequestView`` names
that contract; ``Request`` is the frozen implementation built from an
ASGI scope, a WSGI environ, or plain arguments.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from routemap._internal.multimap import MultiValueMapping
from routemap.http.cookies import parse_cookies
from routemap.http.headers import Headers

SECURE_PORT = 443


@runtime_checkable
class RequestView(Protocol):
    """Read-only request attributes the matching rules rely on."""

    @property
    def method(self) -> str: ...
    @property
    def path(self) -> str: ...
    @property
    def host(self) -> str: ...
    @property
    def headers(self) -> MultiValueMapping: ...
    @property
    def cookies(self) -> Mapping[str, str]: ...
    @property
    def server(self) -> Mapping[str, str]: ...
    @property
    def is_secure(self) -> bool: ...


def _split_host(value: str) -> tuple[str, str | None]:
    """Split ``host[:port]`` (IPv6 literals keep their brackets)."""
    if value.startswith("["):
        end = value.find("]")
        if end != -1:
            rest = value[end + 1 :]
            return value[: end + 1], rest[1:] if rest.startswith(":") else None
    host, sep, port = value.rpartition(":")
    if sep and port.isdigit():
        return host, port
    return value, None


def _server_from_headers(headers: Headers) -> dict[str, str]:
    """CGI-style ``HTTP_*`` variables for every header."""
    return {
        "HTTP_" + name.upper().replace("-", "_"): ", ".join(headers.get_list(name))
        for name in headers
    }


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable request view.

    Cookies and server variables are computed once at creation time and
    stored as frozen fields, not re-derived on every rule evaluation.
    """

    method: str
    path: str
    host: str = ""
    headers: Headers = field(default_factory=Headers)
    cookies: Mapping[str, str] = field(default_factory=dict)
    server: Mapping[str, str] = field(default_factory=dict)
    scheme: str = "http"

    # -- Computed properties --

    @property
    def is_secure(self) -> bool:
        """True for https, ``HTTPS=on``, or the canonical secure port."""
        if self.scheme == "https":
            return True
        if self.server.get("HTTPS", "").lower() == "on":
            return True
        return self.server.get("SERVER_PORT") == str(SECURE_PORT)

    @property
    def accept(self) -> str | None:
        """All ``Accept`` header values, joined."""
        values = self.headers.get_list("accept")
        return ", ".join(values) if values else None

    # -- Factories --

    @classmethod
    def build(
        cls,
        path: str,
        method: str = "GET",
        *,
        host: str = "",
        headers: Iterable[tuple[str, str]] | Mapping[str, str] = (),
        cookies: Mapping[str, str] | None = None,
        server: Mapping[str, str] | None = None,
        secure: bool = False,
    ) -> Request:
        """Create a request from plain values.

        Handy in tests and when adapting a framework that already parsed
        its request::

            Request.build("/users/42", "POST", headers={"Accept": "text/html"})
        """
        hdrs = Headers(headers)
        if cookies is None:
            cookies = parse_cookies(hdrs.get("cookie", "") or "")
        env = _server_from_headers(hdrs)
        env.update(server or {})
        return cls(
            method=method,
            path=path,
            host=host or _split_host(hdrs.get("host", "") or "")[0],
            headers=hdrs,
            cookies=dict(cookies),
            server=env,
            scheme="https" if secure else "http",
        )

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], *, trust_forwarded: bool = False) -> Request:
        """Create a request view from an ASGI HTTP scope.

        With *trust_forwarded*, the ``X-Forwarded-Proto`` header set by a
        trusted proxy decides the scheme.
        """
        headers = Headers.from_asgi(scope.get("headers", ()))
        scheme = scope.get("scheme", "http")
        if trust_forwarded:
            forwarded = headers.get("x-forwarded-proto")
            if forwarded:
                scheme = forwarded.split(",")[0].strip().lower()

        server_addr = scope.get("server")
        host, port = _split_host(headers.get("host", "") or "")
        if not host and server_addr:
            host = server_addr[0]
        if port is None and server_addr:
            port = str(server_addr[1])

        env = _server_from_headers(headers)
        env["REQUEST_METHOD"] = scope["method"]
        env["PATH_INFO"] = scope["path"]
        env["SERVER_NAME"] = host
        if port is not None:
            env["SERVER_PORT"] = port
        if scheme == "https":
            env["HTTPS"] = "on"
        client = scope.get("client")
        if client:
            env["REMOTE_ADDR"] = client[0]

        return cls(
            method=scope["method"],
            path=scope["path"],
            host=host,
            headers=headers,
            cookies=parse_cookies(headers.get("cookie", "") or ""),
            server=env,
            scheme=scheme,
        )

    @classmethod
    def from_environ(cls, environ: Mapping[str, Any]) -> Request:
        """Create a request view from a WSGI environ."""
        pairs = [
            (key[5:].replace("_", "-").lower(), str(value))
            for key, value in environ.items()
            if key.startswith("HTTP_")
        ]
        for key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            if environ.get(key):
                pairs.append((key.replace("_", "-").lower(), str(environ[key])))
        headers = Headers(pairs)
        host = _split_host(environ.get("HTTP_HOST") or environ.get("SERVER_NAME", ""))[0]
        return cls(
            method=environ.get("REQUEST_METHOD", "GET"),
            path=environ.get("PATH_INFO", "") or "/",
            host=host,
            headers=headers,
            cookies=parse_cookies(environ.get("HTTP_COOKIE", "")),
            server={k: str(v) for k, v in environ.items() if isinstance(v, (str, int))},
            scheme=environ.get("wsgi.url_scheme", "http"),
        )
