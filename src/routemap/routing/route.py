"""Route entity and the per-attempt RouteMatch result.

A ``Route`` is configuration: built once while the route table is set up,
then only read by the matcher and generator. Everything a single match
attempt learns (attributes, score, the rule that failed) lives on a
fresh ``RouteMatch`` instead, so one table can serve many threads.
"""

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from routemap._internal.types import GenerateTransform, SpecialPredicate, Token
from routemap.errors import ConfigurationError
from routemap.routing.template import CompiledTemplate, compile_host, compile_path


def _as_list(value: str | Iterable[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class Route:
    """A single route definition.

    Builder-style mutators return the route so calls chain::

        route = Route("/blog/{id}{format}", name="blog.read")
        route.add_tokens(id=r"(\\d+)", format=r"(\\.[^/]+)?").add_methods("GET")

    ``name`` and ``path`` are fixed at construction. The compiled pattern
    is built on first use and rebuilt only after ``add_tokens`` or
    ``set_wildcard``.
    """

    __slots__ = (
        "_compiled",
        "_compiled_host",
        "_host",
        "_lock",
        "_name",
        "_path",
        "_tokens",
        "_wildcard",
        "accepts",
        "allows",
        "auth",
        "cookies",
        "defaults",
        "extras",
        "generate",
        "handler",
        "headers",
        "routable",
        "secure",
        "server",
        "special",
    )

    def __init__(
        self,
        path: str,
        name: str | None = None,
        *,
        tokens: Mapping[str, Token] | None = None,
        defaults: Mapping[str, Any] | None = None,
        allows: str | Iterable[str] | None = None,
        accepts: str | Iterable[str] | None = None,
        secure: bool | None = None,
        host: str | None = None,
        wildcard: str | None = None,
        routable: bool = True,
        special: SpecialPredicate | None = None,
        generate: GenerateTransform | None = None,
        server: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        cookies: Mapping[str, str] | None = None,
        handler: Any = None,
        auth: Any = None,
        extras: Mapping[str, Any] | None = None,
    ) -> None:
        self._name = name or None
        self._path = path
        self._tokens: dict[str, Token] = dict(tokens or {})
        self._wildcard = wildcard
        self._host = host
        self._compiled: CompiledTemplate | None = None
        self._compiled_host: CompiledTemplate | None = None
        self._lock = threading.Lock()

        self.defaults: dict[str, Any] = dict(defaults or {})
        self.allows: list[str] = _as_list(allows)
        self.accepts: list[str] = _as_list(accepts)
        self.secure = secure
        self.routable = bool(routable)
        self.special = special
        self.generate = generate
        self.server: dict[str, str] = dict(server or {})
        self.headers: dict[str, str] = dict(headers or {})
        self.cookies: dict[str, str] = dict(cookies or {})
        self.handler = handler
        self.auth = auth
        self.extras: dict[str, Any] = dict(extras or {})

    # -- Identity and compile inputs --

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def path(self) -> str:
        return self._path

    @property
    def tokens(self) -> Mapping[str, Token]:
        return MappingProxyType(self._tokens)

    @property
    def wildcard(self) -> str | None:
        return self._wildcard

    @property
    def host(self) -> str | None:
        return self._host

    # -- Builder mutators --

    def add_tokens(self, tokens: Mapping[str, Token] | None = None, **more: Token) -> "Route":
        self._tokens.update(tokens or {}, **more)
        self._invalidate()
        return self

    def set_wildcard(self, wildcard: str | None) -> "Route":
        self._wildcard = wildcard
        self._invalidate()
        return self

    def set_host(self, host: str | None) -> "Route":
        self._host = host
        self._invalidate()
        return self

    def add_defaults(self, defaults: Mapping[str, Any] | None = None, **more: Any) -> "Route":
        self.defaults.update(defaults or {}, **more)
        return self

    def add_methods(self, *methods: str) -> "Route":
        self.allows.extend(m for m in methods if m not in self.allows)
        return self

    def add_accepts(self, *media_types: str) -> "Route":
        self.accepts.extend(media_types)
        return self

    def add_server(self, server: Mapping[str, str]) -> "Route":
        self.server.update(server)
        return self

    def add_headers(self, headers: Mapping[str, str]) -> "Route":
        self.headers.update(headers)
        return self

    def add_cookies(self, cookies: Mapping[str, str]) -> "Route":
        self.cookies.update(cookies)
        return self

    def add_extras(self, extras: Mapping[str, Any]) -> "Route":
        self.extras.update(extras)
        return self

    def set_secure(self, secure: bool | None = True) -> "Route":
        self.secure = None if secure is None else bool(secure)
        return self

    def set_routable(self, routable: bool = True) -> "Route":
        self.routable = bool(routable)
        return self

    def set_special(self, special: SpecialPredicate | None) -> "Route":
        self.special = special
        return self

    def set_generate(self, generate: GenerateTransform | None) -> "Route":
        self.generate = generate
        return self

    def set_handler(self, handler: Any) -> "Route":
        self.handler = handler
        return self

    def set_auth(self, auth: Any) -> "Route":
        self.auth = auth
        return self

    # -- Compilation --

    def _invalidate(self) -> None:
        with self._lock:
            self._compiled = None
            self._compiled_host = None

    @property
    def compiled(self) -> CompiledTemplate:
        """The compiled path pattern, built once per configuration."""
        compiled = self._compiled
        if compiled is None:
            with self._lock:
                if self._compiled is None:
                    self._compiled = compile_path(self._path, self._tokens, self._wildcard)
                compiled = self._compiled
        return compiled

    @property
    def compiled_host(self) -> CompiledTemplate | None:
        """The compiled host pattern, or None when the route has no host."""
        if self._host is None:
            return None
        compiled = self._compiled_host
        if compiled is None:
            with self._lock:
                if self._compiled_host is None:
                    self._compiled_host = compile_host(self._host, self._tokens)
                compiled = self._compiled_host
        return compiled

    def compile(self) -> "Route":
        """Compile eagerly so configuration errors surface at setup time."""
        _ = self.compiled
        _ = self.compiled_host
        return self

    # -- Persistence --

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe dict of the configuration.

        Raises ``ConfigurationError`` for callables (predicate tokens,
        ``special``, ``generate``, non-string handlers); they cannot be
        restored in another process.
        """
        label = self._name or self._path
        for key, token in self._tokens.items():
            if not isinstance(token, str):
                msg = f"Route {label!r}: token {key!r} is a callable and cannot be serialized."
                raise ConfigurationError(msg)
        for attr in ("special", "generate"):
            if getattr(self, attr) is not None:
                msg = f"Route {label!r}: {attr!r} is a callable and cannot be serialized."
                raise ConfigurationError(msg)
        if self.handler is not None and not isinstance(self.handler, str):
            msg = f"Route {label!r}: only string handlers can be serialized."
            raise ConfigurationError(msg)
        return {
            "name": self._name,
            "path": self._path,
            "tokens": dict(self._tokens),
            "defaults": dict(self.defaults),
            "allows": list(self.allows),
            "accepts": list(self.accepts),
            "secure": self.secure,
            "host": self._host,
            "wildcard": self._wildcard,
            "routable": self.routable,
            "server": dict(self.server),
            "headers": dict(self.headers),
            "cookies": dict(self.cookies),
            "handler": self.handler,
            "auth": self.auth,
            "extras": dict(self.extras),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Route":
        """Rebuild a route from ``to_dict()`` output."""
        fields = dict(data)
        path = fields.pop("path")
        name = fields.pop("name", None)
        return cls(path, name, **fields)

    def __getstate__(self) -> dict[str, Any]:
        state = {slot: getattr(self, slot) for slot in self.__slots__}
        # derived or process-local
        del state["_compiled"], state["_compiled_host"], state["_lock"]
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        for slot, value in state.items():
            setattr(self, slot, value)
        self._compiled = None
        self._compiled_host = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        if self._name:
            return f"Route({self._path!r}, name={self._name!r})"
        return f"Route({self._path!r})"


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Outcome of running the rules for one route against one request.

    ``score`` counts the rules that passed; ``failed_rule`` names the
    first rule that did not (None on a full match).
    """

    route: Route
    attributes: dict[str, Any] = field(default_factory=dict)
    score: int = 0
    failed_rule: str | None = None

    @property
    def matched(self) -> bool:
        return self.failed_rule is None

    @property
    def name(self) -> str | None:
        return self.route.name
