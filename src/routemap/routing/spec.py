"""Declarative route specifications.

Route tables can be described as plain data and turned into ``Route``
objects only when the collection needs them::

    routes.define("/blog", {
        "name_prefix": "blog.",
        "tokens": {"id": r"(\\d+)"},
        "routes": {
            "browse": "",                          # named, action="browse"
            "read": {"path": "/{id}", "method": "GET"},
            0: "/archive",                         # unnamed
        },
    })

``RouteSpec`` is the typed form of the shared settings; ``Definition``
holds one deferred ``define`` call and expands it lazily.
"""

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from routemap._internal.types import GenerateTransform, SpecialPredicate, Token
from routemap.errors import MalformedRouteSpec
from routemap.routing.route import Route

# Declarative keys -> RouteSpec fields; the legacy spellings are accepted too
_KEY_ALIASES: dict[str, str] = {
    "tokens": "tokens",
    "params": "tokens",
    "values": "defaults",
    "defaults": "defaults",
    "method": "methods",
    "methods": "methods",
    "accept": "accepts",
    "accepts": "accepts",
    "server": "server",
    "headers": "headers",
    "cookies": "cookies",
    "secure": "secure",
    "host": "host",
    "wildcard": "wildcard",
    "routable": "routable",
    "is_match": "special",
    "special": "special",
    "generate": "generate",
    "auth": "auth",
    "extras": "extras",
    "name_prefix": "name_prefix",
    "path_prefix": "path_prefix",
}

_MAPPING_FIELDS = ("tokens", "defaults", "server", "headers", "cookies", "extras")
_LIST_FIELDS = ("methods", "accepts")


def join_path(prefix: str, path: str) -> str:
    """Prefix *path*, collapsing the double slash at the seam.

    Absolute URIs (containing ``://``) are never prefixed.
    """
    if not prefix or "://" in path:
        return path
    if "://" in prefix:
        return prefix + path
    return (prefix + path).replace("//", "/")


@dataclass(slots=True)
class RouteSpec:
    """Settings shared by every route built under one scope.

    ``None`` on a scalar means "not set here"; merging lets the more
    specific spec win. Mappings merge key by key and lists concatenate.
    """

    tokens: dict[str, Token] = field(default_factory=dict)
    defaults: dict[str, Any] = field(default_factory=dict)
    methods: list[str] = field(default_factory=list)
    accepts: list[str] = field(default_factory=list)
    server: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    extras: dict[str, Any] = field(default_factory=dict)
    secure: bool | None = None
    host: str | None = None
    wildcard: str | None = None
    routable: bool | None = None
    special: SpecialPredicate | None = None
    generate: GenerateTransform | None = None
    auth: Any = None
    name_prefix: str = ""
    path_prefix: str = ""

    # -- Builder mutators (used inside RouteCollection.attach callbacks) --

    def add_tokens(self, tokens: Mapping[str, Token] | None = None, **more: Token) -> "RouteSpec":
        self.tokens.update(tokens or {}, **more)
        return self

    def add_defaults(self, defaults: Mapping[str, Any] | None = None, **more: Any) -> "RouteSpec":
        self.defaults.update(defaults or {}, **more)
        return self

    def add_methods(self, *methods: str) -> "RouteSpec":
        self.methods.extend(methods)
        return self

    def add_accepts(self, *media_types: str) -> "RouteSpec":
        self.accepts.extend(media_types)
        return self

    def set_secure(self, secure: bool | None = True) -> "RouteSpec":
        self.secure = secure
        return self

    def set_wildcard(self, wildcard: str | None) -> "RouteSpec":
        self.wildcard = wildcard
        return self

    def set_routable(self, routable: bool = True) -> "RouteSpec":
        self.routable = routable
        return self

    # -- Combination --

    def copy(self) -> "RouteSpec":
        return replace(
            self,
            **{name: dict(getattr(self, name)) for name in _MAPPING_FIELDS},
            **{name: list(getattr(self, name)) for name in _LIST_FIELDS},
        )

    def merge(self, other: "RouteSpec") -> "RouteSpec":
        """Return a new spec with *other* layered over this one."""
        merged = self.copy()
        for name in _MAPPING_FIELDS:
            getattr(merged, name).update(getattr(other, name))
        for name in _LIST_FIELDS:
            getattr(merged, name).extend(getattr(other, name))
        for name in ("secure", "host", "wildcard", "routable", "special", "generate", "auth"):
            value = getattr(other, name)
            if value is not None:
                setattr(merged, name, value)
        merged.name_prefix = self.name_prefix + other.name_prefix
        merged.path_prefix = join_path(self.path_prefix, other.path_prefix)
        return merged

    def scoped(self, name_prefix: str, path_prefix: str) -> "RouteSpec":
        """A copy nested one level deeper, as ``attach()`` needs."""
        scoped = self.copy()
        if name_prefix:
            scoped.name_prefix = f"{self.name_prefix}{name_prefix}."
        scoped.path_prefix = join_path(self.path_prefix, path_prefix)
        return scoped

    def new_route(self, path: str, name: str | None = None, handler: Any = None) -> Route:
        """Build a ``Route`` carrying this spec, with prefixes applied."""
        return Route(
            join_path(self.path_prefix, path),
            f"{self.name_prefix}{name}" if name else None,
            tokens=self.tokens,
            defaults=self.defaults,
            allows=dict.fromkeys(self.methods),
            accepts=self.accepts,
            secure=self.secure,
            host=self.host,
            wildcard=self.wildcard,
            routable=True if self.routable is None else self.routable,
            special=self.special,
            generate=self.generate,
            server=self.server,
            headers=self.headers,
            cookies=self.cookies,
            handler=handler,
            auth=self.auth,
            extras=self.extras,
        )

    # -- Parsing --

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, where: str = "spec") -> "RouteSpec":
        """Parse declarative settings, rejecting unknown keys and bad shapes."""
        spec = cls()
        for key, value in data.items():
            target = _KEY_ALIASES.get(key)
            if target is None:
                msg = f"Unknown key {key!r} in route {where}."
                raise MalformedRouteSpec(msg)
            if value is None:
                continue
            if target in _MAPPING_FIELDS:
                if not isinstance(value, Mapping):
                    msg = f"Key {key!r} in route {where} must be a mapping."
                    raise MalformedRouteSpec(msg)
                getattr(spec, target).update(value)
            elif target in _LIST_FIELDS:
                getattr(spec, target).extend([value] if isinstance(value, str) else value)
            elif target in ("special", "generate") and not callable(value):
                msg = f"Key {key!r} in route {where} must be callable."
                raise MalformedRouteSpec(msg)
            elif target == "secure":
                spec.secure = bool(value)
            elif target == "routable":
                spec.routable = bool(value)
            else:
                setattr(spec, target, value)
        return spec


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """One parsed entry of a ``routes`` block."""

    path: str
    name: str | None = None
    handler: Any = None
    spec: RouteSpec = field(default_factory=RouteSpec)


def parse_route_entry(key: str | int, value: Any) -> RouteEntry:
    """Parse one ``routes`` entry in any of its three shapes.

    - ``"name": "/path"`` -- named; ``action`` defaults to the name
    - ``0: "/path"`` -- unnamed
    - ``"name" | 0: {"path": ..., ...}`` -- long form, with optional
      ``name``, ``handler`` and any spec key

    Prefix keys on an entry are ignored; prefixes belong to the scope.
    """
    if isinstance(key, str) and isinstance(value, str):
        return RouteEntry(path=value, name=key, spec=RouteSpec(defaults={"action": key}))

    if isinstance(key, int) and isinstance(value, str):
        return RouteEntry(path=value)

    if isinstance(key, (str, int)) and isinstance(value, Mapping):
        body = dict(value)
        path = body.pop("path", None)
        if not isinstance(path, str):
            msg = f"Route spec for {key!r} needs a string 'path'."
            raise MalformedRouteSpec(msg)
        name = body.pop("name", key if isinstance(key, str) else None)
        handler = body.pop("handler", None)
        body.pop("name_prefix", None)
        body.pop("path_prefix", None)
        spec = RouteSpec.from_mapping(body, where=f"entry {key!r}")
        if isinstance(key, str):
            spec.defaults.setdefault("action", key)
        return RouteEntry(path=path, name=name, handler=handler, spec=spec)

    msg = f"Route spec for {key!r} should be a string or a mapping."
    raise MalformedRouteSpec(msg)


SpecSource = Mapping[str, Any] | Callable[[], Mapping[str, Any]]


@dataclass(slots=True)
class Definition:
    """A deferred ``define``/``define_route`` call.

    *source* may be a zero-argument callable; it is evaluated the first
    time the definition is expanded.
    """

    kind: Literal["attach", "single"]
    source: SpecSource
    path_prefix: str = ""
    name: str | None = None
    path: str = ""
    base: RouteSpec | None = None

    def resolve(self) -> Mapping[str, Any]:
        if callable(self.source):
            self.source = self.source()
        if not isinstance(self.source, Mapping):
            msg = f"Route definition must resolve to a mapping, got {type(self.source).__name__}."
            raise MalformedRouteSpec(msg)
        return self.source

    def expand(self) -> Iterator[Route]:
        """Validate the whole definition, then build its routes one at a time.

        Every entry is parsed before this returns, so a malformed group
        raises here and never yields part of its routes.
        """
        data = dict(self.resolve())
        base = self.base or RouteSpec()

        if self.kind == "single":
            data.pop("name_prefix", None)
            data.pop("path_prefix", None)
            handler = data.pop("handler", None)
            spec = base.merge(RouteSpec.from_mapping(data, where=repr(self.name or self.path)))
            return iter([spec.new_route(self.path, self.name, handler)])

        routes = data.pop("routes", {})
        common = RouteSpec.from_mapping(data, where=f"group {self.path_prefix!r}")
        common.path_prefix = join_path(self.path_prefix, common.path_prefix)
        common = base.merge(common)

        if isinstance(routes, Mapping):
            items = routes.items()
        elif isinstance(routes, (list, tuple)):
            items = enumerate(routes)
        else:
            msg = f"'routes' in group {self.path_prefix!r} must be a mapping or a list."
            raise MalformedRouteSpec(msg)

        entries = [parse_route_entry(key, value) for key, value in items]
        return (
            common.merge(entry.spec).new_route(entry.path, entry.name, entry.handler)
            for entry in entries
        )
