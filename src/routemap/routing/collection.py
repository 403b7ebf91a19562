"""Ordered route collection with lazy materialization.

Routes are matched first-match-wins in insertion order, so the
collection keeps that order for eagerly added routes and deferred
declarative definitions alike. Definitions wait in a work queue and are
expanded one route at a time, only as far as a match or a name lookup
needs.
"""

import json
import logging
from collections import deque
from collections.abc import Callable, Iterable, Iterator, Mapping
from itertools import count
from typing import Any

from routemap.errors import ConfigurationError, RouteAlreadyExists, RouteNotFound
from routemap.routing.route import Route
from routemap.routing.spec import Definition, RouteSpec, SpecSource

_log = logging.getLogger("routemap.collection")

SERIALIZATION_VERSION = 1


def resource_routes(routes: "RouteCollection") -> None:
    """Default REST resource layout used by ``attach_resource``."""
    spec = routes.spec
    spec.tokens.setdefault("id", r"(\d+)")
    spec.tokens.setdefault("format", r"(\.[^/]+)?")

    routes.get("browse", "{format}")
    routes.get("read", "/{id}{format}")
    routes.get("edit", "/{id}/edit{format}")
    routes.get("add", "/add")
    routes.delete("delete", "/{id}")
    routes.post("create", "")
    routes.patch("update", "/{id}")
    routes.put("replace", "/{id}")
    routes.options("options", "")


class RouteCollection:
    """Ordered store of routes, keyed by name (or a slot number if unnamed).

    Usage::

        routes = RouteCollection()
        routes.get("home", "/")
        routes.attach("blog", "/blog", lambda r: r.get("read", "/{id}"))
        routes.define("/archive", {"routes": {"archive": "{/year,month}"}})
        routes.freeze()

    Iterating, ``len()``, and name lookups expand pending definitions as
    needed. An unfrozen collection mutates itself while being read; share
    a frozen collection between threads.
    """

    __slots__ = (
        "_frozen",
        "_expanding",
        "_logger",
        "_order",
        "_pending",
        "_routes",
        "_slots",
        "resource_callback",
        "spec",
    )

    def __init__(
        self,
        routes: Iterable[Route] = (),
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._routes: dict[str | int, Route] = {}
        self._order: list[Route] = []
        self._pending: deque[Route | Definition] = deque()
        self._expanding: Iterator[Route] | None = None
        self._slots = count()
        self._frozen = False
        self._logger = logger or _log
        self.spec = RouteSpec()
        self.resource_callback: Callable[[RouteCollection], None] = resource_routes
        for route in routes:
            self.add_route(route)

    # -- Building --

    def _check_open(self) -> None:
        if self._frozen:
            msg = "Cannot add routes after freeze()."
            raise ConfigurationError(msg)

    def _enqueue(self, item: Route | Definition) -> None:
        self._check_open()
        if isinstance(item, Route) and not self._pending and self._expanding is None:
            self._store(item)
        else:
            self._pending.append(item)

    def _store(self, route: Route) -> Route:
        if route.name is None:
            key: str | int = next(self._slots)
        else:
            key = route.name
            if key in self._routes:
                raise RouteAlreadyExists(key)
        self._routes[key] = route
        self._order.append(route)
        return route

    def add_route(self, route: Route) -> Route:
        """Append an already built route."""
        self._enqueue(route)
        return route

    def add(self, name: str | None, path: str, handler: Any = None) -> Route:
        """Add a route built from the current spec; returns it for chaining."""
        route = self.spec.new_route(path, name, handler)
        if route.name and "action" not in route.defaults:
            route.add_defaults(action=route.name)
        return self.add_route(route)

    def get(self, name: str | None, path: str, handler: Any = None) -> Route:
        return self.add(name, path, handler).add_methods("GET")

    def post(self, name: str | None, path: str, handler: Any = None) -> Route:
        return self.add(name, path, handler).add_methods("POST")

    def put(self, name: str | None, path: str, handler: Any = None) -> Route:
        return self.add(name, path, handler).add_methods("PUT")

    def patch(self, name: str | None, path: str, handler: Any = None) -> Route:
        return self.add(name, path, handler).add_methods("PATCH")

    def delete(self, name: str | None, path: str, handler: Any = None) -> Route:
        return self.add(name, path, handler).add_methods("DELETE")

    def head(self, name: str | None, path: str, handler: Any = None) -> Route:
        return self.add(name, path, handler).add_methods("HEAD")

    def options(self, name: str | None, path: str, handler: Any = None) -> Route:
        return self.add(name, path, handler).add_methods("OPTIONS")

    def attach(
        self,
        name: str,
        path: str,
        callback: Callable[["RouteCollection"], None],
    ) -> None:
        """Add routes under a name and path prefix.

        Inside *callback*, ``routes.spec`` holds the scoped settings;
        changes to it end with the callback.
        """
        saved = self.spec
        self.spec = saved.scoped(name, path)
        try:
            callback(self)
        finally:
            self.spec = saved

    def attach_resource(self, name: str, path: str) -> None:
        """Attach the REST routes produced by ``resource_callback``."""
        self.attach(name, path, self.resource_callback)

    def define(self, path_prefix: str, spec: SpecSource) -> None:
        """Queue a declarative group; expanded only when needed."""
        self._enqueue(Definition("attach", spec, path_prefix=path_prefix, base=self.spec.copy()))

    def define_route(
        self,
        name: str | None,
        path: str,
        spec: SpecSource | None = None,
    ) -> None:
        """Queue a single declarative route."""
        self._enqueue(
            Definition("single", spec or {}, name=name, path=path, base=self.spec.copy())
        )

    # -- Materialization --

    def _materialize_next(self) -> Route | None:
        """Turn the next queued item into a stored route."""
        while True:
            if self._expanding is not None:
                route = next(self._expanding, None)
                if route is not None:
                    self._logger.debug(
                        "materialized %s", route.name or route.path, extra={"route": route.name}
                    )
                    return self._store(route)
                self._expanding = None
            if not self._pending:
                return None
            item = self._pending.popleft()
            if isinstance(item, Route):
                return self._store(item)
            try:
                self._expanding = item.expand()
            except Exception:
                # stays queued: the next read raises again instead of skipping it
                self._pending.appendleft(item)
                raise

    def materialize(self) -> "RouteCollection":
        """Expand every pending definition."""
        while self._materialize_next() is not None:
            pass
        return self

    @property
    def pending(self) -> bool:
        """True while definitions remain unexpanded."""
        return bool(self._pending) or self._expanding is not None

    def freeze(self) -> "RouteCollection":
        """Materialize and compile everything, then refuse additions.

        Compilation errors (``MalformedSubpattern`` and friends) surface
        here instead of on the first request.
        """
        self.materialize()
        for route in self._order:
            route.compile()
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Reading --

    def __iter__(self) -> Iterator[Route]:
        index = 0
        while True:
            while index < len(self._order):
                yield self._order[index]
                index += 1
            if self._materialize_next() is None:
                return

    def _find(self, name: str) -> Route | None:
        route = self._routes.get(name)
        while route is None and self.pending:
            created = self._materialize_next()
            if created is not None and created.name == name:
                route = created
        return route

    def get_route(self, name: str) -> Route:
        """Look up a route by name, expanding definitions until found.

        Raises ``RouteNotFound`` once nothing is left to expand.
        """
        route = self._find(name)
        if route is None:
            raise RouteNotFound(name)
        return route

    def __getitem__(self, name: str) -> Route:
        return self.get_route(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._find(name) is not None

    def __len__(self) -> int:
        self.materialize()
        return len(self._order)

    @property
    def routes(self) -> dict[str | int, Route]:
        """All routes by key, fully materialized."""
        self.materialize()
        return dict(self._routes)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"<RouteCollection {len(self._order)} routes, {state}>"

    # -- Persistence --

    def to_list(self) -> list[dict[str, Any]]:
        return [route.to_dict() for route in self.materialize()._order]

    def dumps(self, **json_kwargs: Any) -> str:
        """Serialize the materialized table as JSON.

        Compiled patterns are rebuilt on load. Callables cannot travel;
        see ``Route.to_dict``.
        """
        payload = {"version": SERIALIZATION_VERSION, "routes": self.to_list()}
        return json.dumps(payload, **json_kwargs)

    @classmethod
    def loads(cls, data: str | bytes, *, logger: logging.Logger | None = None) -> "RouteCollection":
        """Restore a table written by ``dumps()``."""
        payload = json.loads(data)
        if not isinstance(payload, Mapping) or payload.get("version") != SERIALIZATION_VERSION:
            msg = "Unsupported route table format."
            raise ConfigurationError(msg)
        return cls((Route.from_dict(item) for item in payload["routes"]), logger=logger)
