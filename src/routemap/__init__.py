"""Routemap — URL routing: match requests to routes, generate paths from routes.

Basic usage::

    from routemap import Request, Router

    router = Router()
    router.routes.get("blog.read", "/blog/{id}{format}").add_tokens(
        id=r"(\\d+)", format=r"(\\.[^/]+)?"
    )

    result = router.match(Request.build("/blog/42.json"))
    if result:
        result.attributes  # {"action": "blog.read", "id": "42", "format": ".json"}

    router.generate("blog.read", {"id": 42})  # "/blog/42"
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "GenerationError",
    "Generator",
    "MalformedRouteSpec",
    "MalformedSubpattern",
    "MatchResult",
    "Matcher",
    "Request",
    "Route",
    "RouteAlreadyExists",
    "RouteCollection",
    "RouteMatch",
    "RouteNotFound",
    "Router",
    "RouterConfig",
    "RoutemapError",
    "RuleRegistry",
    "UnexpectedValue",
    "new_router",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import routemap`` fast while providing a clean top-level API.
    """
    if name in ("Router", "new_router"):
        from routemap import router as _router

        return getattr(_router, name)

    if name == "RouterConfig":
        from routemap.config import RouterConfig

        return RouterConfig

    if name == "Request":
        from routemap.http.request import Request

        return Request

    if name in ("Route", "RouteMatch"):
        from routemap.routing import route as _route

        return getattr(_route, name)

    if name == "RouteCollection":
        from routemap.routing.collection import RouteCollection

        return RouteCollection

    if name in ("Matcher", "MatchResult"):
        from routemap.routing import matcher as _matcher

        return getattr(_matcher, name)

    if name == "Generator":
        from routemap.routing.generator import Generator

        return Generator

    if name == "RuleRegistry":
        from routemap.routing.rules import RuleRegistry

        return RuleRegistry

    if name in (
        "ConfigurationError",
        "GenerationError",
        "MalformedRouteSpec",
        "MalformedSubpattern",
        "RouteAlreadyExists",
        "RouteNotFound",
        "RoutemapError",
        "UnexpectedValue",
    ):
        from routemap import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
