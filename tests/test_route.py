"""Tests for routemap.routing.route — Route configuration and RouteMatch."""

import pickle

import pytest

from routemap.errors import ConfigurationError, MalformedSubpattern
from routemap.routing.route import Route, RouteMatch


class TestRouteConstruction:
    def test_defaults(self) -> None:
        route = Route("/blog")
        assert route.name is None
        assert route.path == "/blog"
        assert route.tokens == {}
        assert route.defaults == {}
        assert route.allows == []
        assert route.accepts == []
        assert route.secure is None
        assert route.routable is True
        assert route.host is None
        assert route.wildcard is None

    def test_empty_name_is_unnamed(self) -> None:
        assert Route("/blog", "").name is None

    def test_single_method_string(self) -> None:
        assert Route("/blog", allows="POST").allows == ["POST"]

    def test_tokens_are_read_only(self) -> None:
        route = Route("/{id}", tokens={"id": r"(\d+)"})
        with pytest.raises(TypeError):
            route.tokens["id"] = "(x)"  # type: ignore[index]

    def test_repr(self) -> None:
        assert repr(Route("/blog", "blog")) == "Route('/blog', name='blog')"
        assert repr(Route("/blog")) == "Route('/blog')"


class TestRouteBuilders:
    def test_chaining(self) -> None:
        route = (
            Route("/blog/{id}", "blog.read")
            .add_tokens(id=r"(\d+)")
            .add_defaults(action="read")
            .add_methods("GET", "HEAD")
            .add_accepts("text/html")
            .set_secure()
        )
        assert route.tokens == {"id": r"(\d+)"}
        assert route.defaults == {"action": "read"}
        assert route.allows == ["GET", "HEAD"]
        assert route.accepts == ["text/html"]
        assert route.secure is True

    def test_add_methods_dedupes(self) -> None:
        route = Route("/", allows=["GET"]).add_methods("GET", "POST")
        assert route.allows == ["GET", "POST"]

    def test_set_secure_tristate(self) -> None:
        route = Route("/")
        assert route.set_secure(False).secure is False
        assert route.set_secure(None).secure is None

    def test_add_tokens_recompiles(self) -> None:
        route = Route("/{id}")
        assert route.compiled.match("/abc") is not None
        route.add_tokens(id=r"(\d+)")
        assert route.compiled.match("/abc") is None

    def test_set_wildcard_recompiles(self) -> None:
        route = Route("/files")
        assert route.compiled.wildcard is None
        route.set_wildcard("parts")
        assert route.compiled.wildcard == "parts"

    def test_set_host_recompiles(self) -> None:
        route = Route("/")
        assert route.compiled_host is None
        route.set_host("{sub}.example.com")
        assert route.compiled_host.match("api.example.com") is not None


class TestRouteCompilation:
    def test_compiled_is_memoized(self) -> None:
        route = Route("/{id}")
        assert route.compiled is route.compiled

    def test_compile_surfaces_errors(self) -> None:
        route = Route("/{id}", tokens={"id": r"\d+"})
        with pytest.raises(MalformedSubpattern):
            route.compile()

    def test_host_uses_route_tokens(self) -> None:
        route = Route("/", host="{sub}.example.com", tokens={"sub": "(api|www)"})
        assert route.compiled_host.match("api.example.com") is not None
        assert route.compiled_host.match("mail.example.com") is None


class TestRoutePersistence:
    def test_dict_round_trip(self) -> None:
        route = Route(
            "/blog/{id}",
            "blog.read",
            tokens={"id": r"(\d+)"},
            defaults={"action": "read"},
            allows=["GET"],
            secure=True,
            host="{sub}.example.com",
            handler="blog:read",
            extras={"tag": "blog"},
        )
        restored = Route.from_dict(route.to_dict())
        assert restored.to_dict() == route.to_dict()
        assert restored.name == "blog.read"
        assert restored.compiled.match("/blog/42") is not None

    def test_callable_token_refused(self) -> None:
        route = Route("/{id}", tokens={"id": str.isdigit})
        with pytest.raises(ConfigurationError, match="token 'id'"):
            route.to_dict()

    def test_special_refused(self) -> None:
        route = Route("/", special=lambda request, route, attributes: True)
        with pytest.raises(ConfigurationError, match="special"):
            route.to_dict()

    def test_callable_handler_refused(self) -> None:
        route = Route("/", handler=print)
        with pytest.raises(ConfigurationError, match="handler"):
            route.to_dict()

    def test_pickle_drops_compiled_cache(self) -> None:
        route = Route("/blog/{id}", "blog", tokens={"id": r"(\d+)"})
        _ = route.compiled
        restored = pickle.loads(pickle.dumps(route))
        assert restored.name == "blog"
        assert restored.compiled.match("/blog/7") is not None


class TestRouteMatch:
    def test_matched_when_no_rule_failed(self) -> None:
        route = Route("/", "home")
        match = RouteMatch(route, {"a": 1}, score=10)
        assert match.matched is True
        assert match.name == "home"

    def test_failed(self) -> None:
        match = RouteMatch(Route("/"), score=3, failed_rule="Allows")
        assert match.matched is False
        assert match.attributes == {}
