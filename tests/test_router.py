"""Tests for routemap.router — the Router facade end to end."""

import logging

import pytest

from routemap.config import RouterConfig
from routemap.errors import GenerationError, RouteNotFound
from routemap.http.request import Request
from routemap.router import Router, new_router
from routemap.routing.collection import RouteCollection
from routemap.routing.rules import Path, RuleRegistry


def _blog_router(**config: object) -> Router:
    router = new_router(**config)
    router.routes.attach_resource("blog", "/blog")
    router.routes.get("home", "/")
    return router


class TestRouterMatch:
    def test_resource_read(self) -> None:
        result = _blog_router().match(Request.build("/blog/42.json"))
        assert result.route.name == "blog.read"
        assert result.attributes == {"action": "blog.read", "id": "42", "format": ".json"}

    def test_method_selects_route(self) -> None:
        router = _blog_router()
        assert router.match(Request.build("/blog/42", "DELETE")).route.name == "blog.delete"
        assert router.match(Request.build("/blog/42", "PUT")).route.name == "blog.replace"
        assert router.match(Request.build("/blog", "POST")).route.name == "blog.create"

    def test_no_match_reports_closest(self) -> None:
        result = _blog_router().match(Request.build("/blog/42", "TRACE"))
        assert not result
        assert result.failed.failed_rule == "Allows"
        assert result.failed.route.name == "blog.read"

    def test_basepath(self) -> None:
        router = _blog_router(basepath="/app/")
        assert router.config.basepath == "/app"
        assert router.match(Request.build("/app/blog/7")).route.name == "blog.read"
        assert router.match(Request.build("/app")).route.name == "home"
        assert not router.match(Request.build("/blog/7"))

    def test_default_method(self) -> None:
        router = new_router(default_method="POST")
        router.routes.post("submit", "/submit")
        assert router.match(Request(method="", path="/submit"))

    def test_freeze(self) -> None:
        router = _blog_router().freeze()
        assert router.routes.frozen
        assert router.match(Request.build("/"))


class TestRouterGenerate:
    def test_generate(self) -> None:
        assert _blog_router().generate("blog.read", {"id": 42}) == "/blog/42"

    def test_url_for(self) -> None:
        assert _blog_router().url_for("blog.edit", id=3, format=".html") == "/blog/3/edit.html"

    def test_generate_raw(self) -> None:
        router = new_router()
        router.routes.get("search", "/search/{q}")
        assert router.generate_raw("search", {"q": "a b"}) == "/search/a b"

    def test_basepath_prefixed(self) -> None:
        assert _blog_router(basepath="/app").url_for("blog.read", id=1) == "/app/blog/1"

    def test_strict_generation(self) -> None:
        with pytest.raises(GenerationError):
            _blog_router(strict_generation=True).url_for("blog.read")

    def test_unknown_name(self) -> None:
        with pytest.raises(RouteNotFound):
            _blog_router().url_for("nope")

    def test_round_trip(self) -> None:
        router = _blog_router()
        path = router.url_for("blog.read", id=42, format=".json")
        result = router.match(Request.build(path))
        assert result.attributes["id"] == "42"
        assert router.url_for(result.route.name, **result.attributes) == path


class TestRouterWiring:
    def test_explicit_collaborators(self) -> None:
        routes = RouteCollection()
        rules = RuleRegistry([Path()])
        router = Router(routes=routes, rules=rules)
        assert router.routes is routes
        assert router.rules is rules
        assert router.matcher.routes is routes

    def test_config_defaults(self) -> None:
        assert Router().config == RouterConfig()

    def test_logger_name(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="myapp.routing")
        router = new_router(logger_name="myapp.routing")
        router.routes.get("home", "/")
        router.match(Request.build("/"))
        assert any(record.name == "myapp.routing.matcher" for record in caplog.records)
