"""Tests for routemap.routing.generator — building paths from routes."""

import pytest

from routemap.errors import GenerationError, RouteNotFound
from routemap.http.request import Request
from routemap.routing.collection import RouteCollection
from routemap.routing.generator import Generator
from routemap.routing.matcher import Matcher
from routemap.routing.route import Route


class TestGenerateBasics:
    def test_static(self) -> None:
        assert Generator().generate(Route("/foo/bar/baz")) == "/foo/bar/baz"

    def test_substitution(self) -> None:
        route = Route("/blog/{id}/edit")
        assert Generator().generate(route, {"id": 42}) == "/blog/42/edit"

    def test_defaults_fill_gaps(self) -> None:
        route = Route("/{controller}/{action}", defaults={"controller": "blog", "action": "index"})
        assert Generator().generate(route, {"action": "read"}) == "/blog/read"

    def test_values_are_encoded(self) -> None:
        route = Route("/search/{q}")
        assert Generator().generate(route, {"q": "a b/c"}) == "/search/a%20b%2Fc"

    def test_raw_leaves_values_alone(self) -> None:
        route = Route("/search/{q}")
        assert Generator().generate_raw(route, {"q": "a b/c"}) == "/search/a b/c"

    def test_missing_required_left_literal(self) -> None:
        assert Generator().generate(Route("/blog/{id}")) == "/blog/{id}"

    def test_missing_required_strict(self) -> None:
        with pytest.raises(GenerationError, match="Missing value") as exc_info:
            Generator(strict=True).generate(Route("/blog/{id}"))
        assert exc_info.value.name == "id"

    def test_missing_token_matching_empty_is_dropped(self) -> None:
        route = Route("/blog/{id}{format}", tokens={"format": r"(\.[^/]+)?"})
        assert Generator(strict=True).generate(route, {"id": 42}) == "/blog/42"
        assert Generator().generate(route, {"id": 42, "format": None}) == "/blog/42"

    def test_explicit_none_is_empty(self) -> None:
        assert Generator().generate(Route("/blog/{id}"), {"id": None}) == "/blog/"
        assert Generator(strict=True).generate(Route("/blog/{id}"), {"id": None}) == "/blog/"

    def test_explicit_none_checked_against_token(self) -> None:
        route = Route("/blog/{id}", tokens={"id": "([0-9]+)"})
        with pytest.raises(GenerationError) as exc_info:
            Generator().generate(route, {"id": None})
        assert exc_info.value.name == "id"
        assert exc_info.value.pattern == "([0-9]+)"

    def test_explicit_none_overrides_default(self) -> None:
        route = Route("/{lang}/home", defaults={"lang": "en"})
        assert Generator().generate(route, {"lang": None}) == "//home"

    def test_none_ends_optional_group(self) -> None:
        route = Route("/archive{/year,month}")
        assert Generator().generate(route, {"year": None, "month": "11"}) == "/archive"

    def test_non_scalar_value_treated_as_missing(self) -> None:
        assert Generator().generate(Route("/blog/{id}"), {"id": ["x"]}) == "/blog/{id}"

    def test_generate_transform(self) -> None:
        route = Route("/user/{id}", generate=lambda data: {"id": data["user"]["id"]})
        assert Generator().generate(route, {"user": {"id": 7}}) == "/user/7"


class TestGenerateValidation:
    def test_token_mismatch_names_param_and_pattern(self) -> None:
        route = Route("/blog/{id}", tokens={"id": "([0-9]+)"})
        with pytest.raises(GenerationError) as exc_info:
            Generator().generate(route, {"id": "4 2"})
        assert exc_info.value.name == "id"
        assert exc_info.value.pattern == "([0-9]+)"
        assert "'id'" in str(exc_info.value)
        assert "([0-9]+)" in str(exc_info.value)

    def test_generation_error_is_value_error(self) -> None:
        route = Route("/blog/{id}", tokens={"id": "([0-9]+)"})
        with pytest.raises(ValueError):
            Generator().generate(route, {"id": "abc"})

    def test_inline_pattern_validated(self) -> None:
        with pytest.raises(GenerationError) as exc_info:
            Generator().generate(Route(r"/{id:\d+}"), {"id": "abc"})
        assert exc_info.value.pattern == r"\d+"

    def test_predicate_token_validated(self) -> None:
        route = Route("/{id}", tokens={"id": str.isdigit})
        assert Generator().generate(route, {"id": "12"}) == "/12"
        with pytest.raises(GenerationError) as exc_info:
            Generator().generate(route, {"id": "x"})
        assert exc_info.value.pattern == "isdigit"

    def test_optional_values_validated(self) -> None:
        route = Route("/archive{/year}", tokens={"year": r"(\d{4})"})
        with pytest.raises(GenerationError):
            Generator().generate(route, {"year": "79"})

    def test_validation_runs_on_raw_value(self) -> None:
        route = Route("/tag/{name}", tokens={"name": "([a-z ]+)"})
        assert Generator().generate(route, {"name": "a b"}) == "/tag/a%20b"


class TestGenerateOptional:
    def test_sequential_optional(self) -> None:
        route = Route("/archive/{category}{/year,month,day}")
        generator = Generator()
        data = {"category": "foo", "year": "1979", "month": "11"}
        assert generator.generate(route, data) == "/archive/foo/1979/11"
        assert generator.generate(route, {**data, "day": "07"}) == "/archive/foo/1979/11/07"

    def test_stops_at_first_gap(self) -> None:
        route = Route("/archive/{category}{/year,month,day}")
        data = {"category": "foo", "year": "1979", "day": "07"}
        assert Generator().generate(route, data) == "/archive/foo/1979"

    def test_no_optional_values(self) -> None:
        route = Route("/archive/{category}{/year,month,day}")
        assert Generator().generate(route, {"category": "foo"}) == "/archive/foo"

    def test_leading_optional_group(self) -> None:
        route = Route("{/year,month}")
        assert Generator().generate(route) == "/"
        assert Generator().generate(route, {"year": 2020}) == "/2020"


class TestGenerateWildcard:
    def test_marker_wildcard(self) -> None:
        route = Route("/foo/{zim}/*")
        data = {"zim": "bar", "wildcard": ["baz", "dib qux"]}
        assert Generator().generate(route, data) == "/foo/bar/baz/dib%20qux"

    def test_marker_wildcard_without_segments(self) -> None:
        route = Route("/foo/{zim}/*")
        assert Generator().generate(route, {"zim": "bar"}) == "/foo/bar/"
        assert Generator().generate(route, {"zim": "bar", "wildcard": []}) == "/foo/bar/"

    def test_named_wildcard(self) -> None:
        route = Route("/files", wildcard="parts")
        assert Generator().generate(route, {"parts": ["a", "b"]}) == "/files/a/b"

    def test_string_wildcard_ignored(self) -> None:
        route = Route("/files", wildcard="parts")
        assert Generator().generate(route, {"parts": "a/b"}) == "/files"


class TestGeneratePrefixes:
    def test_basepath(self) -> None:
        assert Generator(basepath="/app/").generate(Route("/blog")) == "/app/blog"

    def test_absolute_uri_skips_basepath(self) -> None:
        route = Route("http://example.com/{page}")
        assert Generator(basepath="/app").generate(route, {"page": "home"}) == (
            "http://example.com/home"
        )

    def test_host_route(self) -> None:
        route = Route("/blog", host="{sub}.example.com")
        assert Generator().generate(route, {"sub": "www"}) == "//www.example.com/blog"

    def test_host_route_with_scheme(self) -> None:
        route = Route("/blog", host="{sub}.example.com", secure=True)
        assert Generator(basepath="/app").generate(route, {"sub": "www"}) == (
            "https://www.example.com/app/blog"
        )
        route.set_secure(False)
        assert Generator().generate(route, {"sub": "www"}) == "http://www.example.com/blog"


class TestGenerateByName:
    def test_lookup(self) -> None:
        routes = RouteCollection()
        routes.get("blog.read", "/blog/{id}")
        assert Generator(routes).generate("blog.read", {"id": 1}) == "/blog/1"

    def test_unknown_name(self) -> None:
        with pytest.raises(RouteNotFound):
            Generator(RouteCollection()).generate("missing")

    def test_no_collection(self) -> None:
        with pytest.raises(RouteNotFound):
            Generator().generate("missing")

    def test_lookup_materializes_definitions(self) -> None:
        routes = RouteCollection()
        routes.define("/blog", {"name_prefix": "blog.", "routes": {"read": "/{id}"}})
        assert Generator(routes).generate("blog.read", {"id": 3}) == "/blog/3"


class TestRoundTrip:
    @pytest.mark.parametrize(
        ("path", "data"),
        [
            ("/blog/{id}{format}", {"id": "42", "format": ".json"}),
            ("/archive/{category}{/year,month,day}", {"category": "a b", "year": "1979"}),
            ("/foo/{zim}/*", {"zim": "bar", "wildcard": ["baz", "dib"]}),
            ("/files/{name}", {"name": "50% off"}),
        ],
    )
    def test_generate_then_match(self, path: str, data: dict) -> None:
        route = Route(path, "r", tokens={"id": r"(\d+)", "format": r"(\.[^/]+)?"})
        generated = Generator().generate(route, data)
        result = Matcher([route]).match(Request.build(generated))
        assert result
        for key, value in data.items():
            assert result.attributes[key] == value
