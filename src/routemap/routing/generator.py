"""Path generation from named routes.

The inverse of matching: substitute data into a route's template,
validating every value against its token first. Optional groups stop at
the first missing value, exactly as the compiled pattern nests them.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote

from routemap.errors import GenerationError, RouteNotFound
from routemap.routing.route import Route
from routemap.routing.template import OptionalGroup, Placeholder, scan_template, split_wildcard

_SCALARS = (str, int, float)


def _describe(token: Any) -> str:
    return getattr(token, "__name__", None) or repr(token)


class Generator:
    """Build paths from routes.

    *routes* is anything with a ``get_route(name)`` method (normally a
    ``RouteCollection``) and is only needed to generate by name.

    A required token with no value is left in the output as the literal
    placeholder, e.g. ``/blog/{id}``. With ``strict=True`` it raises
    ``GenerationError`` instead.
    """

    __slots__ = ("basepath", "routes", "strict")

    def __init__(self, routes: Any = None, *, basepath: str = "", strict: bool = False) -> None:
        self.routes = routes
        self.basepath = basepath.rstrip("/")
        self.strict = strict

    def generate(self, route: Route | str, data: Mapping[str, Any] | None = None) -> str:
        """Percent-encoded path for *route* (a ``Route`` or a route name)."""
        return self._build(route, data, raw=False)

    def generate_raw(self, route: Route | str, data: Mapping[str, Any] | None = None) -> str:
        """Like ``generate`` but leaves values unencoded."""
        return self._build(route, data, raw=True)

    # -- Internals --

    def _lookup(self, name: str) -> Route:
        if self.routes is None:
            raise RouteNotFound(name)
        return self.routes.get_route(name)

    def _build(self, route: Route | str, data: Mapping[str, Any] | None, raw: bool) -> str:
        if isinstance(route, str):
            route = self._lookup(route)

        values: dict[str, Any] = {**route.defaults, **(data or {})}
        if route.generate is not None:
            values = dict(route.generate(values))

        template, _ = split_wildcard(route.path)
        path = self._substitute(route, template, values, raw)

        wildcard = route.compiled.wildcard
        if wildcard is not None:
            segments = values.get(wildcard)
            if segments and isinstance(segments, Sequence) and not isinstance(segments, str):
                path = path.rstrip("/") + "".join(
                    "/" + self._encode(segment, raw) for segment in segments
                )

        if not path and template.startswith("{/"):
            path = "/"

        if route.host:
            url = "//" + self._substitute(route, route.host, values, raw) + self.basepath + path
            if route.secure is not None:
                url = ("https:" if route.secure else "http:") + url
            return url

        if "://" in path:
            return path
        return self.basepath + path

    def _substitute(self, route: Route, template: str, values: Mapping[str, Any], raw: bool) -> str:
        parts: list[str] = []
        for segment in scan_template(template):
            if isinstance(segment, str):
                parts.append(segment)
            elif isinstance(segment, Placeholder):
                value = values.get(segment.name)
                if value is None and segment.name in values:
                    # an explicit None stands for the empty string
                    self._validate(route, segment.name, segment.pattern, "")
                    continue
                if not isinstance(value, _SCALARS):
                    token = segment.pattern or route.tokens.get(segment.name)
                    if isinstance(token, str) and re.fullmatch(token, ""):
                        # e.g. "(\.[^/]+)?": absent means empty
                        continue
                    if self.strict:
                        raise GenerationError(
                            segment.name,
                            segment.pattern or str(route.tokens.get(segment.name, "")),
                            detail=f"Missing value for required parameter {segment.name!r}.",
                        )
                    parts.append(segment.raw)
                    continue
                self._validate(route, segment.name, segment.pattern, value)
                parts.append(self._encode(value, raw))
            else:
                parts.append(self._optional(route, segment, values, raw))
        return "".join(parts)

    def _optional(
        self,
        route: Route,
        group: OptionalGroup,
        values: Mapping[str, Any],
        raw: bool,
    ) -> str:
        result = ""
        for name in group.names:
            value = values.get(name)
            # sequentially optional: the first gap (None included) ends the group
            if not isinstance(value, _SCALARS):
                break
            self._validate(route, name, None, value)
            result += "/" + self._encode(value, raw)
        return result

    def _validate(self, route: Route, name: str, inline: str | None, value: Any) -> None:
        token = inline if inline is not None else route.tokens.get(name)
        if token is None:
            return
        if isinstance(token, str):
            if re.fullmatch(token, str(value)) is None:
                raise GenerationError(name, token)
        elif not token(str(value)):
            raise GenerationError(name, _describe(token))

    @staticmethod
    def _encode(value: Any, raw: bool) -> str:
        text = str(value)
        return text if raw else quote(text, safe="")
