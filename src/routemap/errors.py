"""Routemap exception hierarchy.

Shared across the compiler, collection, matcher, and generator so every
module raises and catches the same types.

A failed match is not an error: ``Matcher.match()`` returns a falsy
``MatchResult`` instead of raising.
"""


class RoutemapError(Exception):
    """Base for all routemap-specific errors."""


class ConfigurationError(RoutemapError):
    """Raised when the route table is misconfigured.

    Surfaces while routes are built or compiled, never while a request
    is being matched against a valid table.
    """


class MalformedSubpattern(ConfigurationError):
    """A token sub-pattern that cannot be spliced into a named group."""

    def __init__(self, name: str, subpattern: str) -> None:
        self.name = name
        self.subpattern = subpattern
        super().__init__(
            f"Subpattern for param {name!r} must start with '(', got {subpattern!r}."
        )


class MalformedRouteSpec(ConfigurationError):
    """A declarative route entry with the wrong shape."""


class RouteAlreadyExists(ConfigurationError):
    """A second route was registered under an existing name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Route {name!r} already exists.")


class RouteNotFound(RoutemapError, KeyError):  # noqa: N818
    """No route is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Route {self.name!r} not found."


class GenerationError(RoutemapError, ValueError):
    """A value supplied for generation does not satisfy its token.

    ``name`` is the parameter, ``pattern`` the sub-pattern (or predicate
    description) it failed.
    """

    def __init__(self, name: str, pattern: str, detail: str = "") -> None:
        self.name = name
        self.pattern = pattern
        super().__init__(
            detail or f"Parameter value for {name!r} did not match the pattern {pattern!r}."
        )


class UnexpectedValue(RoutemapError, TypeError):  # noqa: N818
    """A rule factory produced something that is not a rule."""
