"""Router — explicit wiring of collection, rules, matcher, and generator.

There is no container: ``Router`` builds its collaborators from a
``RouterConfig`` unless they are passed in.
"""

import logging
from collections.abc import Mapping
from typing import Any

from routemap.config import RouterConfig
from routemap.http.request import RequestView
from routemap.routing.collection import RouteCollection
from routemap.routing.generator import Generator
from routemap.routing.matcher import Matcher, MatchResult
from routemap.routing.rules import RuleRegistry, default_rules


class Router:
    """Route table plus the matcher and generator that read it.

    Usage::

        router = Router(RouterConfig(basepath="/app"))
        router.routes.get("blog.read", "/blog/{id}").add_tokens(id=r"(\\d+)")
        router.freeze()

        result = router.match(Request.build("/app/blog/42"))
        router.url_for("blog.read", id=42)  # "/app/blog/42"
    """

    __slots__ = ("config", "generator", "matcher", "routes", "rules")

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        routes: RouteCollection | None = None,
        rules: RuleRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or RouterConfig()
        logger = logger or logging.getLogger(self.config.logger_name)
        self.routes = (
            routes if routes is not None else RouteCollection(logger=logger.getChild("collection"))
        )
        self.rules = (
            rules
            if rules is not None
            else RuleRegistry(
                default_rules(
                    basepath=self.config.basepath,
                    default_method=self.config.default_method,
                )
            )
        )
        self.matcher = Matcher(self.routes, self.rules, logger=logger.getChild("matcher"))
        self.generator = Generator(
            self.routes,
            basepath=self.config.basepath,
            strict=self.config.strict_generation,
        )

    def freeze(self) -> "Router":
        """Materialize and compile the route table; see ``RouteCollection.freeze``."""
        self.routes.freeze()
        return self

    def match(self, request: RequestView) -> MatchResult:
        return self.matcher.match(request)

    def generate(self, name: str, data: Mapping[str, Any] | None = None) -> str:
        return self.generator.generate(name, data)

    def generate_raw(self, name: str, data: Mapping[str, Any] | None = None) -> str:
        return self.generator.generate_raw(name, data)

    def url_for(self, name: str, /, **data: Any) -> str:
        """Keyword shorthand for ``generate``."""
        return self.generator.generate(name, data)


def new_router(**config: Any) -> Router:
    """Build a ``Router`` from ``RouterConfig`` keyword arguments."""
    return Router(RouterConfig(**config))
