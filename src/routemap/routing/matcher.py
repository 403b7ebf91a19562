"""Route matching.

The matcher walks the collection in insertion order and runs the rule
registry against each route. The first route to pass every rule wins;
later routes are never evaluated. When nothing matches, the result
keeps the closest miss (most rules passed, earliest on a tie) and the
full list of attempts for diagnostics.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from routemap.http.request import RequestView
from routemap.routing.route import Route, RouteMatch
from routemap.routing.rules import RuleRegistry

_log = logging.getLogger("routemap.matcher")


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of one ``Matcher.match()`` call.

    Truthy when a route matched. ``failed`` is the best near miss when
    nothing did, and ``attempts`` lists every route tried, in order.
    """

    path: str
    matched: RouteMatch | None = None
    failed: RouteMatch | None = None
    attempts: tuple[RouteMatch, ...] = ()

    def __bool__(self) -> bool:
        return self.matched is not None

    @property
    def route(self) -> Route | None:
        return self.matched.route if self.matched else None

    @property
    def attributes(self) -> dict[str, Any]:
        return self.matched.attributes if self.matched else {}


class Matcher:
    """Select the first route whose rules all pass.

    Usage::

        matcher = Matcher(routes, RuleRegistry())
        result = matcher.match(Request.build("/blog/42"))
        if result:
            result.attributes["id"]  # "42"
    """

    __slots__ = ("_logger", "routes", "rules")

    def __init__(
        self,
        routes: Iterable[Route],
        rules: RuleRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.routes = routes
        self.rules = rules if rules is not None else RuleRegistry()
        self._logger = logger or _log

    def match(self, request: RequestView) -> MatchResult:
        """Match *request* against the routes.

        Never raises for a non-matching request; a rule that raises
        propagates, since that is a defect in the rule.
        """
        path = request.path
        attempts: list[RouteMatch] = []
        best: RouteMatch | None = None

        for route in self.routes:
            attempt = self._apply_rules(request, route, path)
            attempts.append(attempt)
            if attempt.matched:
                return MatchResult(path=path, matched=attempt, attempts=tuple(attempts))
            if best is None or attempt.score > best.score:
                best = attempt

        return MatchResult(path=path, failed=best, attempts=tuple(attempts))

    def _apply_rules(self, request: RequestView, route: Route, path: str) -> RouteMatch:
        label = route.name or route.path
        attributes: dict[str, Any] = dict(route.defaults)
        score = 0
        for rule in self.rules:
            if not rule(request, route, attributes):
                self._logger.debug(
                    "%s FAILED %s ON %s",
                    path,
                    rule.name,
                    label,
                    extra={"path": path, "rule": rule.name, "route": label},
                )
                return RouteMatch(route, attributes, score, failed_rule=rule.name)
            score += 1

        self._logger.debug(
            "%s MATCHED ON %s", path, label, extra={"path": path, "route": label}
        )
        return RouteMatch(route, attributes, score)
