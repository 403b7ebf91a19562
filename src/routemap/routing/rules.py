"""Matching rules and the registry that orders them.

Each rule answers one question about a request and a route, and on
success may add attributes to the attempt's attribute dict. The matcher
runs them in registry order and stops at the first ``False``, so a rule
can rely on what earlier rules contributed.
"""

import inspect
import re
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping
from typing import Any, TypeAlias
from urllib.parse import unquote

from routemap.errors import UnexpectedValue
from routemap.http.accept import parse_accept
from routemap.http.request import RequestView
from routemap.routing.route import Route


class Rule(ABC):
    """A single match predicate."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool: ...


class Routable(Rule):
    """Non-routable routes exist only for generation."""

    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool:
        return route.routable


class Secure(Rule):
    """Compare the route's secure requirement with the transport."""

    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool:
        if route.secure is None:
            return True
        return route.secure == request.is_secure


class Path(Rule):
    """Match the request path against the compiled path pattern.

    Captures that matched the empty string are left at their default so
    that optional suffix tokens like ``{format}`` read as absent. The
    wildcard capture becomes a list of decoded segments.
    """

    def __init__(self, basepath: str = "") -> None:
        self.basepath = basepath.rstrip("/")

    def _strip_basepath(self, path: str) -> str | None:
        if not self.basepath:
            return path
        if path != self.basepath and not path.startswith(self.basepath + "/"):
            return None
        return path[len(self.basepath) :] or "/"

    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool:
        path = self._strip_basepath(request.path)
        if path is None:
            return False

        compiled = route.compiled
        match = compiled.match(path)
        if match is None:
            return False

        groups = match.groupdict()
        for name, predicate in compiled.predicates.items():
            value = groups.get(name)
            if value and not predicate(unquote(value)):
                return False

        for name in compiled.params:
            attributes.setdefault(name, None)
        for name, value in groups.items():
            if name != compiled.wildcard and value:
                attributes[name] = unquote(value)

        if compiled.wildcard is not None:
            remainder = groups.get(compiled.wildcard)
            attributes[compiled.wildcard] = (
                [unquote(segment) for segment in remainder.split("/")] if remainder else []
            )
        return True


class Allows(Rule):
    """Restrict the route to a set of HTTP methods (case-sensitive)."""

    def __init__(self, default_method: str = "GET") -> None:
        self.default_method = default_method

    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool:
        if not route.allows:
            return True
        return (request.method or self.default_method) in route.allows


class Host(Rule):
    """Match the request host against the compiled host template."""

    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool:
        compiled = route.compiled_host
        if compiled is None:
            return True

        match = compiled.match(request.host or "")
        if match is None:
            return False

        for name in compiled.params:
            attributes.setdefault(name, None)
        for name, value in match.groupdict().items():
            if value is not None:
                attributes[name] = value
        return True


class Accepts(Rule):
    """Content negotiation: at least one declared media type is acceptable.

    ``*/*`` with a non-zero quality accepts anything. Otherwise the most
    specific range covering a declared type decides, and ``q=0`` rules
    that type out.
    """

    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool:
        if not route.accepts:
            return True
        header = request.headers.get_list("accept")
        if not header:
            return True

        ranges = parse_accept(", ".join(header))
        if any(r.is_any and r.quality > 0 for r in ranges):
            return True

        for media_type in route.accepts:
            covering = [r for r in ranges if not r.is_any and r.covers(media_type)]
            if not covering:
                continue
            best = max(covering, key=lambda r: r.subtype != "*")
            if best.quality > 0:
                return True
        return False


class _PatternRule(Rule):
    """Every configured name -> regex pair must find its value and match.

    The matched substring (not the whole value) becomes an attribute
    under the configured name.
    """

    @abstractmethod
    def patterns(self, route: Route) -> Mapping[str, str]: ...

    @abstractmethod
    def lookup(self, request: RequestView, name: str) -> str | None: ...

    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool:
        captured: dict[str, str] = {}
        for name, regex in self.patterns(route).items():
            value = self.lookup(request, name)
            if value is None:
                return False
            found = re.search(regex, value)
            if found is None:
                return False
            captured[name] = found.group(0)
        attributes.update(captured)
        return True


class Server(_PatternRule):
    """Match server (environment) variables."""

    def patterns(self, route: Route) -> Mapping[str, str]:
        return route.server

    def lookup(self, request: RequestView, name: str) -> str | None:
        return request.server.get(name)


class Headers(_PatternRule):
    """Match request headers by (case-insensitive) name."""

    def patterns(self, route: Route) -> Mapping[str, str]:
        return route.headers

    def lookup(self, request: RequestView, name: str) -> str | None:
        return request.headers.get(name)


class Cookies(_PatternRule):
    """Match request cookies."""

    def patterns(self, route: Route) -> Mapping[str, str]:
        return route.cookies

    def lookup(self, request: RequestView, name: str) -> str | None:
        return request.cookies.get(name)


class Special(Rule):
    """Defer to the route's custom predicate, if any.

    The predicate receives ``(request, route, attributes)`` and may read
    and rewrite the attributes gathered so far.
    """

    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool:
        if route.special is None:
            return True
        return bool(route.special(request, route, attributes))


class FunctionRule(Rule):
    """Adapt a plain ``(request, route, attributes)`` predicate."""

    def __init__(self, predicate: Callable[..., Any]) -> None:
        self.predicate = predicate

    @property
    def name(self) -> str:
        return getattr(self.predicate, "__name__", type(self).__name__)

    def __call__(
        self,
        request: RequestView,
        route: Route,
        attributes: MutableMapping[str, Any],
    ) -> bool:
        return bool(self.predicate(request, route, attributes))


# A registry entry is a ready rule, a zero-argument factory producing one,
# or a bare predicate that gets wrapped in a FunctionRule
RuleEntry: TypeAlias = (
    Rule | Callable[[], Rule] | Callable[[Any, Route, MutableMapping[str, Any]], bool]
)


def _required_positional(func: Callable[..., Any]) -> int | None:
    """Count positional parameters without defaults; None if unknown."""
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    return sum(
        1
        for param in signature.parameters.values()
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD)
        and param.default is param.empty
    )


def default_rules(basepath: str = "", default_method: str = "GET") -> list[RuleEntry]:
    """The built-in rules in priority order.

    Rules with configuration are given as factories so they are built
    only when a match first needs them.
    """
    return [
        Routable(),
        Secure(),
        lambda: Path(basepath),
        lambda: Allows(default_method),
        Host,
        Accepts,
        Server,
        Headers,
        Cookies,
        Special,
    ]


class RuleRegistry:
    """Ordered rules, resolving each factory once on first use.

    Usage::

        rules = RuleRegistry()
        rules.append(MyRule)          # factory, built on first iteration
        rules.prepend(MyOtherRule())  # ready rule
    """

    __slots__ = ("_entries", "_lock")

    def __init__(self, rules: Iterable[RuleEntry] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: list[RuleEntry] = []
        self.set(default_rules() if rules is None else rules)

    def set(self, rules: Iterable[RuleEntry]) -> None:
        self._entries = []
        for rule in rules:
            self.append(rule)

    def append(self, rule: RuleEntry) -> None:
        self._entries.append(self._check(rule))

    def prepend(self, rule: RuleEntry) -> None:
        self._entries.insert(0, self._check(rule))

    @staticmethod
    def _check(rule: Any) -> RuleEntry:
        if isinstance(rule, Rule):
            return rule
        if not callable(rule):
            msg = f"Expected a Rule or a rule factory, got {type(rule).__name__}."
            raise UnexpectedValue(msg)
        if isinstance(rule, type) and issubclass(rule, Rule):
            return rule
        required = _required_positional(rule)
        if required is None or required == 0:
            return rule
        if required == 3:
            return FunctionRule(rule)
        name = getattr(rule, "__name__", type(rule).__name__)
        msg = (
            f"Rule callable {name!r} takes {required} arguments; expected none "
            "(a factory) or (request, route, attributes) (a predicate)."
        )
        raise UnexpectedValue(msg)

    def _resolve(self, index: int) -> Rule:
        entry = self._entries[index]
        if isinstance(entry, Rule):
            return entry
        with self._lock:
            entry = self._entries[index]
            if isinstance(entry, Rule):
                return entry
            rule = entry()
            if not isinstance(rule, Rule):
                msg = f"Expected Rule, got {type(rule).__name__} for index {index}."
                raise UnexpectedValue(msg)
            self._entries[index] = rule
            return rule

    def __iter__(self) -> Iterator[Rule]:
        for index in range(len(self._entries)):
            yield self._resolve(index)

    def __len__(self) -> int:
        return len(self._entries)
