"""Shared type aliases used across routemap modules."""

from collections.abc import Callable, Mapping, MutableMapping
from typing import Any, TypeAlias

# Token validator: a "(...)" sub-pattern or a predicate on the raw value
TokenPredicate: TypeAlias = Callable[[str], bool]
Token: TypeAlias = str | TokenPredicate

# Custom match predicate, called with (request, route, attributes)
SpecialPredicate: TypeAlias = Callable[[Any, Any, MutableMapping[str, Any]], bool]

# Generation-time transform: merged data in, data to substitute out
GenerateTransform: TypeAlias = Callable[[dict[str, Any]], Mapping[str, Any]]
