"""Path and host template compilation.

A template is literal text interleaved with placeholders::

    /blog/{id}                 required token, default sub-pattern
    /blog/{id:(\\d+)}           inline sub-pattern, beats configured tokens
    /archive{/year,month,day}  optional group, sequentially optional
    /files/{owner}/*           trailing wildcard marker

``scan_template`` splits a template into segments; the compiler and the
generator both walk the same segments so that matching and generation
agree on what a template means.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from routemap.errors import ConfigurationError, MalformedSubpattern

DEFAULT_PATH_SUBPATTERN = "([^/]+)"
DEFAULT_HOST_SUBPATTERN = "([^.]+)"
DEFAULT_WILDCARD = "wildcard"
WILDCARD_MARKER = "/*"

# Assembled patterns longer than this are refused; long alternations are
# where catastrophic backtracking hides.
MAX_PATTERN_LENGTH = 4096

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_OPTIONAL_NAME_RE = re.compile(r"[A-Za-z][A-Za-z0-9_]*")


@dataclass(frozen=True, slots=True)
class Placeholder:
    """A ``{name}`` or ``{name:pattern}`` token in a template."""

    raw: str
    name: str
    pattern: str | None = None


@dataclass(frozen=True, slots=True)
class OptionalGroup:
    """A ``{/a,b,c}`` run of sequentially optional tokens."""

    raw: str
    names: tuple[str, ...]


Segment = str | Placeholder | OptionalGroup


@dataclass(frozen=True, slots=True)
class CompiledTemplate:
    """A compiled template: anchored regex plus parameter metadata."""

    source: str
    regex: re.Pattern[str]
    params: tuple[str, ...]
    optional: tuple[str, ...] = ()
    wildcard: str | None = None
    predicates: Mapping[str, Callable[[str], Any]] = field(default_factory=dict)

    def match(self, value: str) -> re.Match[str] | None:
        return self.regex.match(value)


def _find_close(template: str, start: int) -> int:
    """Index of the ``}`` balancing the ``{`` at *start*."""
    depth = 0
    index = start
    while index < len(template):
        char = template[index]
        if char == "\\":
            # escaped character inside an inline pattern
            index += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    msg = f"Unbalanced '{{' at position {start} in template {template!r}."
    raise ConfigurationError(msg)


def _parse_placeholder(raw: str, template: str) -> Segment:
    inner = raw[1:-1].strip()
    if inner.startswith("/"):
        names = tuple(name.strip() for name in inner[1:].split(","))
        for name in names:
            if not _OPTIONAL_NAME_RE.fullmatch(name):
                msg = f"Invalid optional parameter name {name!r} in template {template!r}."
                raise ConfigurationError(msg)
        return OptionalGroup(raw=raw, names=names)

    name, sep, pattern = inner.partition(":")
    name = name.strip()
    if not _NAME_RE.fullmatch(name):
        msg = f"Invalid parameter name {name!r} in template {template!r}."
        raise ConfigurationError(msg)
    return Placeholder(raw=raw, name=name, pattern=pattern.strip() if sep else None)


def scan_template(template: str) -> list[Segment]:
    """Split *template* into literal strings and placeholder segments.

    Examples::

        "/users/{id}"         -> ["/users/", Placeholder("{id}", "id")]
        "/a{/b,c}"            -> ["/a", OptionalGroup("{/b,c}", ("b", "c"))]
        "/n/{id:(\\d{2,4})}"   -> ["/n/", Placeholder(..., "id", "(\\d{2,4})")]

    Raises ``ConfigurationError`` for unbalanced braces, bad names, or a
    second optional group.
    """
    segments: list[Segment] = []
    literal_start = 0
    index = 0
    seen_optional = False
    while index < len(template):
        if template[index] != "{":
            index += 1
            continue
        close = _find_close(template, index)
        if index > literal_start:
            segments.append(template[literal_start:index])
        segment = _parse_placeholder(template[index : close + 1], template)
        if isinstance(segment, OptionalGroup):
            if seen_optional:
                msg = f"Only one optional group is allowed per template: {template!r}."
                raise ConfigurationError(msg)
            seen_optional = True
        segments.append(segment)
        index = literal_start = close + 1
    if literal_start < len(template):
        segments.append(template[literal_start:])
    return segments


def split_wildcard(template: str) -> tuple[str, bool]:
    """Strip a trailing ``/*`` marker; report whether it was there."""
    if template.endswith(WILDCARD_MARKER):
        return template[: -len(WILDCARD_MARKER) + 1], True
    return template, False


def _named_group(name: str, subpattern: str) -> str:
    # "(...)?" keeps its quantifier when spliced; "(?:...)" must be wrapped whole
    if subpattern.startswith("(?"):
        return f"(?P<{name}>{subpattern})"
    return f"(?P<{name}>" + subpattern[1:]


def _subpattern(
    name: str,
    inline: str | None,
    tokens: Mapping[str, Any],
    default: str,
) -> str:
    if inline is not None:
        if not inline.startswith("("):
            inline = f"({inline})"
        return _named_group(name, inline)

    token = tokens.get(name)
    if isinstance(token, str):
        if not token.startswith("("):
            raise MalformedSubpattern(name, token)
        return _named_group(name, token)

    return _named_group(name, default)


def _optional_group(
    group: OptionalGroup,
    leading: bool,
    tokens: Mapping[str, Any],
    default: str,
) -> str:
    names = list(group.names)
    head = ""
    if leading:
        # the group opens the template: keep a bare leading slash matchable
        head = "/" + _subpattern(names.pop(0), None, tokens, default) + "?"
    tail = ""
    for name in names:
        head += "(?:/" + _subpattern(name, None, tokens, default)
        tail += ")?"
    return head + tail


def _compile(
    source: str,
    segments: list[Segment],
    tokens: Mapping[str, Any],
    default: str,
    suffix: str = "",
    wildcard: str | None = None,
    flags: int = 0,
) -> CompiledTemplate:
    parts: list[str] = []
    params: list[str] = []
    optional: list[str] = []
    for index, segment in enumerate(segments):
        if isinstance(segment, str):
            parts.append(re.escape(segment))
        elif isinstance(segment, Placeholder):
            parts.append(_subpattern(segment.name, segment.pattern, tokens, default))
            params.append(segment.name)
        else:
            parts.append(_optional_group(segment, index == 0, tokens, default))
            params.extend(segment.names)
            optional.extend(segment.names)

    if wildcard is not None:
        params.append(wildcard)

    pattern = "^" + "".join(parts) + suffix + "$"
    if len(pattern) > MAX_PATTERN_LENGTH:
        msg = f"Compiled pattern for {source!r} exceeds {MAX_PATTERN_LENGTH} characters."
        raise ConfigurationError(msg)
    try:
        regex = re.compile(pattern, flags)
    except re.error as exc:
        msg = f"Template {source!r} compiles to an invalid pattern: {exc}"
        raise ConfigurationError(msg) from exc

    predicates = {
        name: tokens[name] for name in params if name in tokens and callable(tokens[name])
    }
    return CompiledTemplate(
        source=source,
        regex=regex,
        params=tuple(params),
        optional=tuple(optional),
        wildcard=wildcard,
        predicates=predicates,
    )


def compile_path(
    path: str,
    tokens: Mapping[str, Any] | None = None,
    wildcard: str | None = None,
) -> CompiledTemplate:
    """Compile a path template into an anchored pattern.

    A trailing ``/*`` requires the slash and captures everything after it
    into *wildcard* (``"wildcard"`` when unnamed). A wildcard declared by
    name only makes the remainder optional, slash included.

    Raises ``MalformedSubpattern`` when a configured string token does not
    start with ``(``.
    """
    tokens = tokens or {}
    template, marker = split_wildcard(path)
    if marker:
        wildcard = wildcard or DEFAULT_WILDCARD
    if wildcard is not None and not _NAME_RE.fullmatch(wildcard):
        msg = f"Invalid wildcard name {wildcard!r} for template {path!r}."
        raise ConfigurationError(msg)

    segments = scan_template(template)
    suffix = ""
    if wildcard is not None:
        if marker:
            suffix = f"(?P<{wildcard}>.*)"
        else:
            if segments and isinstance(segments[-1], str):
                segments[-1] = segments[-1].rstrip("/")
            suffix = f"(?:/(?P<{wildcard}>.*))?"

    return _compile(path, segments, tokens, DEFAULT_PATH_SUBPATTERN, suffix, wildcard)


def compile_host(host: str, tokens: Mapping[str, Any] | None = None) -> CompiledTemplate:
    """Compile a host template; placeholders stop at the next dot."""
    segments = scan_template(host)
    if any(isinstance(segment, OptionalGroup) for segment in segments):
        msg = f"Optional groups are not supported in host templates: {host!r}."
        raise ConfigurationError(msg)
    return _compile(host, segments, tokens or {}, DEFAULT_HOST_SUBPATTERN, flags=re.IGNORECASE)
