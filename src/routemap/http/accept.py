"""Accept header parsing.

Turns ``text/html;q=0.9, application/*;q=0.5`` into media ranges the
``Accepts`` rule can compare against a route's declared types.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MediaRange:
    """One entry of an Accept header."""

    type: str
    subtype: str
    quality: float = 1.0

    @property
    def is_any(self) -> bool:
        return self.type == "*" and self.subtype == "*"

    def covers(self, media_type: str) -> bool:
        """True if this range includes *media_type* (wildcards on either side)."""
        main, _, sub = media_type.strip().lower().partition("/")
        if self.is_any:
            return True
        if self.type != main:
            return False
        return self.subtype == "*" or sub in ("*", self.subtype)


def parse_accept(header: str) -> list[MediaRange]:
    """Parse an Accept header into media ranges, in header order.

    A missing or unparsable ``q`` parameter counts as 1.0. A bare ``*``
    is read as ``*/*``.
    """
    ranges: list[MediaRange] = []
    for part in header.split(","):
        media, *params = part.split(";")
        media = media.strip().lower()
        if not media:
            continue
        main, _, sub = media.partition("/")
        quality = 1.0
        for param in params:
            key, _, value = param.partition("=")
            if key.strip().lower() != "q":
                continue
            try:
                quality = float(value.strip())
            except ValueError:
                quality = 1.0
        ranges.append(MediaRange(type=main.strip(), subtype=sub.strip() or "*", quality=quality))
    return ranges
