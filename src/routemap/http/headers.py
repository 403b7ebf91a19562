"""Request headers as the matching rules see them.

Names are folded to lower case once, when the view is built; every
value is kept in arrival order because ``Accept`` and friends may be
sent on several lines.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence


class Headers(Mapping[str, str]):
    """Case-insensitive, multi-valued, read-only headers.

    Build from ``(name, value)`` pairs or a plain mapping::

        Headers([("Accept", "text/html"), ("Accept", "*/*")])
        Headers({"Host": "example.com"})

    Indexing returns the first value; ``get_list`` returns all of them.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[tuple[str, str]] | Mapping[str, str] = ()) -> None:
        pairs = items.items() if isinstance(items, Mapping) else items
        self._items: tuple[tuple[str, str], ...] = tuple(
            (name.lower(), value) for name, value in pairs
        )

    @classmethod
    def from_asgi(cls, raw: Iterable[Sequence[bytes]]) -> "Headers":
        """Decode an ASGI scope's header byte pairs (latin-1, per the ASGI spec)."""
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)

    def __getitem__(self, key: str) -> str:
        wanted = key.lower()
        for name, value in self._items:
            if name == wanted:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        wanted = key.lower()
        return any(name == wanted for name, _ in self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._items))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._items))

    def __repr__(self) -> str:
        return f"Headers({list(self._items)!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, in order; empty when absent."""
        wanted = key.lower()
        return [value for name, value in self._items if name == wanted]
