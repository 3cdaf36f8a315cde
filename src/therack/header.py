"""Ordered, case-insensitive header multimap."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, MutableMapping, Optional, Union

HeaderItems = Union[Mapping[str, Union[str, Iterable[str]]], Iterable[tuple[str, str]]]


def canonical_key(name: str) -> str:
    """Return ``name`` in canonical form, e.g. ``content-type`` -> ``Content-Type``."""

    return "-".join(part[:1].upper() + part[1:].lower() for part in name.strip().split("-"))


class Header(MutableMapping[str, list[str]]):
    """Map a canonical header name to the list of its values.

    Indexing returns the mutable value list, so callers can append to it
    directly. ``get_first`` and ``get_list`` mirror the single/multi accessors
    of the usual request header objects.
    """

    def __init__(self, items: Optional[HeaderItems] = None) -> None:
        self._values: dict[str, list[str]] = {}
        if items is not None:
            self.extend(items)

    def __getitem__(self, name: str) -> list[str]:
        return self._values[canonical_key(name)]

    def __setitem__(self, name: str, values: Union[str, Iterable[str]]) -> None:
        if isinstance(values, str):
            values = [values]
        self._values[canonical_key(name)] = list(values)

    def __delitem__(self, name: str) -> None:
        del self._values[canonical_key(name)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonical_key(name) in self._values

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Header):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self == Header(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Header({self._values!r})"

    def add(self, name: str, value: str) -> None:
        """Append ``value`` to the values stored for ``name``."""

        self._values.setdefault(canonical_key(name), []).append(value)

    def set(self, name: str, value: str) -> None:
        """Replace every value stored for ``name`` with ``value``."""

        self._values[canonical_key(name)] = [value]

    def get_first(self, name: str, default: Optional[str] = None) -> Optional[str]:
        values = self._values.get(canonical_key(name))
        if not values:
            return default
        return values[0]

    def get_list(self, name: str) -> list[str]:
        return list(self._values.get(canonical_key(name), []))

    def extend(self, items: HeaderItems) -> None:
        pairs = items.items() if isinstance(items, Mapping) else items
        for name, value in pairs:
            if isinstance(value, str):
                self.add(name, value)
            else:
                for entry in value:
                    self.add(name, entry)

    def multi_items(self) -> list[tuple[str, str]]:
        """Flatten into ``(name, value)`` pairs, preserving insertion order."""

        return [(name, value) for name, values in self._values.items() for value in values]

    def copy(self) -> "Header":
        clone = Header()
        clone._values = {name: list(values) for name, values in self._values.items()}
        return clone


__all__ = ["Header", "canonical_key"]
