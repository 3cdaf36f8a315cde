"""Key/value store that lets one middleware pass results to another."""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Optional

from .header import Header
from .types import Next


class Vars:
    """Mutable mapping of string keys to arbitrary values.

    A ``Vars`` is also a middleware: running it copies its own entries into
    the live request state and then continues, which is handy for seeding
    defaults ahead of the main chain.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self._values.update(kwargs)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values!r})"

    def keys(self):
        return self._values.keys()

    def items(self):
        return self._values.items()

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def clear(self, key: str) -> Any:
        """Remove ``key`` and return whatever was stored there."""

        return self._values.pop(key, None)

    def set_if_empty(self, key: str, value: Any) -> None:
        """Store ``value`` only when ``key`` is absent or holds ``None``."""

        if self._values.get(key) is None:
            self._values[key] = value

    def switch(self, key: str, value: Any) -> Any:
        """Store ``value`` under ``key`` and return the value it replaced.

        Restoring the old value afterwards is up to the caller.
        """

        previous = self._values.get(key)
        self._values[key] = value
        return previous

    def run(self, state: "Vars", next: Next) -> None:
        for key, value in self._values.items():
            # Header defaults are mutable; each request gets its own copy.
            state.set(key, value.copy() if isinstance(value, Header) else value)
        next()


__all__ = ["Vars"]
