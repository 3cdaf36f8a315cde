"""Middleware chains.

A :class:`Rack` breaks handling down into a series of small middleware. Each
one gets the shared request state and a ``next`` continuation; whatever it
does before calling ``next`` runs first-to-last, whatever it does afterwards
runs last-to-first, so earlier middleware can adjust what later ones produced.
A rack is itself a middleware and can be nested inside another rack.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional, Sequence

from .state import RequestState
from .types import Middleware, MiddlewareFunc, Next

LOGGER = logging.getLogger(__name__)


class Func:
    """Adapt a plain ``fn(state, next)`` function to the middleware protocol."""

    def __init__(self, fn: MiddlewareFunc) -> None:
        self.fn = fn

    def run(self, state: RequestState, next: Next) -> None:
        self.fn(state, next)

    def __repr__(self) -> str:
        return f"Func({getattr(self.fn, '__qualname__', self.fn)!r})"


class Rack:
    """Ordered collection of middleware that is also a middleware."""

    def __init__(self, middlewares: Optional[Iterable[Middleware]] = None) -> None:
        self._middlewares: list[Middleware] = []
        for middleware in middlewares or []:
            self.add(middleware)

    def add(self, middleware: Middleware) -> None:
        """Append ``middleware``; it runs inside everything added before it."""

        if not isinstance(middleware, Middleware):
            raise TypeError(f"{middleware!r} does not implement run(state, next)")
        self._middlewares.append(middleware)

    def __len__(self) -> int:
        return len(self._middlewares)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middlewares)

    def run(self, state: RequestState, next: Next) -> None:
        # Middleware added while this run is in progress only affect later runs.
        self._dispatch(tuple(self._middlewares), 0, state, next)

    def _dispatch(
        self,
        middlewares: Sequence[Middleware],
        index: int,
        state: RequestState,
        next: Next,
    ) -> None:
        if index >= len(middlewares):
            next()
            return

        middleware = middlewares[index]
        LOGGER.debug("Dispatching middleware %d/%d: %r", index + 1, len(middlewares), middleware)

        # Each continuation is bound to its own position, so calling it more
        # than once always resumes at the same place in the chain.
        def proceed() -> None:
            self._dispatch(middlewares, index + 1, state, next)

        middleware.run(state, proceed)


__all__ = ["Func", "Rack"]
