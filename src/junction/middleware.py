"""Middleware collections and handler chain types."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .requests import RequestContext


# A chain link: return a truthy value to continue, falsy to halt.
HandlerCallable = Callable[["RequestContext"], Any]
HandlerChain = tuple[HandlerCallable, ...]


def _same_handler(left: object, right: object) -> bool:
    if left is right:
        return True
    # Bound methods are rebuilt on every attribute access.
    if inspect.ismethod(left) and inspect.ismethod(right):
        return left.__self__ is right.__self__ and left.__func__ is right.__func__
    return False


class MiddlewareSet:
    """Ordered, mutable collection of handlers prepended to newly registered routes.

    Routes capture the contents at registration time via
    :meth:`snapshot_and_combine`. Later calls to :meth:`use` or :meth:`remove`
    only shape routes registered afterwards.
    """

    __slots__ = ("_handlers",)

    def __init__(self, handlers: Iterable[HandlerCallable] = ()) -> None:
        self._handlers: list[HandlerCallable] = list(handlers)

    def use(self, *handlers: HandlerCallable) -> None:
        self._handlers.extend(handlers)

    def remove(self, *handlers: HandlerCallable) -> None:
        """Drop every occurrence of each handler, compared by identity."""

        self._handlers = [
            existing for existing in self._handlers if not any(_same_handler(existing, target) for target in handlers)
        ]

    def snapshot(self) -> HandlerChain:
        return tuple(self._handlers)

    def snapshot_and_combine(self, route_handlers: Iterable[HandlerCallable]) -> HandlerChain:
        """Return the current middleware followed by ``route_handlers`` as a frozen chain."""

        return self.snapshot() + tuple(route_handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[HandlerCallable]:
        return iter(self.snapshot())

    def __contains__(self, handler: object) -> bool:
        return any(_same_handler(existing, handler) for existing in self._handlers)

    def __repr__(self) -> str:
        return f"MiddlewareSet({list(self._handlers)!r})"


__all__ = ["HandlerCallable", "HandlerChain", "MiddlewareSet"]
