"""Routing table."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping

from .exceptions import NoRouteMatch, UnsupportedMethod
from .http import HttpMethod
from .middleware import HandlerCallable, HandlerChain
from .patterns import PathPattern

logger = logging.getLogger(__name__)

_RouteKey = tuple[str, HttpMethod]


@dataclass(slots=True, frozen=True)
class RouteEntry:
    scope: str
    method: HttpMethod
    pattern: PathPattern
    chain: HandlerChain

    @property
    def path(self) -> str:
        return self.pattern.source


@dataclass(slots=True, frozen=True)
class RouteMatch:
    entry: RouteEntry
    params: Mapping[str, str]

    @property
    def chain(self) -> HandlerChain:
        return self.entry.chain


class RouteTable:
    """Ordered registry of routes shared by every :class:`~junction.scope.RouterScope`.

    Resolution is first-match-wins in registration order. The table keeps
    immutable tuples and replaces them wholesale under a lock when a route is
    registered, so readers never observe a half-applied registration and need
    no locking of their own.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: tuple[RouteEntry, ...] = ()
        self._by_key: dict[_RouteKey, tuple[RouteEntry, ...]] = {}

    def register(
        self,
        scope: str,
        method: HttpMethod | str,
        pattern: str,
        chain: Iterable[HandlerCallable] = (),
    ) -> RouteEntry:
        handlers = tuple(chain)
        for index, handler in enumerate(handlers):
            if not callable(handler):
                raise TypeError(f"Handler {index} for {pattern!r} is not callable: {handler!r}")
        entry = RouteEntry(
            scope=scope,
            method=HttpMethod.parse(method),
            pattern=PathPattern.compile(pattern),
            chain=handlers,
        )
        key = (entry.scope, entry.method)
        with self._lock:
            by_key = dict(self._by_key)
            by_key[key] = by_key.get(key, ()) + (entry,)
            self._by_key = by_key
            self._entries = self._entries + (entry,)
        logger.debug(
            "registered route %s %s in scope %r with %d handler(s)",
            entry.method.value,
            pattern,
            scope,
            len(entry.chain),
        )
        return entry

    def resolve(self, scope: str, method: HttpMethod | str, path: str) -> RouteMatch | None:
        """Return the earliest registered route matching the request, if any."""

        try:
            parsed = HttpMethod.parse(method)
        except UnsupportedMethod:
            return None
        candidates = self._by_key.get((scope, parsed))
        if not candidates:
            return None
        for entry in candidates:
            params = entry.pattern.params(path)
            if params is not None:
                return RouteMatch(entry=entry, params=params)
        return None

    def find(self, scope: str, method: HttpMethod | str, path: str | None) -> RouteMatch:
        if path is None:
            raise NoRouteMatch(scope, method, path)
        match = self.resolve(scope, method, path)
        if match is None:
            raise NoRouteMatch(scope, method, path)
        return match

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        return self._entries

    def scopes(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(entry.scope for entry in self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries)


__all__ = ["RouteEntry", "RouteMatch", "RouteTable"]
