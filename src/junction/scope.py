"""Per-scope routers.

A :class:`RouterScope` owns the middleware for one routing namespace and
registers routes into a shared :class:`~junction.routing.RouteTable`::

    table = RouteTable()
    api = RouterScope("api", table)
    api.use(authenticate)
    api.register(HttpMethod.GET, "/users/:id", show_user)

    outcome = await api.route(HttpMethod.GET, request)

Each registration snapshots the scope's middleware, so ``api.use(...)`` after
``register`` does not reach routes that already exist.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from .config import RouterConfig
from .dispatch import DispatchOutcome, Dispatcher, ErrorHandler, NotFoundHandler
from .exceptions import HTTPError
from .http import HttpMethod, Status
from .middleware import HandlerCallable, HandlerChain, MiddlewareSet
from .observability import Observability
from .requests import RequestContext
from .responses import exception_to_response
from .routing import RouteEntry, RouteTable

logger = logging.getLogger(__name__)


def default_not_found(request: RequestContext) -> None:
    request.response = exception_to_response(HTTPError(Status.NOT_FOUND, "route_not_found"))


def default_error(error: Exception, request: RequestContext) -> None:
    logger.error("handler failed for %s %s", request.method, request.path, exc_info=error)
    if isinstance(error, HTTPError):
        request.response = exception_to_response(error)
        return
    request.response = exception_to_response(HTTPError(Status.INTERNAL_SERVER_ERROR, "handler_failed"))


class ChainBuilder:
    """Registers routes whose chain is fixed when the builder is created.

    The chain prefix is the scope's middleware at the time
    :meth:`RouterScope.with_middleware` was called, followed by the extra
    middleware passed to it.
    """

    __slots__ = ("_prefix", "_scope")

    def __init__(self, scope: "RouterScope", prefix: HandlerChain) -> None:
        self._scope = scope
        self._prefix = prefix

    @property
    def middleware(self) -> HandlerChain:
        return self._prefix

    def with_middleware(self, *handlers: HandlerCallable) -> "ChainBuilder":
        return ChainBuilder(self._scope, self._prefix + handlers)

    def register(self, method: HttpMethod | str, pattern: str, *handlers: HandlerCallable) -> RouteEntry:
        return self._scope.table.register(self._scope.name, method, pattern, self._prefix + handlers)


class RouterScope:
    """Routing namespace with its own middleware and fallbacks."""

    def __init__(
        self,
        name: str,
        table: RouteTable,
        *,
        config: RouterConfig | None = None,
        on_not_found: NotFoundHandler | None = None,
        on_error: ErrorHandler | None = None,
        observability: Observability | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("RouterScope requires a non-empty scope name")
        self.name = name
        self.table = table
        self.middleware = MiddlewareSet()
        self.on_not_found: NotFoundHandler = on_not_found or default_not_found
        self.on_error: ErrorHandler = on_error or default_error
        if dispatcher is None:
            dispatcher = Dispatcher(table, config, observability=observability)
        elif dispatcher.table is not table:
            raise ValueError("dispatcher must resolve against the scope's route table")
        self.dispatcher = dispatcher

    @property
    def config(self) -> RouterConfig:
        return self.dispatcher.config

    # ------------------------------------------------------------------ middleware
    def use(self, *handlers: HandlerCallable) -> "RouterScope":
        self.middleware.use(*handlers)
        return self

    def remove(self, *handlers: HandlerCallable) -> "RouterScope":
        self.middleware.remove(*handlers)
        return self

    def with_middleware(self, *handlers: HandlerCallable) -> ChainBuilder:
        return ChainBuilder(self, self.middleware.snapshot_and_combine(handlers))

    # ------------------------------------------------------------------ registration
    def register(self, method: HttpMethod | str, pattern: str, *handlers: HandlerCallable) -> "RouterScope":
        self.add_route(method, pattern, handlers)
        return self

    def add_route(self, method: HttpMethod | str, pattern: str, handlers: Iterable[HandlerCallable]) -> RouteEntry:
        chain = self.middleware.snapshot_and_combine(handlers)
        return self.table.register(self.name, method, pattern, chain)

    def route_handler(
        self, method: HttpMethod | str, pattern: str
    ) -> Callable[[HandlerCallable], HandlerCallable]:
        def decorator(func: HandlerCallable) -> HandlerCallable:
            self.add_route(method, pattern, (func,))
            return func

        return decorator

    def get(self, pattern: str) -> Callable[[HandlerCallable], HandlerCallable]:
        return self.route_handler(HttpMethod.GET, pattern)

    def post(self, pattern: str) -> Callable[[HandlerCallable], HandlerCallable]:
        return self.route_handler(HttpMethod.POST, pattern)

    def put(self, pattern: str) -> Callable[[HandlerCallable], HandlerCallable]:
        return self.route_handler(HttpMethod.PUT, pattern)

    def delete(self, pattern: str) -> Callable[[HandlerCallable], HandlerCallable]:
        return self.route_handler(HttpMethod.DELETE, pattern)

    # ------------------------------------------------------------------ request handling
    async def route(self, method: HttpMethod | str, request: RequestContext) -> DispatchOutcome:
        return await self.dispatcher.dispatch(
            self.name,
            method,
            request.path,
            request,
            self.on_not_found,
            self.on_error,
        )

    def __repr__(self) -> str:
        return f"RouterScope({self.name!r})"


__all__ = ["ChainBuilder", "RouterScope", "default_error", "default_not_found"]
