"""Request dispatch: resolve a route and drive its handler chain."""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from .config import RouterConfig
from .http import HttpMethod
from .middleware import HandlerChain
from .observability import Observability
from .requests import RequestContext
from .routing import RouteMatch, RouteTable

logger = logging.getLogger(__name__)

NotFoundHandler = Callable[[RequestContext], Awaitable[None] | None]
ErrorHandler = Callable[[Exception, RequestContext], Awaitable[None] | None]


class ChainState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    HALTED = "halted"
    FAILED = "failed"
    COMPLETED = "completed"


class DispatchOutcome(str, Enum):
    NOT_FOUND = "not_found"
    HALTED = "halted"
    FAILED = "failed"
    COMPLETED = "completed"


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ChainRun:
    """Executes one frozen chain front to back.

    ``state`` walks ``PENDING -> RUNNING -> HALTED | FAILED | COMPLETED``;
    ``index`` is the position of the handler currently (or last) invoked.
    """

    __slots__ = ("_chain", "_observability", "error", "index", "state")

    def __init__(self, chain: HandlerChain, *, observability: Observability | None = None) -> None:
        self._chain = chain
        self._observability = observability
        self.state = ChainState.PENDING
        self.index = -1
        self.error: Exception | None = None

    async def run(self, request: RequestContext) -> ChainState:
        if self.state is not ChainState.PENDING:
            raise RuntimeError(f"Chain already ran (state={self.state.value})")
        self.state = ChainState.RUNNING
        observability = self._observability
        for index, handler in enumerate(self._chain):
            self.index = index
            context = None
            if observability is not None and observability.enabled:
                context = observability.on_handler_start(handler, index)
            try:
                proceed = bool(await _maybe_await(handler(request)))
            except Exception as exc:
                if observability is not None:
                    observability.on_handler_error(context, exc)
                self.error = exc
                self.state = ChainState.FAILED
                return self.state
            except BaseException as exc:
                if observability is not None:
                    observability.on_handler_error(context, exc)
                self.state = ChainState.FAILED
                raise
            if observability is not None:
                observability.on_handler_success(context, proceed)
            if not proceed:
                logger.debug("chain halted by handler %d (%r)", index, handler)
                self.state = ChainState.HALTED
                return self.state
        self.state = ChainState.COMPLETED
        return self.state


_CHAIN_OUTCOMES = {
    ChainState.HALTED: DispatchOutcome.HALTED,
    ChainState.FAILED: DispatchOutcome.FAILED,
    ChainState.COMPLETED: DispatchOutcome.COMPLETED,
}


class Dispatcher:
    """Resolve requests against a :class:`RouteTable` and run the matched chain."""

    def __init__(
        self,
        table: RouteTable,
        config: RouterConfig | None = None,
        *,
        observability: Observability | None = None,
    ) -> None:
        self.table = table
        self.config = config or RouterConfig()
        self.observability = observability or Observability(self.config.observability)

    def expose_params(self, match: RouteMatch, request: RequestContext) -> None:
        """Copy path parameters (and optionally query parameters) onto ``request``."""

        for name, value in match.params.items():
            request.attributes[self.config.param_key(name)] = value
        request.path_params.update(match.params)
        if not self.config.expose_query_params:
            return
        for name, values in request.query_params.items():
            if values:
                request.attributes[self.config.query_key(name)] = values[0] if len(values) == 1 else list(values)

    async def dispatch(
        self,
        scope: str,
        method: HttpMethod | str,
        path: str | None,
        request: RequestContext,
        on_not_found: NotFoundHandler,
        on_error: ErrorHandler,
    ) -> DispatchOutcome:
        method_name = method.value if isinstance(method, HttpMethod) else str(method).upper()
        observation = self.observability.on_dispatch_start(scope, method_name, path)
        try:
            match = self.table.resolve(scope, method, path) if path is not None else None
        except BaseException as exc:
            self.observability.on_dispatch_finish(observation, DispatchOutcome.FAILED, error=exc)
            raise
        if match is None:
            logger.debug("no route for %s %s in scope %r", method_name, path, scope)
            try:
                await _maybe_await(on_not_found(request))
            except Exception as exc:
                self.observability.on_dispatch_finish(observation, DispatchOutcome.NOT_FOUND, error=exc)
                raise
            self.observability.on_dispatch_finish(observation, DispatchOutcome.NOT_FOUND)
            return DispatchOutcome.NOT_FOUND

        self.expose_params(match, request)
        run = ChainRun(match.chain, observability=self.observability)
        try:
            state = await run.run(request)
        except BaseException as exc:
            self.observability.on_dispatch_finish(
                observation, DispatchOutcome.FAILED, route=match.entry.path, error=exc
            )
            raise
        outcome = _CHAIN_OUTCOMES[state]
        if run.error is not None:
            try:
                await _maybe_await(on_error(run.error, request))
            except Exception as exc:
                self.observability.on_dispatch_finish(observation, outcome, route=match.entry.path, error=exc)
                raise
        self.observability.on_dispatch_finish(observation, outcome, route=match.entry.path, error=run.error)
        return outcome


__all__ = ["ChainRun", "ChainState", "DispatchOutcome", "Dispatcher", "ErrorHandler", "NotFoundHandler"]
