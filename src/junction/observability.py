"""Observability integration for request dispatch."""

from __future__ import annotations

import json
import logging
import time
from contextlib import ExitStack
from typing import TYPE_CHECKING, Any, Mapping

import msgspec

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .dispatch import DispatchOutcome
    from .middleware import HandlerCallable


class ObservabilityConfig(msgspec.Struct, frozen=True):
    """Tracing, error tracking and structured logging configuration."""

    enabled: bool = True
    opentelemetry_enabled: bool = True
    opentelemetry_tracer: str = "junction"
    dispatch_span_name: str = "junction.dispatch"
    handler_span_name: str = "junction.handler"
    sentry_enabled: bool = True
    sentry_capture_exceptions: bool = True
    log_dispatch: bool = True


class _ObservationContext:
    __slots__ = ("fields", "span", "stack", "start")

    def __init__(self, *, stack: ExitStack, span: Any | None, fields: Mapping[str, Any]) -> None:
        self.start = time.perf_counter()
        self.stack = stack
        self.span = span
        self.fields = dict(fields)

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.start) * 1000.0

    def close(self, error: BaseException | None = None) -> None:
        if error is None:
            self.stack.__exit__(None, None, None)
        else:
            self.stack.__exit__(type(error), error, error.__traceback__)


def _handler_name(handler: "HandlerCallable") -> str:
    name = getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None)
    if name is None:
        return type(handler).__qualname__
    return str(name)


class Observability:
    """Coordinate tracing, error tracking and logging around dispatch."""

    def __init__(self, config: ObservabilityConfig | None = None) -> None:
        self.config = config or ObservabilityConfig()
        self._tracer = None
        self._server_span_kind = None
        self._internal_span_kind = None
        self._status_cls = None
        self._status_ok = None
        self._status_error = None
        self._sentry_hub = None
        self._logger = logging.getLogger("junction.observability")
        if self.config.enabled:
            self._prepare_opentelemetry()
            self._prepare_sentry()
        self._enabled = self.config.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _prepare_opentelemetry(self) -> None:
        if not self.config.opentelemetry_enabled:
            return
        try:
            from opentelemetry import trace  # type: ignore[import-not-found]
        except ImportError:  # pragma: no cover - optional dependency
            return
        self._tracer = trace.get_tracer(self.config.opentelemetry_tracer)
        span_kind = getattr(trace, "SpanKind", None)
        self._server_span_kind = getattr(span_kind, "SERVER", None)
        self._internal_span_kind = getattr(span_kind, "INTERNAL", None)
        status_cls = getattr(trace, "Status", None)
        status_code = getattr(trace, "StatusCode", None)
        if status_cls is not None and status_code is not None:
            self._status_cls = status_cls
            self._status_ok = getattr(status_code, "OK", None)
            self._status_error = getattr(status_code, "ERROR", None)

    def _prepare_sentry(self) -> None:
        if not self.config.sentry_enabled:
            return
        try:
            import sentry_sdk  # type: ignore[import-not-found]
        except ImportError:  # pragma: no cover - optional dependency
            return
        self._sentry_hub = sentry_sdk.Hub.current

    def _status(self, code: Any, description: str | None = None) -> Any | None:
        if self._status_cls is None or code is None:
            return None
        if description is None:
            return self._status_cls(code)
        return self._status_cls(code, description=description)

    def _start(self, span_name: str, *, kind: Any | None, attributes: Mapping[str, Any]) -> _ObservationContext | None:
        if not self._enabled:
            return None
        stack = ExitStack()
        span = None
        if self._tracer is not None:
            span = stack.enter_context(self._tracer.start_as_current_span(span_name, kind=kind))
            for key, value in attributes.items():
                span.set_attribute(key, value)
        return _ObservationContext(stack=stack, span=span, fields=attributes)

    def _capture_exception(self, error: BaseException) -> None:
        if self._sentry_hub is not None and self.config.sentry_capture_exceptions:
            self._sentry_hub.capture_exception(error)

    def _log(self, event: str, fields: Mapping[str, Any]) -> None:
        if not self.config.log_dispatch:
            return
        payload: dict[str, Any] = {"event": event}
        payload.update({key: value for key, value in fields.items() if value is not None})
        self._logger.info(json.dumps(payload, separators=(",", ":"), default=str))

    # ------------------------------------------------------------------ dispatch
    def on_dispatch_start(self, scope: str, method: str, path: str | None) -> _ObservationContext | None:
        attributes = {
            "junction.scope": scope,
            "http.method": method,
            "http.target": path or "",
        }
        return self._start(self.config.dispatch_span_name, kind=self._server_span_kind, attributes=attributes)

    def on_dispatch_finish(
        self,
        context: _ObservationContext | None,
        outcome: "DispatchOutcome",
        *,
        route: str | None = None,
        error: BaseException | None = None,
    ) -> None:
        if context is None:
            if error is not None:
                self._capture_exception(error)
            return
        if context.span is not None:
            context.span.set_attribute("junction.outcome", outcome.value)
            if route is not None:
                context.span.set_attribute("http.route", route)
            if error is not None and hasattr(context.span, "record_exception"):
                context.span.record_exception(error)
            if error is None:
                status = self._status(self._status_ok)
            else:
                status = self._status(self._status_error, description=str(error))
            if status is not None:
                context.span.set_status(status)
        if error is not None:
            self._capture_exception(error)
        fields = dict(context.fields)
        fields.update(
            {
                "junction.outcome": outcome.value,
                "http.route": route,
                "error": type(error).__name__ if error is not None else None,
                "duration_ms": round(context.elapsed_ms, 3),
            }
        )
        self._log("dispatch", fields)
        context.close()

    # ------------------------------------------------------------------ handlers
    def on_handler_start(self, handler: "HandlerCallable", index: int) -> _ObservationContext | None:
        attributes = {
            "junction.handler": _handler_name(handler),
            "junction.handler.index": index,
        }
        return self._start(self.config.handler_span_name, kind=self._internal_span_kind, attributes=attributes)

    def on_handler_success(self, context: _ObservationContext | None, proceed: bool) -> None:
        if context is None:
            return
        if context.span is not None:
            context.span.set_attribute("junction.handler.proceed", proceed)
            status = self._status(self._status_ok)
            if status is not None:
                context.span.set_status(status)
        context.close()

    def on_handler_error(self, context: _ObservationContext | None, error: BaseException) -> None:
        if context is None:
            return
        if context.span is not None:
            if hasattr(context.span, "record_exception"):
                context.span.record_exception(error)
            status = self._status(self._status_error, description=str(error))
            if status is not None:
                context.span.set_status(status)
        context.close(error)


__all__ = ["Observability", "ObservabilityConfig"]
