from __future__ import annotations

import asyncio
import json
import logging

import pytest

from junction import (
    HttpMethod,
    Observability,
    ObservabilityConfig,
    PlainTextResponse,
    RequestContext,
    RouterConfig,
    RouterScope,
    RouteTable,
    TestClient,
)
from junction.dispatch import DispatchOutcome
from tests.observability_stubs import setup_stub_opentelemetry, setup_stub_sentry


def _scope(observability: Observability) -> RouterScope:
    return RouterScope(
        "api",
        RouteTable(),
        config=RouterConfig(observability=observability.config),
        observability=observability,
    )


@pytest.mark.asyncio
async def test_dispatch_and_handler_spans(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = setup_stub_opentelemetry(monkeypatch)
    hub = setup_stub_sentry(monkeypatch)
    observability = Observability(ObservabilityConfig())
    api = _scope(observability)

    def guard(request: RequestContext) -> bool:
        return True

    def show(request: RequestContext) -> bool:
        return request.respond(PlainTextResponse("ok"))

    api.register(HttpMethod.GET, "/users/:id", guard, show)
    await TestClient(api).get("/users/1")

    (dispatch_span,) = tracer.named(observability.config.dispatch_span_name)
    assert dispatch_span.attributes["junction.scope"] == "api"
    assert dispatch_span.attributes["http.method"] == "GET"
    assert dispatch_span.attributes["http.route"] == "/users/:id"
    assert dispatch_span.attributes["junction.outcome"] == DispatchOutcome.HALTED.value
    assert dispatch_span.status.status_code == "ok"
    assert dispatch_span.ended

    handler_spans = tracer.named(observability.config.handler_span_name)
    assert [span.attributes["junction.handler.index"] for span in handler_spans] == [0, 1]
    assert [span.attributes["junction.handler.proceed"] for span in handler_spans] == [True, False]
    assert handler_spans[0].attributes["junction.handler"].endswith("guard")
    assert hub.captured == []


@pytest.mark.asyncio
async def test_handler_failure_is_recorded_and_captured(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = setup_stub_opentelemetry(monkeypatch)
    hub = setup_stub_sentry(monkeypatch)
    observability = Observability(ObservabilityConfig())
    api = _scope(observability)
    error = RuntimeError("broken")

    @api.get("/fail")
    def fail(request: RequestContext) -> bool:
        raise error

    response = await TestClient(api).get("/fail")

    assert response.status == 500
    (handler_span,) = tracer.named(observability.config.handler_span_name)
    assert handler_span.exceptions == [error]
    assert handler_span.exit_exception is error
    assert handler_span.status.status_code == "error"
    (dispatch_span,) = tracer.named(observability.config.dispatch_span_name)
    assert dispatch_span.attributes["junction.outcome"] == "failed"
    assert dispatch_span.status.description == "broken"
    assert hub.captured == [error]


@pytest.mark.asyncio
async def test_not_found_is_logged_as_structured_json(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    setup_stub_opentelemetry(monkeypatch)
    observability = Observability(ObservabilityConfig(sentry_enabled=False))
    api = _scope(observability)

    with caplog.at_level(logging.INFO, logger="junction.observability"):
        await TestClient(api).get("/missing")

    payloads = [json.loads(record.getMessage()) for record in caplog.records if record.name == "junction.observability"]
    assert len(payloads) == 1
    assert payloads[0]["event"] == "dispatch"
    assert payloads[0]["junction.outcome"] == "not_found"
    assert payloads[0]["http.target"] == "/missing"
    assert "http.route" not in payloads[0]
    assert payloads[0]["duration_ms"] >= 0


@pytest.mark.asyncio
async def test_disabled_observability_records_nothing(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    tracer = setup_stub_opentelemetry(monkeypatch)
    hub = setup_stub_sentry(monkeypatch)
    observability = Observability(ObservabilityConfig(enabled=False))
    api = _scope(observability)

    @api.get("/fail")
    def fail(request: RequestContext) -> bool:
        raise RuntimeError("quiet")

    with caplog.at_level(logging.INFO, logger="junction.observability"):
        await TestClient(api).get("/fail")

    assert observability.enabled is False
    assert tracer.spans == []
    assert not [record for record in caplog.records if record.name == "junction.observability"]
    assert hub.captured == []


def test_log_dispatch_can_be_turned_off(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    setup_stub_opentelemetry(monkeypatch)
    observability = Observability(ObservabilityConfig(log_dispatch=False, sentry_enabled=False))

    with caplog.at_level(logging.INFO, logger="junction.observability"):
        context = observability.on_dispatch_start("api", "GET", "/x")
        observability.on_dispatch_finish(context, DispatchOutcome.COMPLETED, route="/x")

    assert context is not None
    assert not [record for record in caplog.records if record.name == "junction.observability"]


@pytest.mark.asyncio
async def test_cancelled_handler_still_ends_its_span(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = setup_stub_opentelemetry(monkeypatch)
    setup_stub_sentry(monkeypatch)
    observability = Observability(ObservabilityConfig())
    api = _scope(observability)

    @api.get("/slow")
    async def slow(request: RequestContext) -> bool:
        raise asyncio.CancelledError

    with pytest.raises(asyncio.CancelledError):
        await TestClient(api).get("/slow")

    (handler_span,) = tracer.named(observability.config.handler_span_name)
    assert handler_span.ended
    assert isinstance(handler_span.exit_exception, asyncio.CancelledError)
    assert handler_span.status.status_code == "error"
    (dispatch_span,) = tracer.named(observability.config.dispatch_span_name)
    assert dispatch_span.ended
    assert dispatch_span.attributes["junction.outcome"] == "failed"


@pytest.mark.asyncio
async def test_resolution_failure_ends_dispatch_span(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = setup_stub_opentelemetry(monkeypatch)
    observability = Observability(ObservabilityConfig(sentry_enabled=False))
    api = _scope(observability)
    error = RuntimeError("table unavailable")

    def broken_resolve(scope: str, method: object, path: str) -> None:
        raise error

    monkeypatch.setattr(api.table, "resolve", broken_resolve)

    with pytest.raises(RuntimeError):
        await TestClient(api).get("/anything")

    (dispatch_span,) = tracer.named(observability.config.dispatch_span_name)
    assert dispatch_span.ended
    assert dispatch_span.exceptions == [error]
    assert dispatch_span.attributes["junction.outcome"] == "failed"
