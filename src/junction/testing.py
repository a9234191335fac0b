"""Testing helpers."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlencode

from .http import HttpMethod
from .requests import RequestContext
from .responses import Response
from .scope import RouterScope
from .serialization import json_encode


class TestClient:
    """Async test client that routes requests through a scope in-process."""

    __test__ = False

    def __init__(self, scope: RouterScope) -> None:
        self.scope = scope
        self.last_request: RequestContext | None = None

    async def request(
        self,
        method: HttpMethod | str,
        path: str | None,
        *,
        json: Any | None = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        parsed = HttpMethod.parse(method)
        payload = b""
        request_headers = dict(headers or {})
        if json is not None:
            payload = json_encode(json)
            request_headers.setdefault("content-type", "application/json")
        request = RequestContext(
            method=parsed.value,
            path=path,
            headers=request_headers,
            query_string=urlencode(query or {}, doseq=True),
            body=payload,
        )
        self.last_request = request
        await self.scope.route(parsed, request)
        return request.response or Response(status=204)

    async def get(
        self,
        path: str | None,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return await self.request(HttpMethod.GET, path, query=query, headers=headers)

    async def post(
        self,
        path: str | None,
        *,
        json: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return await self.request(HttpMethod.POST, path, json=json, headers=headers)

    async def put(
        self,
        path: str | None,
        *,
        json: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return await self.request(HttpMethod.PUT, path, json=json, headers=headers)

    async def delete(self, path: str | None, *, headers: Mapping[str, str] | None = None) -> Response:
        return await self.request(HttpMethod.DELETE, path, headers=headers)
