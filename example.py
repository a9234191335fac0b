"""Minimal Junction routing example.

Run ``python example.py`` to register a small user API in the ``users`` scope
and route a few in-process requests through it. Requests to ``/users`` must
carry an ``x-api-key`` header matching ``JUNCTION_API_KEY`` (default
``secret``); ``/users/:id`` is registered before the key check is installed and
therefore stays public.
"""

from __future__ import annotations

import asyncio
import os

from junction import HttpMethod, JSONResponse, PlainTextResponse, RequestContext, RouterScope, RouteTable, Status, TestClient

_USERS = {"1": {"id": "1", "name": "Ada"}, "2": {"id": "2", "name": "Grace"}}


def _require_api_key(expected: str):
    def require_api_key(request: RequestContext) -> bool:
        if request.header("x-api-key") == expected:
            return True
        return request.respond(PlainTextResponse("unauthorized", status=int(Status.UNAUTHORIZED)))

    return require_api_key


def list_users(request: RequestContext) -> bool:
    return request.respond(JSONResponse(sorted(_USERS.values(), key=lambda user: user["id"])))


def show_user(request: RequestContext) -> bool:
    user = _USERS.get(request.param("id") or "")
    if user is None:
        return request.respond(PlainTextResponse("no such user", status=404))
    return request.respond(JSONResponse(user))


def not_found(request: RequestContext) -> None:
    request.respond(PlainTextResponse("Endpoint not found!", status=404))


def build_scope(table: RouteTable | None = None, *, api_key: str | None = None) -> RouterScope:
    users = RouterScope("users", table if table is not None else RouteTable(), on_not_found=not_found)
    users.register(HttpMethod.GET, "/users/:id", show_user)
    users.use(_require_api_key(api_key or os.getenv("JUNCTION_API_KEY", "secret")))
    users.register(HttpMethod.GET, "/users", list_users)
    return users


async def main() -> None:
    client = TestClient(build_scope())
    for path, headers in (
        ("/users", {}),
        ("/users", {"x-api-key": os.getenv("JUNCTION_API_KEY", "secret")}),
        ("/users/2", {}),
        ("/nowhere", {}),
    ):
        response = await client.get(path, headers=headers)
        print(f"GET {path} -> {response.status} {response.body.decode()}")


if __name__ == "__main__":
    asyncio.run(main())
