from __future__ import annotations

import pytest

from example import build_scope, main
from junction import HttpMethod, RouteTable, TestClient
from junction.serialization import json_decode


@pytest.mark.asyncio
async def test_example_protects_listing_but_not_detail() -> None:
    scope = build_scope(api_key="k")
    client = TestClient(scope)

    assert (await client.get("/users")).status == 401
    listing = await client.get("/users", headers={"x-api-key": "k"})
    assert [user["name"] for user in json_decode(listing.body)] == ["Ada", "Grace"]
    assert json_decode((await client.get("/users/1")).body) == {"id": "1", "name": "Ada"}
    assert (await client.get("/users/9")).body == b"no such user"
    assert (await client.get("/missing")).body == b"Endpoint not found!"
    assert len(scope.table.find("users", HttpMethod.GET, "/users/1").chain) == 1


@pytest.mark.asyncio
async def test_example_main_prints_responses(capsys: pytest.CaptureFixture[str]) -> None:
    await main()
    output = capsys.readouterr().out
    assert "GET /users -> 401 unauthorized" in output
    assert "GET /nowhere -> 404 Endpoint not found!" in output


@pytest.mark.asyncio
async def test_example_registers_into_the_given_table() -> None:
    table = RouteTable()

    scope = build_scope(table, api_key="k")

    assert scope.table is table
    assert [entry.path for entry in table] == ["/users/:id", "/users"]
    assert (await TestClient(scope).get("/users/2")).status == 200
