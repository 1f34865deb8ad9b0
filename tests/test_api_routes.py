"""End-to-end tests for the HTTP API (in-process ASGI client, temporary databases)."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

USERS_TABLE = {
    "database": "shop",
    "table_name": "users",
    "description": "Registered users",
    "columns": [
        {"column_name": "id", "data_type": "INTEGER", "is_primary_key": True},
        {"column_name": "name", "data_type": "TEXT", "is_nullable": False},
        {"column_name": "age", "data_type": "INTEGER"},
    ],
}


async def _seed(client: AsyncClient) -> None:
    resp = await client.post("/databases", json={"name": "shop", "description": "Demo"})
    assert resp.status_code == 200, resp.text
    resp = await client.post("/tables", json=USERS_TABLE)
    assert resp.status_code == 200, resp.text
    for name, age in (("alice", 30), ("bob", 25)):
        resp = await client.post("/data/shop/users", json={"data": {"name": name, "age": age}})
        assert resp.status_code == 200, resp.text


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "OK"


@pytest.mark.asyncio
async def test_create_and_list_databases(client: AsyncClient) -> None:
    resp = await client.post("/databases", json={"name": "shop", "description": "Demo"})
    assert resp.status_code == 200
    assert resp.json()["database"] == {"name": "shop", "description": "Demo"}

    resp = await client.get("/databases")
    databases = resp.json()["databases"]
    assert [(d["name"], d["table_count"]) for d in databases] == [("shop", 0)]

    dup = await client.post("/databases", json={"name": "shop"})
    assert dup.status_code == 409
    assert dup.json() == {"error": "Database already exists"}

    bad = await client.post("/databases", json={"name": "../escape"})
    assert bad.status_code == 400
    assert bad.json()["error"].startswith("Invalid request")


@pytest.mark.asyncio
async def test_tables_and_rows(client: AsyncClient) -> None:
    await _seed(client)

    tables = (await client.get("/tables/shop")).json()["tables"]
    assert [(t["table_name"], t["column_count"]) for t in tables] == [("users", 3)]

    again = await client.post("/tables", json=USERS_TABLE)
    assert again.status_code == 409

    rows = (await client.get("/data/shop/users")).json()["data"]
    assert [(r["name"], r["age"]) for r in rows] == [("alice", 30), ("bob", 25)]

    bad = await client.post("/data/shop/users", json={"data": {"nickname": "x"}})
    assert bad.status_code == 400
    assert bad.json() == {"error": "Invalid columns: nickname"}


@pytest.mark.asyncio
async def test_unknown_database_and_table(client: AsyncClient) -> None:
    assert (await client.get("/tables/nowhere")).status_code == 404

    resp = await client.post("/convert", json={"text": "show all", "database": "nowhere", "table": "t"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Database not found"}

    await _seed(client)
    resp = await client.post("/convert", json={"text": "show all", "database": "shop", "table": "ghosts"})
    assert resp.status_code == 404
    assert (await client.get("/data/shop/ghosts")).status_code == 404
    assert (await client.get("/schema/shop/ghosts")).status_code == 404


@pytest.mark.asyncio
async def test_convert_filters_and_aggregates(client: AsyncClient) -> None:
    await _seed(client)

    resp = await client.post(
        "/convert",
        json={"text": "users where age greater than 25", "database": "shop", "table": "users"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["original_text"] == "users where age greater than 25"
    assert body["sql_query"] == "SELECT * FROM users WHERE age > 25 LIMIT 100"
    assert [r["name"] for r in body["results"]] == ["alice"]
    assert body["warning"] is None

    resp = await client.post("/convert", json={"text": "average age", "database": "shop", "table": "users"})
    assert resp.json()["results"] == [{"average_age": 27.5}]


@pytest.mark.asyncio
async def test_convert_unknown_phrase_returns_sample_with_warning(client: AsyncClient) -> None:
    await _seed(client)

    resp = await client.post("/convert", json={"text": "hello there", "database": "shop", "table": "users"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["sql_query"] == "SELECT * FROM users LIMIT 100"
    assert body["warning"] == "Could not understand query, showing sample data"
    assert len(body["results"]) == 2


@pytest.mark.asyncio
async def test_raw_query(client: AsyncClient) -> None:
    await _seed(client)

    resp = await client.post("/query", json={"database": "shop", "sql": "SELECT name FROM users"})
    assert resp.json()["row_count"] == 2

    resp = await client.post("/query", json={"database": "shop", "sql": "UPDATE users SET age = age + 1"})
    assert resp.json()["changes"] == 2

    resp = await client.post("/query", json={"database": "shop", "sql": "SELECT * FROM nope"})
    assert resp.status_code == 500
    assert resp.json()["error"].startswith("SQL Error:")


@pytest.mark.asyncio
async def test_update_delete_and_schema(client: AsyncClient) -> None:
    await _seed(client)

    resp = await client.put("/data/shop/users/1", json={"data": {"age": 31}})
    assert resp.json()["changes"] == 1

    resp = await client.delete("/data/shop/users/2")
    assert resp.json()["changes"] == 1

    rows = (await client.get("/data/shop/users")).json()["data"]
    assert [(r["name"], r["age"]) for r in rows] == [("alice", 31)]

    schema = (await client.get("/schema/shop/users")).json()["schema"]
    assert [c["name"] for c in schema] == ["id", "name", "age"]


@pytest.mark.asyncio
async def test_unknown_endpoint_and_missing_fields(client: AsyncClient) -> None:
    resp = await client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Endpoint not found"}

    resp = await client.post("/convert", json={"text": "show all"})
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Invalid request")


@pytest.mark.asyncio
async def test_keyword_table_name_is_a_bad_request(client: AsyncClient) -> None:
    await client.post("/databases", json={"name": "shop"})

    resp = await client.post(
        "/tables",
        json={
            "database": "shop",
            "table_name": "orders",
            "columns": [{"column_name": "group", "data_type": "TEXT"}],
        },
    )
    assert resp.status_code == 400
    assert "reserved SQL keyword" in resp.json()["error"]


@pytest.mark.asyncio
async def test_convert_ignores_sentence_final_period(client: AsyncClient) -> None:
    await _seed(client)

    resp = await client.post(
        "/convert",
        json={"text": "users where age above 26.", "database": "shop", "table": "users"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["sql_query"] == "SELECT * FROM users WHERE age > 26 LIMIT 100"
    assert [r["name"] for r in body["results"]] == ["alice"]
