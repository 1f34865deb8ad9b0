"""HTTP routes.

Endpoints:
- GET    /health
- GET    /databases, POST /databases
- GET    /tables/{database}, POST /tables
- POST   /convert - phrase to SQL, executed against the table
- POST   /query - raw SQL
- GET    /data/{database}/{table}, POST /data/{database}/{table}
- PUT    /data/{database}/{table}/{row_id}, DELETE /data/{database}/{table}/{row_id}
- GET    /schema/{database}/{table}

Route functions are synchronous: FastAPI runs them in its threadpool and the registry serializes
access to each database.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from time import monotonic
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.api.schemas import (
    ConvertRequest,
    ConvertResponse,
    DatabaseCreate,
    QueryRequest,
    RowPayload,
    TableCreate,
)
from src.app import App
from src.db.introspect import describe_table, table_info
from src.db.query import execute, fetch_all
from src.sql.builder import (
    build_create_table,
    build_delete,
    build_insert,
    build_preview,
    build_update,
)
from src.sql.identifiers import validate_identifier
from src.translate.schema import ColumnDescriptor
from src.translate.translator import translate

logger = logging.getLogger(__name__)

router = APIRouter()


def get_app(request: Request) -> App:
    """Return the application container attached to the FastAPI instance."""

    return request.app.state.container


AppDep = Annotated[App, Depends(get_app)]


def _require_database(app: App, database: str) -> None:
    if not app.registry.exists(database):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Database not found")


def _require_columns(conn: sqlite3.Connection, table: str) -> list[ColumnDescriptor]:
    columns = describe_table(conn, table)
    if not columns:
        raise HTTPException(status.HTTP_404_NOT_FOUND, f"Table not found: {table}")
    return columns


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "OK", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/databases")
def list_databases(app: AppDep) -> dict[str, Any]:
    return {"databases": app.metadata.list_databases()}


@router.post("/databases")
def create_database(request: DatabaseCreate, app: AppDep) -> dict[str, Any]:
    """Create the database file, then record it; the file is removed if recording fails."""

    if app.metadata.has_database(request.name) or app.registry.exists(request.name):
        raise HTTPException(status.HTTP_409_CONFLICT, "Database already exists")

    app.registry.create(request.name)
    try:
        app.metadata.add_database(request.name, request.description)
    except sqlite3.Error as exc:
        app.registry.remove(request.name)
        logger.exception("metadata insert failed database=%s", request.name)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc)) from exc

    return {
        "message": "Database created successfully",
        "database": {"name": request.name, "description": request.description},
    }


@router.get("/tables/{database}")
def list_tables(database: str, app: AppDep) -> dict[str, Any]:
    _require_database(app, database)
    return {"tables": app.metadata.list_tables(database)}


@router.post("/tables")
def create_table(request: TableCreate, app: AppDep) -> dict[str, Any]:
    _require_database(app, request.database)
    if app.metadata.has_table(request.database, request.table_name):
        raise HTTPException(status.HTTP_409_CONFLICT, "Table already exists")

    definition = request.definition()
    built = build_create_table(definition)
    with app.registry.connect(request.database) as conn:
        try:
            execute(conn, built.sql, built.params)
        except sqlite3.Error as exc:
            raise HTTPException(
                status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to create table: {exc}"
            ) from exc

    try:
        if not app.metadata.has_database(request.database):
            app.metadata.add_database(request.database)
        app.metadata.add_table(request.database, definition)
    except sqlite3.Error as exc:
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to save column metadata: {exc}"
        ) from exc

    return {"message": "Table created successfully"}


@router.post("/convert", response_model=ConvertResponse)
def convert(request: ConvertRequest, app: AppDep) -> ConvertResponse:
    """Translate a phrase into SQL for one table and run it."""

    started = monotonic()
    validate_identifier(request.table, kind="table name")
    with app.registry.connect(request.database) as conn:
        columns = _require_columns(conn, request.table)
        result = translate(request.text, request.table, columns)
        try:
            rows = execute(conn, result.sql_text).rows or []
        except sqlite3.Error as exc:
            logger.info("convert failed rule=%s sql=%s error=%s", result.rule, result.sql_text, exc)
            raise HTTPException(
                status.HTTP_500_INTERNAL_SERVER_ERROR, f"SQL Error: {exc}"
            ) from exc

    latency_ms = int((monotonic() - started) * 1000)
    logger.info(
        "converted rule=%s aggregate=%s rows=%d latency_ms=%d",
        result.rule,
        result.is_aggregate,
        len(rows),
        latency_ms,
    )
    return ConvertResponse(
        original_text=request.text,
        sql_query=result.sql_text,
        results=rows,
        warning=result.warning,
    )


@router.post("/query")
def run_query(request: QueryRequest, app: AppDep) -> dict[str, Any]:
    with app.registry.connect(request.database) as conn:
        try:
            result = execute(conn, request.sql)
        except sqlite3.Error as exc:
            raise HTTPException(
                status.HTTP_500_INTERNAL_SERVER_ERROR, f"SQL Error: {exc}"
            ) from exc

    if result.rows is not None:
        return {
            "message": "Query executed successfully",
            "results": result.rows,
            "row_count": result.row_count,
        }
    return {"message": "Query executed successfully", "changes": result.changes}


@router.get("/data/{database}/{table}")
def get_rows(database: str, table: str, app: AppDep) -> dict[str, Any]:
    built = build_preview(table)
    with app.registry.connect(database) as conn:
        _require_columns(conn, table)
        try:
            rows = fetch_all(conn, built.sql, built.params)
        except sqlite3.Error as exc:
            raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc)) from exc
    return {"data": rows}


@router.post("/data/{database}/{table}")
def insert_row(database: str, table: str, payload: RowPayload, app: AppDep) -> dict[str, Any]:
    with app.registry.connect(database) as conn:
        columns = _require_columns(conn, table)
        built = build_insert(table, payload.data, allowed_columns=[c.name for c in columns])
        try:
            result = execute(conn, built.sql, built.params)
        except sqlite3.Error as exc:
            raise HTTPException(
                status.HTTP_500_INTERNAL_SERVER_ERROR, f"Insert failed: {exc}"
            ) from exc

    return {
        "message": "Data inserted successfully",
        "id": result.last_row_id,
        "changes": result.changes,
    }


@router.put("/data/{database}/{table}/{row_id}")
def update_row(
        database: str,
        table: str,
        row_id: int,
        payload: RowPayload,
        app: AppDep,
) -> dict[str, Any]:
    with app.registry.connect(database) as conn:
        columns = _require_columns(conn, table)
        built = build_update(
            table, payload.data, row_id, allowed_columns=[c.name for c in columns]
        )
        try:
            result = execute(conn, built.sql, built.params)
        except sqlite3.Error as exc:
            raise HTTPException(
                status.HTTP_500_INTERNAL_SERVER_ERROR, f"Update failed: {exc}"
            ) from exc

    return {"message": "Data updated successfully", "changes": result.changes}


@router.delete("/data/{database}/{table}/{row_id}")
def delete_row(database: str, table: str, row_id: int, app: AppDep) -> dict[str, Any]:
    built = build_delete(table, row_id)
    with app.registry.connect(database) as conn:
        _require_columns(conn, table)
        try:
            result = execute(conn, built.sql, built.params)
        except sqlite3.Error as exc:
            raise HTTPException(
                status.HTTP_500_INTERNAL_SERVER_ERROR, f"Delete failed: {exc}"
            ) from exc

    return {"message": "Data deleted successfully", "changes": result.changes}


@router.get("/schema/{database}/{table}")
def get_schema(database: str, table: str, app: AppDep) -> dict[str, Any]:
    with app.registry.connect(database) as conn:
        rows = table_info(conn, table)
    if not rows:
        raise HTTPException(status.HTTP_404_NOT_FOUND, f"Table not found: {table}")
    return {"schema": rows}
