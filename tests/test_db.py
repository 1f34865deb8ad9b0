"""Tests for the SQLite layer: registry, migrations, metadata store, introspection, execution."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from pathlib import Path

import pytest

from src.db.connection import connect_sqlite
from src.db.introspect import describe_table, table_info
from src.db.metadata import MetadataError, MetadataStore
from src.db.migrate import MIGRATIONS_DIR, apply_migrations, migrate
from src.db.query import execute, is_select
from src.db.registry import DatabaseExistsError, DatabaseNotFoundError, DatabaseRegistry
from src.sql.identifiers import InvalidIdentifierError
from src.sql.schema import ColumnDefinition, TableDefinition
from src.translate.schema import ColumnDescriptor


@pytest.fixture
def registry(tmp_path: Path) -> Iterator[DatabaseRegistry]:
    reg = DatabaseRegistry(tmp_path / "databases")
    yield reg
    reg.close_all()


def test_registry_create_and_list(registry: DatabaseRegistry) -> None:
    assert registry.list_names() == []

    path = registry.create("shop")
    registry.create("archive")

    assert path.is_file()
    assert registry.exists("shop")
    assert registry.list_names() == ["archive", "shop"]


def test_registry_rejects_duplicates_and_bad_names(registry: DatabaseRegistry) -> None:
    registry.create("shop")
    with pytest.raises(DatabaseExistsError):
        registry.create("shop")
    with pytest.raises(InvalidIdentifierError):
        registry.path_for("../etc/passwd")


def test_registry_connect_requires_existing_file(registry: DatabaseRegistry) -> None:
    with pytest.raises(DatabaseNotFoundError):
        with registry.connect("missing"):
            pass


def test_registry_reuses_connection(registry: DatabaseRegistry) -> None:
    registry.create("shop")
    with registry.connect("shop") as first:
        pass
    with registry.connect("shop") as second:
        pass
    assert first is second


def test_registry_remove(registry: DatabaseRegistry) -> None:
    path = registry.create("shop")
    registry.remove("shop")
    assert not path.exists()


def test_migrations_are_applied_once(tmp_path: Path) -> None:
    conn = connect_sqlite(tmp_path / "meta.db")
    try:
        expected = sorted(p.name for p in MIGRATIONS_DIR.glob("*.sql"))
        assert apply_migrations(conn) == expected
        assert apply_migrations(conn) == []
    finally:
        conn.close()


def test_migrate_recreate(tmp_path: Path) -> None:
    path = tmp_path / "meta.db"
    assert migrate(path, recreate=False)
    assert migrate(path, recreate=False) == []
    assert migrate(path, recreate=True)


def test_metadata_store_requires_open(tmp_path: Path) -> None:
    store = MetadataStore(tmp_path / "meta.db")
    with pytest.raises(MetadataError):
        store.list_databases()


def test_metadata_store_records_databases_and_tables(tmp_path: Path) -> None:
    store = MetadataStore(tmp_path / "meta.db")
    store.open()
    store.open()
    try:
        store.add_database("shop", "Online shop")
        assert store.has_database("shop")
        assert not store.has_database("other")

        with pytest.raises(sqlite3.IntegrityError):
            store.add_database("shop")

        definition = TableDefinition(
            table_name="items",
            description="Things we sell",
            columns=[
                ColumnDefinition(column_name="id", data_type="INTEGER", is_primary_key=True),
                ColumnDefinition(column_name="price", data_type="REAL"),
            ],
        )
        store.add_table("shop", definition)

        databases = store.list_databases()
        assert [(d["name"], d["description"], d["table_count"]) for d in databases] == [
            ("shop", "Online shop", 1)
        ]

        tables = store.list_tables("shop")
        assert len(tables) == 1
        assert tables[0]["table_name"] == "items"
        assert tables[0]["column_count"] == 2
        assert store.has_table("shop", "items")
        assert store.list_tables("other") == []
    finally:
        store.close()


def test_introspection_and_execution(registry: DatabaseRegistry) -> None:
    registry.create("shop")
    with registry.connect("shop") as conn:
        created = execute(conn, "CREATE TABLE items (id INTEGER PRIMARY KEY, title TEXT, price REAL)")
        assert created.rows is None

        inserted = execute(conn, "INSERT INTO items (title, price) VALUES (?, ?)", ("lamp", 9.5))
        assert inserted.changes == 1
        assert inserted.last_row_id == 1

        selected = execute(conn, "  select title, price from items")
        assert selected.rows == [{"title": "lamp", "price": 9.5}]
        assert selected.row_count == 1

        assert describe_table(conn, "items") == [
            ColumnDescriptor(name="id", declared_type="INTEGER"),
            ColumnDescriptor(name="title", declared_type="TEXT"),
            ColumnDescriptor(name="price", declared_type="REAL"),
        ]
        info = table_info(conn, "items")
        assert [row["name"] for row in info] == ["id", "title", "price"]
        assert info[0]["pk"] == 1

        assert describe_table(conn, "missing") == []

        with pytest.raises(sqlite3.Error):
            execute(conn, "INSERT INTO missing VALUES (1)")


def test_is_select_is_a_prefix_check() -> None:
    assert is_select("SELECT 1")
    assert is_select("\n  select * from t")
    assert not is_select("WITH x AS (SELECT 1) SELECT * FROM x")
    assert not is_select("DELETE FROM t")


def test_registry_create_claims_the_file_once(registry: DatabaseRegistry) -> None:
    barrier = threading.Barrier(2)
    outcomes: list[str] = []

    def create() -> None:
        barrier.wait()
        try:
            registry.create("shop")
        except DatabaseExistsError:
            outcomes.append("exists")
        else:
            outcomes.append("created")

    threads = [threading.Thread(target=create) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["created", "exists"]
    with registry.connect("shop") as conn:
        assert execute(conn, "SELECT 1 AS one").rows == [{"one": 1}]


def _broken_migrations(tmp_path: Path) -> Path:
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "001_broken.sql").write_text(
        "CREATE TABLE half_done (id INTEGER);\nCREATE TABLE broken (;\n", encoding="utf-8"
    )
    return migrations


def test_failed_migration_is_rolled_back(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("src.db.migrate.MIGRATIONS_DIR", _broken_migrations(tmp_path))
    conn = connect_sqlite(tmp_path / "meta.db")
    try:
        with pytest.raises(sqlite3.Error):
            apply_migrations(conn)
        assert not conn.in_transaction
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
        assert "half_done" not in tables
        assert conn.execute("SELECT COUNT(*) FROM schema_migrations").fetchone()[0] == 0
    finally:
        conn.close()


def test_metadata_store_closes_connection_when_migrations_fail(
        tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("src.db.migrate.MIGRATIONS_DIR", _broken_migrations(tmp_path))
    opened: list[sqlite3.Connection] = []

    def tracking_connect(path: Path) -> sqlite3.Connection:
        conn = connect_sqlite(path)
        opened.append(conn)
        return conn

    monkeypatch.setattr("src.db.metadata.connect_sqlite", tracking_connect)
    store = MetadataStore(tmp_path / "meta.db")

    with pytest.raises(sqlite3.Error):
        store.open()

    assert len(opened) == 1
    with pytest.raises(sqlite3.ProgrammingError):
        opened[0].execute("SELECT 1")
    with pytest.raises(MetadataError):
        store.list_databases()
