"""Pytest configuration.

The repository uses a flat `src/` layout without an installed package. This conftest ensures tests
can import from the `src.*` namespace when running `pytest` locally, and provides an application
container backed by a temporary directory.
"""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio

# Ensure `import src...` works when running pytest without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.api.main import create_api  # noqa: E402
from src.app import App, create_app  # noqa: E402
from src.config.settings import Settings  # noqa: E402


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        databases_dir=tmp_path / "databases",
        metadata_db_path=tmp_path / "metadata.db",
    )


@pytest.fixture
def container(settings: Settings) -> Iterator[App]:
    """An opened application container; closed after the test."""

    app = create_app(settings)
    app.open()
    yield app
    app.close()


@pytest_asyncio.fixture
async def client(container: App) -> AsyncIterator[AsyncClient]:
    """HTTP client talking to the API in-process (no lifespan; the container is already open)."""

    api = create_api(container)
    async with AsyncClient(transport=ASGITransport(app=api), base_url="http://test") as ac:
        yield ac
