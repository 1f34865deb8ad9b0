"""Application composition root.

This module wires together configuration, the database registry and the metadata store for the API
runtime.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.config.settings import Settings
from src.db.metadata import MetadataStore
from src.db.registry import DatabaseRegistry


@dataclass(frozen=True)
class App:
    """Shared application dependencies for route handlers."""

    settings: Settings
    registry: DatabaseRegistry
    metadata: MetadataStore

    def open(self) -> None:
        self.registry.ensure_dir()
        self.metadata.open()

    def close(self) -> None:
        self.registry.close_all()
        self.metadata.close()


def create_app(settings: Settings) -> App:
    """Create the application container.

    Note:
        The returned metadata store is not opened. Call `app.open()` at startup.
    """

    return App(
        settings=settings,
        registry=DatabaseRegistry(settings.databases_dir),
        metadata=MetadataStore(settings.metadata_db_path),
    )
