"""Database migrations."""

from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
    Migration,
    discover_migrations,
    initialize_database,
    verify_schema_integrity,
)

__all__ = [
    "Migration",
    "discover_migrations",
    "initialize_database",
    "verify_schema_integrity",
]
