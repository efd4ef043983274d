"""Schema migrations for the stockroom database."""

from src.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    MigrationInfo,
    MigrationResult,
    Migrator,
    get_migration_status,
    initialize_database,
    run_migrations,
    verify_schema_integrity,
)

__all__ = [
    "Migrator",
    "MigrationInfo",
    "MigrationResult",
    "REQUIRED_TABLES",
    "initialize_database",
    "run_migrations",
    "get_migration_status",
    "verify_schema_integrity",
]
