"""
Versioned SQL migrations for the stockroom database.

Migration files are named ``v<NNN>_<name>.sql`` and applied in version
order. Each applied version is recorded in ``schema_migrations`` with a
checksum of the file; editing a file after it was applied is reported as a
failure instead of being silently skipped. The database file is copied
before migrating and restored if the run raises.
"""

import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
MIGRATION_FILE = re.compile(r"v(\d+)_(.+)\.sql")

REQUIRED_TABLES = [
    "schema_migrations",
    "inventory_items",
    "purchase_orders",
    "purchase_order_items",
    "replenishment_events",
    "reconciliation_tasks",
    "expenses",
    "marketplace_tokens",
]


@dataclass
class MigrationInfo:
    """One migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = MIGRATION_FILE.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=digest[:16])


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations() -> list[MigrationInfo]:
    """Migration files in ``MIGRATIONS_DIR``, oldest version first."""
    found = []
    for path in sorted(MIGRATIONS_DIR.glob("v*.sql")):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return found


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied version -> checksum. Empty before the first migration."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied) if applied else None


def create_backup(db_path: Path) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


class Migrator:
    """Applies pending migrations to one database file."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    async def run(self) -> list[MigrationResult]:
        """
        Apply every pending migration, stopping at the first failure.

        Returns one result per migration attempted; an up-to-date database
        returns an empty list.
        """
        migrations = discover_migrations()
        if not migrations:
            logger.warning("no_migrations_found", directory=str(MIGRATIONS_DIR))
            return []

        results: list[MigrationResult] = []
        async with aiosqlite.connect(self.db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            applied = await get_applied_migrations(conn)

            for migration in migrations:
                recorded = applied.get(migration.version)
                if recorded == migration.checksum:
                    continue
                if recorded is not None:
                    logger.error("migration_checksum_changed", version=migration.version)
                    results.append(
                        MigrationResult(
                            version=migration.version,
                            name=migration.name,
                            success=False,
                            execution_time_ms=0,
                            error="checksum differs from applied migration",
                        )
                    )
                    break

                result = await self._apply(conn, migration)
                results.append(result)
                if not result.success or not await self._verify(conn, migration):
                    break

        return results

    async def _apply(self, conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
        logger.info("applying_migration", version=migration.version, name=migration.name)
        started = time.perf_counter()

        def elapsed() -> int:
            return int((time.perf_counter() - started) * 1000)

        try:
            await conn.executescript(migration.path.read_text(encoding="utf-8"))
            await conn.execute(
                """
                INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms)
                VALUES (?, ?, ?, ?)
                """,
                (migration.version, migration.name, migration.checksum, elapsed()),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            logger.error("migration_failed", version=migration.version, error=str(e))
            return MigrationResult(migration.version, migration.name, False, elapsed(), str(e))

        logger.info("migration_applied", version=migration.version, execution_time_ms=elapsed())
        return MigrationResult(migration.version, migration.name, True, elapsed())

    @staticmethod
    async def _verify(conn: aiosqlite.Connection, migration: MigrationInfo) -> bool:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = await cursor.fetchall()
        if violations:
            logger.error(
                "post_migration_validation_failed",
                version=migration.version,
                foreign_key_violations=len(violations),
            )
        return not violations


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the database schema up to date.

    Args:
        db_path: Database file (default from settings)
        create_backup_before: Copy an existing database file first

    Returns:
        Results of the migrations that were attempted
    """
    db_path = Path(db_path or get_settings().storage.db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None
    try:
        results = await Migrator(db_path).run()
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path is not None:
            restore_backup(db_path, backup_path)
        raise

    if backup_path is not None and all(r.success for r in results):
        backup_path.unlink()
    return results


# Name used by the API lifespan and manage.py
run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    db_path = Path(db_path or get_settings().storage.db_path)
    discovered = discover_migrations()

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [m.version for m in discovered],
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    return {
        "exists": True,
        "current_version": max(applied) if applied else None,
        "applied_migrations": sorted(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Run consistency checks against a migrated database.

    Each check is a dict with ``check`` and ``status`` ("PASS" or "FAIL")
    plus check-specific counts.
    """
    db_path = Path(db_path or get_settings().storage.db_path)

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = len(await cursor.fetchall())

        cursor = await conn.execute("PRAGMA integrity_check")
        integrity = (await cursor.fetchone())[0]

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if t not in tables]

        # A negative quantity means something wrote around the ledger
        negative = 0
        if "inventory_items" in tables:
            cursor = await conn.execute("SELECT COUNT(*) FROM inventory_items WHERE quantity < 0")
            negative = (await cursor.fetchone())[0]

    def status(ok: bool) -> str:
        return "PASS" if ok else "FAIL"

    return [
        {"check": "foreign_keys", "status": status(fk_violations == 0), "violations": fk_violations},
        {"check": "integrity", "status": status(integrity == "ok"), "result": integrity},
        {"check": "required_tables", "status": status(not missing), "missing": missing},
        {"check": "non_negative_stock", "status": status(negative == 0), "items": negative},
    ]
