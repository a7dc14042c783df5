"""
Versioned schema migrations for the stock database.

Files named ``vNNN_<name>.sql`` beside this module are applied in version
order. Each file runs in one transaction together with its
``schema_migrations`` row, so a failed file leaves no partial schema behind.
A file that was already applied and whose checksum has since changed is
refused instead of being re-applied.
"""

import asyncio
import hashlib
import re
import time
from dataclasses import dataclass
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import DatabaseError

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
MIGRATION_FILE = re.compile(r"^v(\d{3})_(\w+)\.sql$")

LEDGER_TABLES = ("stock_items", "presentations", "open_boxes", "stock_movements")


@dataclass(frozen=True)
class Migration:
    """One schema migration file."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def load(cls, path: Path) -> "Migration":
        match = MIGRATION_FILE.match(path.name)
        if match is None:
            raise ValueError(f"not a migration file name: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=digest)

    def script(self) -> str:
        """The file wrapped in a transaction that also records it as applied."""
        body = self.path.read_text(encoding="utf-8")
        return (
            "BEGIN IMMEDIATE;\n"
            f"{body}\n"
            "INSERT INTO schema_migrations (version, name, checksum) "
            f"VALUES ('{self.version}', '{self.name}', '{self.checksum}');\n"
            "COMMIT;\n"
        )


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """Migration files of ``directory`` sorted by version; other .sql files are skipped."""
    migrations = []
    for path in sorted(directory.glob("*.sql")):
        try:
            migrations.append(Migration.load(path))
        except ValueError:
            logger.warning("migration_file_skipped", path=str(path))
    return sorted(migrations, key=lambda m: m.version)


async def applied_checksums(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied version -> checksum; empty before the first migration."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def apply_migration(conn: aiosqlite.Connection, migration: Migration) -> None:
    start = time.perf_counter()
    try:
        await conn.executescript(migration.script())
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        raise DatabaseError(f"migration v{migration.version}", str(e)) from e
    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )


async def initialize_database(
    db_path: Path | None = None,
    directory: Path = MIGRATIONS_DIR,
) -> list[Migration]:
    """
    Bring the database at ``db_path`` up to the latest schema.

    Returns:
        The migrations applied by this call, in order

    Raises:
        DatabaseError: a migration failed, or an applied file was edited
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)

    applied: list[Migration] = []
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")

        done = await applied_checksums(conn)
        for migration in discover_migrations(directory):
            recorded = done.get(migration.version)
            if recorded is None:
                await apply_migration(conn, migration)
                applied.append(migration)
            elif recorded != migration.checksum:
                raise DatabaseError(
                    f"migration v{migration.version}",
                    f"checksum changed since it was applied ({recorded} -> {migration.checksum})",
                )

    logger.info("database_ready", db_path=str(db_path), applied=[m.version for m in applied])
    return applied


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Check the stored file and audit the ledger against item balances.

    ``ledger_balances`` compares each item's balance with the balance_after
    of its latest movement. ``ledger_replay`` compares it with the sum of all
    of its movement deltas.
    """
    db_path = db_path or get_settings().storage.db_path
    checks: list[dict] = []

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        result = (await cursor.fetchone())[0]
        checks.append({"check": "integrity", "status": _status(result == "ok"), "result": result})

        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = len(await cursor.fetchall())
        checks.append({
            "check": "foreign_keys",
            "status": _status(violations == 0),
            "violations": violations,
        })

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in LEDGER_TABLES if t not in tables]
        checks.append({"check": "required_tables", "status": _status(not missing), "missing": missing})
        if missing:
            return checks

        cursor = await conn.execute(
            """
            SELECT COUNT(*) FROM stock_items i
            WHERE i.total_units_available != COALESCE((
                SELECT m.balance_after FROM stock_movements m
                WHERE m.stock_item_id = i.id
                ORDER BY m.id DESC LIMIT 1
            ), 0)
            """
        )
        drift = (await cursor.fetchone())[0]
        checks.append({
            "check": "ledger_balances",
            "status": _status(drift == 0),
            "mismatched_items": drift,
        })

        cursor = await conn.execute(
            """
            SELECT COUNT(*) FROM stock_items i
            WHERE i.total_units_available != COALESCE((
                SELECT SUM(m.quantity_delta) FROM stock_movements m
                WHERE m.stock_item_id = i.id
            ), 0)
            """
        )
        unreplayable = (await cursor.fetchone())[0]
        checks.append({
            "check": "ledger_replay",
            "status": _status(unreplayable == 0),
            "mismatched_items": unreplayable,
        })

    return checks


def _status(ok: bool) -> str:
    return "PASS" if ok else "FAIL"


def main() -> None:
    """``stockledger-migrate``: apply pending migrations, or audit with --verify."""
    import argparse

    parser = argparse.ArgumentParser(description="Stock ledger database migrations")
    parser.add_argument("--db-path", type=Path, help="Database file (default from settings)")
    parser.add_argument("--verify", action="store_true", help="Audit schema and ledger balances")
    args = parser.parse_args()

    async def run() -> int:
        if not args.verify:
            applied = await initialize_database(args.db_path)
            print(f"applied: {', '.join('v' + m.version for m in applied) or 'nothing'}")
            return 0
        failed = 0
        for check in await verify_schema_integrity(args.db_path):
            extra = {k: v for k, v in check.items() if k not in ("check", "status")}
            print(f"[{check['status']}] {check['check']} {extra}")
            failed += check["status"] != "PASS"
        return 1 if failed else 0

    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
