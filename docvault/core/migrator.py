"""Database migration runner with tracking in ``schema_migrations``.

- Fresh install (no ``repositories`` table): create every table from the
  models and record all migration files as applied.
- Existing install: run the migration files not yet recorded, in version
  order, and record each one.

Migration files live in ``migrations/`` at the project root and are named
``NNN_description.sql``. A first line of ``-- dialect: postgresql`` (or
``sqlite``) restricts a file to that database.

Usage:
    try:
        result = run_migrations(engine, Base)
    except MigrationError as e:
        logger.critical(f"Migration failed: {e}")
        raise SystemExit(1)
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy import Engine, text, inspect
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

_MIGRATION_PATTERN = re.compile(r"^(\d{3})_(.+)\.sql$")
_DIALECT_PATTERN = re.compile(r"^--\s*dialect:\s*(sqlite|postgresql)\s*$")

# Present in every installed schema; its absence means a fresh database.
_SENTINEL_TABLE = "repositories"


class MigrationError(Exception):
    """Raised when a migration fails to apply."""
    pass


@dataclass
class Migration:
    version: str        # "001"
    name: str           # "pending_request_unique"
    file_path: Path
    dialect: Optional[str] = None  # None = any database

    def __lt__(self, other: "Migration") -> bool:
        return int(self.version) < int(other.version)


@dataclass
class MigrationResult:
    applied: int = 0
    skipped: int = 0
    baselined: int = 0


def _get_migrations_dir() -> Path:
    return Path(__file__).parent.parent.parent / "migrations"


def discover_migrations(migrations_dir: Optional[Path] = None) -> list[Migration]:
    """Parse ``NNN_name.sql`` files in *migrations_dir*, sorted by version."""
    migrations_dir = migrations_dir or _get_migrations_dir()
    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return []

    migrations = []
    for file_path in sorted(migrations_dir.glob("*.sql")):
        match = _MIGRATION_PATTERN.match(file_path.name)
        if not match:
            logger.debug(f"Skipping non-migration file: {file_path.name}")
            continue
        first_line = file_path.read_text().split("\n", 1)[0]
        dialect_match = _DIALECT_PATTERN.match(first_line)
        migrations.append(Migration(
            version=match.group(1),
            name=match.group(2),
            file_path=file_path,
            dialect=dialect_match.group(1) if dialect_match else None,
        ))
    return sorted(migrations)


def _table_names(engine: Engine) -> set[str]:
    return set(inspect(engine).get_table_names())


def _ensure_migrations_table(engine: Engine) -> None:
    if "schema_migrations" in _table_names(engine):
        return
    logger.info("Creating schema_migrations table")
    with engine.connect() as conn:
        conn.execute(text("""
            CREATE TABLE schema_migrations (
                version VARCHAR(10) PRIMARY KEY,
                name VARCHAR(255) NOT NULL,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """))
        conn.commit()


def applied_versions(engine: Engine) -> set[str]:
    if "schema_migrations" not in _table_names(engine):
        return set()
    with engine.connect() as conn:
        return {row[0] for row in conn.execute(text("SELECT version FROM schema_migrations"))}


def _record_migration(engine: Engine, migration: Migration) -> None:
    with engine.connect() as conn:
        conn.execute(
            text("INSERT INTO schema_migrations (version, name) VALUES (:version, :name)"),
            {"version": migration.version, "name": migration.name},
        )
        conn.commit()


def _apply_migration(engine: Engine, migration: Migration) -> None:
    sql_content = migration.file_path.read_text()
    with engine.connect() as conn:
        try:
            for statement in (s.strip() for s in sql_content.split(";")):
                if statement and not all(line.startswith("--") for line in statement.splitlines()):
                    conn.execute(text(statement))
            conn.commit()
        except SQLAlchemyError as e:
            raise MigrationError(f"Failed to apply {migration.version}_{migration.name}: {e}") from e
    _record_migration(engine, migration)


def run_migrations(engine: Engine, base: type, migrations_dir: Optional[Path] = None) -> MigrationResult:
    """Bring the schema up to date. Idempotent.

    Raises:
        MigrationError: a migration file failed to apply.
    """
    logger.info("Starting migration check")

    dialect = engine.dialect.name
    migrations = [
        m for m in discover_migrations(migrations_dir)
        if m.dialect is None or m.dialect == dialect
    ]

    if _SENTINEL_TABLE not in _table_names(engine):
        logger.info("Fresh install detected - creating tables from models")
        base.metadata.create_all(bind=engine)
        _ensure_migrations_table(engine)
        for migration in migrations:
            _record_migration(engine, migration)
        logger.info(f"Baselined {len(migrations)} migrations")
        return MigrationResult(baselined=len(migrations))

    _ensure_migrations_table(engine)
    done = applied_versions(engine)
    pending = [m for m in migrations if m.version not in done]
    if not pending:
        logger.info("No pending migrations")
        return MigrationResult(skipped=len(migrations))

    for migration in pending:
        logger.info(f"Applying migration {migration.version}: {migration.name}")
        _apply_migration(engine, migration)

    logger.info(f"Applied {len(pending)} migration(s) successfully")
    return MigrationResult(applied=len(pending), skipped=len(migrations) - len(pending))
