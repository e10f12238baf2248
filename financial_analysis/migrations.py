"""
Database Migration System

Versioned migrations that build the relational schema. SQLite executes the
DDL; the in-memory backend treats it as a no-op and enforces the same rules
from schema metadata.
"""

from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
import hashlib

from .logging_config import get_logger
from .schema import TABLES, INDEXES, SCHEMA_MIGRATIONS
from .storage import StorageInterface


logger = get_logger("financial_analysis.migrations")


class Migration:
    """Represents a single database migration"""

    def __init__(self, version: int, name: str, up_sql: str, down_sql: Optional[str] = None):
        self.version = version
        self.name = name
        self.up_sql = up_sql
        self.down_sql = down_sql
        self.applied_at: Optional[datetime] = None

    def __str__(self) -> str:
        return f"Migration v{self.version:03d}: {self.name}"

    def __repr__(self) -> str:
        return f"Migration(version={self.version}, name='{self.name}')"


class MigrationManager:
    """Manages database migrations"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.migrations: List[Migration] = []
        self._migration_table = SCHEMA_MIGRATIONS.name
        self._init_migrations()
        self._ensure_migration_table()

    def _init_migrations(self) -> None:
        """Initialize built-in migrations"""
        self.add_migration(
            1, "Create customers table",
            TABLES["customers"].create_sql(), TABLES["customers"].drop_sql()
        )
        self.add_migration(
            2, "Create accounts table",
            TABLES["accounts"].create_sql(), TABLES["accounts"].drop_sql()
        )
        self.add_migration(
            3, "Create transactions table",
            TABLES["transactions"].create_sql(), TABLES["transactions"].drop_sql()
        )
        self.add_migration(
            4, "Create expenses table",
            TABLES["expenses"].create_sql(), TABLES["expenses"].drop_sql()
        )
        self.add_migration(
            5, "Create lookup indexes",
            ";\n".join(index.create_sql() for index in INDEXES),
            ";\n".join(index.drop_sql() for index in INDEXES)
        )

    def _ensure_migration_table(self) -> None:
        """Ensure the migration tracking table exists"""
        self.storage.execute_ddl(SCHEMA_MIGRATIONS.create_sql())

    def add_migration(self, version: int, name: str, up_sql: str, down_sql: Optional[str] = None) -> None:
        """Add a migration to the manager"""
        if any(m.version == version for m in self.migrations):
            raise ValueError(f"Migration v{version:03d} already defined")
        migration = Migration(version, name, up_sql, down_sql)
        self.migrations.append(migration)
        # Keep migrations sorted by version
        self.migrations.sort(key=lambda m: m.version)

    def get_current_version(self) -> int:
        """Get the current database version"""
        applied_migrations = self.storage.load_all(self._migration_table)
        versions = [m["version"] for m in applied_migrations]
        return max(versions) if versions else 0

    def get_pending_migrations(self, target_version: Optional[int] = None) -> List[Migration]:
        """Get list of pending migrations"""
        current_version = self.get_current_version()
        max_version = target_version
        if max_version is None:
            max_version = max((m.version for m in self.migrations), default=0)

        return [
            migration for migration in self.migrations
            if current_version < migration.version <= max_version
        ]

    def get_applied_migrations(self) -> List[Dict[str, Any]]:
        """Get list of applied migrations"""
        return self.storage.load_all(self._migration_table)

    def migrate_up(self, target_version: Optional[int] = None) -> List[Migration]:
        """Apply pending migrations up to target version"""
        pending = self.get_pending_migrations(target_version)
        applied = []

        if not pending:
            logger.info("No pending migrations to apply")
            return applied

        logger.info(f"Applying {len(pending)} pending migrations")

        for migration in pending:
            try:
                logger.info(f"Applying {migration}")

                with self.storage.atomic():
                    self.storage.execute_ddl(migration.up_sql)
                    self.storage.insert(self._migration_table, {
                        "version": migration.version,
                        "name": migration.name,
                        "applied_at": datetime.now(timezone.utc).isoformat(),
                        "checksum": self._calculate_checksum(migration.up_sql)
                    })

                migration.applied_at = datetime.now(timezone.utc)
                applied.append(migration)

            except Exception as e:
                logger.error(f"Failed to apply {migration}: {e}")
                raise RuntimeError(f"Migration failed: {migration}") from e

        logger.info(f"Successfully applied {len(applied)} migrations")
        return applied

    def migrate_down(self, target_version: int) -> List[Migration]:
        """Rollback migrations down to target version"""
        current_version = self.get_current_version()

        if target_version >= current_version:
            logger.info("Target version is not lower than current version")
            return []

        rollback_migrations = [
            migration for migration in reversed(self.migrations)
            if target_version < migration.version <= current_version
        ]

        rolledback = []

        for migration in rollback_migrations:
            if not migration.down_sql:
                logger.warning(f"No rollback SQL for {migration}, skipping")
                continue

            try:
                logger.info(f"Rolling back {migration}")

                with self.storage.atomic():
                    self.storage.execute_ddl(migration.down_sql)
                    for record in self.storage.find(self._migration_table, {"version": migration.version}):
                        self.storage.delete(self._migration_table, record["id"])

                rolledback.append(migration)

            except Exception as e:
                logger.error(f"Failed to rollback {migration}: {e}")
                raise RuntimeError(f"Rollback failed: {migration}") from e

        logger.info(f"Successfully rolled back {len(rolledback)} migrations")
        return rolledback

    def _calculate_checksum(self, sql: str) -> str:
        """Calculate checksum for migration SQL"""
        return hashlib.md5(sql.encode()).hexdigest()

    def validate_migrations(self) -> bool:
        """Validate that applied migrations match expected checksums"""
        for applied_migration in self.get_applied_migrations():
            version = applied_migration["version"]

            migration = next((m for m in self.migrations if m.version == version), None)
            if not migration:
                logger.warning(f"Applied migration v{version} not found in definitions")
                continue

            expected_checksum = self._calculate_checksum(migration.up_sql)
            if applied_migration["checksum"] != expected_checksum:
                logger.error(
                    f"Checksum mismatch for v{version}: expected {expected_checksum}, "
                    f"got {applied_migration['checksum']}"
                )
                return False

        return True

    def get_migration_status(self) -> Dict[str, Any]:
        """Get detailed migration status"""
        current_version = self.get_current_version()
        pending = self.get_pending_migrations()
        applied = self.get_applied_migrations()

        return {
            "current_version": current_version,
            "latest_version": max((m.version for m in self.migrations), default=0),
            "pending_count": len(pending),
            "applied_count": len(applied),
            "pending_migrations": [
                {"version": m.version, "name": m.name} for m in pending
            ],
            "needs_migration": len(pending) > 0
        }
