"""
Tests for storage backends, relational constraints and migrations
"""

import pytest
import tempfile
from pathlib import Path

from financial_analysis.errors import IntegrityError
from financial_analysis.migrations import MigrationManager
from financial_analysis.storage import InMemoryStorage, SQLiteStorage, create_storage


NOW = "2024-01-15T10:00:00+00:00"


@pytest.fixture(params=["memory", "sqlite"])
def storage(request):
    """Each test runs against both backends with the schema applied"""
    if request.param == "memory":
        backend = InMemoryStorage()
    else:
        backend = SQLiteStorage(":memory:")
    MigrationManager(backend).migrate_up()
    yield backend
    backend.close()


def insert_customer(storage, email="john.doe@example.com"):
    return storage.insert("customers", {
        "first_name": "John",
        "last_name": "Doe",
        "email": email,
        "phone": "1234567890",
        "created_at": NOW
    })


def insert_account(storage, customer_id, balance="5000.00"):
    return storage.insert("accounts", {
        "customer_id": customer_id,
        "account_type": "Savings",
        "balance": balance,
        "created_at": NOW
    })


class TestBasicOperations:
    """CRUD behaviour shared by both backends"""

    def test_insert_assigns_sequential_ids(self, storage):
        """Surrogate ids start at 1 and increase"""
        first = insert_customer(storage)
        second = insert_customer(storage, email="jane.smith@example.com")

        assert first == 1
        assert second == 2

    def test_load_returns_row_with_id(self, storage):
        """Loaded rows carry every column including the id"""
        customer_id = insert_customer(storage)

        row = storage.load("customers", customer_id)
        assert row["id"] == customer_id
        assert row["first_name"] == "John"
        assert row["email"] == "john.doe@example.com"
        assert row["created_at"] == NOW

    def test_load_missing_returns_none(self, storage):
        assert storage.load("customers", 42) is None
        assert not storage.exists("customers", 42)

    def test_load_all_and_find(self, storage):
        """load_all and find return rows ordered by id"""
        insert_customer(storage)
        insert_customer(storage, email="jane.smith@example.com")

        rows = storage.load_all("customers")
        assert [r["id"] for r in rows] == [1, 2]

        found = storage.find("customers", {"email": "jane.smith@example.com"})
        assert len(found) == 1
        assert found[0]["id"] == 2

        assert storage.find("customers", {"email": "nobody@example.com"}) == []
        assert storage.count("customers") == 2

    def test_update(self, storage):
        customer_id = insert_customer(storage)
        account_id = insert_account(storage, customer_id)

        assert storage.update("accounts", account_id, {"balance": "800.00"})
        assert storage.load("accounts", account_id)["balance"] == "800.00"

        assert not storage.update("accounts", 999, {"balance": "1.00"})

    def test_default_balance(self, storage):
        """An account inserted without a balance gets 0.00"""
        customer_id = insert_customer(storage)
        account_id = storage.insert("accounts", {
            "customer_id": customer_id,
            "account_type": "Checking",
            "created_at": NOW
        })

        assert storage.load("accounts", account_id)["balance"] == "0.00"

    def test_unknown_table_and_column(self, storage):
        with pytest.raises(ValueError):
            storage.load_all("ledger")

        with pytest.raises(ValueError):
            storage.insert("customers", {"nickname": "JD"})

        with pytest.raises(ValueError):
            storage.find("customers", {"nickname": "JD"})


class TestConstraints:
    """NOT NULL, CHECK, UNIQUE and foreign key enforcement"""

    def test_duplicate_email_rejected(self, storage):
        insert_customer(storage)

        with pytest.raises(IntegrityError):
            insert_customer(storage)

        assert storage.count("customers") == 1

    def test_update_to_duplicate_email_rejected(self, storage):
        insert_customer(storage)
        second = insert_customer(storage, email="jane.smith@example.com")

        with pytest.raises(IntegrityError):
            storage.update("customers", second, {"email": "john.doe@example.com"})

    def test_missing_required_column_rejected(self, storage):
        with pytest.raises(IntegrityError):
            storage.insert("customers", {
                "last_name": "Doe",
                "email": "john.doe@example.com",
                "created_at": NOW
            })

    def test_invalid_account_type_rejected(self, storage):
        customer_id = insert_customer(storage)

        with pytest.raises(IntegrityError):
            storage.insert("accounts", {
                "customer_id": customer_id,
                "account_type": "Brokerage",
                "balance": "0.00",
                "created_at": NOW
            })

    def test_missing_parent_rejected(self, storage):
        """A child row must reference a live parent"""
        with pytest.raises(IntegrityError):
            insert_account(storage, customer_id=99)

        with pytest.raises(IntegrityError):
            storage.insert("transactions", {
                "account_id": 99,
                "transaction_type": "Deposit",
                "amount": "10.00",
                "transaction_date": NOW
            })

        assert storage.count("accounts") == 0
        assert storage.count("transactions") == 0


class TestCascadingDelete:
    """Deleting a parent removes every dependent row"""

    def _populate(self, storage):
        customer_id = insert_customer(storage)
        account_id = insert_account(storage, customer_id)
        storage.insert("transactions", {
            "account_id": account_id,
            "transaction_type": "Deposit",
            "amount": "2000.00",
            "transaction_date": NOW,
            "description": "Salary Payment"
        })
        storage.insert("expenses", {
            "customer_id": customer_id,
            "category": "Food",
            "amount": "200.00",
            "expense_date": "2024-01-15"
        })
        return customer_id, account_id

    def test_delete_customer_cascades(self, storage):
        customer_id, _ = self._populate(storage)
        other_id = insert_customer(storage, email="jane.smith@example.com")
        insert_account(storage, other_id, balance="2500.00")

        assert storage.delete("customers", customer_id)

        assert storage.count("customers") == 1
        assert storage.count("accounts") == 1
        assert storage.count("transactions") == 0
        assert storage.count("expenses") == 0

    def test_delete_account_cascades_to_transactions_only(self, storage):
        customer_id, account_id = self._populate(storage)

        assert storage.delete("accounts", account_id)

        assert storage.exists("customers", customer_id)
        assert storage.count("transactions") == 0
        assert storage.count("expenses") == 1

    def test_delete_missing_returns_false(self, storage):
        assert not storage.delete("customers", 123)

    def test_clear_table_cascades(self, storage):
        self._populate(storage)

        storage.clear_table("customers")

        assert storage.count("accounts") == 0
        assert storage.count("transactions") == 0


class TestAtomic:
    """Atomic units of work"""

    def test_commit(self, storage):
        with storage.atomic():
            insert_customer(storage)

        assert storage.count("customers") == 1
        assert not storage.in_transaction

    def test_rollback_on_error(self, storage):
        """An exception inside the unit discards every write made in it"""
        insert_customer(storage)

        with pytest.raises(RuntimeError):
            with storage.atomic():
                insert_customer(storage, email="jane.smith@example.com")
                storage.update("customers", 1, {"phone": "555"})
                raise RuntimeError("boom")

        assert storage.count("customers") == 1
        assert storage.load("customers", 1)["phone"] == "1234567890"
        assert not storage.in_transaction

    def test_nested_atomic_joins_outer_unit(self, storage):
        with pytest.raises(RuntimeError):
            with storage.atomic():
                insert_customer(storage)
                with storage.atomic():
                    insert_customer(storage, email="jane.smith@example.com")
                raise RuntimeError("outer failure")

        assert storage.count("customers") == 0

    def test_integrity_error_rolls_back_unit(self, storage):
        with pytest.raises(IntegrityError):
            with storage.atomic():
                insert_customer(storage)
                insert_account(storage, customer_id=77)

        assert storage.count("customers") == 0

    def test_interrupt_rolls_back_and_closes_unit(self, storage):
        """A KeyboardInterrupt inside a unit discards its writes and ends the unit"""
        with pytest.raises(KeyboardInterrupt):
            with storage.atomic():
                insert_customer(storage, email="a@example.com")
                raise KeyboardInterrupt

        assert not storage.in_transaction
        assert storage.count("customers") == 0

        with storage.atomic():
            insert_customer(storage, email="c@example.com")
        assert not storage.in_transaction

        with pytest.raises(RuntimeError):
            with storage.atomic():
                insert_customer(storage, email="d@example.com")
                raise RuntimeError("boom")

        emails = [row["email"] for row in storage.load_all("customers")]
        assert emails == ["c@example.com"]


class TestSQLitePersistence:
    """SQLite file databases"""

    def test_data_survives_reopen(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = Path(temp_dir) / "finance.db"

            storage = SQLiteStorage(db_path)
            MigrationManager(storage).migrate_up()
            insert_customer(storage)
            storage.close()

            reopened = SQLiteStorage(db_path)
            manager = MigrationManager(reopened)
            assert manager.get_current_version() == 5
            assert reopened.load("customers", 1)["last_name"] == "Doe"
            reopened.close()

    def test_indexes_created(self):
        storage = SQLiteStorage(":memory:")
        MigrationManager(storage).migrate_up()

        cursor = storage._connection.execute(
            "SELECT name FROM sqlite_master WHERE type = 'index'"
        )
        names = {row["name"] for row in cursor.fetchall()}
        assert "idx_customer_email" in names
        assert "idx_transaction_account" in names
        storage.close()


class TestCreateStorage:

    def test_memory_url(self):
        assert isinstance(create_storage("memory://"), InMemoryStorage)

    def test_sqlite_url(self):
        storage = create_storage("sqlite:///:memory:")
        assert isinstance(storage, SQLiteStorage)
        assert storage.db_path == ":memory:"
        storage.close()

    def test_unsupported_url(self):
        with pytest.raises(ValueError):
            create_storage("postgresql://localhost/finance")


class TestMigrations:
    """Versioned schema migrations"""

    def test_migrate_up_applies_all(self, storage):
        manager = MigrationManager(storage)

        assert manager.get_current_version() == 5
        assert manager.get_pending_migrations() == []
        assert manager.migrate_up() == []

    def test_status_and_validation(self, storage):
        manager = MigrationManager(storage)

        status = manager.get_migration_status()
        assert status["current_version"] == 5
        assert status["latest_version"] == 5
        assert status["applied_count"] == 5
        assert status["needs_migration"] is False
        assert manager.validate_migrations()

    def test_checksum_mismatch_detected(self, storage):
        manager = MigrationManager(storage)
        record = storage.find("schema_migrations", {"version": 2})[0]
        storage.update("schema_migrations", record["id"], {"checksum": "tampered"})

        assert not manager.validate_migrations()

    def test_partial_migration_and_rollback(self):
        storage = SQLiteStorage(":memory:")
        manager = MigrationManager(storage)

        applied = manager.migrate_up(target_version=2)
        assert [m.version for m in applied] == [1, 2]
        assert manager.get_current_version() == 2

        manager.migrate_up()
        rolled_back = manager.migrate_down(3)
        assert [m.version for m in rolled_back] == [5, 4]
        assert manager.get_current_version() == 3

        manager.migrate_up()
        assert manager.get_current_version() == 5
        storage.close()

    def test_target_version_zero_applies_nothing(self):
        manager = MigrationManager(InMemoryStorage())

        assert manager.migrate_up(target_version=0) == []
        assert manager.get_current_version() == 0

    def test_duplicate_version_rejected(self):
        manager = MigrationManager(InMemoryStorage())

        with pytest.raises(ValueError):
            manager.add_migration(1, "Duplicate", "SELECT 1")
