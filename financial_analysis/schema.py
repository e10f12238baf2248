"""
Relational Schema Module

Table metadata shared by every storage backend. SQLite renders it to DDL;
the in-memory backend enforces the same NOT NULL, CHECK, UNIQUE and
foreign key rules from it directly.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Column:
    """A single table column"""
    name: str
    sql_type: str
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    choices: Tuple[str, ...] = ()
    default: Optional[str] = None

    def ddl(self) -> str:
        parts = [self.name, self.sql_type]
        if self.primary_key:
            parts.append("PRIMARY KEY AUTOINCREMENT")
        elif not self.nullable:
            parts.append("NOT NULL")
        if self.unique:
            parts.append("UNIQUE")
        if self.default is not None:
            parts.append(f"DEFAULT '{self.default}'")
        if self.choices:
            values = ", ".join(f"'{choice}'" for choice in self.choices)
            parts.append(f"CHECK ({self.name} IN ({values}))")
        return " ".join(parts)


@dataclass(frozen=True)
class ForeignKey:
    """Reference from a child column to a parent table's primary key"""
    column: str
    parent_table: str
    parent_column: str = "id"
    on_delete: str = "CASCADE"

    def ddl(self) -> str:
        return (
            f"FOREIGN KEY ({self.column}) REFERENCES {self.parent_table}({self.parent_column}) "
            f"ON DELETE {self.on_delete}"
        )


@dataclass(frozen=True)
class Index:
    """Secondary index for lookup acceleration"""
    name: str
    table: str
    column: str

    def create_sql(self) -> str:
        return f"CREATE INDEX IF NOT EXISTS {self.name} ON {self.table}({self.column})"

    def drop_sql(self) -> str:
        return f"DROP INDEX IF EXISTS {self.name}"


@dataclass(frozen=True)
class TableSchema:
    """Columns and constraints of one table"""
    name: str
    columns: Tuple[Column, ...]
    foreign_keys: Tuple[ForeignKey, ...] = ()

    @property
    def primary_key(self) -> str:
        return next(c.name for c in self.columns if c.primary_key)

    def column(self, name: str) -> Column:
        for column in self.columns:
            if column.name == name:
                return column
        raise ValueError(f"Unknown column {self.name}.{name}")

    def create_sql(self) -> str:
        lines = [c.ddl() for c in self.columns]
        lines.extend(fk.ddl() for fk in self.foreign_keys)
        body = ",\n    ".join(lines)
        return f"CREATE TABLE IF NOT EXISTS {self.name} (\n    {body}\n)"

    def drop_sql(self) -> str:
        return f"DROP TABLE IF EXISTS {self.name}"


ACCOUNT_TYPES = ("Savings", "Checking", "Credit", "Loan")
TRANSACTION_TYPES = ("Deposit", "Withdrawal", "Transfer", "Payment")

# Decimal amounts are stored as TEXT so no float rounding ever touches them

CUSTOMERS = TableSchema(
    name="customers",
    columns=(
        Column("id", "INTEGER", primary_key=True),
        Column("first_name", "TEXT", nullable=False),
        Column("last_name", "TEXT", nullable=False),
        Column("email", "TEXT", nullable=False, unique=True),
        Column("phone", "TEXT"),
        Column("created_at", "TEXT", nullable=False),
    ),
)

ACCOUNTS = TableSchema(
    name="accounts",
    columns=(
        Column("id", "INTEGER", primary_key=True),
        Column("customer_id", "INTEGER", nullable=False),
        Column("account_type", "TEXT", nullable=False, choices=ACCOUNT_TYPES),
        Column("balance", "TEXT", nullable=False, default="0.00"),
        Column("created_at", "TEXT", nullable=False),
    ),
    foreign_keys=(ForeignKey("customer_id", "customers"),),
)

TRANSACTIONS = TableSchema(
    name="transactions",
    columns=(
        Column("id", "INTEGER", primary_key=True),
        Column("account_id", "INTEGER", nullable=False),
        Column("transaction_type", "TEXT", nullable=False, choices=TRANSACTION_TYPES),
        Column("amount", "TEXT", nullable=False),
        Column("transaction_date", "TEXT", nullable=False),
        Column("description", "TEXT"),
    ),
    foreign_keys=(ForeignKey("account_id", "accounts"),),
)

EXPENSES = TableSchema(
    name="expenses",
    columns=(
        Column("id", "INTEGER", primary_key=True),
        Column("customer_id", "INTEGER", nullable=False),
        Column("category", "TEXT"),
        Column("amount", "TEXT", nullable=False),
        Column("expense_date", "TEXT", nullable=False),
        Column("description", "TEXT"),
    ),
    foreign_keys=(ForeignKey("customer_id", "customers"),),
)

SCHEMA_MIGRATIONS = TableSchema(
    name="schema_migrations",
    columns=(
        Column("id", "INTEGER", primary_key=True),
        Column("version", "INTEGER", nullable=False, unique=True),
        Column("name", "TEXT", nullable=False),
        Column("applied_at", "TEXT", nullable=False),
        Column("checksum", "TEXT", nullable=False),
    ),
)

TABLES: Dict[str, TableSchema] = {
    table.name: table
    for table in (SCHEMA_MIGRATIONS, CUSTOMERS, ACCOUNTS, TRANSACTIONS, EXPENSES)
}

INDEXES: Tuple[Index, ...] = (
    Index("idx_customer_email", "customers", "email"),
    Index("idx_transaction_account", "transactions", "account_id"),
)


def get_table(name: str) -> TableSchema:
    """Look up a table by name"""
    try:
        return TABLES[name]
    except KeyError:
        raise ValueError(f"Unknown table {name}")


def child_references(parent_table: str) -> List[Tuple[TableSchema, ForeignKey]]:
    """All (child table, foreign key) pairs that reference parent_table"""
    return [
        (table, fk)
        for table in TABLES.values()
        for fk in table.foreign_keys
        if fk.parent_table == parent_table
    ]
