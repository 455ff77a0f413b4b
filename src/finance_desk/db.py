# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for Finance Desk.

This module is the data store behind every page of the dashboard. It plays
the role of the hosted relational backend: a small query / insert / update /
delete interface where every row belongs to a user and every statement is
restricted to the rows of the calling user.

It is responsible for:

- Initializing and migrating the SQLite schema.
- Exposing generic, user-scoped CRUD helpers for the business tables
  (clients, budgets, transactions, cards, installments, investments,
  projects, reservations).
- Converting money values between floats (API) and integer cents (storage).
- Resolving the client name of rows that reference a client.
- Managing the user directory (user profiles and admin flags).

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

Business tables share the same layout:

   - id          TEXT PRIMARY KEY   -- UUID4
   - user_id     TEXT NOT NULL      -- owner of the row
   - ...         table-specific columns
   - created_at  TEXT NOT NULL      -- ISO datetime, UTC
   - updated_at  TEXT               -- only on tables edited in place

   Money columns are stored as signed integers in cents and carry a
   ``_cents`` suffix (``amount_cents``, ``card_limit_cents``...). The public
   helpers expose them under the field name without the suffix
   (``amount``, ``card_limit``...) as floats.

   Dates are stored as ISO ``YYYY-MM-DD`` text, reservation times as
   ``HH:MM`` or ``HH:MM:SS`` text.

User directory:

1) user_profiles
   - id, email (unique), username, is_active, created_at

2) admin_users
   - id (= user_profiles.id), created_at

------------------------------------------------------------------------------
Row scoping
------------------------------------------------------------------------------

Every business helper takes a ``user_id`` and adds ``user_id = ?`` to the
statement it runs. A row owned by another user is reported as missing,
never returned, updated or deleted. The client-name join is restricted to
clients of the same owner.

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- All timestamps are stored as ISO-8601 text (UTC).
- Foreign key enforcement is explicitly enabled.
- Missing columns of older databases are added in place by
  ``_migrate_schema_if_needed``.
"""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for Finance Desk.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


@dataclass(frozen=True)
class TableLayout:
    """
    Description of a user-scoped business table.

    Attributes
    ----------
    name:
        Table name.
    fields:
        Writable fields, in column order (money fields without ``_cents``).
    money_fields:
        Subset of ``fields`` stored as integer cents.
    date_field:
        Field used for date-range filters, if any.
    has_updated_at:
        Whether the table carries an ``updated_at`` column.
    joins_client:
        Whether rows reference a client and expose its ``client_name``.
    """

    name: str
    fields: tuple[str, ...]
    money_fields: frozenset[str] = frozenset()
    date_field: Optional[str] = None
    has_updated_at: bool = False
    joins_client: bool = False

    def column(self, field: str) -> str:
        """Return the storage column of a field."""
        return f"{field}_cents" if field in self.money_fields else field


TABLES: dict[str, TableLayout] = {
    "clients": TableLayout(
        name="clients",
        fields=("name", "email", "phone", "document", "address"),
        has_updated_at=True,
    ),
    "budgets": TableLayout(
        name="budgets",
        fields=(
            "client_id",
            "title",
            "description",
            "amount",
            "status",
            "valid_until",
        ),
        money_fields=frozenset({"amount"}),
        date_field="valid_until",
        has_updated_at=True,
        joins_client=True,
    ),
    "transactions": TableLayout(
        name="transactions",
        fields=(
            "type",
            "category",
            "description",
            "amount",
            "date",
            "payment_method",
            "card_id",
            "status",
        ),
        money_fields=frozenset({"amount"}),
        date_field="date",
    ),
    "cards": TableLayout(
        name="cards",
        fields=("name", "last_digits", "brand", "card_limit", "closing_day", "due_day"),
        money_fields=frozenset({"card_limit"}),
    ),
    "installments": TableLayout(
        name="installments",
        fields=(
            "purchase_id",
            "description",
            "total_amount",
            "installments",
            "installment_value",
            "start_date",
        ),
        money_fields=frozenset({"total_amount", "installment_value"}),
        date_field="start_date",
    ),
    "investments": TableLayout(
        name="investments",
        fields=(
            "name",
            "type",
            "initial_amount",
            "current_amount",
            "expected_return",
            "start_date",
        ),
        money_fields=frozenset({"initial_amount", "current_amount"}),
        date_field="start_date",
    ),
    "projects": TableLayout(
        name="projects",
        fields=(
            "client_id",
            "name",
            "description",
            "status",
            "budget",
            "start_date",
            "end_date",
        ),
        money_fields=frozenset({"budget"}),
        date_field="start_date",
        has_updated_at=True,
        joins_client=True,
    ),
    "reservations": TableLayout(
        name="reservations",
        fields=(
            "client_id",
            "title",
            "description",
            "date",
            "start_time",
            "end_time",
            "status",
            "location",
        ),
        date_field="date",
        has_updated_at=True,
        joins_client=True,
    ),
}


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS user_profiles (
        id          TEXT    PRIMARY KEY,
        email       TEXT    NOT NULL UNIQUE,
        username    TEXT    NOT NULL,
        is_active   INTEGER NOT NULL DEFAULT 1,
        created_at  TEXT    NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS admin_users (
        id          TEXT    PRIMARY KEY,
        created_at  TEXT    NOT NULL,
        FOREIGN KEY (id) REFERENCES user_profiles(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS clients (
        id          TEXT    PRIMARY KEY,
        user_id     TEXT    NOT NULL,
        name        TEXT    NOT NULL,
        email       TEXT    NOT NULL,
        phone       TEXT,
        document    TEXT,
        address     TEXT,
        created_at  TEXT    NOT NULL,
        updated_at  TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS budgets (
        id            TEXT    PRIMARY KEY,
        user_id       TEXT    NOT NULL,
        client_id     TEXT,
        title         TEXT    NOT NULL,
        description   TEXT,
        amount_cents  INTEGER NOT NULL,
        status        TEXT    NOT NULL DEFAULT 'pending',
        valid_until   TEXT,   -- ISO date 'YYYY-MM-DD'
        created_at    TEXT    NOT NULL,
        updated_at    TEXT,
        FOREIGN KEY (client_id) REFERENCES clients(id) ON DELETE SET NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id              TEXT    PRIMARY KEY,
        user_id         TEXT    NOT NULL,
        type            TEXT    NOT NULL,  -- 'income' | 'expense'
        category        TEXT    NOT NULL,
        description     TEXT    NOT NULL,
        amount_cents    INTEGER NOT NULL,
        date            TEXT    NOT NULL,  -- ISO date 'YYYY-MM-DD'
        payment_method  TEXT,
        card_id         TEXT,
        status          TEXT    NOT NULL DEFAULT 'completed',
        created_at      TEXT    NOT NULL,
        FOREIGN KEY (card_id) REFERENCES cards(id) ON DELETE SET NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS cards (
        id                TEXT    PRIMARY KEY,
        user_id           TEXT    NOT NULL,
        name              TEXT    NOT NULL,
        last_digits       TEXT    NOT NULL,
        brand             TEXT    NOT NULL DEFAULT 'other',
        card_limit_cents  INTEGER NOT NULL,
        closing_day       INTEGER NOT NULL,
        due_day           INTEGER NOT NULL,
        created_at        TEXT    NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS installments (
        id                       TEXT    PRIMARY KEY,
        user_id                  TEXT    NOT NULL,
        purchase_id              TEXT,
        description              TEXT    NOT NULL,
        total_amount_cents       INTEGER NOT NULL,
        installments             INTEGER NOT NULL,
        installment_value_cents  INTEGER NOT NULL,
        start_date               TEXT    NOT NULL,
        created_at               TEXT    NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS investments (
        id                    TEXT    PRIMARY KEY,
        user_id               TEXT    NOT NULL,
        name                  TEXT    NOT NULL,
        type                  TEXT    NOT NULL DEFAULT 'other',
        initial_amount_cents  INTEGER NOT NULL,
        current_amount_cents  INTEGER NOT NULL,
        expected_return       REAL    NOT NULL DEFAULT 0,
        start_date            TEXT    NOT NULL,
        created_at            TEXT    NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS projects (
        id            TEXT    PRIMARY KEY,
        user_id       TEXT    NOT NULL,
        client_id     TEXT,
        name          TEXT    NOT NULL,
        description   TEXT,
        status        TEXT    NOT NULL DEFAULT 'planning',
        budget_cents  INTEGER,
        start_date    TEXT,
        end_date      TEXT,
        created_at    TEXT    NOT NULL,
        updated_at    TEXT,
        FOREIGN KEY (client_id) REFERENCES clients(id) ON DELETE SET NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS reservations (
        id           TEXT    PRIMARY KEY,
        user_id      TEXT    NOT NULL,
        client_id    TEXT,
        title        TEXT    NOT NULL,
        description  TEXT,
        date         TEXT    NOT NULL,  -- ISO date 'YYYY-MM-DD', no time zone
        start_time   TEXT    NOT NULL,  -- 'HH:MM' or 'HH:MM:SS'
        end_time     TEXT,
        status       TEXT    NOT NULL DEFAULT 'scheduled',
        location     TEXT,
        created_at   TEXT    NOT NULL,
        updated_at   TEXT,
        FOREIGN KEY (client_id) REFERENCES clients(id) ON DELETE SET NULL
    );
    """,
)

INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS idx_clients_user ON clients(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_budgets_user ON budgets(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_transactions_user_date "
    "ON transactions(user_id, date);",
    "CREATE INDEX IF NOT EXISTS idx_cards_user ON cards(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_installments_user ON installments(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_investments_user ON investments(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_projects_user ON projects(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_reservations_user_date "
    "ON reservations(user_id, date, start_time);",
)

# Columns added after the first schema version, with their DDL type.
# Older databases receive them through ALTER TABLE ... ADD COLUMN.
LATE_COLUMNS: dict[str, dict[str, str]] = {
    "user_profiles": {"is_active": "INTEGER NOT NULL DEFAULT 1"},
    "budgets": {"valid_until": "TEXT"},
    "transactions": {"card_id": "TEXT", "payment_method": "TEXT"},
    "reservations": {"location": "TEXT", "end_time": "TEXT"},
    "projects": {"budget_cents": "INTEGER"},
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection with foreign keys enabled.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    conn = sqlite3.connect(cfg.path)
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _get_table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    """Return the set of column names for the given table."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    return {row[1] for row in cur.fetchall()}


def _migrate_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Add columns introduced after the first schema version.

    This function is idempotent: a column is only added when the table
    exists and the column is missing.
    """
    for table, columns in LATE_COLUMNS.items():
        existing = _get_table_columns(conn, table)
        if not existing:
            continue
        for column, ddl in columns.items():
            if column not in existing:
                conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl};")


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """Create tables and indexes if they do not exist yet and migrate the schema."""
    for statement in SCHEMA_STATEMENTS:
        conn.execute(statement)

    _migrate_schema_if_needed(conn)

    for statement in INDEX_STATEMENTS:
        conn.execute(statement)

    conn.commit()


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _new_id() -> str:
    return str(uuid.uuid4())


def _get_layout(table: str) -> TableLayout:
    try:
        return TABLES[table]
    except KeyError as exc:
        raise ValueError(f"Unknown table: {table!r}") from exc


def _check_fields(layout: TableLayout, fields: Sequence[str]) -> None:
    unknown = [f for f in fields if f not in layout.fields]
    if unknown:
        cols = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown field(s) for table {layout.name!r}: {cols}")


def _to_cents(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(round(float(value) * 100))


def _to_storage(layout: TableLayout, field: str, value: Any) -> Any:
    """Convert an API value to its storage representation."""
    if field in layout.money_fields:
        return _to_cents(value)
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


def _select_columns(layout: TableLayout) -> list[str]:
    """Return the SELECT expressions of a table, in the row layout order."""
    columns = ["t.id", "t.user_id"]
    columns += [f"t.{layout.column(f)}" for f in layout.fields]
    columns.append("t.created_at")
    if layout.has_updated_at:
        columns.append("t.updated_at")
    if layout.joins_client:
        columns.append("c.name")
    return columns


def _row_keys(layout: TableLayout) -> list[str]:
    keys = ["id", "user_id", *layout.fields, "created_at"]
    if layout.has_updated_at:
        keys.append("updated_at")
    if layout.joins_client:
        keys.append("client_name")
    return keys


def _row_to_dict(layout: TableLayout, row: tuple) -> dict[str, Any]:
    """
    Convert a database row into a plain dictionary keyed by field name.

    Money columns are converted back from cents to floats.
    """
    record = dict(zip(_row_keys(layout), row))
    for field in layout.money_fields:
        cents = record.get(field)
        record[field] = None if cents is None else float(cents) / 100.0
    return record


def _from_clause(layout: TableLayout) -> str:
    clause = f"FROM {layout.name} AS t"
    if layout.joins_client:
        clause += (
            " LEFT JOIN clients AS c"
            " ON c.id = t.client_id AND c.user_id = t.user_id"
        )
    return clause


def _order_clause(
    layout: TableLayout,
    order_by: Optional[Sequence[tuple[str, str]]],
) -> str:
    """Validate and build the ORDER BY clause."""
    if not order_by:
        return "ORDER BY t.created_at DESC, t.id"

    allowed = set(layout.fields) | {"id", "created_at", "updated_at"}
    parts: list[str] = []
    for field, direction in order_by:
        if field not in allowed:
            raise ValueError(f"Invalid order_by column: {field!r}")
        direction_upper = direction.upper()
        if direction_upper not in {"ASC", "DESC"}:
            raise ValueError(f"Invalid order_by direction: {direction!r}")
        if field == "updated_at" and not layout.has_updated_at:
            raise ValueError(f"Table {layout.name!r} has no updated_at column.")
        parts.append(f"t.{layout.column(field)} {direction_upper}")
    parts.append("t.id")
    return "ORDER BY " + ", ".join(parts)


# ---------------------------------------------------------------------------
# Public API: schema
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file (and its parent directory) if it does not exist.
    - Creates tables and indexes if they are missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    _ensure_sqlite(cfg)
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Public API: user-scoped business tables
# ---------------------------------------------------------------------------


def select_rows(
    cfg: DatabaseConfig,
    table: str,
    user_id: str,
    *,
    equals: Optional[Mapping[str, Any]] = None,
    not_equals: Optional[Mapping[str, Any]] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    order_by: Optional[Sequence[tuple[str, str]]] = None,
    limit: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    Select the rows of ``table`` owned by ``user_id``.

    Parameters
    ----------
    equals, not_equals:
        Field/value pairs combined with AND (``field = ?`` / ``field <> ?``).
        A ``None`` value in ``equals`` matches NULL.
    date_from, date_to:
        Inclusive bounds on the table's date field.
    order_by:
        Sequence of (field, "ASC" | "DESC"). Defaults to newest first.
    limit:
        Optional maximum number of rows.

    Returns
    -------
    list[dict]
        One dictionary per row, keyed by field name. Tables that reference a
        client also carry ``client_name``.
    """
    layout = _get_layout(table)
    init_database(cfg)

    where_clauses: list[str] = ["t.user_id = ?"]
    params: list[Any] = [user_id]

    for field, value in (equals or {}).items():
        _check_fields(layout, [field])
        if value is None:
            where_clauses.append(f"t.{layout.column(field)} IS NULL")
        else:
            where_clauses.append(f"t.{layout.column(field)} = ?")
            params.append(_to_storage(layout, field, value))

    for field, value in (not_equals or {}).items():
        _check_fields(layout, [field])
        where_clauses.append(f"t.{layout.column(field)} IS NOT ?")
        params.append(_to_storage(layout, field, value))

    if date_from is not None or date_to is not None:
        if layout.date_field is None:
            raise ValueError(f"Table {layout.name!r} has no date field to filter on.")
        if date_from is not None:
            where_clauses.append(f"t.{layout.date_field} >= ?")
            params.append(date_from.isoformat())
        if date_to is not None:
            where_clauses.append(f"t.{layout.date_field} <= ?")
            params.append(date_to.isoformat())

    limit_clause = ""
    if limit is not None:
        limit_clause = "LIMIT ?"
        params.append(limit)

    query = f"""
        SELECT {", ".join(_select_columns(layout))}
        {_from_clause(layout)}
        WHERE {" AND ".join(where_clauses)}
        {_order_clause(layout, order_by)}
        {limit_clause};
    """

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(query, params)
        rows = cur.fetchall()
    finally:
        conn.close()

    return [_row_to_dict(layout, row) for row in rows]


def get_row(
    cfg: DatabaseConfig,
    table: str,
    user_id: str,
    row_id: str,
) -> Optional[dict[str, Any]]:
    """
    Load a single row by id.

    Returns
    -------
    dict | None
        The row, or None if it does not exist or belongs to another user.
    """
    layout = _get_layout(table)
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"""
            SELECT {", ".join(_select_columns(layout))}
            {_from_clause(layout)}
            WHERE t.id = ? AND t.user_id = ?;
            """,
            (row_id, user_id),
        )
        row = cur.fetchone()
    finally:
        conn.close()

    if row is None:
        return None
    return _row_to_dict(layout, row)


def insert_row(
    cfg: DatabaseConfig,
    table: str,
    user_id: str,
    values: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Insert a new row owned by ``user_id`` and return it as stored.

    Fields missing from ``values`` are stored as NULL (or the column default
    when the column has one and the value is omitted).
    """
    layout = _get_layout(table)
    _check_fields(layout, list(values))
    init_database(cfg)

    row_id = _new_id()
    now_iso = _now_utc_iso()

    columns = ["id", "user_id", "created_at"]
    params: list[Any] = [row_id, user_id, now_iso]
    if layout.has_updated_at:
        columns.append("updated_at")
        params.append(now_iso)
    for field, value in values.items():
        columns.append(layout.column(field))
        params.append(_to_storage(layout, field, value))

    placeholders = ", ".join("?" for _ in columns)

    conn = _connect(cfg)
    try:
        conn.execute(
            f"INSERT INTO {layout.name} ({', '.join(columns)}) VALUES ({placeholders});",
            params,
        )
        conn.commit()
    finally:
        conn.close()

    result = get_row(cfg, table, user_id, row_id)
    if result is None:
        msg = f"Row {row_id} was just inserted into {table} but could not be reloaded."
        raise RuntimeError(msg)
    return result


def update_row(
    cfg: DatabaseConfig,
    table: str,
    user_id: str,
    row_id: str,
    values: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Apply a partial update to a row owned by ``user_id``.

    Every key of ``values`` is written, including None values (which clear
    the column). ``updated_at`` is refreshed on tables that carry it.

    Raises
    ------
    ValueError
        If ``values`` is empty or contains unknown fields.
    LookupError
        If the row does not exist for this user.
    """
    layout = _get_layout(table)
    _check_fields(layout, list(values))
    if not values:
        raise ValueError("No fields to update.")
    init_database(cfg)

    assignments: list[str] = []
    params: list[Any] = []
    for field, value in values.items():
        assignments.append(f"{layout.column(field)} = ?")
        params.append(_to_storage(layout, field, value))
    if layout.has_updated_at:
        assignments.append("updated_at = ?")
        params.append(_now_utc_iso())
    params.extend([row_id, user_id])

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"""
            UPDATE {layout.name}
               SET {", ".join(assignments)}
             WHERE id = ? AND user_id = ?;
            """,
            params,
        )
        updated = cur.rowcount
        conn.commit()
    finally:
        conn.close()

    if updated == 0:
        raise LookupError(f"No row {row_id} in {table} for this user.")

    result = get_row(cfg, table, user_id, row_id)
    if result is None:
        msg = f"Row {row_id} of {table} was updated but could not be reloaded."
        raise RuntimeError(msg)
    return result


def delete_row(cfg: DatabaseConfig, table: str, user_id: str, row_id: str) -> bool:
    """
    Delete a row owned by ``user_id``.

    Returns
    -------
    bool
        True if a row was deleted, False if no such row exists for this user.
    """
    layout = _get_layout(table)
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"DELETE FROM {layout.name} WHERE id = ? AND user_id = ?;",
            (row_id, user_id),
        )
        deleted = cur.rowcount
        conn.commit()
    finally:
        conn.close()

    return deleted > 0


def count_rows(cfg: DatabaseConfig, table: str, user_id: str) -> int:
    """Return the number of rows of ``table`` owned by ``user_id``."""
    layout = _get_layout(table)
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(f"SELECT COUNT(*) FROM {layout.name} WHERE user_id = ?;", (user_id,))
        return int(cur.fetchone()[0])
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Public API: user directory
# ---------------------------------------------------------------------------

_PROFILE_QUERY = """
    SELECT p.id, p.email, p.username, p.is_active, p.created_at,
           a.id IS NOT NULL AS is_admin
      FROM user_profiles AS p
      LEFT JOIN admin_users AS a ON a.id = p.id
"""

_PROFILE_KEYS = ("id", "email", "username", "is_active", "created_at", "is_admin")


def _profile_row_to_dict(row: tuple) -> dict[str, Any]:
    record = dict(zip(_PROFILE_KEYS, row))
    record["is_active"] = bool(record["is_active"])
    record["is_admin"] = bool(record["is_admin"])
    return record


def insert_user_profile(
    cfg: DatabaseConfig,
    email: str,
    username: str,
    *,
    is_admin: bool = False,
) -> dict[str, Any]:
    """
    Create a user profile (and its admin flag when requested).

    Raises
    ------
    ValueError
        If a profile with the same email already exists.
    """
    init_database(cfg)

    user_id = _new_id()
    now_iso = _now_utc_iso()

    conn = _connect(cfg)
    try:
        try:
            conn.execute(
                """
                INSERT INTO user_profiles (id, email, username, is_active, created_at)
                VALUES (?, ?, ?, 1, ?);
                """,
                (user_id, email, username, now_iso),
            )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"A user with email {email!r} already exists.") from exc
        if is_admin:
            conn.execute(
                "INSERT INTO admin_users (id, created_at) VALUES (?, ?);",
                (user_id, now_iso),
            )
        conn.commit()
    finally:
        conn.close()

    result = get_user_profile(cfg, user_id)
    if result is None:
        msg = f"User {user_id} was just inserted but could not be reloaded."
        raise RuntimeError(msg)
    return result


def get_user_profile(cfg: DatabaseConfig, user_id: str) -> Optional[dict[str, Any]]:
    """Load a user profile by id, or None."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(_PROFILE_QUERY + " WHERE p.id = ?;", (user_id,))
        row = cur.fetchone()
    finally:
        conn.close()

    return None if row is None else _profile_row_to_dict(row)


def get_user_profile_by_email(
    cfg: DatabaseConfig,
    email: str,
) -> Optional[dict[str, Any]]:
    """Load a user profile by email (case-insensitive), or None."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(_PROFILE_QUERY + " WHERE LOWER(p.email) = LOWER(?);", (email,))
        row = cur.fetchone()
    finally:
        conn.close()

    return None if row is None else _profile_row_to_dict(row)


def list_user_profiles(cfg: DatabaseConfig) -> list[dict[str, Any]]:
    """Return every user profile, newest first."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(_PROFILE_QUERY + " ORDER BY p.created_at DESC, p.email;")
        rows = cur.fetchall()
    finally:
        conn.close()

    return [_profile_row_to_dict(row) for row in rows]


def set_user_active(cfg: DatabaseConfig, user_id: str, is_active: bool) -> bool:
    """Set the active flag of a profile. Returns False if the user is unknown."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            "UPDATE user_profiles SET is_active = ? WHERE id = ?;",
            (int(is_active), user_id),
        )
        updated = cur.rowcount
        conn.commit()
    finally:
        conn.close()

    return updated > 0


def set_user_admin(cfg: DatabaseConfig, user_id: str, is_admin: bool) -> None:
    """Grant or revoke the admin flag of a profile."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        if is_admin:
            conn.execute(
                "INSERT OR IGNORE INTO admin_users (id, created_at) VALUES (?, ?);",
                (user_id, _now_utc_iso()),
            )
        else:
            conn.execute("DELETE FROM admin_users WHERE id = ?;", (user_id,))
        conn.commit()
    finally:
        conn.close()


def delete_user_profile(cfg: DatabaseConfig, user_id: str) -> bool:
    """Delete a profile and its admin flag. Returns False if the user is unknown."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute("DELETE FROM admin_users WHERE id = ?;", (user_id,))
        cur.execute("DELETE FROM user_profiles WHERE id = ?;", (user_id,))
        deleted = cur.rowcount
        conn.commit()
    finally:
        conn.close()

    return deleted > 0
