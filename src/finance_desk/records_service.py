# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
High-level CRUD services for the business records of the dashboard.

This module sits between:
- the low-level, user-scoped database helpers in `db.py`, and
- user-facing layers such as the CLI.

It covers clients, budgets, transactions, cards, installments, investments
and projects. Reservations have their own module (`reservations_service`)
because they carry status transitions and calendar queries.

Responsibilities
----------------
1) Validation
   - Required text fields must be present and non-blank.
   - Status, type and brand values must belong to their enum.
   - Money values must be numbers (never negative; strictly positive for
     transaction amounts and installment totals).
   - Card closing/due days must be in 1..31 and last digits exactly 4 digits.
   - Referenced clients and cards must belong to the same user.
   Invalid input raises ValueError before anything is written.

2) Conversion
   - Rows returned by `db.py` (plain dictionaries, ISO strings) are turned
     into the typed dataclasses of `models.py`.

3) Derived values
   - The value of one installment is always recomputed from the total
     amount and the number of installments.

Every function takes the database configuration and the current user
explicitly. Values are passed as plain mappings of field name to value, so
that the same functions serve programmatic callers and the generic
``add KIND --set field=value`` command of the CLI.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import fields
from datetime import date, datetime
from typing import Any, Optional, TypeVar

from .db import DatabaseConfig, delete_row, get_row, insert_row, select_rows, update_row
from .finance import installment_value
from .models import (
    BUDGET_STATUSES,
    CARD_BRANDS,
    INVESTMENT_TYPES,
    PROJECT_STATUSES,
    TRANSACTION_STATUSES,
    TRANSACTION_TYPES,
    Budget,
    Card,
    Client,
    CurrentUser,
    Installment,
    Investment,
    Project,
    Transaction,
)
from .periods import Period

logger = logging.getLogger(__name__)

R = TypeVar("R")

Converter = Callable[[Any], Any]

DATE_FIELDS = frozenset({"date", "valid_until", "start_date", "end_date"})
DATETIME_FIELDS = frozenset({"created_at", "updated_at"})


# ---------------------------------------------------------------------------
# Value converters
# ---------------------------------------------------------------------------


def text_value(value: Any) -> Optional[str]:
    """Strip text; blank values become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def email_value(value: Any) -> Optional[str]:
    text = text_value(value)
    if text is not None and "@" not in text:
        raise ValueError("expected an email address")
    return text


def amount_value(value: Any) -> Optional[float]:
    """Non-negative money amount."""
    if value is None or value == "":
        return None
    amount = float(value)
    if amount < 0:
        raise ValueError("amount cannot be negative")
    return amount


def positive_amount_value(value: Any) -> Optional[float]:
    amount = amount_value(value)
    if amount is not None and amount <= 0:
        raise ValueError("amount must be greater than zero")
    return amount


def float_value(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def date_value(value: Any) -> Optional[date]:
    """Accept a date, a datetime or an ISO 'YYYY-MM-DD' string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def day_of_month_value(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    day = int(value)
    if not 1 <= day <= 31:
        raise ValueError("day must be between 1 and 31")
    return day


def count_value(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    count = int(value)
    if count < 1:
        raise ValueError("count must be at least 1")
    return count


def last_digits_value(value: Any) -> Optional[str]:
    text = text_value(value)
    if text is not None and (len(text) != 4 or not text.isdigit()):
        raise ValueError("expected exactly 4 digits")
    return text


def choice_value(allowed: Iterable[str]) -> Converter:
    """Build a converter accepting only the given values."""
    allowed_values = tuple(allowed)

    def convert(value: Any) -> Optional[str]:
        text = text_value(value)
        if text is None:
            return None
        text = text.lower()
        if text not in allowed_values:
            raise ValueError(f"expected one of {', '.join(allowed_values)}")
        return text

    return convert


def clean_values(
    kind: str,
    values: Mapping[str, Any],
    rules: Mapping[str, Converter],
    *,
    required: Iterable[str] = (),
    defaults: Optional[Mapping[str, Any]] = None,
    partial: bool = False,
) -> dict[str, Any]:
    """
    Validate and normalize user-supplied values.

    Parameters
    ----------
    kind:
        Record kind, used in error messages ("client", "budget"...).
    values:
        Field name to raw value.
    rules:
        Field name to converter. Fields absent from ``rules`` are rejected.
    required:
        Fields that must end up non-empty.
    defaults:
        Values applied on creation when a field is missing.
    partial:
        True for updates: only the given fields are checked, and required
        fields may be omitted but not cleared.

    Raises
    ------
    ValueError
        On unknown fields, invalid values or missing required fields.
    """
    unknown = sorted(set(values) - set(rules))
    if unknown:
        raise ValueError(f"Unknown field(s) for {kind}: {', '.join(unknown)}")

    cleaned: dict[str, Any] = {}
    for field, raw in values.items():
        try:
            cleaned[field] = rules[field](raw)
        except (TypeError, ValueError) as exc:
            msg = f"Invalid {field} for {kind}: {raw!r} ({exc})"
            raise ValueError(msg) from exc

    if partial:
        cleared = [f for f in required if f in cleaned and cleaned[f] is None]
        if cleared:
            raise ValueError(f"Field(s) required for {kind}: {', '.join(cleared)}")
        return cleaned

    for field, default in (defaults or {}).items():
        if cleaned.get(field) is None:
            cleaned[field] = default

    missing = [f for f in required if cleaned.get(f) is None]
    if missing:
        raise ValueError(f"Missing required field(s) for {kind}: {', '.join(missing)}")
    return cleaned


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def _parse_date(value: Any) -> Any:
    """ISO text to date; values that do not parse are returned unchanged."""
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return value


def record_from_row(cls: type[R], row: Mapping[str, Any]) -> R:
    """Build a model dataclass from a row returned by `db.py`."""
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        value = row.get(f.name)
        if f.name in DATETIME_FIELDS:
            value = _parse_datetime(value)
        elif f.name in DATE_FIELDS:
            value = _parse_date(value)
        kwargs[f.name] = value
    return cls(**kwargs)


def check_reference(
    cfg: DatabaseConfig,
    user: CurrentUser,
    table: str,
    row_id: Optional[str],
) -> None:
    """Raise ValueError if ``row_id`` is set but not owned by ``user``."""
    if row_id is None:
        return
    if get_row(cfg, table, user.id, row_id) is None:
        raise ValueError(f"Unknown {table[:-1]} id: {row_id!r}")


def _update(
    cfg: DatabaseConfig,
    user: CurrentUser,
    table: str,
    cls: type[R],
    row_id: str,
    cleaned: Mapping[str, Any],
) -> R:
    row = update_row(cfg, table, user.id, row_id, cleaned)
    logger.info("Updated %s %s (%s)", table, row_id, ", ".join(sorted(cleaned)))
    return record_from_row(cls, row)


def create_record(
    cfg: DatabaseConfig,
    user: CurrentUser,
    table: str,
    cls: type[R],
    cleaned: Mapping[str, Any],
) -> R:
    row = insert_row(cfg, table, user.id, cleaned)
    logger.info("Created %s %s", table, row["id"])
    return record_from_row(cls, row)


def delete_record(cfg: DatabaseConfig, user: CurrentUser, table: str, row_id: str) -> bool:
    deleted = delete_row(cfg, table, user.id, row_id)
    if deleted:
        logger.info("Deleted %s %s", table, row_id)
    else:
        logger.warning("Nothing to delete in %s for id %s", table, row_id)
    return deleted


def _get(
    cfg: DatabaseConfig,
    user: CurrentUser,
    table: str,
    cls: type[R],
    row_id: str,
) -> Optional[R]:
    row = get_row(cfg, table, user.id, row_id)
    return None if row is None else record_from_row(cls, row)


def _list(
    cfg: DatabaseConfig,
    user: CurrentUser,
    table: str,
    cls: type[R],
    order_by: list[tuple[str, str]],
    **filters: Any,
) -> list[R]:
    rows = select_rows(cfg, table, user.id, order_by=order_by, **filters)
    logger.debug("Loaded %d %s row(s) for user %s", len(rows), table, user.id)
    return [record_from_row(cls, row) for row in rows]


NEWEST_FIRST = [("created_at", "DESC")]


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

CLIENT_RULES: dict[str, Converter] = {
    "name": text_value,
    "email": email_value,
    "phone": text_value,
    "document": text_value,
    "address": text_value,
}
CLIENT_REQUIRED = ("name", "email")


def list_clients(cfg: DatabaseConfig, user: CurrentUser) -> list[Client]:
    """Return the clients of ``user``, newest first."""
    return _list(cfg, user, "clients", Client, NEWEST_FIRST)


def get_client(cfg: DatabaseConfig, user: CurrentUser, client_id: str) -> Optional[Client]:
    return _get(cfg, user, "clients", Client, client_id)


def create_client(
    cfg: DatabaseConfig,
    user: CurrentUser,
    values: Mapping[str, Any],
) -> Client:
    """
    Create a client.

    Required fields: name, email. Optional: phone, document, address.
    """
    cleaned = clean_values("client", values, CLIENT_RULES, required=CLIENT_REQUIRED)
    return create_record(cfg, user, "clients", Client, cleaned)


def update_client(
    cfg: DatabaseConfig,
    user: CurrentUser,
    client_id: str,
    values: Mapping[str, Any],
) -> Client:
    cleaned = clean_values(
        "client", values, CLIENT_RULES, required=CLIENT_REQUIRED, partial=True
    )
    return _update(cfg, user, "clients", Client, client_id, cleaned)


def delete_client(cfg: DatabaseConfig, user: CurrentUser, client_id: str) -> bool:
    """
    Delete a client.

    Budgets, projects and reservations that referenced the client keep
    existing with an empty client reference.
    """
    return delete_record(cfg, user, "clients", client_id)


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------

BUDGET_RULES: dict[str, Converter] = {
    "client_id": text_value,
    "title": text_value,
    "description": text_value,
    "amount": amount_value,
    "status": choice_value(BUDGET_STATUSES),
    "valid_until": date_value,
}
BUDGET_REQUIRED = ("title", "amount", "status")


def list_budgets(
    cfg: DatabaseConfig,
    user: CurrentUser,
    *,
    status: Optional[str] = None,
) -> list[Budget]:
    """Return the budgets of ``user``, newest first, optionally for one status."""
    equals = {"status": status} if status is not None else None
    return _list(cfg, user, "budgets", Budget, NEWEST_FIRST, equals=equals)


def get_budget(cfg: DatabaseConfig, user: CurrentUser, budget_id: str) -> Optional[Budget]:
    return _get(cfg, user, "budgets", Budget, budget_id)


def create_budget(
    cfg: DatabaseConfig,
    user: CurrentUser,
    values: Mapping[str, Any],
) -> Budget:
    """
    Create a budget (quote).

    Required fields: title, amount. ``status`` defaults to "pending".
    """
    cleaned = clean_values(
        "budget",
        values,
        BUDGET_RULES,
        required=BUDGET_REQUIRED,
        defaults={"status": "pending"},
    )
    check_reference(cfg, user, "clients", cleaned.get("client_id"))
    return create_record(cfg, user, "budgets", Budget, cleaned)


def update_budget(
    cfg: DatabaseConfig,
    user: CurrentUser,
    budget_id: str,
    values: Mapping[str, Any],
) -> Budget:
    cleaned = clean_values(
        "budget", values, BUDGET_RULES, required=BUDGET_REQUIRED, partial=True
    )
    check_reference(cfg, user, "clients", cleaned.get("client_id"))
    return _update(cfg, user, "budgets", Budget, budget_id, cleaned)


def delete_budget(cfg: DatabaseConfig, user: CurrentUser, budget_id: str) -> bool:
    return delete_record(cfg, user, "budgets", budget_id)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

TRANSACTION_RULES: dict[str, Converter] = {
    "type": choice_value(TRANSACTION_TYPES),
    "category": text_value,
    "description": text_value,
    "amount": positive_amount_value,
    "date": date_value,
    "payment_method": text_value,
    "card_id": text_value,
    "status": choice_value(TRANSACTION_STATUSES),
}
TRANSACTION_REQUIRED = ("type", "category", "description", "amount", "date", "status")


def list_transactions(
    cfg: DatabaseConfig,
    user: CurrentUser,
    *,
    period: Optional[Period] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Transaction]:
    """
    Return the transactions of ``user``, most recent date first.

    Parameters
    ----------
    period:
        Optional reporting period; bounds are inclusive.
    type, status:
        Optional exact filters.
    limit:
        Optional maximum number of rows.
    """
    equals: dict[str, Any] = {}
    if type is not None:
        equals["type"] = type
    if status is not None:
        equals["status"] = status

    return _list(
        cfg,
        user,
        "transactions",
        Transaction,
        [("date", "DESC"), ("created_at", "DESC")],
        equals=equals or None,
        date_from=period.start if period is not None else None,
        date_to=period.end if period is not None else None,
        limit=limit,
    )


def get_transaction(
    cfg: DatabaseConfig,
    user: CurrentUser,
    transaction_id: str,
) -> Optional[Transaction]:
    return _get(cfg, user, "transactions", Transaction, transaction_id)


def create_transaction(
    cfg: DatabaseConfig,
    user: CurrentUser,
    values: Mapping[str, Any],
) -> Transaction:
    """
    Create a transaction.

    Required fields: type, category, description, amount (> 0), date.
    ``status`` defaults to "completed". A ``card_id`` must refer to one of
    the user's cards.
    """
    cleaned = clean_values(
        "transaction",
        values,
        TRANSACTION_RULES,
        required=TRANSACTION_REQUIRED,
        defaults={"status": "completed"},
    )
    check_reference(cfg, user, "cards", cleaned.get("card_id"))
    return create_record(cfg, user, "transactions", Transaction, cleaned)


def update_transaction(
    cfg: DatabaseConfig,
    user: CurrentUser,
    transaction_id: str,
    values: Mapping[str, Any],
) -> Transaction:
    cleaned = clean_values(
        "transaction",
        values,
        TRANSACTION_RULES,
        required=TRANSACTION_REQUIRED,
        partial=True,
    )
    check_reference(cfg, user, "cards", cleaned.get("card_id"))
    return _update(cfg, user, "transactions", Transaction, transaction_id, cleaned)


def delete_transaction(
    cfg: DatabaseConfig,
    user: CurrentUser,
    transaction_id: str,
) -> bool:
    return delete_record(cfg, user, "transactions", transaction_id)


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

CARD_RULES: dict[str, Converter] = {
    "name": text_value,
    "last_digits": last_digits_value,
    "brand": choice_value(CARD_BRANDS),
    "card_limit": amount_value,
    "closing_day": day_of_month_value,
    "due_day": day_of_month_value,
}
CARD_REQUIRED = ("name", "last_digits", "brand", "card_limit", "closing_day", "due_day")


def list_cards(cfg: DatabaseConfig, user: CurrentUser) -> list[Card]:
    return _list(cfg, user, "cards", Card, NEWEST_FIRST)


def get_card(cfg: DatabaseConfig, user: CurrentUser, card_id: str) -> Optional[Card]:
    return _get(cfg, user, "cards", Card, card_id)


def create_card(cfg: DatabaseConfig, user: CurrentUser, values: Mapping[str, Any]) -> Card:
    """
    Register a payment card.

    ``brand`` defaults to "other". Closing and due days are days of the
    month (1..31).
    """
    cleaned = clean_values(
        "card",
        values,
        CARD_RULES,
        required=CARD_REQUIRED,
        defaults={"brand": "other"},
    )
    return create_record(cfg, user, "cards", Card, cleaned)


def update_card(
    cfg: DatabaseConfig,
    user: CurrentUser,
    card_id: str,
    values: Mapping[str, Any],
) -> Card:
    cleaned = clean_values("card", values, CARD_RULES, required=CARD_REQUIRED, partial=True)
    return _update(cfg, user, "cards", Card, card_id, cleaned)


def delete_card(cfg: DatabaseConfig, user: CurrentUser, card_id: str) -> bool:
    return delete_record(cfg, user, "cards", card_id)


# ---------------------------------------------------------------------------
# Installments
# ---------------------------------------------------------------------------

INSTALLMENT_RULES: dict[str, Converter] = {
    "purchase_id": text_value,
    "description": text_value,
    "total_amount": positive_amount_value,
    "installments": count_value,
    "start_date": date_value,
}
INSTALLMENT_REQUIRED = ("description", "total_amount", "installments", "start_date")


def list_installments(cfg: DatabaseConfig, user: CurrentUser) -> list[Installment]:
    return _list(
        cfg,
        user,
        "installments",
        Installment,
        [("start_date", "DESC"), ("created_at", "DESC")],
    )


def get_installment(
    cfg: DatabaseConfig,
    user: CurrentUser,
    installment_id: str,
) -> Optional[Installment]:
    return _get(cfg, user, "installments", Installment, installment_id)


def create_installment(
    cfg: DatabaseConfig,
    user: CurrentUser,
    values: Mapping[str, Any],
) -> Installment:
    """
    Create an installment plan.

    ``installment_value`` is derived (total amount / number of installments)
    and cannot be supplied by the caller.
    """
    cleaned = clean_values(
        "installment", values, INSTALLMENT_RULES, required=INSTALLMENT_REQUIRED
    )
    cleaned["installment_value"] = installment_value(
        cleaned["total_amount"], cleaned["installments"]
    )
    return create_record(cfg, user, "installments", Installment, cleaned)


def update_installment(
    cfg: DatabaseConfig,
    user: CurrentUser,
    installment_id: str,
    values: Mapping[str, Any],
) -> Installment:
    """
    Update an installment plan.

    When the total amount or the number of installments changes, the value
    of one installment is recomputed from the stored plan.

    Raises
    ------
    LookupError
        If the plan does not exist for this user.
    """
    cleaned = clean_values(
        "installment",
        values,
        INSTALLMENT_RULES,
        required=INSTALLMENT_REQUIRED,
        partial=True,
    )

    if "total_amount" in cleaned or "installments" in cleaned:
        current = get_installment(cfg, user, installment_id)
        if current is None:
            raise LookupError(f"No installment plan {installment_id} for this user.")
        total = cleaned.get("total_amount", current.total_amount)
        count = cleaned.get("installments", current.installments)
        cleaned["installment_value"] = installment_value(total, count)

    return _update(cfg, user, "installments", Installment, installment_id, cleaned)


def delete_installment(
    cfg: DatabaseConfig,
    user: CurrentUser,
    installment_id: str,
) -> bool:
    return delete_record(cfg, user, "installments", installment_id)


# ---------------------------------------------------------------------------
# Investments
# ---------------------------------------------------------------------------

INVESTMENT_RULES: dict[str, Converter] = {
    "name": text_value,
    "type": choice_value(INVESTMENT_TYPES),
    "initial_amount": amount_value,
    "current_amount": amount_value,
    "expected_return": float_value,
    "start_date": date_value,
}
INVESTMENT_REQUIRED = ("name", "type", "initial_amount", "current_amount", "start_date")


def list_investments(cfg: DatabaseConfig, user: CurrentUser) -> list[Investment]:
    return _list(
        cfg,
        user,
        "investments",
        Investment,
        [("start_date", "DESC"), ("created_at", "DESC")],
    )


def get_investment(
    cfg: DatabaseConfig,
    user: CurrentUser,
    investment_id: str,
) -> Optional[Investment]:
    return _get(cfg, user, "investments", Investment, investment_id)


def create_investment(
    cfg: DatabaseConfig,
    user: CurrentUser,
    values: Mapping[str, Any],
) -> Investment:
    """
    Create an investment.

    ``current_amount`` defaults to the initial amount, ``type`` to "other"
    and ``expected_return`` to 0.
    """
    prepared = dict(values)
    if prepared.get("current_amount") in (None, "") and "initial_amount" in prepared:
        prepared["current_amount"] = prepared["initial_amount"]

    cleaned = clean_values(
        "investment",
        prepared,
        INVESTMENT_RULES,
        required=INVESTMENT_REQUIRED,
        defaults={"type": "other", "expected_return": 0.0},
    )
    return create_record(cfg, user, "investments", Investment, cleaned)


def update_investment(
    cfg: DatabaseConfig,
    user: CurrentUser,
    investment_id: str,
    values: Mapping[str, Any],
) -> Investment:
    cleaned = clean_values(
        "investment",
        values,
        INVESTMENT_RULES,
        required=INVESTMENT_REQUIRED,
        partial=True,
    )
    return _update(cfg, user, "investments", Investment, investment_id, cleaned)


def delete_investment(cfg: DatabaseConfig, user: CurrentUser, investment_id: str) -> bool:
    return delete_record(cfg, user, "investments", investment_id)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

PROJECT_RULES: dict[str, Converter] = {
    "client_id": text_value,
    "name": text_value,
    "description": text_value,
    "status": choice_value(PROJECT_STATUSES),
    "budget": amount_value,
    "start_date": date_value,
    "end_date": date_value,
}
PROJECT_REQUIRED = ("name", "status")


def _check_project_dates(start: Optional[date], end: Optional[date]) -> None:
    if start is not None and end is not None and end < start:
        raise ValueError("Project end_date cannot be before start_date.")


def list_projects(cfg: DatabaseConfig, user: CurrentUser) -> list[Project]:
    return _list(cfg, user, "projects", Project, NEWEST_FIRST)


def get_project(cfg: DatabaseConfig, user: CurrentUser, project_id: str) -> Optional[Project]:
    return _get(cfg, user, "projects", Project, project_id)


def create_project(
    cfg: DatabaseConfig,
    user: CurrentUser,
    values: Mapping[str, Any],
) -> Project:
    """Create a project. ``status`` defaults to "planning"."""
    cleaned = clean_values(
        "project",
        values,
        PROJECT_RULES,
        required=PROJECT_REQUIRED,
        defaults={"status": "planning"},
    )
    _check_project_dates(cleaned.get("start_date"), cleaned.get("end_date"))
    check_reference(cfg, user, "clients", cleaned.get("client_id"))
    return create_record(cfg, user, "projects", Project, cleaned)


def update_project(
    cfg: DatabaseConfig,
    user: CurrentUser,
    project_id: str,
    values: Mapping[str, Any],
) -> Project:
    cleaned = clean_values(
        "project", values, PROJECT_RULES, required=PROJECT_REQUIRED, partial=True
    )

    if "start_date" in cleaned or "end_date" in cleaned:
        current = get_project(cfg, user, project_id)
        if current is None:
            raise LookupError(f"No project {project_id} for this user.")
        _check_project_dates(
            cleaned.get("start_date", current.start_date),
            cleaned.get("end_date", current.end_date),
        )

    check_reference(cfg, user, "clients", cleaned.get("client_id"))
    return _update(cfg, user, "projects", Project, project_id, cleaned)


def delete_project(cfg: DatabaseConfig, user: CurrentUser, project_id: str) -> bool:
    return delete_record(cfg, user, "projects", project_id)
