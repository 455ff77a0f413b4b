# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for Finance Desk.

This module turns records and calendar grids into pandas DataFrames ready
for console display (``df.to_string(index=False)``) or CSV export. It does
not compute anything: grids come from ``calendar_grid``, figures from
``dashboard``.

The main views are:

- month grid:   6 rows x 7 weekday columns, with reservation markers,
- reservations: one row per reservation, with status labels,
- records:      one row per record of any other kind,
- stats:        label / value pairs of the dashboard headline figures,
- users:        the user directory of the admin page.

Month grid cell notation
------------------------
- ``"15"``    day of the displayed month,
- ``"15*"``   day with at least one reservation,
- ``"[15]"``  selected day,
- ``"(1)"``   day of an adjacent month (not selectable, never marked).
"""

from collections.abc import Sequence
from dataclasses import asdict, fields, is_dataclass
from datetime import date
from typing import Any

import pandas as pd

from .calendar_grid import MonthCursor, has_reservations, weekday_names
from .finance import format_money, format_signed_pct, investment_return_pct
from .models import (
    BUDGET_STATUS_LABELS,
    CARD_BRAND_LABELS,
    INVESTMENT_TYPE_LABELS,
    PROJECT_STATUS_LABELS,
    RESERVATION_STATUS_LABELS,
    TRANSACTION_STATUS_LABELS,
    TRANSACTION_TYPE_LABELS,
    DashboardStats,
    Investment,
    Reservation,
    UserProfile,
    status_label,
)

RESERVATION_COLUMNS = [
    "id",
    "date",
    "start_time",
    "end_time",
    "title",
    "client",
    "location",
    "status",
]

# Columns shown per record kind, in display order.
RECORD_COLUMNS: dict[str, list[str]] = {
    "clients": ["id", "name", "email", "phone", "document"],
    "budgets": ["id", "title", "client_name", "amount", "status", "valid_until"],
    "transactions": [
        "id",
        "date",
        "type",
        "category",
        "description",
        "amount",
        "status",
    ],
    "cards": ["id", "name", "brand", "last_digits", "card_limit", "closing_day", "due_day"],
    "installments": [
        "id",
        "description",
        "total_amount",
        "installments",
        "installment_value",
        "start_date",
    ],
    "investments": [
        "id",
        "name",
        "type",
        "initial_amount",
        "current_amount",
        "return_pct",
        "start_date",
    ],
    "projects": ["id", "name", "client_name", "status", "budget", "start_date", "end_date"],
}

# Status/type/brand columns translated through the static label tables.
LABEL_COLUMNS: dict[str, dict[str, dict[str, str]]] = {
    "budgets": {"status": BUDGET_STATUS_LABELS},
    "transactions": {"type": TRANSACTION_TYPE_LABELS, "status": TRANSACTION_STATUS_LABELS},
    "cards": {"brand": CARD_BRAND_LABELS},
    "investments": {"type": INVESTMENT_TYPE_LABELS},
    "projects": {"status": PROJECT_STATUS_LABELS},
}


def _grid_cell_text(cursor: MonthCursor, cell, reservations: Sequence[Reservation]) -> str:
    if not cell.is_current_month:
        return f"({cell.day})"
    text = str(cell.day)
    if has_reservations(reservations, cursor.year, cursor.month, cell.day):
        text += "*"
    if cell.day == cursor.selected_day:
        text = f"[{text}]"
    return text


def month_grid_table(
    cursor: MonthCursor,
    reservations: Sequence[Reservation] = (),
) -> pd.DataFrame:
    """
    Render the month grid of ``cursor`` as a 6 x 7 DataFrame.

    Columns are the abbreviated weekday names, starting at the cursor's first
    day of the week. See the module docstring for the cell notation.
    """
    grid = cursor.grid()
    texts = [_grid_cell_text(cursor, cell, reservations) for cell in grid]
    rows = [texts[i : i + 7] for i in range(0, len(texts), 7)]
    return pd.DataFrame(rows, columns=weekday_names(cursor.firstweekday))


def reservations_to_dataframe(reservations: Sequence[Reservation]) -> pd.DataFrame:
    """One row per reservation, status translated to its label."""
    if not reservations:
        return pd.DataFrame(columns=RESERVATION_COLUMNS)

    rows = []
    for r in reservations:
        rows.append(
            {
                "id": r.id,
                "date": r.date.isoformat() if isinstance(r.date, date) else str(r.date),
                "start_time": r.start_time,
                "end_time": r.end_time or "",
                "title": r.title,
                "client": r.client_name or "",
                "location": r.location or "",
                "status": status_label(RESERVATION_STATUS_LABELS, r.status),
            }
        )
    return pd.DataFrame(rows, columns=RESERVATION_COLUMNS)


def _record_dict(record: Any) -> dict[str, Any]:
    data = asdict(record) if is_dataclass(record) else dict(record)
    if isinstance(record, Investment):
        data["return_pct"] = format_signed_pct(
            investment_return_pct(record.initial_amount, record.current_amount)
        )
    return data


def records_to_dataframe(kind: str, records: Sequence[Any]) -> pd.DataFrame:
    """
    Convert records of one kind into a display DataFrame.

    Parameters
    ----------
    kind:
        Record kind, e.g. "clients" or "transactions".
    records:
        Dataclass instances as returned by the services.

    Raises
    ------
    ValueError
        If ``kind`` is unknown.
    """
    try:
        columns = RECORD_COLUMNS[kind]
    except KeyError as exc:
        raise ValueError(f"Unknown record kind: {kind!r}") from exc

    if not records:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([_record_dict(r) for r in records])
    for column in columns:
        if column not in df.columns:
            df[column] = None

    for column, labels in LABEL_COLUMNS.get(kind, {}).items():
        df[column] = df[column].map(lambda v, labels=labels: status_label(labels, v))

    df = df[columns].copy()
    for column in columns:
        if df[column].map(lambda v: isinstance(v, date)).any():
            df[column] = df[column].map(lambda v: v.isoformat() if isinstance(v, date) else v)
    return df.fillna("")


def stats_to_dataframe(
    stats: DashboardStats,
    currency: str = "",
    decimals: int = 2,
) -> pd.DataFrame:
    """Headline figures as (indicator, value) rows, amounts formatted."""
    money = {
        "total_income",
        "total_expenses",
        "balance",
        "monthly_profit",
        "total_investments",
    }
    rows = []
    for f in fields(stats):
        value = getattr(stats, f.name)
        if f.name in money:
            text = format_money(value, currency, decimals)
        elif f.name == "profit_margin":
            text = f"{value:.{decimals}f}%"
        else:
            text = str(value)
        rows.append({"indicator": f.name.replace("_", " ").capitalize(), "value": text})
    return pd.DataFrame(rows, columns=["indicator", "value"])


def users_to_dataframe(users: Sequence[UserProfile]) -> pd.DataFrame:
    columns = ["id", "email", "username", "active", "admin", "created_at"]
    rows = [
        {
            "id": u.id,
            "email": u.email,
            "username": u.username,
            "active": "yes" if u.is_active else "no",
            "admin": "yes" if u.is_admin else "no",
            "created_at": u.created_at.isoformat(sep=" ") if u.created_at else "",
        }
        for u in users
    ]
    return pd.DataFrame(rows, columns=columns)


def status_counts_to_dataframe(counts: dict[str, int]) -> pd.DataFrame:
    rows = [
        {"status": status_label(RESERVATION_STATUS_LABELS, status), "count": count}
        for status, count in counts.items()
    ]
    return pd.DataFrame(rows, columns=["status", "count"])


def selected_day_title(cursor: MonthCursor) -> str:
    """Heading of the reservation list ("Reservations on 2024-03-15")."""
    selected = cursor.selected_date()
    if selected is None:
        return f"Reservations in {cursor.label}"
    return f"Reservations on {selected.isoformat()}"
