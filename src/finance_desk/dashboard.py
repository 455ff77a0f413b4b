# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Dashboard figures for Finance Desk.

The dashboard page shows:

- headline statistics (income, expenses, balance, profit margin, counters),
- a monthly cash-flow series (income vs. expense per month),
- the most recent transactions,
- the upcoming reservations.

`compute_dashboard_stats`, `monthly_cash_flow` and `recent_transactions`
are pure functions over already-loaded records. `load_dashboard` fetches
everything for one user and assembles the page.

Only ``completed`` transactions count towards money figures. Pending and
cancelled transactions are still listed among the recent transactions.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd

from .db import DatabaseConfig
from .finance import profit_margin
from .models import (
    Budget,
    Client,
    CurrentUser,
    DashboardStats,
    Investment,
    Project,
    Reservation,
    Transaction,
)
from .periods import Period, filter_records_by_period
from .records_service import (
    list_budgets,
    list_clients,
    list_investments,
    list_projects,
    list_transactions,
)
from .reservations_service import (
    DEFAULT_UPCOMING_DAYS,
    fetch_reservations,
    fetch_upcoming_reservations,
)

logger = logging.getLogger(__name__)

ACTIVE_BUDGET_STATUSES = ("pending", "approved")
ACTIVE_RESERVATION_STATUSES = ("scheduled", "confirmed")

CASH_FLOW_COLUMNS = ["month", "income", "expense", "net"]


@dataclass(frozen=True)
class Dashboard:
    """Everything displayed on the dashboard page for one user."""

    stats: DashboardStats
    cash_flow: pd.DataFrame
    recent_transactions: list[Transaction]
    upcoming_reservations: list[Reservation]
    period: Optional[Period]


def transactions_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """
    Build a DataFrame with columns date, type, status, category, amount.

    The ``date`` column is converted to datetime64; rows whose date cannot
    be parsed get NaT.
    """
    df = pd.DataFrame(
        [
            {
                "date": t.date,
                "type": t.type,
                "status": t.status,
                "category": t.category,
                "amount": float(t.amount),
            }
            for t in transactions
        ],
        columns=["date", "type", "status", "category", "amount"],
    )
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df["amount"] = df["amount"].astype(float)
    return df


def _completed_total(df: pd.DataFrame, kind: str) -> float:
    mask = (df["type"] == kind) & (df["status"] == "completed")
    return round(float(df.loc[mask, "amount"].sum()), 2)


def compute_dashboard_stats(
    transactions: Sequence[Transaction],
    clients: Sequence[Client],
    budgets: Sequence[Budget],
    investments: Sequence[Investment],
    reservations: Sequence[Reservation],
    projects: Sequence[Project],
) -> DashboardStats:
    """
    Compute the headline statistics of the dashboard.

    Rules
    -----
    - total_income / total_expenses: sum of ``completed`` transactions of
      each type.
    - balance = total_income - total_expenses; monthly_profit = balance.
    - profit_margin = monthly_profit / total_income * 100 (0 without income).
    - active_budgets: budgets that are pending or approved.
    - total_investments: sum of the current amounts.
    - active_reservations: reservations that are scheduled or confirmed.
    """
    df = transactions_frame(transactions)

    total_income = _completed_total(df, "income")
    total_expenses = _completed_total(df, "expense")
    balance = round(total_income - total_expenses, 2)

    return DashboardStats(
        total_income=total_income,
        total_expenses=total_expenses,
        balance=balance,
        monthly_profit=balance,
        profit_margin=profit_margin(balance, total_income),
        total_clients=len(clients),
        active_budgets=sum(1 for b in budgets if b.status in ACTIVE_BUDGET_STATUSES),
        total_investments=round(sum(float(i.current_amount) for i in investments), 2),
        active_reservations=sum(
            1 for r in reservations if r.status in ACTIVE_RESERVATION_STATUSES
        ),
        total_projects=len(projects),
    )


def monthly_cash_flow(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """
    Aggregate completed transactions per calendar month.

    Returns
    -------
    pandas.DataFrame
        Columns: month ("YYYY-MM"), income, expense, net; one row per month
        having at least one completed transaction, in chronological order.
    """
    df = transactions_frame(transactions)

    # 1) Keep completed transactions with a usable date.
    df = df[(df["status"] == "completed") & df["date"].notna()]
    if df.empty:
        return pd.DataFrame(columns=CASH_FLOW_COLUMNS)

    # 2) Sum amounts per (month, type).
    df = df.assign(month=df["date"].dt.strftime("%Y-%m"))
    pivot = df.pivot_table(
        index="month",
        columns="type",
        values="amount",
        aggfunc="sum",
        fill_value=0.0,
    )

    # 3) Make sure both columns exist even for one-sided months.
    for column in ("income", "expense"):
        if column not in pivot.columns:
            pivot[column] = 0.0

    out = pivot[["income", "expense"]].astype(float).round(2)
    out["net"] = (out["income"] - out["expense"]).round(2)
    out = out.sort_index().reset_index()
    out.columns.name = None
    return out[CASH_FLOW_COLUMNS]


def recent_transactions(
    transactions: Sequence[Transaction],
    limit: int = 5,
) -> list[Transaction]:
    """Return the ``limit`` most recent transactions (by date, then creation)."""

    def key(t: Transaction) -> tuple:
        day = t.date if isinstance(t.date, date) else date.min
        created = t.created_at.isoformat() if t.created_at else ""
        return (day, created)

    return sorted(transactions, key=key, reverse=True)[:limit]


def load_dashboard(
    cfg: DatabaseConfig,
    user: CurrentUser,
    period: Optional[Period] = None,
    today: Optional[date] = None,
    *,
    upcoming_days: int = DEFAULT_UPCOMING_DAYS,
) -> Dashboard:
    """
    Fetch the records of ``user`` and assemble the dashboard.

    When a period is given, transactions are restricted to their date and
    reservations to their day within the period. Clients, budgets,
    investments and projects are current stock figures and are never
    filtered.
    """
    transactions = list_transactions(cfg, user, period=period)
    reservations = filter_records_by_period(fetch_reservations(cfg, user), period)

    stats = compute_dashboard_stats(
        transactions=transactions,
        clients=list_clients(cfg, user),
        budgets=list_budgets(cfg, user),
        investments=list_investments(cfg, user),
        reservations=reservations,
        projects=list_projects(cfg, user),
    )
    logger.debug(
        "Dashboard for %s: %d transaction(s), period=%s",
        user.email,
        len(transactions),
        period.label if period else "all",
    )

    return Dashboard(
        stats=stats,
        cash_flow=monthly_cash_flow(transactions),
        recent_transactions=recent_transactions(transactions),
        upcoming_reservations=fetch_upcoming_reservations(
            cfg, user, days=upcoming_days, today=today
        ),
        period=period,
    )
