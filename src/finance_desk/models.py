# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Typed records handled by Finance Desk.

Each dataclass mirrors one table of the data store and uses high-level
Python types (date, datetime, float) instead of the raw storage values
(ISO strings, integer cents). Records are produced by the service layer and
consumed by the CLI, the dashboard and the calendar grid builder.

Status and type values are plain strings constrained by ``Literal`` aliases.
Their display labels and colours live in static lookup tables keyed by the
status value (``*_LABELS`` / ``*_COLORS``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

ReservationStatus = Literal["scheduled", "confirmed", "completed", "cancelled"]
BudgetStatus = Literal["pending", "approved", "rejected", "completed"]
TransactionType = Literal["income", "expense"]
TransactionStatus = Literal["pending", "completed", "cancelled"]
CardBrand = Literal["visa", "mastercard", "elo", "amex", "other"]
InvestmentType = Literal["fixed_income", "stocks", "funds", "crypto", "other"]
ProjectStatus = Literal["planning", "in_progress", "completed", "on_hold", "cancelled"]

RESERVATION_STATUSES: tuple[str, ...] = (
    "scheduled",
    "confirmed",
    "completed",
    "cancelled",
)
BUDGET_STATUSES: tuple[str, ...] = ("pending", "approved", "rejected", "completed")
TRANSACTION_TYPES: tuple[str, ...] = ("income", "expense")
TRANSACTION_STATUSES: tuple[str, ...] = ("pending", "completed", "cancelled")
CARD_BRANDS: tuple[str, ...] = ("visa", "mastercard", "elo", "amex", "other")
INVESTMENT_TYPES: tuple[str, ...] = (
    "fixed_income",
    "stocks",
    "funds",
    "crypto",
    "other",
)
PROJECT_STATUSES: tuple[str, ...] = (
    "planning",
    "in_progress",
    "completed",
    "on_hold",
    "cancelled",
)

# ---------------------------------------------------------------------------
# Display lookup tables
# ---------------------------------------------------------------------------

RESERVATION_STATUS_LABELS = {
    "scheduled": "Scheduled",
    "confirmed": "Confirmed",
    "completed": "Completed",
    "cancelled": "Cancelled",
}
RESERVATION_STATUS_COLORS = {
    "scheduled": "#86BCBE",
    "confirmed": "#314755",
    "completed": "#98A3AA",
    "cancelled": "#D97D54",
}

BUDGET_STATUS_LABELS = {
    "pending": "Pending",
    "approved": "Approved",
    "rejected": "Rejected",
    "completed": "Completed",
}
BUDGET_STATUS_COLORS = {
    "pending": "#86BCBE",
    "approved": "#314755",
    "rejected": "#D97D54",
    "completed": "#1B1C20",
}

TRANSACTION_TYPE_LABELS = {"income": "Income", "expense": "Expense"}
TRANSACTION_STATUS_LABELS = {
    "pending": "Pending",
    "completed": "Completed",
    "cancelled": "Cancelled",
}
TRANSACTION_STATUS_COLORS = {
    "pending": "#86BCBE",
    "completed": "#314755",
    "cancelled": "#D97D54",
}

CARD_BRAND_LABELS = {
    "visa": "Visa",
    "mastercard": "Mastercard",
    "elo": "Elo",
    "amex": "American Express",
    "other": "Other",
}
CARD_BRAND_COLORS = {
    "visa": "#314755",
    "mastercard": "#D97D54",
    "elo": "#86BCBE",
    "amex": "#1B1C20",
    "other": "#98A3AA",
}

INVESTMENT_TYPE_LABELS = {
    "fixed_income": "Fixed income",
    "stocks": "Stocks",
    "funds": "Funds",
    "crypto": "Crypto",
    "other": "Other",
}

PROJECT_STATUS_LABELS = {
    "planning": "Planning",
    "in_progress": "In progress",
    "completed": "Completed",
    "on_hold": "On hold",
    "cancelled": "Cancelled",
}

DEFAULT_STATUS_COLOR = "#314755"


def status_label(labels: dict[str, str], value: str) -> str:
    """Return the display label for a status value, or the raw value."""
    return labels.get(value, value)


def status_color(colors: dict[str, str], value: str) -> str:
    """Return the badge colour for a status value, with a neutral fallback."""
    return colors.get(value, DEFAULT_STATUS_COLOR)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CurrentUser:
    """
    Identity of the signed-in user.

    Passed explicitly into every service call; all reads and writes are
    scoped to ``id``.
    """

    id: str
    email: str


@dataclass(frozen=True)
class UserProfile:
    """User directory entry, as managed from the admin page."""

    id: str
    email: str
    username: str
    is_active: bool
    is_admin: bool
    created_at: datetime | None


# ---------------------------------------------------------------------------
# Business records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Client:
    id: str
    user_id: str
    name: str
    email: str
    phone: str | None
    document: str | None
    address: str | None
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class Budget:
    """A quote sent to a client, optionally with an expiry date."""

    id: str
    user_id: str
    client_id: str | None
    title: str
    description: str | None
    amount: float
    status: BudgetStatus
    valid_until: date | None
    created_at: datetime | None
    updated_at: datetime | None
    client_name: str | None = None


@dataclass(frozen=True)
class Transaction:
    """
    Money in or out.

    ``amount`` is always positive; the direction is given by ``type``.
    Only ``completed`` transactions count towards the dashboard totals.
    """

    id: str
    user_id: str
    type: TransactionType
    category: str
    description: str
    amount: float
    date: date
    payment_method: str | None
    card_id: str | None
    status: TransactionStatus
    created_at: datetime | None


@dataclass(frozen=True)
class Card:
    id: str
    user_id: str
    name: str
    last_digits: str
    brand: CardBrand
    card_limit: float
    closing_day: int
    due_day: int
    created_at: datetime | None


@dataclass(frozen=True)
class Installment:
    """A purchase split into ``installments`` equal payments."""

    id: str
    user_id: str
    purchase_id: str | None
    description: str
    total_amount: float
    installments: int
    installment_value: float
    start_date: date
    created_at: datetime | None


@dataclass(frozen=True)
class Investment:
    id: str
    user_id: str
    name: str
    type: InvestmentType
    initial_amount: float
    current_amount: float
    expected_return: float
    start_date: date
    created_at: datetime | None


@dataclass(frozen=True)
class Project:
    id: str
    user_id: str
    client_id: str | None
    name: str
    description: str | None
    status: ProjectStatus
    budget: float | None
    start_date: date | None
    end_date: date | None
    created_at: datetime | None
    updated_at: datetime | None
    client_name: str | None = None


@dataclass(frozen=True)
class Reservation:
    """
    A scheduled appointment.

    ``date`` is a calendar day without time zone. When the stored value is
    not a valid ISO date it is kept as the raw string, and the calendar grid
    builder skips the record.
    """

    id: str
    user_id: str
    client_id: str | None
    title: str
    description: str | None
    date: date | str
    start_time: str
    end_time: str | None
    status: ReservationStatus
    location: str | None
    created_at: datetime | None
    updated_at: datetime | None
    client_name: str | None = None


@dataclass(frozen=True)
class DashboardStats:
    """Headline figures of the dashboard page."""

    total_income: float
    total_expenses: float
    balance: float
    monthly_profit: float
    profit_margin: float
    total_clients: int
    active_budgets: int
    total_investments: float
    active_reservations: int
    total_projects: int

