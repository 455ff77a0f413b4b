# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for Finance Desk.

This module defines a Period value object and helpers to derive
reporting periods (month-to-date, year-to-date, last month, custom range)
relative to a reference day, plus a filter for dated records.

"today" is always injectable so that callers and tests control the clock.
"""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, TypeVar

T = TypeVar("T")

PERIOD_NAMES = ("all", "mtd", "ytd", "last-month")


@dataclass(frozen=True)
class Period:
    """Represents a reporting period with a human-readable label."""

    start: date
    end: date
    label: str

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def period_mtd(today: Optional[date] = None) -> Period:
    """Month-to-date: first day of the current month up to today."""
    today = today or _today()
    return Period(start=today.replace(day=1), end=today, label="Month to date")


def period_ytd(today: Optional[date] = None) -> Period:
    """Year-to-date: 1 January of the current year up to today."""
    today = today or _today()
    return Period(start=date(today.year, 1, 1), end=today, label="Year to date")


def period_last_month(today: Optional[date] = None) -> Period:
    """Full previous calendar month."""
    today = today or _today()

    if today.month == 1:
        year = today.year - 1
        month = 12
    else:
        year = today.year
        month = today.month - 1

    last_day = calendar.monthrange(year, month)[1]
    return Period(
        start=date(year, month, 1),
        end=date(year, month, last_day),
        label="Last month",
    )


def determine_period(
    name: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    today: Optional[date] = None,
) -> Optional[Period]:
    """
    Determine the reporting period from a period name or custom dates.

    Priority (highest to lowest):

        1. name (all, mtd, ytd, last-month)
        2. from_date / to_date (custom period, ISO dates)
        3. no period (all records)

    Returns
    -------
    Period | None
        None means "no filtering".

    Raises
    ------
    ValueError
        On an unknown period name, invalid dates, or an end before the start.
    """
    # 1) Predefined period wins over everything else
    if name:
        if name == "all":
            return None
        if name == "mtd":
            return period_mtd(today)
        if name == "ytd":
            return period_ytd(today)
        if name == "last-month":
            return period_last_month(today)
        raise ValueError(f"Unknown period: {name!r}")

    # 2) Custom from/to dates
    if from_date or to_date:
        try:
            start = date.fromisoformat(from_date) if from_date else date.min
            end = date.fromisoformat(to_date) if to_date else (today or _today())
        except ValueError as exc:
            raise ValueError("Invalid period date, expected YYYY-MM-DD.") from exc

        if end < start:
            raise ValueError("Custom period end date cannot be before start date.")

        start_label = from_date or "beginning"
        return Period(start=start, end=end, label=f"Custom period ({start_label} -> {end})")

    # 3) Default: everything
    return None


def filter_records_by_period(
    records: Iterable[T],
    period: Optional[Period],
    attr: str = "date",
) -> list[T]:
    """
    Keep the records whose ``attr`` date falls within the period (inclusive).

    Records whose attribute is missing or not a date are dropped when a
    period is given. With ``period=None`` every record is kept.
    """
    if period is None:
        return list(records)

    kept = []
    for record in records:
        value = getattr(record, attr, None)
        if isinstance(value, datetime):
            value = value.date()
        if isinstance(value, date) and period.contains(value):
            kept.append(record)
    return kept
