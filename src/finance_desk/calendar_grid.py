# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Calendar grid builder for the reservations (scheduling) page.

This module turns a ``(year, month)`` pair into a fixed month grid and
answers day-membership questions against an in-memory list of reservations
that the caller has already fetched. It performs no I/O and keeps no state
between calls.

Conventions
-----------
- ``month`` is a 0-based index (0 = January ... 11 = December), the value
  produced by the month selector of the scheduling page.
- Weekday indices are relative to the first day of the week. The default is
  Sunday (``calendar.SUNDAY``), so index 0 = Sunday ... 6 = Saturday.
- Dates are plain ``datetime.date`` values. No time zone is attached, so a
  reservation dated 2024-03-15 always lands on the 15th.

Month grid
----------
``build_month_grid`` always returns 42 cells (6 weeks x 7 days):

- the trailing days of the previous month, up to the weekday of the 1st,
- every day of the displayed month,
- the leading days of the next month, to fill the 6th week.

The grid height never changes when navigating between months. For every
Gregorian month the number of leading cells plus the month length is at most
6 + 31 = 37, so at least 5 cells of the next month are always shown.

Month navigation
----------------
``MonthCursor`` is the immutable view-model of the page: the displayed
``(year, month)`` and an optional selected day. Navigation returns a new
cursor and clears the selection; selecting a day outside the displayed
month (or a cell from an adjacent month) is a silent no-op.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Optional, Protocol

GRID_WEEKS = 6
GRID_CELLS = GRID_WEEKS * 7

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


class ReservationLike(Protocol):
    """Minimal shape of a reservation record read by the grid builder."""

    date: date | str
    start_time: str


@dataclass(frozen=True)
class CalendarCell:
    """One cell of the month grid."""

    day: int
    is_current_month: bool
    date: date


CalendarMonthView = tuple[CalendarCell, ...]


# ---------------------------------------------------------------------------
# Month arithmetic
# ---------------------------------------------------------------------------


def days_in_month(year: int, month: int) -> int:
    """Return the number of days of the given month (0-based month index)."""
    return calendar.monthrange(year, month + 1)[1]


def first_weekday_of_month(
    year: int,
    month: int,
    firstweekday: int = calendar.SUNDAY,
) -> int:
    """
    Return the weekday index (0..6) of the 1st of the month.

    Index 0 is ``firstweekday`` (a ``calendar`` constant such as
    ``calendar.SUNDAY`` or ``calendar.MONDAY``).
    """
    return (date(year, month + 1, 1).weekday() - firstweekday) % 7


def previous_month(year: int, month: int) -> tuple[int, int]:
    """Return (year, month) for one month earlier."""
    if month == 0:
        return year - 1, 11
    return year, month - 1


def next_month(year: int, month: int) -> tuple[int, int]:
    """Return (year, month) for one month later."""
    if month == 11:
        return year + 1, 0
    return year, month + 1


def build_month_grid(
    year: int,
    month: int,
    firstweekday: int = calendar.SUNDAY,
) -> CalendarMonthView:
    """
    Build the 42-cell grid for the given month.

    Parameters
    ----------
    year:
        Displayed year.
    month:
        Displayed month, 0-based (0 = January).
    firstweekday:
        First day of the week, as a ``calendar`` constant.

    Returns
    -------
    tuple[CalendarCell, ...]
        Exactly 42 cells, in display order (row by row).
    """
    lead = first_weekday_of_month(year, month, firstweekday)
    first = date(year, month + 1, 1)
    start = first - timedelta(days=lead)

    cells = []
    for offset in range(GRID_CELLS):
        current = start + timedelta(days=offset)
        cells.append(
            CalendarCell(
                day=current.day,
                is_current_month=(current.year, current.month) == (year, month + 1),
                date=current,
            )
        )
    return tuple(cells)


def grid_weeks(grid: Sequence[CalendarCell]) -> list[list[CalendarCell]]:
    """Split a month grid into its 6 rows of 7 cells."""
    return [list(grid[i : i + 7]) for i in range(0, len(grid), 7)]


def weekday_names(firstweekday: int = calendar.SUNDAY) -> list[str]:
    """Return abbreviated weekday names starting at ``firstweekday``."""
    return [calendar.day_abbr[(firstweekday + i) % 7] for i in range(7)]


# ---------------------------------------------------------------------------
# Reservation bucketing
# ---------------------------------------------------------------------------


def _record_date(record: ReservationLike) -> Optional[date]:
    """
    Return the calendar date of a reservation record, or None if malformed.

    Accepts ``datetime.date`` values and ISO strings. A time suffix such as
    ``"2024-03-15T00:00:00"`` is tolerated: only the calendar part is read.
    """
    value = getattr(record, "date", None)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _start_time_key(record: ReservationLike) -> time:
    """Sort key for ``start_time`` ("HH:MM" or "HH:MM:SS"); invalid values last."""
    raw = getattr(record, "start_time", None)
    if isinstance(raw, time):
        return raw
    try:
        parts = [int(p) for p in str(raw).strip().split(":")]
        if not 2 <= len(parts) <= 3:
            return time.max
        return time(*parts)
    except (TypeError, ValueError):
        return time.max


def _on_day(record: ReservationLike, target: date) -> bool:
    return _record_date(record) == target


def reservations_on_day(
    records: Iterable[ReservationLike],
    year: int,
    month: int,
    day: int,
) -> list[ReservationLike]:
    """
    Return the reservations dated exactly ``(year, month, day)``.

    The result is sorted by ``start_time`` ascending. The sort is stable, so
    reservations starting at the same time keep their input order. Records
    with a malformed date are skipped.
    """
    target = date(year, month + 1, day)
    matches = [r for r in records if _on_day(r, target)]
    return sorted(matches, key=_start_time_key)


def has_reservations(
    records: Iterable[ReservationLike],
    year: int,
    month: int,
    day: int,
) -> bool:
    """Return True as soon as one reservation falls on ``(year, month, day)``."""
    target = date(year, month + 1, day)
    return any(_on_day(r, target) for r in records)


def reservations_in_month(
    records: Iterable[ReservationLike],
    year: int,
    month: int,
) -> list[ReservationLike]:
    """Return the reservations of the displayed month, by date then start time."""
    dated = []
    for record in records:
        record_date = _record_date(record)
        if record_date is None:
            continue
        if (record_date.year, record_date.month) == (year, month + 1):
            dated.append((record_date, record))

    dated.sort(key=lambda item: (item[0], _start_time_key(item[1])))
    return [record for _, record in dated]


# ---------------------------------------------------------------------------
# Navigation state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MonthCursor:
    """
    Displayed month and selected day of the scheduling page.

    Every method returns a new cursor; a cursor is never mutated.
    """

    year: int
    month: int
    selected_day: Optional[int] = None
    firstweekday: int = calendar.SUNDAY

    @classmethod
    def today(
        cls,
        today: Optional[date] = None,
        firstweekday: int = calendar.SUNDAY,
    ) -> "MonthCursor":
        """Cursor on the current month with today's date selected."""
        today = today or date.today()
        return cls(
            year=today.year,
            month=today.month - 1,
            selected_day=today.day,
            firstweekday=firstweekday,
        )

    @property
    def label(self) -> str:
        return f"{MONTH_NAMES[self.month]} {self.year}"

    def previous(self) -> "MonthCursor":
        year, month = previous_month(self.year, self.month)
        return replace(self, year=year, month=month, selected_day=None)

    def next(self) -> "MonthCursor":
        year, month = next_month(self.year, self.month)
        return replace(self, year=year, month=month, selected_day=None)

    def with_month(self, month: int) -> "MonthCursor":
        return replace(self, month=month, selected_day=None)

    def with_year(self, year: int) -> "MonthCursor":
        return replace(self, year=year, selected_day=None)

    def select_day(self, day: int) -> "MonthCursor":
        """Select a day of the displayed month; out-of-range days are ignored."""
        if not 1 <= day <= days_in_month(self.year, self.month):
            return self
        return replace(self, selected_day=day)

    def select_cell(self, cell: CalendarCell) -> "MonthCursor":
        """Select a grid cell; cells of adjacent months are not selectable."""
        if not cell.is_current_month:
            return self
        return self.select_day(cell.day)

    def clear_selection(self) -> "MonthCursor":
        return replace(self, selected_day=None)

    def grid(self) -> CalendarMonthView:
        return build_month_grid(self.year, self.month, self.firstweekday)

    def selected_date(self) -> Optional[date]:
        if self.selected_day is None:
            return None
        return date(self.year, self.month + 1, self.selected_day)

    def visible_reservations(
        self, records: Sequence[ReservationLike]
    ) -> list[ReservationLike]:
        """Reservations of the selected day, or of the whole month without one."""
        if self.selected_day is None:
            return reservations_in_month(records, self.year, self.month)
        return reservations_on_day(records, self.year, self.month, self.selected_day)
