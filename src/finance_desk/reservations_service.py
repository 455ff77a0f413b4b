# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Reservation services for the scheduling page.

Reservations are appointments on a calendar day (no time zone) with a start
time, an optional end time, an optional client and a status:

    scheduled -> confirmed -> completed
           \\-----------------> cancelled

Any status can be set directly with `update_reservation_status`; the
`cancel_`, `confirm_` and `complete_reservation` helpers are shortcuts.

Every list is ordered by (date, start_time) ascending and each reservation
carries the name of its client when it has one. Queries relative to the
current day accept an explicit ``today`` so that the clock can be fixed.

The calendar grid itself (`calendar_grid.py`) works on the lists returned
here and never reads the database.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from .db import DatabaseConfig, get_row, select_rows, update_row
from .models import RESERVATION_STATUSES, CurrentUser, Reservation
from .records_service import (
    Converter,
    check_reference,
    choice_value,
    clean_values,
    create_record,
    date_value,
    delete_record,
    record_from_row,
    text_value,
)

logger = logging.getLogger(__name__)

DEFAULT_UPCOMING_DAYS = 7

CHRONOLOGICAL = [("date", "ASC"), ("start_time", "ASC")]


def time_value(value: Any) -> Optional[str]:
    """
    Normalize a time of day to zero-padded "HH:MM" (or "HH:MM:SS").

    Zero padding keeps the stored text sortable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, time):
        parsed = value
    else:
        parts = [int(p) for p in str(value).strip().split(":")]
        if not 2 <= len(parts) <= 3:
            raise ValueError("expected HH:MM or HH:MM:SS")
        parsed = time(*parts)
    if parsed.second:
        return parsed.strftime("%H:%M:%S")
    return parsed.strftime("%H:%M")


RESERVATION_RULES: dict[str, Converter] = {
    "client_id": text_value,
    "title": text_value,
    "description": text_value,
    "date": date_value,
    "start_time": time_value,
    "end_time": time_value,
    "status": choice_value(RESERVATION_STATUSES),
    "location": text_value,
}
RESERVATION_REQUIRED = ("title", "date", "start_time", "status")


def _today() -> date:
    return datetime.today().date()


def _fetch(cfg: DatabaseConfig, user: CurrentUser, **filters: Any) -> list[Reservation]:
    order_by = filters.pop("order_by", CHRONOLOGICAL)
    rows = select_rows(cfg, "reservations", user.id, order_by=order_by, **filters)
    logger.debug("Loaded %d reservation(s) for user %s", len(rows), user.id)
    return [record_from_row(Reservation, row) for row in rows]


def _check_times(start: Any, end: Any) -> None:
    if isinstance(start, str) and isinstance(end, str) and end < start:
        raise ValueError("Reservation end_time cannot be before start_time.")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def fetch_reservations(cfg: DatabaseConfig, user: CurrentUser) -> list[Reservation]:
    """Return every reservation of ``user``, by date then start time."""
    return _fetch(cfg, user)


def fetch_reservation_by_id(
    cfg: DatabaseConfig,
    user: CurrentUser,
    reservation_id: str,
) -> Optional[Reservation]:
    row = get_row(cfg, "reservations", user.id, reservation_id)
    return None if row is None else record_from_row(Reservation, row)


def fetch_reservations_by_date(
    cfg: DatabaseConfig,
    user: CurrentUser,
    day: date,
) -> list[Reservation]:
    """Return the reservations of one calendar day, by start time."""
    return _fetch(cfg, user, equals={"date": day}, order_by=[("start_time", "ASC")])


def fetch_reservations_by_client(
    cfg: DatabaseConfig,
    user: CurrentUser,
    client_id: str,
) -> list[Reservation]:
    return _fetch(cfg, user, equals={"client_id": client_id})


def fetch_reservations_by_status(
    cfg: DatabaseConfig,
    user: CurrentUser,
    status: str,
) -> list[Reservation]:
    if status not in RESERVATION_STATUSES:
        raise ValueError(f"Unknown reservation status: {status!r}")
    return _fetch(cfg, user, equals={"status": status})


def fetch_upcoming_reservations(
    cfg: DatabaseConfig,
    user: CurrentUser,
    *,
    days: int = DEFAULT_UPCOMING_DAYS,
    today: Optional[date] = None,
) -> list[Reservation]:
    """
    Return the reservations from today to today + ``days`` (inclusive).

    Cancelled reservations are excluded.
    """
    if days < 0:
        raise ValueError("days cannot be negative.")
    start = today or _today()
    return _fetch(
        cfg,
        user,
        not_equals={"status": "cancelled"},
        date_from=start,
        date_to=start + timedelta(days=days),
    )


def fetch_today_reservations(
    cfg: DatabaseConfig,
    user: CurrentUser,
    *,
    today: Optional[date] = None,
) -> list[Reservation]:
    return fetch_reservations_by_date(cfg, user, today or _today())


def count_reservations_by_status(cfg: DatabaseConfig, user: CurrentUser) -> dict[str, int]:
    """
    Count the reservations of ``user`` per status.

    Every known status is present in the result, with 0 when unused.
    Rows with an unknown status are ignored.
    """
    counts = {status: 0 for status in RESERVATION_STATUSES}
    for row in select_rows(cfg, "reservations", user.id):
        status = row.get("status")
        if status in counts:
            counts[status] += 1
    return counts


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def create_reservation(
    cfg: DatabaseConfig,
    user: CurrentUser,
    values: Mapping[str, Any],
) -> Reservation:
    """
    Create a reservation.

    Parameters
    ----------
    values:
        ``title``, ``date`` and ``start_time`` are required. ``status``
        defaults to "scheduled". Blank optional fields (description,
        end_time, client_id, location) are stored as NULL.

    Raises
    ------
    ValueError
        On missing or invalid fields, an end time before the start time, or
        a client that does not belong to ``user``.
    """
    cleaned = clean_values(
        "reservation",
        values,
        RESERVATION_RULES,
        required=RESERVATION_REQUIRED,
        defaults={"status": "scheduled"},
    )
    _check_times(cleaned.get("start_time"), cleaned.get("end_time"))
    check_reference(cfg, user, "clients", cleaned.get("client_id"))
    return create_record(cfg, user, "reservations", Reservation, cleaned)


def update_reservation(
    cfg: DatabaseConfig,
    user: CurrentUser,
    reservation_id: str,
    values: Mapping[str, Any],
) -> Reservation:
    """
    Apply a partial update to a reservation.

    Optional fields given as blank values are cleared.

    Raises
    ------
    LookupError
        If the reservation does not exist for this user.
    """
    cleaned = clean_values(
        "reservation",
        values,
        RESERVATION_RULES,
        required=RESERVATION_REQUIRED,
        partial=True,
    )

    if "start_time" in cleaned or "end_time" in cleaned:
        current = fetch_reservation_by_id(cfg, user, reservation_id)
        if current is None:
            raise LookupError(f"No reservation {reservation_id} for this user.")
        _check_times(
            cleaned.get("start_time", current.start_time),
            cleaned.get("end_time", current.end_time),
        )

    check_reference(cfg, user, "clients", cleaned.get("client_id"))

    row = update_row(cfg, "reservations", user.id, reservation_id, cleaned)
    logger.info("Updated reservation %s (%s)", reservation_id, ", ".join(sorted(cleaned)))
    return record_from_row(Reservation, row)


def update_reservation_status(
    cfg: DatabaseConfig,
    user: CurrentUser,
    reservation_id: str,
    status: str,
) -> Reservation:
    """
    Set the status of a reservation.

    Raises
    ------
    ValueError
        If ``status`` is not a reservation status.
    LookupError
        If the reservation does not exist for this user.
    """
    if status not in RESERVATION_STATUSES:
        raise ValueError(f"Unknown reservation status: {status!r}")

    row = update_row(cfg, "reservations", user.id, reservation_id, {"status": status})
    logger.info("Reservation %s is now %s", reservation_id, status)
    return record_from_row(Reservation, row)


def cancel_reservation(
    cfg: DatabaseConfig,
    user: CurrentUser,
    reservation_id: str,
) -> Reservation:
    return update_reservation_status(cfg, user, reservation_id, "cancelled")


def confirm_reservation(
    cfg: DatabaseConfig,
    user: CurrentUser,
    reservation_id: str,
) -> Reservation:
    return update_reservation_status(cfg, user, reservation_id, "confirmed")


def complete_reservation(
    cfg: DatabaseConfig,
    user: CurrentUser,
    reservation_id: str,
) -> Reservation:
    return update_reservation_status(cfg, user, reservation_id, "completed")


def delete_reservation(cfg: DatabaseConfig, user: CurrentUser, reservation_id: str) -> bool:
    """Delete a reservation. Returns False when nothing was deleted."""
    return delete_record(cfg, user, "reservations", reservation_id)
