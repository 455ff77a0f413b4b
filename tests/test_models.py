import dataclasses
from datetime import date

import pytest

from finance_desk.models import (
    DEFAULT_STATUS_COLOR,
    RESERVATION_STATUS_COLORS,
    RESERVATION_STATUS_LABELS,
    RESERVATION_STATUSES,
    CurrentUser,
    Reservation,
    status_color,
    status_label,
)


def test_every_reservation_status_has_a_label_and_colour():
    assert set(RESERVATION_STATUS_LABELS) == set(RESERVATION_STATUSES)
    assert set(RESERVATION_STATUS_COLORS) == set(RESERVATION_STATUSES)


def test_status_lookups_fall_back_for_unknown_values():
    assert status_label(RESERVATION_STATUS_LABELS, "cancelled") == "Cancelled"
    assert status_label(RESERVATION_STATUS_LABELS, "archived") == "archived"
    assert status_color(RESERVATION_STATUS_COLORS, "cancelled") == "#D97D54"
    assert status_color(RESERVATION_STATUS_COLORS, "archived") == DEFAULT_STATUS_COLOR


def test_records_are_immutable():
    reservation = Reservation(
        id="r1",
        user_id="u",
        client_id=None,
        title="Meeting",
        description=None,
        date=date(2024, 3, 15),
        start_time="10:00",
        end_time=None,
        status="scheduled",
        location=None,
        created_at=None,
        updated_at=None,
    )
    assert reservation.client_name is None
    with pytest.raises(dataclasses.FrozenInstanceError):
        reservation.title = "Changed"

    with pytest.raises(dataclasses.FrozenInstanceError):
        CurrentUser(id="u", email="a@b.c").id = "other"
