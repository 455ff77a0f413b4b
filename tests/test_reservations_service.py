import sqlite3
from datetime import date

import pytest

import finance_desk.reservations_service as reservations
from finance_desk.calendar_grid import reservations_on_day
from finance_desk.db import DatabaseConfig, init_database
from finance_desk.models import CurrentUser
from finance_desk.records_service import create_client, delete_client


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "test_db.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


USER = CurrentUser(id="user-1", email="owner@example.com")
OTHER = CurrentUser(id="user-2", email="other@example.com")


def add(cfg, title, day, start, user=USER, **extra):
    values = {"title": title, "date": day, "start_time": start, **extra}
    return reservations.create_reservation(cfg, user, values)


def test_time_value_normalizes_to_zero_padded_text():
    assert reservations.time_value("9:05") == "09:05"
    assert reservations.time_value("14:30:00") == "14:30"
    assert reservations.time_value("14:30:15") == "14:30:15"
    assert reservations.time_value("") is None
    with pytest.raises(ValueError):
        reservations.time_value("25:00")
    with pytest.raises(ValueError):
        reservations.time_value("9")


def test_create_reservation_defaults(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)

    created = add(cfg, "Kick-off", "2024-03-15", "9:30", location="", description=" ")

    assert created.status == "scheduled"
    assert created.date == date(2024, 3, 15)
    assert created.start_time == "09:30"
    assert created.location is None
    assert created.description is None
    assert created.client_name is None


def test_create_reservation_validation(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)

    with pytest.raises(ValueError, match="Missing required"):
        reservations.create_reservation(cfg, USER, {"title": "No date", "start_time": "10:00"})
    with pytest.raises(ValueError, match="end_time"):
        add(cfg, "Backwards", "2024-03-15", "10:00", end_time="09:00")
    with pytest.raises(ValueError):
        add(cfg, "Bad status", "2024-03-15", "10:00", status="postponed")
    with pytest.raises(ValueError, match="Unknown client"):
        add(cfg, "Ghost client", "2024-03-15", "10:00", client_id="missing")


def test_queries_are_chronological_and_scoped(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    add(cfg, "Afternoon", "2024-03-15", "14:00")
    add(cfg, "Morning", "2024-03-15", "09:30")
    add(cfg, "Earlier day", "2024-03-02", "16:00")
    add(cfg, "Not mine", "2024-03-15", "08:00", user=OTHER)

    assert [r.title for r in reservations.fetch_reservations(cfg, USER)] == [
        "Earlier day",
        "Morning",
        "Afternoon",
    ]
    on_day = reservations.fetch_reservations_by_date(cfg, USER, date(2024, 3, 15))
    assert [r.title for r in on_day] == ["Morning", "Afternoon"]


def test_fetched_reservations_feed_the_calendar(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    add(cfg, "Afternoon", "2024-03-15", "14:00")
    add(cfg, "Morning", "2024-03-15", "9:30")

    found = reservations_on_day(reservations.fetch_reservations(cfg, USER), 2024, 2, 15)
    assert [r.start_time for r in found] == ["09:30", "14:00"]


def test_malformed_stored_date_is_kept_raw(tmp_path):
    """A row whose date is not ISO text is returned with the raw string."""
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)
    conn = sqlite3.connect(cfg.path)
    conn.execute(
        """
        INSERT INTO reservations (id, user_id, title, date, start_time, status, created_at)
        VALUES ('legacy', ?, 'Legacy', '15/03/2024', '10:00', 'scheduled',
                '2024-01-01T00:00:00+00:00');
        """,
        (USER.id,),
    )
    conn.commit()
    conn.close()

    legacy = reservations.fetch_reservation_by_id(cfg, USER, "legacy")
    assert legacy.date == "15/03/2024"
    assert reservations_on_day([legacy], 2024, 2, 15) == []


def test_fetch_by_client_and_status(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    client = create_client(cfg, USER, {"name": "ACME", "email": "a@acme.test"})
    mine = add(cfg, "With client", "2024-03-15", "10:00", client_id=client.id)
    add(cfg, "Alone", "2024-03-16", "10:00", status="confirmed")

    by_client = reservations.fetch_reservations_by_client(cfg, USER, client.id)
    assert [r.id for r in by_client] == [mine.id]
    assert by_client[0].client_name == "ACME"

    confirmed = reservations.fetch_reservations_by_status(cfg, USER, "confirmed")
    assert [r.title for r in confirmed] == ["Alone"]
    with pytest.raises(ValueError):
        reservations.fetch_reservations_by_status(cfg, USER, "unknown")

    # Deleting the client keeps the reservation without a client
    delete_client(cfg, USER, client.id)
    kept = reservations.fetch_reservation_by_id(cfg, USER, mine.id)
    assert kept.client_id is None
    assert kept.client_name is None


def test_upcoming_and_today(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    today = date(2024, 3, 15)
    add(cfg, "Yesterday", "2024-03-14", "10:00")
    add(cfg, "Today", "2024-03-15", "10:00")
    add(cfg, "In a week", "2024-03-22", "10:00")
    add(cfg, "Too far", "2024-03-23", "10:00")
    add(cfg, "Cancelled", "2024-03-16", "10:00", status="cancelled")

    upcoming = reservations.fetch_upcoming_reservations(cfg, USER, today=today)
    assert [r.title for r in upcoming] == ["Today", "In a week"]

    short = reservations.fetch_upcoming_reservations(cfg, USER, days=0, today=today)
    assert [r.title for r in short] == ["Today"]

    with pytest.raises(ValueError):
        reservations.fetch_upcoming_reservations(cfg, USER, days=-1, today=today)

    todays = reservations.fetch_today_reservations(cfg, USER, today=today)
    assert [r.title for r in todays] == ["Today"]


def test_status_transitions_and_counts(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    first = add(cfg, "First", "2024-03-15", "10:00")
    second = add(cfg, "Second", "2024-03-15", "11:00")
    third = add(cfg, "Third", "2024-03-15", "12:00")

    assert reservations.confirm_reservation(cfg, USER, first.id).status == "confirmed"
    assert reservations.cancel_reservation(cfg, USER, second.id).status == "cancelled"
    assert reservations.complete_reservation(cfg, USER, third.id).status == "completed"

    assert reservations.count_reservations_by_status(cfg, USER) == {
        "scheduled": 0,
        "confirmed": 1,
        "completed": 1,
        "cancelled": 1,
    }

    with pytest.raises(ValueError):
        reservations.update_reservation_status(cfg, USER, first.id, "postponed")
    with pytest.raises(LookupError):
        reservations.update_reservation_status(cfg, OTHER, first.id, "cancelled")


def test_update_and_delete_reservation(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    created = add(cfg, "Meeting", "2024-03-15", "10:00", end_time="11:00", location="Office")

    moved = reservations.update_reservation(
        cfg, USER, created.id, {"date": "2024-03-18", "location": ""}
    )
    assert moved.date == date(2024, 3, 18)
    assert moved.location is None
    assert moved.end_time == "11:00"

    with pytest.raises(ValueError, match="end_time"):
        reservations.update_reservation(cfg, USER, created.id, {"start_time": "12:00"})
    with pytest.raises(LookupError):
        reservations.update_reservation(cfg, OTHER, created.id, {"start_time": "08:00"})

    assert reservations.delete_reservation(cfg, OTHER, created.id) is False
    assert reservations.delete_reservation(cfg, USER, created.id) is True
    assert reservations.fetch_reservation_by_id(cfg, USER, created.id) is None
