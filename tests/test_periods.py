from datetime import date
from types import SimpleNamespace

import pytest

import finance_desk.periods as periods


def test_period_mtd():
    """MTD should start at the first day of the current month."""
    p = periods.period_mtd(date(2025, 3, 15))
    assert p.start == date(2025, 3, 1)
    assert p.end == date(2025, 3, 15)


def test_period_ytd():
    """YTD should start at the first day of the current year."""
    p = periods.period_ytd(date(2025, 3, 15))
    assert p.start == date(2025, 1, 1)
    assert p.end == date(2025, 3, 15)


def test_period_last_month_wraps_year():
    """In January, 'last month' is December of the previous year."""
    p = periods.period_last_month(date(2025, 1, 10))
    assert p.start == date(2024, 12, 1)
    assert p.end == date(2024, 12, 31)

    leap = periods.period_last_month(date(2024, 3, 5))
    assert leap.end == date(2024, 2, 29)


def test_determine_period_uses_today_from_monkeypatch(monkeypatch):
    """The default 'today' comes from the patchable _today helper."""
    monkeypatch.setattr(periods, "_today", lambda: date(2025, 3, 15))

    p = periods.determine_period("mtd")
    assert p.start == date(2025, 3, 1)
    assert p.end == date(2025, 3, 15)


def test_determine_period_priority_and_all():
    today = date(2025, 3, 15)
    assert periods.determine_period(None, None, None, today) is None
    assert periods.determine_period("all", "2025-01-01", None, today) is None

    # A named period wins over custom dates
    p = periods.determine_period("ytd", "2024-01-01", "2024-12-31", today)
    assert p.start == date(2025, 1, 1)


def test_determine_period_custom_range():
    today = date(2025, 3, 15)

    p = periods.determine_period(None, "2025-02-01", "2025-02-28", today)
    assert (p.start, p.end) == (date(2025, 2, 1), date(2025, 2, 28))

    open_start = periods.determine_period(None, None, "2025-02-28", today)
    assert open_start.start == date.min

    open_end = periods.determine_period(None, "2025-02-01", None, today)
    assert open_end.end == today


def test_determine_period_errors():
    with pytest.raises(ValueError):
        periods.determine_period("quarter")
    with pytest.raises(ValueError):
        periods.determine_period(None, "2025-02-30", None)
    with pytest.raises(ValueError):
        periods.determine_period(None, "2025-03-01", "2025-02-01")


def test_filter_records_by_period():
    records = [
        SimpleNamespace(date=date(2025, 1, 31)),
        SimpleNamespace(date=date(2025, 2, 1)),
        SimpleNamespace(date=date(2025, 2, 28)),
        SimpleNamespace(date="garbage"),
    ]
    february = periods.Period(date(2025, 2, 1), date(2025, 2, 28), "February")

    kept = periods.filter_records_by_period(records, february)
    assert [r.date.day for r in kept] == [1, 28]
    assert periods.filter_records_by_period(records, None) == records
