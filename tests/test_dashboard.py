from datetime import date, datetime

import pandas as pd
import pytest

import finance_desk.records_service as records
from finance_desk.dashboard import (
    compute_dashboard_stats,
    load_dashboard,
    monthly_cash_flow,
    recent_transactions,
)
from finance_desk.db import DatabaseConfig
from finance_desk.models import Budget, CurrentUser, Investment, Reservation, Transaction
from finance_desk.periods import Period
from finance_desk.reservations_service import create_reservation


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "test_db.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


USER = CurrentUser(id="user-1", email="owner@example.com")


def make_transaction(type_, amount, day, status="completed", created=None):
    return Transaction(
        id=f"{type_}-{amount}-{day}",
        user_id=USER.id,
        type=type_,
        category="General",
        description="Test",
        amount=amount,
        date=day,
        payment_method=None,
        card_id=None,
        status=status,
        created_at=created,
    )


def make_budget(status):
    return Budget(
        id=status,
        user_id=USER.id,
        client_id=None,
        title="Quote",
        description=None,
        amount=100.0,
        status=status,
        valid_until=None,
        created_at=None,
        updated_at=None,
    )


def make_reservation(status, day=date(2024, 3, 15)):
    return Reservation(
        id=status,
        user_id=USER.id,
        client_id=None,
        title="Meeting",
        description=None,
        date=day,
        start_time="10:00",
        end_time=None,
        status=status,
        location=None,
        created_at=None,
        updated_at=None,
    )


def make_investment(current):
    return Investment(
        id=str(current),
        user_id=USER.id,
        name="Fund",
        type="funds",
        initial_amount=1000.0,
        current_amount=current,
        expected_return=0.0,
        start_date=date(2024, 1, 1),
        created_at=None,
    )


def test_compute_dashboard_stats_counts_completed_transactions_only():
    transactions = [
        make_transaction("income", 1000.0, date(2024, 3, 1)),
        make_transaction("income", 500.0, date(2024, 3, 2), status="pending"),
        make_transaction("expense", 250.0, date(2024, 3, 3)),
        make_transaction("expense", 80.0, date(2024, 3, 4), status="cancelled"),
    ]
    stats = compute_dashboard_stats(
        transactions=transactions,
        clients=[object(), object()],
        budgets=[make_budget(s) for s in ("pending", "approved", "rejected", "completed")],
        investments=[make_investment(1100.0), make_investment(900.5)],
        reservations=[
            make_reservation(s) for s in ("scheduled", "confirmed", "completed", "cancelled")
        ],
        projects=[object()],
    )

    assert stats.total_income == 1000.0
    assert stats.total_expenses == 250.0
    assert stats.balance == 750.0
    assert stats.monthly_profit == 750.0
    assert stats.profit_margin == pytest.approx(75.0)
    assert stats.total_clients == 2
    assert stats.active_budgets == 2
    assert stats.total_investments == 2000.5
    assert stats.active_reservations == 2
    assert stats.total_projects == 1


def test_compute_dashboard_stats_empty():
    stats = compute_dashboard_stats([], [], [], [], [], [])
    assert stats.total_income == 0.0
    assert stats.balance == 0.0
    assert stats.profit_margin == 0.0


def test_monthly_cash_flow():
    transactions = [
        make_transaction("income", 1000.0, date(2024, 1, 10)),
        make_transaction("expense", 300.0, date(2024, 1, 20)),
        make_transaction("expense", 50.0, date(2024, 2, 5)),
        make_transaction("income", 999.0, date(2024, 2, 6), status="pending"),
    ]
    df = monthly_cash_flow(transactions)

    assert list(df.columns) == ["month", "income", "expense", "net"]
    assert df["month"].tolist() == ["2024-01", "2024-02"]
    assert df["income"].tolist() == [1000.0, 0.0]
    assert df["expense"].tolist() == [300.0, 50.0]
    assert df["net"].tolist() == [700.0, -50.0]


def test_monthly_cash_flow_without_completed_transactions():
    df = monthly_cash_flow([make_transaction("income", 10.0, date(2024, 1, 1), "pending")])
    assert isinstance(df, pd.DataFrame)
    assert df.empty
    assert list(df.columns) == ["month", "income", "expense", "net"]


def test_recent_transactions_orders_by_date_then_creation():
    older = make_transaction("income", 1.0, date(2024, 1, 1))
    first = make_transaction("income", 2.0, date(2024, 2, 1), created=datetime(2024, 2, 1, 8))
    second = make_transaction("income", 3.0, date(2024, 2, 1), created=datetime(2024, 2, 1, 9))

    assert recent_transactions([older, first, second], limit=2) == [second, first]


def test_load_dashboard_applies_period_to_transactions_and_reservations(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    base = {"category": "Sales", "description": "Invoice"}
    records.create_transaction(
        cfg, USER, {**base, "type": "income", "amount": 1000, "date": "2024-03-05"}
    )
    records.create_transaction(
        cfg, USER, {**base, "type": "expense", "amount": 400, "date": "2024-03-10"}
    )
    records.create_transaction(
        cfg, USER, {**base, "type": "income", "amount": 5000, "date": "2024-01-05"}
    )
    records.create_client(cfg, USER, {"name": "ACME", "email": "a@acme.test"})
    create_reservation(
        cfg, USER, {"title": "In March", "date": "2024-03-18", "start_time": "10:00"}
    )
    create_reservation(
        cfg, USER, {"title": "In January", "date": "2024-01-18", "start_time": "10:00"}
    )

    march = Period(date(2024, 3, 1), date(2024, 3, 31), "March")
    dash = load_dashboard(cfg, USER, march, today=date(2024, 3, 15))

    assert dash.period == march
    assert dash.stats.total_income == 1000.0
    assert dash.stats.total_expenses == 400.0
    assert dash.stats.profit_margin == pytest.approx(60.0)
    assert dash.stats.total_clients == 1
    assert dash.stats.active_reservations == 1
    assert dash.cash_flow["month"].tolist() == ["2024-03"]
    assert [t.amount for t in dash.recent_transactions] == [400.0, 1000.0]
    assert [r.title for r in dash.upcoming_reservations] == ["In March"]

    everything = load_dashboard(cfg, USER, None, today=date(2024, 3, 15))
    assert everything.stats.total_income == 6000.0
    assert everything.stats.active_reservations == 2
