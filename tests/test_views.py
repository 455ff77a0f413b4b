from datetime import date, datetime

from finance_desk.calendar_grid import MonthCursor
from finance_desk.models import (
    DashboardStats,
    Investment,
    Reservation,
    Transaction,
    UserProfile,
)
from finance_desk.views import (
    month_grid_table,
    records_to_dataframe,
    reservations_to_dataframe,
    selected_day_title,
    stats_to_dataframe,
    status_counts_to_dataframe,
    users_to_dataframe,
)


def make_reservation(day, start="10:00", status="scheduled", title="Meeting"):
    return Reservation(
        id=f"{day}-{start}",
        user_id="u",
        client_id=None,
        title=title,
        description=None,
        date=day,
        start_time=start,
        end_time=None,
        status=status,
        location=None,
        created_at=None,
        updated_at=None,
        client_name="ACME",
    )


def test_month_grid_table_marks_reservations_and_selection():
    cursor = MonthCursor(2024, 2).select_day(15)
    reservations = [
        make_reservation(date(2024, 3, 15)),
        make_reservation(date(2024, 3, 20)),
        make_reservation(date(2024, 2, 26)),  # adjacent month, never marked
    ]
    table = month_grid_table(cursor, reservations)

    assert table.shape == (6, 7)
    assert list(table.columns) == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

    cells = table.to_numpy().ravel().tolist()
    assert cells[:6] == ["(25)", "(26)", "(27)", "(28)", "(29)", "1"]
    assert "[15*]" in cells
    assert "20*" in cells
    assert "16" in cells


def test_reservations_to_dataframe_uses_status_labels():
    df = reservations_to_dataframe([make_reservation(date(2024, 3, 15), status="confirmed")])
    row = df.iloc[0]
    assert row["date"] == "2024-03-15"
    assert row["status"] == "Confirmed"
    assert row["client"] == "ACME"

    assert reservations_to_dataframe([]).empty


def test_records_to_dataframe_transactions_and_investments():
    transaction = Transaction(
        id="t1",
        user_id="u",
        type="income",
        category="Sales",
        description="Invoice",
        amount=100.0,
        date=date(2024, 3, 1),
        payment_method=None,
        card_id=None,
        status="completed",
        created_at=None,
    )
    df = records_to_dataframe("transactions", [transaction])
    assert df.iloc[0]["type"] == "Income"
    assert df.iloc[0]["date"] == "2024-03-01"

    investment = Investment(
        id="i1",
        user_id="u",
        name="Fund",
        type="funds",
        initial_amount=1000.0,
        current_amount=1100.0,
        expected_return=0.0,
        start_date=date(2024, 1, 1),
        created_at=None,
    )
    df = records_to_dataframe("investments", [investment])
    assert df.iloc[0]["return_pct"] == "+10.00%"

    assert list(records_to_dataframe("clients", []).columns)[0] == "id"


def test_stats_users_and_counts_tables():
    stats = DashboardStats(
        total_income=1000.0,
        total_expenses=250.0,
        balance=750.0,
        monthly_profit=750.0,
        profit_margin=75.0,
        total_clients=2,
        active_budgets=1,
        total_investments=0.0,
        active_reservations=3,
        total_projects=0,
    )
    table = stats_to_dataframe(stats, "BRL")
    values = dict(zip(table["indicator"], table["value"]))
    assert values["Total income"] == "BRL 1,000.00"
    assert values["Profit margin"] == "75.00%"
    assert values["Active reservations"] == "3"

    users = users_to_dataframe(
        [
            UserProfile(
                id="1",
                email="owner@example.com",
                username="owner",
                is_active=True,
                is_admin=True,
                created_at=datetime(2024, 1, 1, 12, 0),
            )
        ]
    )
    assert users.iloc[0]["admin"] == "yes"

    counts = status_counts_to_dataframe({"scheduled": 2, "cancelled": 0})
    assert counts["status"].tolist() == ["Scheduled", "Cancelled"]


def test_selected_day_title():
    cursor = MonthCursor(2024, 2)
    assert selected_day_title(cursor) == "Reservations in March 2024"
    assert selected_day_title(cursor.select_day(15)) == "Reservations on 2024-03-15"
