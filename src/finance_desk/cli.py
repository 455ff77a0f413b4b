# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for Finance Desk.

This module wires together the main building blocks of Finance Desk:

- application configuration (database, default user, calendar options),
- identity resolution (the user every command acts for),
- record and reservation services,
- calendar grid builder and dashboard computations,
- view helpers (tabular rendering with pandas).

The CLI is intentionally thin: it does not implement business logic itself.
It parses arguments, calls the services and prints DataFrames.


Configuration and identity
--------------------------

By default, the CLI reads its configuration from a TOML file named
``finance_desk_config.toml`` in the current working directory. You can
override this path using:

    --config PATH

Every command except ``users register`` acts for one user, given by:

    --user EMAIL

or, when omitted, by ``[user].email`` in the configuration. Unknown or
deactivated users are refused.


Commands
--------

calendar [--year Y] [--month 1-12] [--day D]
    Month grid of the scheduling page. Days with reservations are marked
    with ``*``; the selected day is shown in brackets. Below the grid, the
    reservations of the selected day (or of the whole month) are listed.
    Without arguments, the current month is shown with today selected.

reservations list|today|upcoming|counts|add|status|delete
    Reservation queries and mutations.

list KIND / add KIND --set field=value ... / update KIND ID --set ... /
delete KIND ID
    Generic record management for clients, budgets, transactions, cards,
    installments, investments and projects.

import-transactions CSV
    Import transactions from a CSV file (see ``finance_desk.io``).

dashboard [--period all|mtd|ytd|last-month] [--from-date] [--to-date]
    Headline statistics, monthly cash flow, recent transactions and
    upcoming reservations.

users register|list|activate|deactivate|grant-admin|revoke-admin
    User directory. Everything but ``register`` is reserved to admins.


Examples
--------

    finance-desk users register owner@example.com --username Owner
    finance-desk --user owner@example.com add clients \\
        --set name="ACME" --set email=contact@acme.test
    finance-desk --user owner@example.com reservations add \\
        --title "Kick-off" --date 2024-03-15 --start-time 09:30
    finance-desk --user owner@example.com calendar --year 2024 --month 3 --day 15


End of module description.
"""

import argparse
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from . import __version__
from . import records_service as records
from . import reservations_service as reservations
from .admin_service import (
    delete_user,
    list_users,
    register_user,
    resolve_current_user,
    set_user_active,
    set_user_admin,
)
from .calendar_grid import MonthCursor
from .config import AppConfig, load_app_config
from .dashboard import load_dashboard
from .db import init_database
from .finance import format_money
from .io import import_transactions, read_transactions
from .models import RESERVATION_STATUSES, CurrentUser
from .periods import PERIOD_NAMES, determine_period
from .views import (
    month_grid_table,
    records_to_dataframe,
    reservations_to_dataframe,
    selected_day_title,
    stats_to_dataframe,
    status_counts_to_dataframe,
    users_to_dataframe,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordKind:
    """Service functions backing the generic record commands."""

    list: Callable[..., list]
    create: Callable[..., Any]
    update: Callable[..., Any]
    delete: Callable[..., bool]


RECORD_KINDS: dict[str, RecordKind] = {
    "clients": RecordKind(
        records.list_clients,
        records.create_client,
        records.update_client,
        records.delete_client,
    ),
    "budgets": RecordKind(
        records.list_budgets,
        records.create_budget,
        records.update_budget,
        records.delete_budget,
    ),
    "transactions": RecordKind(
        records.list_transactions,
        records.create_transaction,
        records.update_transaction,
        records.delete_transaction,
    ),
    "cards": RecordKind(
        records.list_cards,
        records.create_card,
        records.update_card,
        records.delete_card,
    ),
    "installments": RecordKind(
        records.list_installments,
        records.create_installment,
        records.update_installment,
        records.delete_installment,
    ),
    "investments": RecordKind(
        records.list_investments,
        records.create_investment,
        records.update_investment,
        records.delete_investment,
    ),
    "projects": RecordKind(
        records.list_projects,
        records.create_project,
        records.update_project,
        records.delete_project,
    ),
}


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="finance-desk",
        description=(
            "Finance Desk - Financial management dashboard for small businesses. "
            "Manages clients, budgets, transactions, cards, installments, "
            "investments, projects and reservations, and renders the "
            "scheduling calendar and the dashboard."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of finance_desk and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. "
            "If omitted, 'finance_desk_config.toml' in the current directory is used."
        ),
    )
    ap.add_argument(
        "--user",
        dest="user_email",
        metavar="EMAIL",
        help="Email of the user to act for (overrides [user].email).",
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log service activity (INFO level) to stderr.",
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    # ------------------------------------------------------------------
    # calendar
    # ------------------------------------------------------------------
    calendar_parser = subparsers.add_parser(
        "calendar",
        help="Show the month grid with reservation markers.",
    )
    calendar_parser.add_argument("--year", type=int, help="Displayed year.")
    calendar_parser.add_argument(
        "--month",
        type=int,
        choices=range(1, 13),
        metavar="1-12",
        help="Displayed month (1 = January).",
    )
    calendar_parser.add_argument(
        "--day",
        type=int,
        help="Day to select; its reservations are listed below the grid.",
    )

    # ------------------------------------------------------------------
    # reservations
    # ------------------------------------------------------------------
    res_parser = subparsers.add_parser("reservations", help="Manage reservations.")
    res_sub = res_parser.add_subparsers(dest="reservations_command", metavar="action")

    res_list = res_sub.add_parser("list", help="List reservations.")
    res_list.add_argument("--status", choices=RESERVATION_STATUSES)
    res_list.add_argument("--client-id", dest="client_id")
    res_list.add_argument("--date", dest="on_date", help="Only this day (YYYY-MM-DD).")

    res_sub.add_parser("today", help="Reservations of today.")

    res_upcoming = res_sub.add_parser(
        "upcoming",
        help="Reservations of the coming days (cancelled ones excluded).",
    )
    res_upcoming.add_argument(
        "--days",
        type=int,
        help="Window size in days (default from [calendar].upcoming_days).",
    )

    res_sub.add_parser("counts", help="Number of reservations per status.")

    res_add = res_sub.add_parser("add", help="Create a reservation.")
    res_add.add_argument("--title", required=True)
    res_add.add_argument("--date", dest="on_date", help="Day (YYYY-MM-DD), default today.")
    res_add.add_argument("--start-time", dest="start_time", required=True, help="HH:MM")
    res_add.add_argument("--end-time", dest="end_time", help="HH:MM")
    res_add.add_argument("--description")
    res_add.add_argument("--client-id", dest="client_id")
    res_add.add_argument("--location")
    res_add.add_argument("--status", choices=RESERVATION_STATUSES)

    res_status = res_sub.add_parser("status", help="Change the status of a reservation.")
    res_status.add_argument("reservation_id")
    res_status.add_argument("status", choices=RESERVATION_STATUSES)

    res_delete = res_sub.add_parser("delete", help="Delete a reservation.")
    res_delete.add_argument("reservation_id")

    # ------------------------------------------------------------------
    # Generic records: list / add / update / delete
    # ------------------------------------------------------------------
    kinds = sorted(RECORD_KINDS)

    list_parser = subparsers.add_parser("list", help="List records of one kind.")
    list_parser.add_argument("kind", choices=kinds)

    add_parser = subparsers.add_parser("add", help="Create a record.")
    add_parser.add_argument("kind", choices=kinds)
    add_parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Field value (repeatable).",
    )

    update_parser = subparsers.add_parser("update", help="Update fields of a record.")
    update_parser.add_argument("kind", choices=kinds)
    update_parser.add_argument("record_id")
    update_parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Field value (repeatable). An empty value clears an optional field.",
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a record.")
    delete_parser.add_argument("kind", choices=kinds)
    delete_parser.add_argument("record_id")

    # ------------------------------------------------------------------
    # import-transactions
    # ------------------------------------------------------------------
    import_parser = subparsers.add_parser(
        "import-transactions",
        help="Import transactions from a CSV file.",
    )
    import_parser.add_argument("csv_path", metavar="CSV")

    # ------------------------------------------------------------------
    # dashboard
    # ------------------------------------------------------------------
    dash_parser = subparsers.add_parser("dashboard", help="Show the dashboard.")
    dash_parser.add_argument(
        "--period",
        choices=PERIOD_NAMES,
        help="Predefined period for transactions and reservations.",
    )
    dash_parser.add_argument(
        "--from-date",
        dest="from_date",
        help="Custom period start date (YYYY-MM-DD).",
    )
    dash_parser.add_argument(
        "--to-date",
        dest="to_date",
        help="Custom period end date (YYYY-MM-DD), default today.",
    )

    # ------------------------------------------------------------------
    # users
    # ------------------------------------------------------------------
    users_parser = subparsers.add_parser("users", help="Manage user profiles.")
    users_sub = users_parser.add_subparsers(dest="users_command", metavar="action")

    users_register = users_sub.add_parser("register", help="Create a user profile.")
    users_register.add_argument("email")
    users_register.add_argument("--username")
    users_register.add_argument("--admin", action="store_true")

    users_sub.add_parser("list", help="List user profiles (admin only).")
    for action, help_text in (
        ("activate", "Reactivate a user."),
        ("deactivate", "Deactivate a user."),
        ("grant-admin", "Grant admin rights."),
        ("revoke-admin", "Revoke admin rights."),
        ("delete", "Delete a user profile."),
    ):
        action_parser = users_sub.add_parser(action, help=help_text)
        action_parser.add_argument("target_id", metavar="USER_ID")

    return ap


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _parse_assignments(assignments: Sequence[str]) -> dict[str, str]:
    """Turn ``["name=ACME", "email=a@b.c"]`` into a dict."""
    values: dict[str, str] = {}
    for item in assignments:
        field, sep, value = item.partition("=")
        if not sep or not field.strip():
            raise SystemExit(f"Invalid --set value {item!r}. Expected FIELD=VALUE.")
        values[field.strip()] = value
    return values


def _print_table(df: pd.DataFrame, empty_message: str) -> None:
    if df.empty:
        print(empty_message)
        return
    print(df.to_string(index=False))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_calendar(args: argparse.Namespace, config: AppConfig, user: CurrentUser) -> None:
    """
    Handle the 'calendar' command.

    Without --year/--month/--day the current month is shown with today
    selected. A --day outside the displayed month is ignored.
    """
    firstweekday = config.calendar.first_weekday
    today = date.today()

    if args.year is None and args.month is None and args.day is None:
        cursor = MonthCursor.today(today, firstweekday=firstweekday)
    else:
        cursor = MonthCursor(
            year=args.year if args.year is not None else today.year,
            month=(args.month if args.month is not None else today.month) - 1,
            firstweekday=firstweekday,
        )
        if args.day is not None:
            selected = cursor.select_day(args.day)
            if selected.selected_day is None:
                print(f"Day {args.day} is not part of {cursor.label}; nothing selected.")
            cursor = selected

    all_reservations = reservations.fetch_reservations(config.database, user)

    print(f"=== {cursor.label} ===")
    print(month_grid_table(cursor, all_reservations).to_string(index=False))
    print()
    print(selected_day_title(cursor))
    visible = cursor.visible_reservations(all_reservations)
    _print_table(reservations_to_dataframe(visible), "No reservations.")


def _handle_reservations(
    args: argparse.Namespace,
    config: AppConfig,
    user: CurrentUser,
) -> None:
    """Dispatch function for the 'reservations' subcommands."""
    cfg = config.database
    subcmd = getattr(args, "reservations_command", None)

    if subcmd == "list":
        on_date = _parse_optional_date(args.on_date)
        if on_date is not None:
            found = reservations.fetch_reservations_by_date(cfg, user, on_date)
        elif args.status:
            found = reservations.fetch_reservations_by_status(cfg, user, args.status)
        elif args.client_id:
            found = reservations.fetch_reservations_by_client(cfg, user, args.client_id)
        else:
            found = reservations.fetch_reservations(cfg, user)
        _print_table(reservations_to_dataframe(found), "No reservations found.")

    elif subcmd == "today":
        found = reservations.fetch_today_reservations(cfg, user)
        _print_table(reservations_to_dataframe(found), "No reservations today.")

    elif subcmd == "upcoming":
        days = args.days if args.days is not None else config.calendar.upcoming_days
        found = reservations.fetch_upcoming_reservations(cfg, user, days=days)
        print(f"Upcoming reservations (next {days} days):")
        _print_table(reservations_to_dataframe(found), "No upcoming reservations.")

    elif subcmd == "counts":
        counts = reservations.count_reservations_by_status(cfg, user)
        print(status_counts_to_dataframe(counts).to_string(index=False))

    elif subcmd == "add":
        values = {
            "title": args.title,
            "date": _parse_optional_date(args.on_date) or date.today(),
            "start_time": args.start_time,
            "end_time": args.end_time,
            "description": args.description,
            "client_id": args.client_id,
            "location": args.location,
            "status": args.status,
        }
        created = reservations.create_reservation(cfg, user, values)
        print(f"Reservation created: {created.id}")
        print(reservations_to_dataframe([created]).to_string(index=False))

    elif subcmd == "status":
        updated = reservations.update_reservation_status(
            cfg, user, args.reservation_id, args.status
        )
        print(reservations_to_dataframe([updated]).to_string(index=False))

    elif subcmd == "delete":
        if reservations.delete_reservation(cfg, user, args.reservation_id):
            print(f"Reservation {args.reservation_id} deleted.")
        else:
            print(f"No reservation {args.reservation_id} found.")

    else:
        print(
            "No reservations subcommand specified. Available subcommands are: "
            "'list', 'today', 'upcoming', 'counts', 'add', 'status', 'delete'."
        )


def _handle_list(args: argparse.Namespace, config: AppConfig, user: CurrentUser) -> None:
    kind = RECORD_KINDS[args.kind]
    found = kind.list(config.database, user)
    _print_table(records_to_dataframe(args.kind, found), f"No {args.kind} found.")
    if found and args.kind == "transactions":
        # Net of completed transactions only, as on the dashboard.
        net = sum(
            t.amount if t.type == "income" else -t.amount
            for t in found
            if t.status == "completed"
        )
        display = config.display
        print()
        print(
            f"Total transactions: {len(found)} | "
            f"Net (completed): {format_money(net, display.currency, display.decimals)}"
        )


def _handle_add(args: argparse.Namespace, config: AppConfig, user: CurrentUser) -> None:
    values = _parse_assignments(args.assignments)
    created = RECORD_KINDS[args.kind].create(config.database, user, values)
    print(f"Created {args.kind[:-1]} {created.id}")
    print(records_to_dataframe(args.kind, [created]).to_string(index=False))


def _handle_update(args: argparse.Namespace, config: AppConfig, user: CurrentUser) -> None:
    values = _parse_assignments(args.assignments)
    if not values:
        raise SystemExit("Nothing to update: use --set FIELD=VALUE.")
    updated = RECORD_KINDS[args.kind].update(config.database, user, args.record_id, values)
    print(records_to_dataframe(args.kind, [updated]).to_string(index=False))


def _handle_delete(args: argparse.Namespace, config: AppConfig, user: CurrentUser) -> None:
    if RECORD_KINDS[args.kind].delete(config.database, user, args.record_id):
        print(f"Deleted {args.kind[:-1]} {args.record_id}")
    else:
        print(f"No {args.kind[:-1]} {args.record_id} found.")


def _handle_import(args: argparse.Namespace, config: AppConfig, user: CurrentUser) -> None:
    csv_path = Path(args.csv_path)
    if not csv_path.is_file():
        raise SystemExit(f"CSV file not found: {csv_path}")

    print(f"Importing transactions from {csv_path}...")
    df_import = read_transactions(csv_path)
    count = import_transactions(config.database, user, df_import)
    print(f"Imported {count} transaction(s).")


def _handle_dashboard(
    args: argparse.Namespace,
    config: AppConfig,
    user: CurrentUser,
) -> None:
    """
    Handle the 'dashboard' command.

    A predefined --period wins over --from-date/--to-date.
    """
    period = determine_period(args.period, args.from_date, args.to_date)
    dash = load_dashboard(
        config.database,
        user,
        period,
        upcoming_days=config.calendar.upcoming_days,
    )
    display = config.display

    if period is None:
        print("Applied period: all records")
    else:
        print(
            f"Applied period: {period.label} "
            f"({period.start.isoformat()} -> {period.end.isoformat()})"
        )

    print()
    print("=== Overview ===")
    stats_df = stats_to_dataframe(dash.stats, display.currency, display.decimals)
    print(stats_df.to_string(index=False))

    print()
    print("=== Monthly cash flow ===")
    _print_table(dash.cash_flow, "No completed transactions.")

    print()
    print("=== Recent transactions ===")
    _print_table(
        records_to_dataframe("transactions", dash.recent_transactions),
        "No transactions.",
    )

    print()
    print("=== Upcoming reservations ===")
    _print_table(
        reservations_to_dataframe(dash.upcoming_reservations),
        "No upcoming reservations.",
    )


def _handle_users(args: argparse.Namespace, config: AppConfig, user: CurrentUser) -> None:
    """Dispatch function for the admin-only 'users' subcommands."""
    cfg = config.database
    subcmd = getattr(args, "users_command", None)

    if subcmd == "list":
        print(users_to_dataframe(list_users(cfg, user)).to_string(index=False))
        return

    if subcmd == "delete":
        if delete_user(cfg, user, args.target_id):
            print(f"User {args.target_id} deleted.")
        else:
            print(f"No user {args.target_id} found.")
        return

    if subcmd in {"activate", "deactivate"}:
        profile = set_user_active(cfg, user, args.target_id, subcmd == "activate")
    elif subcmd in {"grant-admin", "revoke-admin"}:
        profile = set_user_admin(cfg, user, args.target_id, subcmd == "grant-admin")
    else:
        print(
            "No users subcommand specified. Available subcommands are: 'register', "
            "'list', 'activate', 'deactivate', 'grant-admin', 'revoke-admin', 'delete'."
        )
        return

    print(users_to_dataframe([profile]).to_string(index=False))


HANDLERS: dict[str, Callable[[argparse.Namespace, AppConfig, CurrentUser], None]] = {
    "calendar": _handle_calendar,
    "reservations": _handle_reservations,
    "list": _handle_list,
    "add": _handle_add,
    "update": _handle_update,
    "delete": _handle_delete,
    "import-transactions": _handle_import,
    "dashboard": _handle_dashboard,
    "users": _handle_users,
}


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the Finance Desk CLI.

    This function parses command-line arguments, configures logging, loads
    the application configuration, initializes the database, resolves the
    current user and dispatches to the selected command. Invalid input and
    authorization failures end the program with an error message.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"finance_desk version {__version__}")
        return

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return

    # 1) Load application configuration (database, user, calendar, display)
    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    # 2) Initialize the database (create file and schema if needed)
    init_database(config.database)

    try:
        # 3) Registration is the only command without a signed-in user.
        if args.command == "users" and args.users_command == "register":
            profile = register_user(
                config.database, args.email, args.username, is_admin=args.admin
            )
            print(users_to_dataframe([profile]).to_string(index=False))
            return

        # 4) Resolve the current user and run the command.
        user = resolve_current_user(config.database, args.user_email or config.user_email)
        logger.info("Running %r for %s", args.command, user.email)
        HANDLERS[args.command](args, config, user)
    except (ValueError, LookupError, PermissionError) as exc:
        raise SystemExit(f"Error: {exc}") from exc


if __name__ == "__main__":
    main()
