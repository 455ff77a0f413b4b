# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Finance Desk
------------

A Python back-end for a small-business financial management dashboard,
with a command-line front-end.

Main capabilities:
- clients, budgets (quotes), transactions, payment cards, installment
  plans, investments and projects, stored per user in SQLite,
- reservations (appointments) with status transitions and a 6-week
  calendar grid for the scheduling page,
- dashboard statistics and a monthly cash-flow series,
- CSV import of transactions,
- admin-managed user profiles.

Finance Desk separates pure logic (calendar grid, financial arithmetic),
data access (SQLite, one user's rows at a time), configuration (TOML) and
presentation (CLI).


Version: 0.1.0

Usage:
    finance-desk --help
"""

__all__ = ["calendar_grid", "dashboard", "finance", "models"]

__version__ = "0.1.0"
