# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Financial arithmetic shared by the services and the dashboard.

All helpers are pure functions on floats. Division by zero is never raised:
a ratio with a zero (or negative) base returns 0.0, which is what the
dashboard displays for an empty period.
"""


def installment_value(total_amount: float, installments: int) -> float:
    """
    Return the value of one installment, rounded to cents.

    Raises
    ------
    ValueError
        If ``installments`` is lower than 1.
    """
    if installments < 1:
        raise ValueError("Number of installments must be at least 1.")
    return round(total_amount / installments, 2)


def profit_margin(profit: float, income: float) -> float:
    """Profit as a percentage of income (0.0 when there is no income)."""
    if income <= 0:
        return 0.0
    return profit / income * 100.0


def investment_profit(initial_amount: float, current_amount: float) -> float:
    """Absolute gain (positive) or loss (negative) of an investment."""
    return current_amount - initial_amount


def investment_return_pct(initial_amount: float, current_amount: float) -> float:
    """Return of an investment in percent of the amount initially invested."""
    if initial_amount == 0:
        return 0.0
    return (current_amount - initial_amount) / initial_amount * 100.0


def format_money(amount: float, currency: str = "", decimals: int = 2) -> str:
    """Format an amount for console display, e.g. ``"BRL 1,234.50"``."""
    text = f"{amount:,.{decimals}f}"
    return f"{currency} {text}" if currency else text


def format_signed_pct(value: float, decimals: int = 2) -> str:
    """Format a percentage with an explicit sign, e.g. ``"+12.50%"``."""
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}%"
