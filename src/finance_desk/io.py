# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for Finance Desk.

This module handles reading transactions from a CSV file (a bank export or
a spreadsheet) and normalizing them into the structure expected by the
transaction services, then importing them for a user.

Expected input formats
----------------------

Two input formats are supported (column names are case-insensitive):

1) Typed format
   ------------
       date, type, category, description, amount

   - ``date``:        date of the transaction (YYYY-MM-DD)
   - ``type``:        "income" or "expense"
   - ``category``:    free text category
   - ``description``: free text label
   - ``amount``:      positive number

2) Signed amount format
   --------------------
       date, description, amount

   - ``amount`` is signed: negative amounts are expenses, positive amounts
     are income. The absolute value is kept.

Optional columns in both formats: ``category`` (default "Imported" when
absent), ``payment_method``, ``status`` (default "completed").

Label alias
-----------
The column ``label`` is accepted as an alias for ``description``.

Output schema
-------------
Regardless of the input format, `read_transactions` returns a DataFrame with
the columns:

    - ``date``           (datetime64[ns])
    - ``type``           (str, "income" | "expense")
    - ``category``       (str)
    - ``description``    (str)
    - ``amount``         (float, positive)
    - ``payment_method`` (str or None)
    - ``status``         (str)

Any other columns present in the input file are ignored. If the structure or
the values are invalid, a ValueError is raised and nothing is imported.
"""

import logging
import os
from typing import Any, Union

import pandas as pd

from .db import DatabaseConfig
from .models import TRANSACTION_STATUSES, TRANSACTION_TYPES, CurrentUser
from .records_service import (
    TRANSACTION_REQUIRED,
    TRANSACTION_RULES,
    clean_values,
    create_transaction,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Imported"

OUTPUT_COLUMNS = [
    "date",
    "type",
    "category",
    "description",
    "amount",
    "payment_method",
    "status",
]


def _parse_dates(d: pd.DataFrame) -> None:
    # Parse date strictly: invalid dates should fail loudly
    try:
        d["date"] = pd.to_datetime(d["date"], errors="raise", format="ISO8601")
    except (TypeError, ValueError) as exc:
        raise ValueError("Invalid values in 'date' column.") from exc


def _parse_amounts(d: pd.DataFrame) -> None:
    d["amount"] = pd.to_numeric(d["amount"], errors="coerce")
    if d["amount"].isna().any():
        raise ValueError("Invalid numeric values in 'amount' column.")


def _text_column(d: pd.DataFrame, column: str, default: Any) -> pd.Series:
    if column not in d.columns:
        return pd.Series([default] * len(d), index=d.index, dtype=object)
    return d[column].map(lambda v: default if pd.isna(v) else str(v).strip())


def read_transactions(path: Union[str, "os.PathLike[str]"]) -> pd.DataFrame:
    """
    Read transactions from a CSV file and normalize them.

    Parameters
    ----------
    path:
        Path to the CSV file.

    Returns
    -------
    pandas.DataFrame
        A DataFrame with the columns listed in the module docstring.

    Raises
    ------
    ValueError
        If the CSV does not contain one of the supported column sets, or if
        a date, amount, type or status value is invalid.
    """

    # Read the CSV file
    df = pd.read_csv(path)

    # Normalize column names to lowercase (to make the check case-insensitive)
    df.columns = [str(c).lower().strip() for c in df.columns]
    cols = set(df.columns)

    # 'label' -> 'description' if needed
    if "label" in cols and "description" not in cols:
        df = df.rename(columns={"label": "description"})
        cols = set(df.columns)

    required_typed = {"date", "type", "description", "amount"}
    required_signed = {"date", "description", "amount"}

    d = df.copy()

    # ----- Case 1: typed format ---------------------------------------------
    if required_typed.issubset(cols):
        _parse_dates(d)
        _parse_amounts(d)

        d["type"] = d["type"].astype(str).str.strip().str.lower()
        invalid_types = sorted(set(d["type"]) - set(TRANSACTION_TYPES))
        if invalid_types:
            raise ValueError(f"Invalid values in 'type' column: {invalid_types}")
        if (d["amount"] < 0).any():
            raise ValueError("Amounts must be positive when a 'type' column is given.")

    # ----- Case 2: signed amount format -------------------------------------
    elif required_signed.issubset(cols):
        _parse_dates(d)
        _parse_amounts(d)

        d["type"] = d["amount"].map(lambda v: "expense" if v < 0 else "income")
        d["amount"] = d["amount"].abs()

    # ----- Invalid structure → raise with clear message ---------------------
    else:
        raise ValueError(
            "Invalid transactions structure. Expected either:\n"
            "  - date, type, category, description, amount\n"
            "  - date, description, amount (signed)\n"
            "(column names are case-insensitive; 'label' is accepted as an alias "
            "for 'description')."
        )

    if (d["amount"] == 0).any():
        raise ValueError("Zero amounts cannot be imported.")

    d["category"] = _text_column(d, "category", DEFAULT_CATEGORY)
    d["description"] = _text_column(d, "description", "")
    d["payment_method"] = _text_column(d, "payment_method", None)
    d["status"] = _text_column(d, "status", "completed").str.lower()

    invalid_statuses = sorted(set(d["status"]) - set(TRANSACTION_STATUSES))
    if invalid_statuses:
        raise ValueError(f"Invalid values in 'status' column: {invalid_statuses}")

    out = d[OUTPUT_COLUMNS].copy()
    out["amount"] = out["amount"].astype(float)
    return out.reset_index(drop=True)


def _optional_text(value: Any) -> Any:
    # Missing cells may come back as NaN rather than None depending on pandas
    return None if pd.isna(value) else value


def _row_values(row: pd.Series) -> dict[str, Any]:
    return {
        "type": row["type"],
        "category": _optional_text(row["category"]),
        "description": _optional_text(row["description"]),
        "amount": float(row["amount"]),
        "date": row["date"].date(),
        "payment_method": _optional_text(row["payment_method"]),
        "status": row["status"],
    }


def import_transactions(
    cfg: DatabaseConfig,
    user: CurrentUser,
    transactions: pd.DataFrame,
) -> int:
    """
    Insert normalized transactions for ``user``.

    All rows are validated before the first insert, so an invalid row leaves
    the database untouched.

    Parameters
    ----------
    transactions:
        DataFrame as returned by `read_transactions`.

    Returns
    -------
    int
        Number of transactions inserted.
    """
    rows = [_row_values(row) for _, row in transactions.iterrows()]

    for index, values in enumerate(rows, start=1):
        try:
            clean_values(
                "transaction",
                values,
                TRANSACTION_RULES,
                required=TRANSACTION_REQUIRED,
            )
        except ValueError as exc:
            raise ValueError(f"Row {index}: {exc}") from exc

    for values in rows:
        create_transaction(cfg, user, values)

    logger.info("Imported %d transaction(s) for %s", len(rows), user.email)
    return len(rows)
