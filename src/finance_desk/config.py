# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for Finance Desk.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating each section and applying defaults,
- exposing typed dataclasses used by the rest of the application.
"""

import calendar
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .db import DatabaseConfig

DEFAULT_CONFIG_FILE = "finance_desk_config.toml"
DEFAULT_DB_PATH = "data/db/finance_desk.sqlite"

WEEKDAYS = {
    "sunday": calendar.SUNDAY,
    "monday": calendar.MONDAY,
}


@dataclass(frozen=True)
class CalendarConfig:
    """
    Scheduling page options.

    Attributes
    ----------
    first_weekday:
        First day of the week, as a ``calendar`` constant.
    upcoming_days:
        Size of the "upcoming reservations" window, in days after today.
    """

    first_weekday: int = calendar.SUNDAY
    upcoming_days: int = 7


@dataclass(frozen=True)
class DisplayConfig:
    """Console display options."""

    currency: str = "BRL"
    decimals: int = 2


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for Finance Desk.

    This aggregates:
    - the email of the default user (the identity used by the CLI),
    - the database configuration (where records are stored),
    - the calendar options,
    - the display options.
    """

    user_email: Optional[str]
    database: DatabaseConfig
    calendar: CalendarConfig
    display: DisplayConfig


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a top-level table, or an empty mapping when absent or malformed."""
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _parse_calendar(section: Mapping[str, Any]) -> CalendarConfig:
    """
    Extract and validate the [calendar] section.

    Raises:
        ValueError: on an unknown first weekday or a negative window.
    """
    weekday_raw = str(section.get("first_weekday", "sunday")).strip().lower()
    if weekday_raw not in WEEKDAYS:
        raise ValueError(
            f"Invalid calendar.first_weekday {weekday_raw!r}, "
            "expected 'sunday' or 'monday'."
        )

    try:
        upcoming_days = int(section.get("upcoming_days", 7))
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'calendar.upcoming_days'. Expected an integer."
        ) from exc
    if upcoming_days < 0:
        raise ValueError("'calendar.upcoming_days' cannot be negative.")

    return CalendarConfig(first_weekday=WEEKDAYS[weekday_raw], upcoming_days=upcoming_days)


def _parse_display(section: Mapping[str, Any]) -> DisplayConfig:
    currency = str(section.get("currency") or "BRL")
    try:
        decimals = int(section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2
    return DisplayConfig(currency=currency, decimals=decimals)


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the Finance Desk application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [user]
        ``email``: profile used by the CLI when ``--user`` is not given.

    [database]
        Defines the database engine and the SQLite file path.

    [calendar]
        ``first_weekday`` ("sunday" or "monday") and ``upcoming_days``.

    [display]
        ``currency`` label and number of ``decimals`` for amounts.

    Every section is optional and falls back to defaults. All file paths in
    the TOML are resolved relative to the directory of the TOML file itself.

    Parameters
    ----------
    config_path:
        Path to the TOML configuration file. Defaults to
        ``finance_desk_config.toml`` in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If the file is not valid TOML or contains invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) User section
    user_email = _section(raw, "user").get("email") or None
    if user_email is not None:
        user_email = str(user_email).strip() or None

    # 2) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or DEFAULT_DB_PATH
    db_path = (base_dir / str(db_path_raw)).resolve()

    database_config = DatabaseConfig(engine=db_engine, path=db_path)

    # 3) Calendar and display options
    calendar_config = _parse_calendar(_section(raw, "calendar"))
    display_config = _parse_display(_section(raw, "display"))

    return AppConfig(
        user_email=user_email,
        database=database_config,
        calendar=calendar_config,
        display=display_config,
    )
