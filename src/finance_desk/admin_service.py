# Finance Desk - Financial management dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
User directory and admin-only user management.

Authentication itself (passwords, one-time codes) is delegated to an
external identity provider and is not handled here. This module only knows
user profiles:

- `register_user` creates a profile. The very first profile of an empty
  directory is made an admin so that somebody can manage the others.
- `resolve_current_user` turns an email into the `CurrentUser` passed to
  every service call, and refuses unknown or deactivated profiles.
- The remaining functions manage other users and require the caller to be
  an admin. They raise PermissionError otherwise.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .db import (
    DatabaseConfig,
    delete_user_profile,
    get_user_profile,
    get_user_profile_by_email,
    insert_user_profile,
    list_user_profiles,
)
from .db import set_user_active as _db_set_user_active
from .db import set_user_admin as _db_set_user_admin
from .models import CurrentUser, UserProfile
from .records_service import email_value, record_from_row, text_value

logger = logging.getLogger(__name__)


def _to_profile(row: dict[str, Any]) -> UserProfile:
    return record_from_row(UserProfile, row)


def _require_admin(cfg: DatabaseConfig, user: CurrentUser) -> None:
    if not is_admin(cfg, user):
        raise PermissionError("Only administrators can manage users.")


def _require_profile(cfg: DatabaseConfig, user_id: str) -> UserProfile:
    row = get_user_profile(cfg, user_id)
    if row is None:
        raise LookupError(f"Unknown user id: {user_id!r}")
    return _to_profile(row)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


def register_user(
    cfg: DatabaseConfig,
    email: str,
    username: Optional[str] = None,
    *,
    is_admin: bool = False,
) -> UserProfile:
    """
    Create a user profile.

    Parameters
    ----------
    email:
        Unique email address (compared case-insensitively).
    username:
        Display name. Defaults to the local part of the email.
    is_admin:
        Grant the admin flag. The first profile is always an admin.

    Raises
    ------
    ValueError
        If the email is invalid or already registered.
    """
    clean_email = email_value(email)
    if clean_email is None:
        raise ValueError("An email address is required.")
    clean_email = clean_email.lower()

    if get_user_profile_by_email(cfg, clean_email) is not None:
        raise ValueError(f"A user with email {clean_email!r} already exists.")

    name = text_value(username) or clean_email.split("@", 1)[0]
    first_user = not list_user_profiles(cfg)

    row = insert_user_profile(cfg, clean_email, name, is_admin=is_admin or first_user)
    logger.info("Registered user %s (admin=%s)", clean_email, row["is_admin"])
    return _to_profile(row)


def resolve_current_user(cfg: DatabaseConfig, email: Optional[str]) -> CurrentUser:
    """
    Return the identity of the signed-in user.

    Raises
    ------
    PermissionError
        If no email is given, the profile is unknown, or it is deactivated.
    """
    if not email:
        raise PermissionError("Not authenticated: no user email configured.")

    row = get_user_profile_by_email(cfg, email.strip())
    if row is None:
        raise PermissionError(f"Not authenticated: unknown user {email!r}.")
    if not row["is_active"]:
        raise PermissionError(f"User {email!r} is deactivated.")

    return CurrentUser(id=row["id"], email=row["email"])


def is_admin(cfg: DatabaseConfig, user: CurrentUser) -> bool:
    row = get_user_profile(cfg, user.id)
    return bool(row and row["is_admin"] and row["is_active"])


# ---------------------------------------------------------------------------
# Admin-only management
# ---------------------------------------------------------------------------


def list_users(cfg: DatabaseConfig, user: CurrentUser) -> list[UserProfile]:
    """Return every profile, newest first (admin only)."""
    _require_admin(cfg, user)
    return [_to_profile(row) for row in list_user_profiles(cfg)]


def set_user_active(
    cfg: DatabaseConfig,
    user: CurrentUser,
    target_id: str,
    active: bool,
) -> UserProfile:
    """
    Activate or deactivate a profile (admin only).

    An admin cannot deactivate their own profile.
    """
    _require_admin(cfg, user)
    _require_profile(cfg, target_id)
    if target_id == user.id and not active:
        raise ValueError("You cannot deactivate your own account.")

    _db_set_user_active(cfg, target_id, active)
    logger.info("User %s active=%s (by %s)", target_id, active, user.email)
    return _require_profile(cfg, target_id)


def set_user_admin(
    cfg: DatabaseConfig,
    user: CurrentUser,
    target_id: str,
    admin: bool,
) -> UserProfile:
    """Grant or revoke the admin flag (admin only; not on oneself)."""
    _require_admin(cfg, user)
    _require_profile(cfg, target_id)
    if target_id == user.id and not admin:
        raise ValueError("You cannot revoke your own admin rights.")

    _db_set_user_admin(cfg, target_id, admin)
    logger.info("User %s admin=%s (by %s)", target_id, admin, user.email)
    return _require_profile(cfg, target_id)


def delete_user(cfg: DatabaseConfig, user: CurrentUser, target_id: str) -> bool:
    """
    Delete a profile and its admin flag (admin only).

    Business records owned by the deleted user are left in place.
    """
    _require_admin(cfg, user)
    if target_id == user.id:
        raise ValueError("You cannot delete your own account.")

    deleted = delete_user_profile(cfg, target_id)
    if deleted:
        logger.info("Deleted user %s (by %s)", target_id, user.email)
    return deleted
