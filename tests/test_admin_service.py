import pytest

from finance_desk.admin_service import (
    delete_user,
    is_admin,
    list_users,
    register_user,
    resolve_current_user,
    set_user_active,
    set_user_admin,
)
from finance_desk.db import DatabaseConfig


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "test_db.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


def test_first_registered_user_becomes_admin(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)

    owner = register_user(cfg, "Owner@Example.com")
    staff = register_user(cfg, "staff@example.com", "Staff member")

    assert owner.email == "owner@example.com"
    assert owner.username == "owner"
    assert owner.is_admin is True
    assert staff.is_admin is False
    assert staff.username == "Staff member"


def test_register_rejects_duplicates_and_invalid_emails(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    register_user(cfg, "owner@example.com")

    with pytest.raises(ValueError):
        register_user(cfg, "OWNER@example.com")
    with pytest.raises(ValueError):
        register_user(cfg, "not-an-email")
    with pytest.raises(ValueError):
        register_user(cfg, "   ")


def test_resolve_current_user(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    owner = register_user(cfg, "owner@example.com")

    current = resolve_current_user(cfg, " OWNER@example.com ")
    assert current.id == owner.id
    assert current.email == "owner@example.com"

    with pytest.raises(PermissionError):
        resolve_current_user(cfg, None)
    with pytest.raises(PermissionError):
        resolve_current_user(cfg, "nobody@example.com")


def test_admin_only_operations(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    register_user(cfg, "owner@example.com")
    register_user(cfg, "staff@example.com")
    admin = resolve_current_user(cfg, "owner@example.com")
    staff = resolve_current_user(cfg, "staff@example.com")

    assert is_admin(cfg, admin) is True
    assert is_admin(cfg, staff) is False

    with pytest.raises(PermissionError):
        list_users(cfg, staff)
    with pytest.raises(PermissionError):
        set_user_active(cfg, staff, admin.id, False)

    assert {u.email for u in list_users(cfg, admin)} == {
        "owner@example.com",
        "staff@example.com",
    }


def test_deactivated_users_cannot_sign_in(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    register_user(cfg, "owner@example.com")
    register_user(cfg, "staff@example.com")
    admin = resolve_current_user(cfg, "owner@example.com")
    staff = resolve_current_user(cfg, "staff@example.com")

    profile = set_user_active(cfg, admin, staff.id, False)
    assert profile.is_active is False
    with pytest.raises(PermissionError):
        resolve_current_user(cfg, "staff@example.com")

    assert set_user_active(cfg, admin, staff.id, True).is_active is True
    assert resolve_current_user(cfg, "staff@example.com").id == staff.id


def test_admins_cannot_lock_themselves_out(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    register_user(cfg, "owner@example.com")
    admin = resolve_current_user(cfg, "owner@example.com")

    with pytest.raises(ValueError):
        set_user_active(cfg, admin, admin.id, False)
    with pytest.raises(ValueError):
        set_user_admin(cfg, admin, admin.id, False)
    with pytest.raises(ValueError):
        delete_user(cfg, admin, admin.id)
    with pytest.raises(LookupError):
        set_user_admin(cfg, admin, "missing", True)


def test_grant_revoke_and_delete(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    register_user(cfg, "owner@example.com")
    register_user(cfg, "staff@example.com")
    admin = resolve_current_user(cfg, "owner@example.com")
    staff = resolve_current_user(cfg, "staff@example.com")

    assert set_user_admin(cfg, admin, staff.id, True).is_admin is True
    assert is_admin(cfg, staff) is True
    assert set_user_admin(cfg, admin, staff.id, False).is_admin is False

    assert delete_user(cfg, admin, staff.id) is True
    assert delete_user(cfg, admin, staff.id) is False
    assert [u.email for u in list_users(cfg, admin)] == ["owner@example.com"]
