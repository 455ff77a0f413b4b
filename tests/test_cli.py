import pytest

from finance_desk import __version__
from finance_desk.cli import main


def write_config(tmp_path, email="owner@example.com"):
    path = tmp_path / "finance_desk_config.toml"
    path.write_text(
        f'[user]\nemail = "{email}"\n\n[database]\npath = "cli.sqlite"\n',
        encoding="utf-8",
    )
    return str(path)


def run(config, *args):
    main(["--config", config, *args])


def test_version(capsys):
    main(["--version"])
    assert capsys.readouterr().out.strip() == f"finance_desk version {__version__}"


def test_missing_config_file_exits(tmp_path):
    with pytest.raises(SystemExit):
        main(["--config", str(tmp_path / "missing.toml"), "list", "clients"])


def test_unknown_user_is_refused(tmp_path):
    config = write_config(tmp_path, email="ghost@example.com")
    with pytest.raises(SystemExit) as excinfo:
        run(config, "list", "clients")
    assert "Not authenticated" in str(excinfo.value)


def test_register_add_and_list_records(tmp_path, capsys):
    config = write_config(tmp_path)
    run(config, "users", "register", "owner@example.com", "--username", "Owner")
    out = capsys.readouterr().out
    assert "owner@example.com" in out
    assert "yes" in out  # first user is admin

    run(config, "add", "clients", "--set", "name=ACME", "--set", "email=a@acme.test")
    assert "Created client" in capsys.readouterr().out

    run(config, "list", "clients")
    assert "ACME" in capsys.readouterr().out

    with pytest.raises(SystemExit):
        run(config, "add", "clients", "--set", "name-without-value")
    with pytest.raises(SystemExit):
        run(config, "add", "clients", "--set", "name=Missing email")


def test_calendar_shows_grid_and_selected_day(tmp_path, capsys):
    config = write_config(tmp_path)
    run(config, "users", "register", "owner@example.com")
    run(
        config,
        "reservations",
        "add",
        "--title",
        "Kick-off",
        "--date",
        "2024-03-15",
        "--start-time",
        "9:30",
    )
    capsys.readouterr()

    run(config, "calendar", "--year", "2024", "--month", "3", "--day", "15")
    out = capsys.readouterr().out

    assert "=== March 2024 ===" in out
    assert "[15*]" in out
    assert "Reservations on 2024-03-15" in out
    assert "Kick-off" in out
    assert "09:30" in out


def test_reservation_status_and_counts(tmp_path, capsys):
    config = write_config(tmp_path)
    run(config, "users", "register", "owner@example.com")
    capsys.readouterr()
    run(
        config,
        "reservations",
        "add",
        "--title",
        "Review",
        "--date",
        "2024-03-15",
        "--start-time",
        "10:00",
    )
    created_line = capsys.readouterr().out.splitlines()[0]
    reservation_id = created_line.split(": ", 1)[1]

    run(config, "reservations", "status", reservation_id, "confirmed")
    assert "Confirmed" in capsys.readouterr().out

    run(config, "reservations", "counts")
    out = capsys.readouterr().out
    assert "Confirmed" in out
    assert "Scheduled" in out


def test_import_and_dashboard(tmp_path, capsys):
    config = write_config(tmp_path)
    run(config, "users", "register", "owner@example.com")
    csv_path = tmp_path / "bank.csv"
    csv_path.write_text(
        "date,description,amount\n2024-03-01,Invoice,1000\n2024-03-02,Rent,-400\n",
        encoding="utf-8",
    )

    run(config, "import-transactions", str(csv_path))
    assert "Imported 2 transaction(s)." in capsys.readouterr().out

    run(config, "dashboard", "--from-date", "2024-03-01", "--to-date", "2024-03-31")
    out = capsys.readouterr().out
    assert "Applied period: Custom period" in out
    assert "=== Overview ===" in out
    assert "BRL 600.00" in out
    assert "2024-03" in out

    with pytest.raises(SystemExit):
        run(config, "dashboard", "--from-date", "2024-13-01")


def test_user_management_requires_admin(tmp_path, capsys):
    config = write_config(tmp_path)
    run(config, "users", "register", "owner@example.com")
    run(config, "users", "register", "staff@example.com")
    capsys.readouterr()

    with pytest.raises(SystemExit) as excinfo:
        run(config, "--user", "staff@example.com", "users", "list")
    assert "administrators" in str(excinfo.value)

    run(config, "users", "list")
    out = capsys.readouterr().out
    assert "staff@example.com" in out
