import pandas as pd
import pytest

from finance_desk.db import DatabaseConfig
from finance_desk.io import import_transactions, read_transactions
from finance_desk.models import CurrentUser
from finance_desk.records_service import list_transactions


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "test_db.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


USER = CurrentUser(id="user-1", email="owner@example.com")


def write_csv(tmp_path, content, name="transactions.csv"):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_read_transactions_typed_format(tmp_path):
    path = write_csv(
        tmp_path,
        "Date,Type,Category,Description,Amount,Payment_Method\n"
        "2025-01-10,Income,Sales,Invoice 1,1200.50,pix\n"
        "2025-01-12,expense,Office,Paper,35,\n",
    )
    df = read_transactions(path)

    assert list(df.columns) == [
        "date",
        "type",
        "category",
        "description",
        "amount",
        "payment_method",
        "status",
    ]
    assert df["type"].tolist() == ["income", "expense"]
    assert df["amount"].tolist() == [1200.5, 35.0]
    assert df["status"].tolist() == ["completed", "completed"]
    assert df.loc[0, "payment_method"] == "pix"
    assert pd.isna(df.loc[1, "payment_method"])
    assert pd.api.types.is_datetime64_any_dtype(df["date"])


def test_read_transactions_signed_format_with_label_alias(tmp_path):
    path = write_csv(
        tmp_path,
        "date,label,amount\n2025-02-01,Client payment,500\n2025-02-03,Rent,-800\n",
    )
    df = read_transactions(path)

    assert df["type"].tolist() == ["income", "expense"]
    assert df["amount"].tolist() == [500.0, 800.0]
    assert df["description"].tolist() == ["Client payment", "Rent"]
    assert df["category"].tolist() == ["Imported", "Imported"]


@pytest.mark.parametrize(
    "content",
    [
        "when,what,how_much\n2025-01-01,x,1\n",
        "date,description,amount\nnot-a-date,x,1\n",
        "date,description,amount\n2025-01-01,x,abc\n",
        "date,description,amount\n2025-01-01,x,0\n",
        "date,type,description,amount\n2025-01-01,transfer,x,1\n",
        "date,type,description,amount\n2025-01-01,income,x,-1\n",
        "date,description,amount,status\n2025-01-01,x,1,lost\n",
    ],
)
def test_read_transactions_rejects_invalid_files(tmp_path, content):
    path = write_csv(tmp_path, content)
    with pytest.raises(ValueError):
        read_transactions(path)


def test_import_transactions_inserts_rows(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    path = write_csv(
        tmp_path,
        "date,description,amount,status\n"
        "2025-02-01,Client payment,500,completed\n"
        "2025-02-03,Rent,-800,pending\n",
    )

    count = import_transactions(cfg, USER, read_transactions(path))

    assert count == 2
    stored = list_transactions(cfg, USER)
    assert [(t.type, t.amount, t.status) for t in stored] == [
        ("expense", 800.0, "pending"),
        ("income", 500.0, "completed"),
    ]


def test_import_transactions_is_all_or_nothing(tmp_path):
    """A single invalid row prevents the whole batch from being inserted."""
    cfg = make_tmp_db_cfg(tmp_path)
    df = pd.DataFrame(
        {
            "date": pd.to_datetime(["2025-02-01", "2025-02-02"]),
            "type": ["income", "income"],
            "category": ["Sales", "Sales"],
            "description": ["Valid", None],
            "amount": [100.0, 50.0],
            "payment_method": [None, None],
            "status": ["completed", "completed"],
        }
    )

    with pytest.raises(ValueError, match="Row 2"):
        import_transactions(cfg, USER, df)
    assert list_transactions(cfg, USER) == []


def test_import_transactions_stores_blank_payment_method_as_none(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    path = write_csv(
        tmp_path,
        "date,description,amount,payment_method\n2025-02-01,Client payment,500,\n",
    )

    import_transactions(cfg, USER, read_transactions(path))

    (stored,) = list_transactions(cfg, USER)
    assert stored.payment_method is None
    assert stored.description == "Client payment"


def test_import_transactions_rejects_blank_description_from_csv(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    path = write_csv(
        tmp_path,
        "date,description,amount\n2025-02-01,Client payment,500\n2025-02-02,,50\n",
    )
    df = read_transactions(path)
    assert df.loc[1, "description"] != "nan"

    with pytest.raises(ValueError, match="Row 2"):
        import_transactions(cfg, USER, df)
    assert list_transactions(cfg, USER) == []
