"""Tests for building and loading canonical transaction frames."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from core.data_loader import (
    TRANSACTION_COLUMNS,
    TransactionDataError,
    build_transaction_frame,
    load_transactions,
)
from core.models import Transaction


def test_build_from_records_and_mappings():
    frame = build_transaction_frame(
        [
            Transaction(id="t1", amount=12.5, transaction_date=date(2024, 1, 3), counterparty_name="LIDL 1234"),
            {"id": "t2", "amount": 2000, "transaction_date": date(2024, 1, 5), "is_income": True},
        ]
    )

    assert tuple(frame.columns) == TRANSACTION_COLUMNS
    assert frame["amount"].tolist() == [12.5, 2000.0]
    assert frame["is_income"].tolist() == [False, True]
    assert frame["transaction_date"].tolist() == [pd.Timestamp("2024-01-03"), pd.Timestamp("2024-01-05")]
    assert frame.loc[1, "counterparty_name"] is None


def test_empty_input_gives_empty_canonical_frame():
    frame = build_transaction_frame([])

    assert frame.empty
    assert tuple(frame.columns) == TRANSACTION_COLUMNS


@pytest.mark.parametrize(
    "record",
    [
        {"id": "x", "amount": -5.0, "transaction_date": "2024-01-01"},
        {"id": "x", "amount": "lots", "transaction_date": "2024-01-01"},
        {"id": "x", "amount": 5.0, "transaction_date": "someday"},
        {"id": "x", "transaction_date": "2024-01-01"},
    ],
)
def test_invalid_records_raise(record):
    with pytest.raises(TransactionDataError):
        build_transaction_frame([record])


def test_load_transactions_from_csv(tmp_path):
    csv_path = tmp_path / "transactions.csv"
    pd.DataFrame(
        [
            {"id": "1", "amount": 43.0, "transaction_date": "2024-01-05", "is_income": False, "merchant_id": "netflix"},
            {"id": "2", "amount": 3000.0, "transaction_date": "2024-01-01", "is_income": True, "merchant_id": None},
        ]
    ).to_csv(csv_path, index=False)

    frame = load_transactions(str(csv_path))

    assert frame["is_income"].tolist() == [False, True]
    assert frame["is_ignored"].tolist() == [False, False]
    assert frame["merchant_id"].tolist() == ["netflix", None]
    assert load_transactions(str(csv_path)) is frame


def test_load_transactions_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_transactions(str(tmp_path / "missing.csv"))
