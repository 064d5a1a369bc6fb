"""Helpers that turn stored transactions into the canonical analysis frame."""

from __future__ import annotations

from dataclasses import asdict
from functools import lru_cache
from pathlib import Path
from typing import Any, Final, Iterable, Mapping, Union

import pandas as pd

from core.models import Transaction

__all__ = [
    "TRANSACTION_COLUMNS",
    "TransactionDataError",
    "build_transaction_frame",
    "load_transactions",
]


_CACHE_SIZE: Final[int] = 8

TRANSACTION_COLUMNS: Final[tuple[str, ...]] = (
    "id",
    "amount",
    "is_income",
    "is_ignored",
    "transaction_date",
    "category_id",
    "category_name",
    "counterparty_name",
    "raw_description",
    "merchant_id",
    "merchant",
)
_REQUIRED_COLUMNS: Final[frozenset[str]] = frozenset({"id", "amount", "transaction_date"})
_FLAG_COLUMNS: Final[tuple[str, ...]] = ("is_income", "is_ignored")
_TEXT_COLUMNS: Final[tuple[str, ...]] = (
    "category_id",
    "category_name",
    "counterparty_name",
    "raw_description",
    "merchant_id",
    "merchant",
)


class TransactionDataError(ValueError):
    """Raised when transaction records cannot form a valid analysis frame."""


TransactionLike = Union[Transaction, Mapping[str, Any]]


def build_transaction_frame(records: Iterable[TransactionLike]) -> pd.DataFrame:
    """Return a frame with the canonical columns built from ``records``.

    Records may be :class:`~core.models.Transaction` instances or mappings with
    the same keys. Missing optional fields become nulls.
    """

    rows = [asdict(record) if isinstance(record, Transaction) else dict(record) for record in records]
    if not rows:
        return _normalise(pd.DataFrame(columns=list(TRANSACTION_COLUMNS)))
    return _normalise(pd.DataFrame(rows))


@lru_cache(maxsize=_CACHE_SIZE)
def load_transactions(csv_path: str | Path) -> pd.DataFrame:
    """Return a parsed transactions frame for a canonical CSV export.

    Results are cached per path so repeated reports over the same export do
    not re-read the file.
    """

    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    df = pd.read_csv(path, dtype={"id": str, "category_id": str, "merchant_id": str})
    return _normalise(df)


def _normalise(df: pd.DataFrame) -> pd.DataFrame:
    missing = _REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise TransactionDataError(f"Missing required transaction columns: {', '.join(sorted(missing))}")

    df = df.copy()
    for column in TRANSACTION_COLUMNS:
        if column not in df.columns:
            df[column] = None

    try:
        df["amount"] = pd.to_numeric(df["amount"], errors="raise").astype(float)
    except (TypeError, ValueError) as exc:
        raise TransactionDataError("Transaction amounts must be numeric") from exc
    if df["amount"].isna().any():
        raise TransactionDataError("Transaction amounts must not be empty")
    if (df["amount"] < 0).any():
        raise TransactionDataError("Transaction amounts must not be negative; use is_income for direction")

    try:
        df["transaction_date"] = pd.to_datetime(df["transaction_date"], errors="raise").dt.normalize()
    except (TypeError, ValueError) as exc:
        raise TransactionDataError("Transaction dates could not be parsed") from exc

    for column in _FLAG_COLUMNS:
        df[column] = df[column].fillna(False).astype(bool)

    df["id"] = df["id"].astype(str)
    for column in _TEXT_COLUMNS:
        values = df[column].astype(object)
        df[column] = values.where(values.notna(), None)
    return df.loc[:, list(TRANSACTION_COLUMNS)].reset_index(drop=True)
