"""Recurring payment (subscription) detection helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from analytics.lexicon import DEFAULT_LEXICON, MerchantLexicon
from core.logging_setup import get_logger
from core.models import DetectedSubscription, SubscriptionFrequency, UpcomingPayment

__all__ = [
    "FREQUENCY_RANGES",
    "MONTHLY_FACTORS",
    "detect_subscriptions",
    "classify_frequency",
    "predict_next_payment",
    "calculate_monthly_total",
    "upcoming_payments",
]

logger = get_logger("pocketledger.analytics.recurring")

# Inclusive day-count bounds for the mean interval between payments.
FREQUENCY_RANGES: tuple[tuple[SubscriptionFrequency, float, float], ...] = (
    ("weekly", 6, 8),
    ("monthly", 28, 35),
    ("quarterly", 85, 100),
    ("annual", 350, 380),
)

MONTHLY_FACTORS: dict[str, float] = {
    "weekly": 4.33,
    "monthly": 1.0,
    "quarterly": 1 / 3,
    "annual": 1 / 12,
}

_PERIOD_STEPS: dict[str, relativedelta] = {
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "annual": relativedelta(years=1),
}

_AMOUNT_TOLERANCE = 0.05
_UNKNOWN_MERCHANT = "Unknown"


def detect_subscriptions(
    transactions: pd.DataFrame,
    today: Optional[date] = None,
    *,
    lexicon: MerchantLexicon = DEFAULT_LEXICON,
    min_transactions: int = 3,
    min_confidence: float = 0.5,
) -> list[DetectedSubscription]:
    """Identify recurring payments in a transaction frame.

    Parameters
    ----------
    transactions:
        Frame with the canonical transaction columns. Income and ignored rows
        are skipped.
    today:
        Reference date for ``days_until_due``. Defaults to the current date.
    lexicon:
        Supplies the known subscription brands and category markers.
    min_transactions:
        Smallest group size able to establish an interval pattern.
    min_confidence:
        Groups scoring below this are not reported.

    Returns
    -------
    list[DetectedSubscription]
        Ordered by days until the next predicted payment.
    """

    if transactions.empty:
        return []

    reference = _as_date(today) if today is not None else date.today()

    spend = transactions.loc[
        ~transactions["is_income"].astype(bool) & ~transactions["is_ignored"].astype(bool)
    ].copy()
    if spend.empty:
        return []

    spend["transaction_date"] = pd.to_datetime(spend["transaction_date"]).dt.normalize()
    spend["group_key"] = spend.apply(_group_key, axis=1)

    detected: list[DetectedSubscription] = []

    for group_key, group_df in spend.groupby("group_key", sort=False):
        if len(group_df) < min_transactions:
            logger.debug("Skipping %r: only %d transactions", group_key, len(group_df))
            continue

        group_df = group_df.sort_values(by="transaction_date", kind="stable")
        intervals = group_df["transaction_date"].diff().dt.days.dropna().abs().to_numpy(dtype=float)
        if intervals.size == 0:
            continue

        frequency = classify_frequency(float(intervals.mean()))
        if frequency is None:
            logger.debug("Skipping %r: mean interval %.1f days fits no cadence", group_key, intervals.mean())
            continue

        first_row = group_df.iloc[0]
        merchant_name = _merchant_name(first_row)
        category_name = _optional_str(first_row.get("category_name"))
        amounts = group_df["amount"].to_numpy(dtype=float)

        confidence = _score_confidence(
            amounts,
            intervals,
            merchant_name=merchant_name,
            category_name=category_name,
            lexicon=lexicon,
        )
        if confidence < min_confidence:
            logger.debug("Skipping %r: confidence %.2f below %.2f", group_key, confidence, min_confidence)
            continue

        last_payment = group_df["transaction_date"].iloc[-1].date()
        next_payment = predict_next_payment(last_payment, frequency)

        detected.append(
            {
                "merchant_key": str(group_key),
                "merchant_id": _optional_str(first_row.get("merchant_id")),
                "merchant_name": merchant_name,
                "frequency": frequency,
                "amount": round(float(amounts.mean()), 2),
                "confidence": round(confidence, 2),
                "last_payment": last_payment,
                "next_payment": next_payment,
                "days_until_due": (next_payment - reference).days,
                "transaction_count": int(len(group_df)),
                "category_id": _optional_str(first_row.get("category_id")),
                "category_name": category_name,
            }
        )

    detected.sort(key=lambda row: row["days_until_due"])
    return detected


def classify_frequency(mean_interval: float) -> Optional[SubscriptionFrequency]:
    """Map a mean payment interval in days to a cadence, or ``None``."""

    for frequency, low, high in FREQUENCY_RANGES:
        if low <= mean_interval <= high:
            return frequency
    return None


def predict_next_payment(last_payment: date, frequency: SubscriptionFrequency) -> date:
    """Advance ``last_payment`` by one period, clamping to month ends."""

    if frequency == "weekly":
        return last_payment + timedelta(days=7)
    return last_payment + _PERIOD_STEPS[frequency]


def calculate_monthly_total(subscriptions: Iterable[DetectedSubscription]) -> float:
    """Return the monthly-equivalent cost of ``subscriptions``."""

    total = sum(
        float(sub["amount"]) * MONTHLY_FACTORS.get(sub["frequency"], 0.0) for sub in subscriptions
    )
    return round(total, 2)


def upcoming_payments(
    subscriptions: Iterable[DetectedSubscription],
    today: date,
    days_ahead: int = 30,
) -> list[UpcomingPayment]:
    """List payments expected within ``days_ahead`` days of ``today``, soonest first."""

    reference = _as_date(today)
    payments: list[UpcomingPayment] = []
    for sub in subscriptions:
        days_until = (sub["next_payment"] - reference).days
        if 0 <= days_until <= days_ahead:
            payments.append(
                {
                    "date": sub["next_payment"],
                    "merchant_name": sub["merchant_name"],
                    "amount": sub["amount"],
                }
            )
    payments.sort(key=lambda row: row["date"])
    return payments


def _score_confidence(
    amounts: np.ndarray,
    intervals: np.ndarray,
    *,
    merchant_name: str,
    category_name: Optional[str],
    lexicon: MerchantLexicon,
) -> float:
    confidence = 0.0

    if _amounts_consistent(amounts):
        confidence += 0.3

    variation = _coefficient_of_variation(intervals)
    if variation < 0.15:
        confidence += 0.3
    elif variation < 0.25:
        confidence += 0.15

    lowered_name = merchant_name.lower()
    if any(brand in lowered_name for brand in lexicon.known_subscriptions):
        confidence += 0.2

    if category_name:
        lowered_category = category_name.lower()
        if any(marker in lowered_category for marker in lexicon.subscription_category_markers):
            confidence += 0.2

    confidence += min(0.1, 0.02 * len(amounts))
    return confidence


def _amounts_consistent(amounts: np.ndarray) -> bool:
    mean = float(amounts.mean())
    if mean <= 0:
        return False
    return bool(np.all(np.abs(amounts - mean) / mean <= _AMOUNT_TOLERANCE))


def _coefficient_of_variation(values: np.ndarray) -> float:
    if values.size < 2:
        return 0.0
    mean = float(values.mean())
    if mean == 0:
        return 0.0
    return float(values.std(ddof=0)) / mean


def _group_key(row: pd.Series) -> str:
    for column in ("merchant_id", "counterparty_name", "raw_description"):
        value = _optional_str(row.get(column))
        if value:
            return value
    return "unknown"


def _merchant_name(row: pd.Series) -> str:
    for column in ("merchant", "counterparty_name", "raw_description"):
        value = _optional_str(row.get(column))
        if value:
            return value
    return _UNKNOWN_MERCHANT


def _optional_str(value: object) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def _as_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()
