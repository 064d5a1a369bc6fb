"""Tests for subscription detection over transaction frames."""

from __future__ import annotations

from datetime import date, timedelta

import pandas as pd
import pytest

from analytics.recurring import (
    calculate_monthly_total,
    classify_frequency,
    detect_subscriptions,
    predict_next_payment,
    upcoming_payments,
)
from core.data_loader import build_transaction_frame


def _series(prefix: str, start: date, step_days: list[int], amounts: list[float], **fields) -> list[dict]:
    rows = []
    day = start
    for index, amount in enumerate(amounts):
        if index:
            day += timedelta(days=step_days[index - 1])
        rows.append({"id": f"{prefix}-{index}", "amount": amount, "transaction_date": day, **fields})
    return rows


@pytest.fixture()
def subscription_frame() -> pd.DataFrame:
    rows = [
        *_series(
            "netflix",
            date(2024, 1, 5),
            [30, 30],
            [43.0, 43.0, 43.0],
            merchant_id="netflix",
            merchant="Netflix",
            category_id="subs",
            category_name="Entertainment",
        ),
        *_series(
            "gym",
            date(2024, 2, 20),
            [7, 7, 7],
            [20.0, 20.0, 20.0, 20.0],
            counterparty_name="CityFit",
            category_name="Sport",
        ),
        *_series(
            "random",
            date(2024, 1, 1),
            [10, 50],
            [10.0, 80.0, 35.0],
            counterparty_name="Random Store",
        ),
        *_series("fortnightly", date(2024, 1, 1), [15, 15], [9.0, 9.0, 9.0], counterparty_name="Biweekly Box"),
        *_series("pair", date(2024, 1, 1), [30], [15.0, 15.0], counterparty_name="Only Twice"),
        *_series(
            "salary",
            date(2024, 1, 1),
            [31, 29],
            [5000.0, 5000.0, 5000.0],
            counterparty_name="Employer",
            is_income=True,
        ),
        *_series("hidden", date(2024, 1, 2), [30, 30], [99.0, 99.0, 99.0], counterparty_name="Spotify", is_ignored=True),
    ]
    return build_transaction_frame(rows)


def test_detects_monthly_and_weekly_subscriptions(subscription_frame):
    detected = detect_subscriptions(subscription_frame, today=date(2024, 3, 20))

    assert [sub["merchant_key"] for sub in detected] == ["CityFit", "netflix"]

    gym, netflix = detected
    assert netflix["frequency"] == "monthly"
    assert netflix["amount"] == pytest.approx(43.0)
    assert netflix["confidence"] == pytest.approx(0.86)
    assert netflix["merchant_id"] == "netflix"
    assert netflix["merchant_name"] == "Netflix"
    assert netflix["last_payment"] == date(2024, 3, 5)
    assert netflix["next_payment"] == date(2024, 4, 5)
    assert netflix["days_until_due"] == 16
    assert netflix["transaction_count"] == 3
    assert netflix["category_name"] == "Entertainment"

    assert gym["frequency"] == "weekly"
    assert gym["confidence"] == pytest.approx(0.68)
    assert gym["merchant_id"] is None
    assert gym["next_payment"] == date(2024, 3, 19)
    assert gym["days_until_due"] == -1


def test_minimal_netflix_scenario():
    frame = build_transaction_frame(
        _series("n", date(2024, 1, 1), [30, 30], [43.0, 43.0, 43.0], merchant_id="netflix")
    )

    (subscription,) = detect_subscriptions(frame, today=date(2024, 3, 1))

    assert subscription["frequency"] == "monthly"
    assert subscription["confidence"] >= 0.5
    assert subscription["amount"] == pytest.approx(43.0)


def test_zero_amounts_are_never_consistent():
    frame = build_transaction_frame(
        _series(
            "free",
            date(2024, 1, 1),
            [30, 30],
            [0.0, 0.0, 0.0],
            counterparty_name="Free Tier",
            category_name="Subskrypcje",
        )
    )

    (subscription,) = detect_subscriptions(frame, today=date(2024, 3, 1))

    assert subscription["confidence"] == pytest.approx(0.56)


def test_next_payment_clamps_to_month_end():
    frame = build_transaction_frame(
        _series("rent", date(2023, 11, 30), [31, 31], [1200.0, 1200.0, 1200.0], counterparty_name="Landlord")
    )

    (subscription,) = detect_subscriptions(frame, today=date(2024, 2, 1))

    assert subscription["last_payment"] == date(2024, 1, 31)
    assert subscription["next_payment"] == date(2024, 2, 29)


def test_grouping_falls_back_to_raw_description():
    frame = build_transaction_frame(
        _series("raw", date(2024, 1, 10), [91, 91], [30.0, 30.0, 30.0], raw_description="CLOUD BACKUP QTR")
    )

    (subscription,) = detect_subscriptions(frame, today=date(2024, 7, 1))

    assert subscription["merchant_key"] == "CLOUD BACKUP QTR"
    assert subscription["merchant_name"] == "CLOUD BACKUP QTR"
    assert subscription["frequency"] == "quarterly"


def test_empty_frame_yields_nothing():
    assert detect_subscriptions(build_transaction_frame([]), today=date(2024, 1, 1)) == []


@pytest.mark.parametrize(
    ("interval", "expected"),
    [(6, "weekly"), (8, "weekly"), (9, None), (28, "monthly"), (35, "monthly"), (90, "quarterly"), (365, "annual"), (381, None)],
)
def test_classify_frequency(interval, expected):
    assert classify_frequency(interval) == expected


def test_predict_next_payment():
    assert predict_next_payment(date(2024, 1, 31), "weekly") == date(2024, 2, 7)
    assert predict_next_payment(date(2024, 11, 30), "quarterly") == date(2025, 2, 28)
    assert predict_next_payment(date(2024, 2, 29), "annual") == date(2025, 2, 28)


def _subscription(frequency: str, amount: float, next_payment: date, name: str = "X") -> dict:
    return {"frequency": frequency, "amount": amount, "next_payment": next_payment, "merchant_name": name}


def test_calculate_monthly_total():
    subscriptions = [
        _subscription("weekly", 10.0, date(2024, 1, 1)),
        _subscription("monthly", 43.0, date(2024, 1, 1)),
        _subscription("quarterly", 30.0, date(2024, 1, 1)),
        _subscription("annual", 120.0, date(2024, 1, 1)),
    ]

    assert calculate_monthly_total(subscriptions) == pytest.approx(106.3)
    assert calculate_monthly_total([]) == 0


def test_upcoming_payments_window():
    today = date(2024, 3, 20)
    subscriptions = [
        _subscription("monthly", 40.0, today + timedelta(days=40), "Later"),
        _subscription("monthly", 10.0, today + timedelta(days=5), "Soon"),
        _subscription("monthly", 15.0, today - timedelta(days=2), "Overdue"),
        _subscription("monthly", 25.0, today, "Today"),
    ]

    payments = upcoming_payments(subscriptions, today)

    assert [payment["merchant_name"] for payment in payments] == ["Today", "Soon"]
    assert payments[1] == {"date": date(2024, 3, 25), "merchant_name": "Soon", "amount": 10.0}
