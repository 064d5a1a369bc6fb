"""Core logic for assembling PocketLedger insights reports."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Optional

import pandas as pd

from analytics.financial_month import add_financial_months, financial_month_boundaries
from analytics.forecasting import build_category_inputs, forecast_monthly_spending
from analytics.lexicon import DEFAULT_LEXICON, MerchantLexicon
from analytics.merchants import MerchantLike, as_merchant_record, resolve_merchant
from analytics.recurring import calculate_monthly_total, detect_subscriptions, upcoming_payments
from config.settings import Settings, get_settings
from core.logging_setup import get_logger
from core.models import InsightsReport

__all__ = ["assign_merchants", "prepare_insights_report"]

logger = get_logger("pocketledger.core.summary_service")


def prepare_insights_report(
    transactions: pd.DataFrame,
    *,
    today: date,
    settings: Optional[Settings] = None,
    merchants: Optional[Iterable[MerchantLike]] = None,
    budgets: Optional[Mapping[str, float]] = None,
) -> InsightsReport:
    """Assemble subscriptions, upcoming payments and the month forecast.

    ``transactions`` must use the canonical columns produced by
    :func:`core.data_loader.build_transaction_frame`. When ``merchants`` is
    given, rows are first matched to them with :func:`assign_merchants`.
    """

    if transactions.empty:
        raise ValueError("No transactions available for the insights report.")

    settings = settings or get_settings()
    start_day = settings.financial_month_start_day

    frame = transactions if merchants is None else assign_merchants(transactions, merchants, settings=settings)
    dates = pd.to_datetime(frame["transaction_date"]).dt.date

    period = financial_month_boundaries(today, start_day)
    lookback_start = financial_month_boundaries(
        add_financial_months(period.start, -settings.subscription_lookback_months, start_day),
        start_day,
    ).start

    subscriptions = detect_subscriptions(
        frame[(dates >= lookback_start) & (dates <= today)],
        today,
        min_transactions=settings.subscription_min_transactions,
        min_confidence=settings.subscription_min_confidence,
    )

    categories = build_category_inputs(
        frame,
        today,
        start_day=start_day,
        budgets=budgets,
        history_months=settings.forecast_history_months,
    )

    in_period = (dates >= period.start) & (dates <= period.end)
    income_rows = frame[in_period & frame["is_income"].astype(bool) & ~frame["is_ignored"].astype(bool)]
    total_income = float(income_rows["amount"].sum())
    total_budget = float(sum(value for value in (budgets or {}).values() if value and value > 0))

    forecast = forecast_monthly_spending(
        categories,
        total_income=total_income,
        total_budget=total_budget,
        current_date=today,
        start_day=start_day,
        historical_transactions=frame[dates < period.start],
    )

    logger.info(
        "Insights for %s: %d subscriptions, %d categories, %d alerts",
        period.label,
        len(subscriptions),
        len(forecast["categories"]),
        len(forecast["alerts"]),
    )

    return {
        "period": period,
        "subscriptions": subscriptions,
        "subscriptions_monthly_total": calculate_monthly_total(subscriptions),
        "upcoming_payments": upcoming_payments(subscriptions, today, settings.upcoming_days_ahead),
        "forecast": forecast,
    }


def assign_merchants(
    transactions: pd.DataFrame,
    merchants: Iterable[MerchantLike],
    *,
    settings: Optional[Settings] = None,
    lexicon: MerchantLexicon = DEFAULT_LEXICON,
) -> pd.DataFrame:
    """Attach stored merchants to rows that have no ``merchant_id`` yet.

    Each distinct counterparty (or raw description when the counterparty is
    blank) is resolved once against ``merchants`` at the configured match
    threshold. Rows that already carry a ``merchant_id`` only receive a missing
    ``merchant`` label. Returns a copy of ``transactions``.
    """

    settings = settings or get_settings()
    records = [as_merchant_record(merchant) for merchant in merchants]
    labels = {record.id: record.display_name or record.name for record in records}

    frame = transactions.copy()
    unassigned = frame["merchant_id"].isna()
    sources = frame["counterparty_name"].where(frame["counterparty_name"].notna(), frame["raw_description"])

    resolved: dict[str, Optional[str]] = {}
    for source in sources[unassigned].dropna().unique():
        resolution = resolve_merchant(
            source,
            records,
            settings.merchant_match_threshold,
            lexicon=lexicon,
        )
        resolved[source] = resolution.merchant_id

    if resolved:
        matched = sources.map(resolved)
        fill = unassigned & matched.notna()
        frame.loc[fill, "merchant_id"] = matched[fill]
        logger.debug("Assigned merchants to %d of %d unassigned rows", int(fill.sum()), int(unassigned.sum()))

    known_labels = frame["merchant_id"].map(labels)
    missing_label = frame["merchant"].isna() & known_labels.notna()
    frame.loc[missing_label, "merchant"] = known_labels[missing_label]
    return frame
