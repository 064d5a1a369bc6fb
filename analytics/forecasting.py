"""Month-end spending projections per category and in aggregate."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from analytics.financial_month import (
    DateLike,
    financial_day_of_month,
    financial_month_boundaries,
    financial_month_days,
    trailing_periods,
)
from core.logging_setup import get_logger
from core.models import (
    CategoryForecast,
    CategorySpendInput,
    ForecastConfidence,
    MonthlyForecast,
    SpendingRatios,
    Trend,
)

__all__ = [
    "UNCATEGORIZED",
    "ForecastParameters",
    "DEFAULT_PARAMETERS",
    "project_category",
    "projection_range",
    "determine_trend",
    "spending_ratios",
    "forecast_monthly_spending",
    "build_category_inputs",
]

logger = get_logger("pocketledger.analytics.forecasting")

UNCATEGORIZED = "uncategorized"


@dataclass(frozen=True)
class ForecastParameters:
    """Tunable constants of the projection heuristics."""

    linear_weight: float = 0.6
    historical_weight: float = 0.4
    high_confidence_gap: float = 0.2
    medium_confidence_gap: float = 0.4
    medium_confidence_min_day: int = 15
    trend_threshold: float = 0.1
    near_limit_percent: int = 90
    max_range_multiplier: float = 3.0
    min_category_history: int = 10


DEFAULT_PARAMETERS = ForecastParameters()


def project_category(
    current_spent: float,
    day_of_month: int,
    days_in_month: int,
    historical_avg: Optional[float],
    params: ForecastParameters = DEFAULT_PARAMETERS,
) -> tuple[float, ForecastConfidence]:
    """Project month-end spend for one category.

    The linear pace ``current_spent * days_in_month / day_of_month`` is blended
    with a positive historical average when one exists; confidence reflects
    how far the two disagree.
    """

    linear = current_spent * days_in_month / day_of_month if day_of_month > 0 else 0.0

    if historical_avg is not None and historical_avg > 0:
        projected = params.linear_weight * linear + params.historical_weight * historical_avg
        gap = abs(linear - historical_avg) / historical_avg
        if gap < params.high_confidence_gap:
            return projected, "high"
        if gap < params.medium_confidence_gap:
            return projected, "medium"
        return projected, "low"

    if day_of_month >= params.medium_confidence_min_day:
        return linear, "medium"
    return linear, "low"


def projection_range(
    current_spent: float,
    historical_avg: Optional[float],
    ratios: SpendingRatios,
    params: ForecastParameters = DEFAULT_PARAMETERS,
) -> tuple[float, float]:
    """Return an informational ``(low, high)`` month-end range.

    Dividing current spend by the largest historical accrual share gives the
    low end; the smallest share gives the high end, capped at a multiple of
    current spend.
    """

    if current_spent <= 0:
        if historical_avg is not None and historical_avg > 0:
            return historical_avg * 0.8, historical_avg * 1.2
        return 0.0, 0.0

    low = current_spent / ratios.max if ratios.max > 0 else current_spent
    high = current_spent / ratios.min if ratios.min > 0 else current_spent
    low = max(low, current_spent)
    high = min(high, current_spent * params.max_range_multiplier)
    return min(low, high), high


def determine_trend(
    projected: float,
    last_month_spent: Optional[float],
    historical_avg: Optional[float],
    params: ForecastParameters = DEFAULT_PARAMETERS,
) -> Trend:
    baseline = last_month_spent or historical_avg
    if not baseline:
        return "stable"

    change = (projected - baseline) / baseline
    if change > params.trend_threshold:
        return "up"
    if change < -params.trend_threshold:
        return "down"
    return "stable"


def spending_ratios(
    history: Optional[pd.DataFrame],
    day_of_month: int,
    category_id: Optional[str] = None,
    *,
    start_day: int = 1,
) -> SpendingRatios:
    """Summarise how much of a month's spend had accrued by ``day_of_month``.

    Each past financial month with positive spend contributes one ratio of
    spend up to ``day_of_month`` over the month total. Without usable history
    the linear ``day_of_month / 30`` is returned for all three statistics.
    """

    frame = _category_history(history, category_id)
    if frame.empty:
        return _linear_ratios(day_of_month)

    dates = pd.to_datetime(frame["transaction_date"]).dt.normalize()
    unique_days = [ts.date() for ts in dates.drop_duplicates()]
    period_starts = {day: financial_month_boundaries(day, start_day).start for day in unique_days}
    positions = {day: financial_day_of_month(day, start_day) for day in unique_days}

    plain_days = dates.dt.date
    work = pd.DataFrame(
        {
            "period": plain_days.map(period_starts),
            "amount": frame["amount"].astype(float),
        }
    )
    work["accrued"] = work["amount"].where(plain_days.map(positions) <= day_of_month, 0.0)

    monthly = work.groupby("period")[["accrued", "amount"]].sum()
    monthly = monthly[monthly["amount"] > 0]
    if monthly.empty:
        return _linear_ratios(day_of_month)

    ratios = (monthly["accrued"] / monthly["amount"]).to_numpy(dtype=float)
    return SpendingRatios(min=float(ratios.min()), max=float(ratios.max()), avg=float(ratios.mean()))


def forecast_monthly_spending(
    categories: Iterable[CategorySpendInput],
    *,
    total_income: float,
    total_budget: float,
    current_date: DateLike,
    start_day: int = 1,
    historical_transactions: Optional[pd.DataFrame] = None,
    params: ForecastParameters = DEFAULT_PARAMETERS,
) -> MonthlyForecast:
    """Forecast month-end spending for the financial month containing ``current_date``.

    Parameters
    ----------
    categories:
        Per-category spend so far, with optional budget, last month spend and
        historical average.
    total_income:
        Income of the current period, used for ``projected_savings``.
    total_budget:
        Aggregate budget; ``0`` disables the aggregate alert.
    current_date:
        The day the forecast is made.
    start_day:
        Financial month start day.
    historical_transactions:
        Past spend rows used for the informational projection range.
    params:
        Heuristic constants.

    Returns
    -------
    MonthlyForecast
        Categories ordered by projected total, largest first. Monetary values
        are rounded to 2 decimals; alerts list the aggregate alert first.
    """

    day_of_month = financial_day_of_month(current_date, start_day)
    days_in_month = financial_month_days(current_date, start_day)

    overall_ratios = spending_ratios(historical_transactions, day_of_month, start_day=start_day)

    forecasts: list[CategoryForecast] = []
    alerts: list[str] = []
    total_projected = 0.0
    total_min = 0.0
    total_max = 0.0

    for category in categories:
        projected, confidence = project_category(
            category.current_spent,
            day_of_month,
            days_in_month,
            category.historical_avg,
            params,
        )

        ratios = overall_ratios
        if _history_rows(historical_transactions, category.category_id) >= params.min_category_history:
            ratios = spending_ratios(
                historical_transactions,
                day_of_month,
                category.category_id,
                start_day=start_day,
            )
        low, high = projection_range(category.current_spent, category.historical_avg, ratios, params)

        trend = determine_trend(projected, category.last_month_spent, category.historical_avg, params)

        vs_last_month = 0
        if category.last_month_spent is not None and category.last_month_spent > 0:
            vs_last_month = _round_half_up(
                (projected - category.last_month_spent) / category.last_month_spent * 100
            )

        vs_budget: Optional[int] = None
        if category.budget is not None and category.budget > 0:
            vs_budget = _round_half_up(projected / category.budget * 100)
            if vs_budget > 100:
                over_by = _round_half_up(projected - category.budget)
                alerts.append(f"{category.category_name} may exceed its budget by ~{over_by}")
            elif vs_budget > params.near_limit_percent:
                alerts.append(f"{category.category_name} is approaching its budget limit")

        logger.debug(
            "Category %s: spent=%.2f projected=%.2f confidence=%s trend=%s",
            category.category_id,
            category.current_spent,
            projected,
            confidence,
            trend,
        )

        forecasts.append(
            {
                "category_id": category.category_id,
                "category_name": category.category_name,
                "current_spent": round(category.current_spent, 2),
                "projected_min": round(low, 2),
                "projected_max": round(high, 2),
                "projected_total": round(projected, 2),
                "confidence": confidence,
                "trend": trend,
                "vs_last_month": vs_last_month,
                "vs_budget": vs_budget,
            }
        )
        total_projected += projected
        total_min += low
        total_max += high

    forecasts.sort(key=lambda row: row["projected_total"], reverse=True)

    if total_budget > 0 and total_projected > total_budget:
        over_by = _round_half_up(total_projected - total_budget)
        alerts.insert(0, f"Projected spending exceeds the total budget by ~{over_by}")

    return {
        "total_projected_min": round(total_min, 2),
        "total_projected_max": round(total_max, 2),
        "total_projected": round(total_projected, 2),
        "total_budget": round(float(total_budget), 2),
        "projected_savings": round(total_income - total_projected, 2),
        "categories": forecasts,
        "alerts": alerts,
        "days_remaining": days_in_month - day_of_month,
        "percent_month_complete": _round_half_up(day_of_month / days_in_month * 100),
    }


def build_category_inputs(
    transactions: pd.DataFrame,
    current_date: DateLike,
    *,
    start_day: int = 1,
    budgets: Optional[Mapping[str, float]] = None,
    history_months: int = 3,
) -> list[CategorySpendInput]:
    """Aggregate a transaction frame into per-category forecast inputs.

    ``current_spent`` covers the current financial month up to and including
    ``current_date``. ``last_month_spent`` is the previous period's spend and
    ``historical_avg`` the mean over the trailing ``history_months`` periods
    that contain any spend. Categories with a budget but no spend are included
    with zero spend.
    """

    budgets = dict(budgets or {})
    period = financial_month_boundaries(current_date, start_day)
    today = min(_coerce_day(current_date), period.end)

    spend = _spend_rows(transactions)
    days = pd.to_datetime(spend["transaction_date"]).dt.date

    current = _sum_by_category(spend[(days >= period.start) & (days <= today)])

    previous_periods = trailing_periods(current_date, history_months, start_day)
    period_totals: list[dict[str, float]] = []
    for past in previous_periods:
        period_totals.append(_sum_by_category(spend[(days >= past.start) & (days <= past.end)]))

    last_month = period_totals[0] if period_totals else {}
    populated = [totals for totals in period_totals if totals]

    names = _category_names(spend)
    keys = list(dict.fromkeys([*current, *budgets, *(key for totals in populated for key in totals)]))

    inputs: list[CategorySpendInput] = []
    for key in keys:
        historical_avg: Optional[float] = None
        if populated:
            average = float(np.mean([totals.get(key, 0.0) for totals in populated]))
            historical_avg = average if average > 0 else None

        inputs.append(
            CategorySpendInput(
                category_id=key,
                category_name=names.get(key, "Uncategorized" if key == UNCATEGORIZED else key),
                current_spent=current.get(key, 0.0),
                budget=budgets.get(key),
                last_month_spent=last_month.get(key) or None,
                historical_avg=historical_avg,
            )
        )
    return inputs


def _spend_rows(transactions: Optional[pd.DataFrame]) -> pd.DataFrame:
    if transactions is None or transactions.empty:
        return pd.DataFrame(columns=["amount", "transaction_date", "category_id", "category_name"])

    frame = transactions
    if "is_income" in frame.columns:
        frame = frame[~frame["is_income"].astype(bool)]
    if "is_ignored" in frame.columns:
        frame = frame[~frame["is_ignored"].astype(bool)]
    frame = frame.copy()
    frame["category_id"] = frame["category_id"].where(frame["category_id"].notna(), UNCATEGORIZED)
    return frame


def _category_history(history: Optional[pd.DataFrame], category_id: Optional[str]) -> pd.DataFrame:
    frame = _spend_rows(history)
    if category_id is not None and not frame.empty:
        frame = frame[frame["category_id"] == category_id]
    return frame


def _history_rows(history: Optional[pd.DataFrame], category_id: str) -> int:
    if history is None or history.empty:
        return 0
    return int(len(_category_history(history, category_id)))


def _sum_by_category(frame: pd.DataFrame) -> dict[str, float]:
    if frame.empty:
        return {}
    totals = frame.groupby("category_id", sort=False)["amount"].sum()
    return {str(key): float(value) for key, value in totals.items() if value > 0}


def _category_names(frame: pd.DataFrame) -> dict[str, str]:
    if frame.empty or "category_name" not in frame.columns:
        return {}
    named = frame.dropna(subset=["category_name"])
    return {
        str(key): str(value)
        for key, value in named.groupby("category_id", sort=False)["category_name"].first().items()
    }


def _linear_ratios(day_of_month: int) -> SpendingRatios:
    ratio = day_of_month / 30
    return SpendingRatios(min=ratio, max=ratio, avg=ratio)


def _coerce_day(value: DateLike) -> date:
    return pd.Timestamp(value).date()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
