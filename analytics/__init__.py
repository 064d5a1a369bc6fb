"""Analytics helpers shared across PocketLedger services."""

from analytics.deduplication import (
    apply_merge_plans,
    grouping_key,
    plan_merchant_merges,
    preview_duplicate_groups,
)
from analytics.financial_month import (
    InvalidDateError,
    InvalidStartDayError,
    add_financial_months,
    financial_day_of_month,
    financial_month_boundaries,
    financial_month_days,
    trailing_periods,
)
from analytics.forecasting import (
    DEFAULT_PARAMETERS,
    ForecastParameters,
    build_category_inputs,
    determine_trend,
    forecast_monthly_spending,
    project_category,
    spending_ratios,
)
from analytics.lexicon import DEFAULT_LEXICON, MerchantLexicon
from analytics.merchants import (
    calculate_similarity,
    extract_brand_name,
    find_best_merchant_match,
    format_display_name,
    resolve_merchant,
)
from analytics.recurring import calculate_monthly_total, detect_subscriptions, upcoming_payments

__all__ = [
    "InvalidDateError",
    "InvalidStartDayError",
    "financial_month_boundaries",
    "add_financial_months",
    "financial_month_days",
    "financial_day_of_month",
    "trailing_periods",
    "MerchantLexicon",
    "DEFAULT_LEXICON",
    "extract_brand_name",
    "calculate_similarity",
    "find_best_merchant_match",
    "resolve_merchant",
    "format_display_name",
    "grouping_key",
    "preview_duplicate_groups",
    "plan_merchant_merges",
    "apply_merge_plans",
    "detect_subscriptions",
    "calculate_monthly_total",
    "upcoming_payments",
    "ForecastParameters",
    "DEFAULT_PARAMETERS",
    "project_category",
    "determine_trend",
    "spending_ratios",
    "forecast_monthly_spending",
    "build_category_inputs",
]
