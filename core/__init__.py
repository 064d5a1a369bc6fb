"""Core domain package for the PocketLedger analysis engine.

The orchestration layer lives in :mod:`core.summary_service`; it depends on
:mod:`analytics` and is imported from there directly.
"""

from .data_loader import TransactionDataError, build_transaction_frame, load_transactions
from .logging_setup import configure_logging, get_logger
from .models import (
    CategoryForecast,
    CategorySpendInput,
    DetectedSubscription,
    FinancialMonthPeriod,
    InsightsReport,
    MerchantRecord,
    MerchantResolution,
    MergePlan,
    MonthlyForecast,
    SpendingRatios,
    Transaction,
    UpcomingPayment,
)

__all__ = [
    "CategoryForecast",
    "CategorySpendInput",
    "DetectedSubscription",
    "FinancialMonthPeriod",
    "InsightsReport",
    "MerchantRecord",
    "MerchantResolution",
    "MergePlan",
    "MonthlyForecast",
    "SpendingRatios",
    "Transaction",
    "UpcomingPayment",
    "TransactionDataError",
    "build_transaction_frame",
    "load_transactions",
    "configure_logging",
    "get_logger",
]
