"""Shared data model definitions for the PocketLedger analysis engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional, TypedDict

SubscriptionFrequency = Literal["weekly", "monthly", "quarterly", "annual"]
ForecastConfidence = Literal["high", "medium", "low"]
Trend = Literal["up", "down", "stable"]


@dataclass(frozen=True)
class Transaction:
    """A single bank transaction as supplied by the storage layer.

    ``amount`` is never negative; the direction of the cash flow is carried by
    ``is_income``.
    """

    id: str
    amount: float
    transaction_date: date
    is_income: bool = False
    is_ignored: bool = False
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    counterparty_name: Optional[str] = None
    raw_description: Optional[str] = None
    merchant_id: Optional[str] = None
    merchant: Optional[str] = None


@dataclass(frozen=True)
class FinancialMonthPeriod:
    """An inclusive ``start``..``end`` range labelled after the end month."""

    start: date
    end: date
    label: str

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class MerchantRecord:
    id: str
    name: str
    display_name: str = ""
    aliases: frozenset[str] = field(default_factory=frozenset)
    category_id: Optional[str] = None
    icon_url: Optional[str] = None
    website: Optional[str] = None

    @property
    def match_keys(self) -> tuple[str, ...]:
        """Lower-cased name followed by the sorted aliases."""

        aliases = sorted(alias.lower() for alias in self.aliases if alias)
        return (self.name.lower(), *aliases)


@dataclass(frozen=True)
class MergePlan:
    """Outcome of deduplication planning for one brand group."""

    group_key: str
    survivor_id: str
    survivor_name: str
    deleted_ids: tuple[str, ...]
    deleted_names: tuple[str, ...]


@dataclass(frozen=True)
class MerchantResolution:
    brand: Optional[str]
    display_name: Optional[str]
    merchant_id: Optional[str]
    is_new: bool


@dataclass(frozen=True)
class CategorySpendInput:
    """Per-category figures fed into the forecast engine."""

    category_id: str
    category_name: str
    current_spent: float
    budget: Optional[float] = None
    last_month_spent: Optional[float] = None
    historical_avg: Optional[float] = None


@dataclass(frozen=True)
class SpendingRatios:
    """Share of a month's spend typically accrued by a given day."""

    min: float
    max: float
    avg: float


class DetectedSubscription(TypedDict):
    """Metadata describing a detected recurring payment."""

    merchant_key: str
    merchant_id: Optional[str]
    merchant_name: str
    frequency: SubscriptionFrequency
    amount: float
    confidence: float
    last_payment: date
    next_payment: date
    days_until_due: int
    transaction_count: int
    category_id: Optional[str]
    category_name: Optional[str]


class UpcomingPayment(TypedDict):
    date: date
    merchant_name: str
    amount: float


class CategoryForecast(TypedDict):
    category_id: str
    category_name: str
    current_spent: float
    projected_min: float
    projected_max: float
    projected_total: float
    confidence: ForecastConfidence
    trend: Trend
    vs_last_month: int
    vs_budget: Optional[int]


class MonthlyForecast(TypedDict):
    total_projected_min: float
    total_projected_max: float
    total_projected: float
    total_budget: float
    projected_savings: float
    categories: list[CategoryForecast]
    alerts: list[str]
    days_remaining: int
    percent_month_complete: int


class InsightsReport(TypedDict):
    period: FinancialMonthPeriod
    subscriptions: list[DetectedSubscription]
    subscriptions_monthly_total: float
    upcoming_payments: list[UpcomingPayment]
    forecast: MonthlyForecast


__all__ = [
    "SubscriptionFrequency",
    "ForecastConfidence",
    "Trend",
    "Transaction",
    "FinancialMonthPeriod",
    "MerchantRecord",
    "MergePlan",
    "MerchantResolution",
    "CategorySpendInput",
    "SpendingRatios",
    "DetectedSubscription",
    "UpcomingPayment",
    "CategoryForecast",
    "MonthlyForecast",
    "InsightsReport",
]
