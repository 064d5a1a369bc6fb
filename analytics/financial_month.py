"""Financial month arithmetic for salary-aligned reporting periods.

A financial month anchored in calendar month ``M`` starts on ``start_day`` of
``M`` (clamped to the last day of short months) and ends the day before the
period anchored in ``M + 1`` starts. With ``start_day == 1`` this is the plain
calendar month.
"""

from __future__ import annotations

import calendar
import operator
from datetime import date, datetime, timedelta
from typing import Union

from dateutil.relativedelta import relativedelta

from core.models import FinancialMonthPeriod

__all__ = [
    "DateLike",
    "InvalidDateError",
    "InvalidStartDayError",
    "financial_month_boundaries",
    "add_financial_months",
    "financial_month_days",
    "financial_day_of_month",
    "trailing_periods",
]

DateLike = Union[date, datetime, str]

# English names regardless of the process locale
_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class InvalidStartDayError(ValueError):
    """Raised when a financial month start day falls outside 1..31."""


class InvalidDateError(ValueError):
    """Raised when a value cannot be interpreted as a calendar date."""


def financial_month_boundaries(day: DateLike, start_day: int = 1) -> FinancialMonthPeriod:
    """Return the financial month containing ``day``.

    Parameters
    ----------
    day:
        A ``date``, ``datetime`` (time dropped) or ISO ``YYYY-MM-DD`` string.
    start_day:
        Day of month on which financial months begin, 1..31.

    Returns
    -------
    FinancialMonthPeriod
        Inclusive boundaries labelled with the end date's month and year, so
        a Jan 25 - Feb 24 period is labelled "February <year>".
    """

    resolved = _coerce_date(day)
    start_day = _validate_start_day(start_day)
    year, month = _anchor_of(resolved, start_day)
    return _period_for_anchor(year, month, start_day)


def add_financial_months(day: DateLike, months: int, start_day: int = 1) -> date:
    """Shift ``day`` by ``months`` financial months.

    With ``start_day == 1`` the date keeps its position and is clamped to the
    target month's length. Otherwise the start date of the target period is
    returned, so ``+n`` followed by ``-n`` always lands in the original period.
    """

    resolved = _coerce_date(day)
    start_day = _validate_start_day(start_day)
    months = operator.index(months)

    if start_day == 1:
        return resolved + relativedelta(months=months)

    year, month = _anchor_of(resolved, start_day)
    target_year, target_month = _shift_month(year, month, months)
    return _anchored_start(target_year, target_month, start_day)


def financial_month_days(day: DateLike, start_day: int = 1) -> int:
    """Return the length in days of the financial month containing ``day``."""

    return financial_month_boundaries(day, start_day).days


def financial_day_of_month(day: DateLike, start_day: int = 1) -> int:
    """Return the 1-based position of ``day`` within its financial month."""

    resolved = _coerce_date(day)
    period = financial_month_boundaries(resolved, start_day)
    return (resolved - period.start).days + 1


def trailing_periods(day: DateLike, count: int, start_day: int = 1) -> list[FinancialMonthPeriod]:
    """Return the ``count`` periods before the one containing ``day``, newest first."""

    resolved = _coerce_date(day)
    start_day = _validate_start_day(start_day)
    count = operator.index(count)
    if count < 0:
        raise ValueError("count must not be negative")

    year, month = _anchor_of(resolved, start_day)
    periods: list[FinancialMonthPeriod] = []
    for offset in range(1, count + 1):
        periods.append(_period_for_anchor(*_shift_month(year, month, -offset), start_day))
    return periods


def _coerce_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidDateError(f"Invalid date string: {value!r}") from exc
    raise InvalidDateError(f"Expected a date, got {type(value).__name__}")


def _validate_start_day(start_day: object) -> int:
    if isinstance(start_day, bool):
        raise InvalidStartDayError(f"start_day must be an integer, got {start_day!r}")
    try:
        start_day = operator.index(start_day)
    except TypeError as exc:
        raise InvalidStartDayError(f"start_day must be an integer, got {start_day!r}") from exc
    if not 1 <= start_day <= 31:
        raise InvalidStartDayError(f"start_day must be within 1..31, got {start_day}")
    return start_day


def _shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    shifted_year, month_index = divmod(year * 12 + (month - 1) + offset, 12)
    return shifted_year, month_index + 1


def _anchored_start(year: int, month: int, start_day: int) -> date:
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, min(start_day, days_in_month))


def _anchor_of(day: date, start_day: int) -> tuple[int, int]:
    if day >= _anchored_start(day.year, day.month, start_day):
        return day.year, day.month
    return _shift_month(day.year, day.month, -1)


def _period_for_anchor(year: int, month: int, start_day: int) -> FinancialMonthPeriod:
    start = _anchored_start(year, month, start_day)
    next_start = _anchored_start(*_shift_month(year, month, 1), start_day)
    end = next_start - timedelta(days=1)
    return FinancialMonthPeriod(start=start, end=end, label=f"{_MONTH_NAMES[end.month - 1]} {end.year}")
