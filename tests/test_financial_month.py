"""Tests for salary-aligned financial month arithmetic."""

from __future__ import annotations

import locale
from datetime import date, datetime, timedelta

import numpy as np
import pytest

from analytics.financial_month import (
    InvalidDateError,
    InvalidStartDayError,
    add_financial_months,
    financial_day_of_month,
    financial_month_boundaries,
    financial_month_days,
    trailing_periods,
)


def test_start_day_one_is_calendar_month():
    period = financial_month_boundaries(date(2024, 2, 15))

    assert period.start == date(2024, 2, 1)
    assert period.end == date(2024, 2, 29)
    assert period.label == "February 2024"
    assert period.days == 29


def test_custom_start_day_spans_two_months_and_uses_end_label():
    before = financial_month_boundaries(date(2024, 1, 10), start_day=25)
    on_start = financial_month_boundaries(date(2024, 1, 25), start_day=25)

    assert (before.start, before.end, before.label) == (date(2023, 12, 25), date(2024, 1, 24), "January 2024")
    assert (on_start.start, on_start.end, on_start.label) == (date(2024, 1, 25), date(2024, 2, 24), "February 2024")


def test_start_day_clamps_in_short_months():
    period = financial_month_boundaries(date(2024, 3, 1), start_day=31)

    assert period.start == date(2024, 2, 29)
    assert period.end == date(2024, 3, 30)
    assert financial_month_boundaries(date(2024, 3, 31), start_day=31).start == date(2024, 3, 31)


@pytest.mark.parametrize("start_day", [1, 15, 28, 29, 30, 31])
def test_periods_tile_without_gaps_or_overlaps(start_day):
    day = date(2023, 1, 1)
    while day <= date(2024, 12, 31):
        period = financial_month_boundaries(day, start_day)
        assert period.start <= day <= period.end
        assert day in period
        following = financial_month_boundaries(period.end + timedelta(days=1), start_day)
        assert following.start == period.end + timedelta(days=1)
        day += timedelta(days=1)


def test_accepts_datetimes_and_iso_strings():
    expected = financial_month_boundaries(date(2024, 5, 3), start_day=10)

    assert financial_month_boundaries(datetime(2024, 5, 3, 18, 30), start_day=10) == expected
    assert financial_month_boundaries("2024-05-03", start_day=10) == expected


def test_days_and_day_of_month():
    assert financial_month_days(date(2024, 2, 10)) == 29
    assert financial_month_days(date(2024, 3, 1), start_day=25) == 29
    assert financial_day_of_month(date(2024, 1, 25), start_day=25) == 1
    assert financial_day_of_month(date(2024, 2, 24), start_day=25) == 31
    assert financial_day_of_month(date(2024, 4, 15)) == 15


def test_add_financial_months_calendar_clamps_to_month_end():
    assert add_financial_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_financial_months(date(2024, 3, 15), -3) == date(2023, 12, 15)


def test_add_financial_months_custom_start_returns_period_start():
    assert add_financial_months(date(2024, 1, 10), 1, start_day=25) == date(2024, 1, 25)
    assert add_financial_months(date(2024, 1, 30), -2, start_day=25) == date(2023, 11, 25)


@pytest.mark.parametrize("start_day", [1, 10, 25, 31])
@pytest.mark.parametrize("months", [-14, -1, 0, 1, 5, 13])
def test_add_financial_months_round_trip(start_day, months):
    for day in (date(2024, 1, 31), date(2024, 2, 29), date(2023, 7, 9), date(2023, 12, 24)):
        shifted = add_financial_months(add_financial_months(day, months, start_day), -months, start_day)
        original = financial_month_boundaries(day, start_day)
        assert financial_month_boundaries(shifted, start_day).start == original.start


def test_trailing_periods_newest_first():
    periods = trailing_periods(date(2024, 3, 10), 3)

    assert [period.start for period in periods] == [date(2024, 2, 1), date(2024, 1, 1), date(2023, 12, 1)]
    assert trailing_periods(date(2024, 3, 10), 0) == []
    with pytest.raises(ValueError):
        trailing_periods(date(2024, 3, 10), -1)


@pytest.mark.parametrize("start_day", [0, 32, -5, True, "5", 2.0])
def test_invalid_start_day_fails_fast(start_day):
    with pytest.raises(InvalidStartDayError):
        financial_month_boundaries(date(2024, 1, 1), start_day)


@pytest.mark.parametrize("value", ["2024-13-01", "not a date", 20240101, None])
def test_invalid_date_fails_fast(value):
    with pytest.raises(InvalidDateError):
        financial_month_boundaries(value)

    assert issubclass(InvalidDateError, ValueError)


def test_integer_like_start_day_is_accepted():
    period = financial_month_boundaries(date(2024, 3, 10), np.int64(25))

    assert (period.start, period.end, period.label) == (date(2024, 2, 25), date(2024, 3, 24), "March 2024")


@pytest.fixture()
def polish_time_locale():
    saved = locale.setlocale(locale.LC_TIME)
    for name in ("pl_PL.UTF-8", "pl_PL.utf8", "de_DE.UTF-8", "de_DE.utf8"):
        try:
            locale.setlocale(locale.LC_TIME, name)
            break
        except locale.Error:
            continue
    else:
        pytest.skip("no non-English locale installed")
    yield
    locale.setlocale(locale.LC_TIME, saved)


def test_labels_ignore_the_process_locale(polish_time_locale):
    labels = [financial_month_boundaries(date(2024, month, 1)).label for month in (1, 5, 12)]

    assert labels == ["January 2024", "May 2024", "December 2024"]
