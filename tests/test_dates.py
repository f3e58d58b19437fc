from datetime import date, datetime, timedelta

import pandas as pd
import pytest

from consumption.dates import parse_date


@pytest.mark.parametrize("serial", [25570, 30000.0, 45000, 45366.75])
def test_serial_above_unix_anchor_counts_from_epoch(serial):
    expected = (datetime(1970, 1, 1) + timedelta(days=serial - 25569)).date()
    assert parse_date(serial) == expected


@pytest.mark.parametrize("serial", [1, 60, 10000, 25569])
def test_serial_at_or_below_anchor_uses_1900_correction(serial):
    expected = (datetime(1900, 1, 1) + timedelta(days=serial - 2)).date()
    assert parse_date(serial) == expected


def test_brazilian_format_never_swaps_day_and_month():
    assert parse_date("03/04/2024") == date(2024, 4, 3)
    assert parse_date("12/01/2024") == date(2024, 1, 12)


def test_native_values_pass_through():
    assert parse_date(date(2024, 5, 1)) == date(2024, 5, 1)
    assert parse_date(datetime(2024, 5, 1, 13, 30)) == date(2024, 5, 1)
    assert parse_date(pd.Timestamp("2024-05-01")) == date(2024, 5, 1)


def test_fallback_string_shapes():
    assert parse_date("2024-03-15") == date(2024, 3, 15)
    assert parse_date("2024/03/15") == date(2024, 3, 15)
    assert parse_date("15.03.2024") == date(2024, 3, 15)


def test_unparseable_values_return_none():
    for value in [None, "", "   ", "abc", float("nan"), pd.NaT, True]:
        assert parse_date(value) is None
