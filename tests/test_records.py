from datetime import date

import pytest

from consumption.exceptions import ManualEntryError
from consumption.records import (
    SourceCategory,
    build_manual_record,
    is_measured,
    parse_number,
)


def test_is_measured_treats_zero_and_blanks_as_missing():
    assert is_measured(1.5)
    assert is_measured(-2)
    assert not is_measured(0)
    assert not is_measured(0.0)
    assert not is_measured(float("nan"))
    assert not is_measured(None)
    assert not is_measured("3")
    assert not is_measured(True)


def test_parse_number_reads_spreadsheet_strings():
    assert parse_number("12,5") == 12.5
    assert parse_number(" 7.25 kWh") == 7.25
    assert parse_number(3) == 3.0
    assert parse_number("") is None
    assert parse_number("n/d") is None
    assert parse_number(float("nan")) is None


def test_source_category_metadata():
    assert SourceCategory.ENERGY.unit == "kWh"
    assert SourceCategory.WATER.unit == "m³"
    assert SourceCategory.WATER.origin_label == "Embasa (Água)"
    assert SourceCategory.parse("Coelba") is SourceCategory.ENERGY
    with pytest.raises(ValueError):
        SourceCategory.parse("gas")


def test_manual_record_uses_consumption_as_daily_delta():
    record = build_manual_record("2024-03-05", "water", "12.5")
    assert record.date == date(2024, 3, 5)
    assert record.source is SourceCategory.WATER
    assert record.consumption == 12.5
    assert record.daily_delta == 12.5


@pytest.mark.parametrize(
    "fields",
    [
        ("", "water", "10"),
        ("2024-03-05", None, "10"),
        ("2024-03-05", "water", "  "),
        ("2024-03-05", "water", "abc"),
        ("2024-03-05", "water", "inf"),
        ("xyz", "energy", "10"),
        ("2024-03-05", "gas", "10"),
    ],
)
def test_manual_record_rejects_invalid_input(fields):
    with pytest.raises(ManualEntryError):
        build_manual_record(*fields)
