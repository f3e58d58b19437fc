from datetime import date

import pytest

from consumption.monthly import (
    MonthKey,
    aggregate_monthly,
    apply_month_over_month,
    combined_trend_frame,
    latest_variation,
    monthly_frame,
    monthly_totals_frame,
    perform_monthly_analysis,
)
from consumption.records import ConsumptionRecord, SourceCategory

ENERGY = SourceCategory.ENERGY
WATER = SourceCategory.WATER


def _record(day, consumption, delta, source=ENERGY):
    return ConsumptionRecord(date=day, source=source, consumption=consumption, daily_delta=delta)


@pytest.fixture
def march_april_energy():
    return [
        _record(date(2024, 3, 1), 100.0, 10.0),
        _record(date(2024, 3, 2), 110.0, 0.0),
        _record(date(2024, 3, 3), 130.0, 20.0),
        _record(date(2024, 4, 1), 145.0, 15.0),
    ]


def test_aggregate_monthly_excludes_unmeasured_deltas(march_april_energy):
    buckets = aggregate_monthly(march_april_energy, ENERGY)
    march = buckets["2024-03"]
    assert march.record_count == 3
    assert march.delta_count == 2
    assert march.delta_sum == 30.0
    assert march.avg_daily_delta == 15.0
    assert march.delta_min == 10.0
    assert march.delta_max == 20.0
    assert march.consumption_sum == 340.0
    assert march.avg_daily_consumption == pytest.approx(340.0 / 3)
    assert march.consumption_min == 100.0
    assert march.consumption_max == 130.0
    assert buckets["2024-04"].avg_daily_delta == 15.0


def test_equal_averages_give_zero_variation(march_april_energy):
    buckets = apply_month_over_month(aggregate_monthly(march_april_energy, ENERGY))
    assert buckets["2024-03"].variation_pct == 0.0
    assert buckets["2024-04"].variation_pct == 0.0


def test_variation_against_previous_month():
    records = [
        _record(date(2024, 1, 10), 10.0, 10.0),
        _record(date(2024, 2, 10), 20.0, 15.0),
        _record(date(2024, 3, 10), 30.0, 12.0),
    ]
    buckets = apply_month_over_month(aggregate_monthly(records, ENERGY))
    assert buckets["2024-02"].variation_pct == pytest.approx(50.0)
    assert buckets["2024-03"].variation_pct == pytest.approx(-20.0)
    assert latest_variation(buckets) == pytest.approx(-20.0)


def test_zero_baseline_keeps_variation_at_zero():
    records = [
        _record(date(2024, 1, 10), 10.0, 0.0),
        _record(date(2024, 2, 10), 20.0, 40.0),
    ]
    buckets = apply_month_over_month(aggregate_monthly(records, ENERGY))
    assert buckets["2024-01"].avg_daily_delta == 0.0
    assert buckets["2024-02"].variation_pct == 0.0


def test_months_without_deltas_report_zero_extrema():
    buckets = aggregate_monthly([_record(date(2024, 5, 1), 7.0, 0.0)], ENERGY)
    bucket = buckets["2024-05"]
    assert bucket.delta_min == 0.0
    assert bucket.delta_max == 0.0
    assert bucket.avg_daily_delta == 0.0


def test_extrema_keep_real_zero_and_negative_readings():
    records = [
        _record(date(2024, 6, 1), 0.0, 3.0),
        _record(date(2024, 6, 2), -4.0, 5.0),
    ]
    bucket = aggregate_monthly(records, ENERGY)["2024-06"]
    assert bucket.consumption_min == -4.0
    assert bucket.consumption_max == 0.0
    assert bucket.delta_min == 3.0


def test_buckets_are_chronological_across_years():
    records = [
        _record(date(2024, 1, 5), 1.0, 1.0),
        _record(date(2023, 12, 5), 1.0, 1.0),
        _record(date(2023, 2, 5), 1.0, 1.0),
    ]
    assert list(aggregate_monthly(records, ENERGY)) == ["2023-02", "2023-12", "2024-01"]


def test_month_key_labels():
    key = MonthKey(2024, 3, WATER)
    assert key.label == "2024-03"
    assert key.display == "03/2024"
    assert MonthKey(2023, 12, WATER) < key


def test_perform_monthly_analysis_splits_sources(march_april_energy):
    records = march_april_energy + [_record(date(2024, 3, 1), 50.0, 0.5, WATER)]
    analysis = perform_monthly_analysis(records)
    assert list(analysis[ENERGY]) == ["2024-03", "2024-04"]
    assert list(analysis[WATER]) == ["2024-03"]
    assert latest_variation(analysis[WATER]) is None


def test_frames_expose_buckets(march_april_energy):
    records = march_april_energy + [_record(date(2024, 4, 1), 50.0, 0.5, WATER)]
    analysis = perform_monthly_analysis(records)

    frame = monthly_frame(analysis)
    assert len(frame) == 3
    assert set(frame["unit"]) == {"kWh", "m³"}

    combined = combined_trend_frame(analysis)
    assert combined["month"].tolist() == ["2024-03", "2024-04"]
    assert combined.loc[0, "water"] == 0.0
    assert combined.loc[1, "water"] == 0.5
    assert combined.loc[1, "energy"] == 15.0

    totals = monthly_totals_frame(records)
    assert totals.loc[totals["month"] == "2024-03", "energy"].iloc[0] == 340.0
    assert totals.loc[totals["month"] == "2024-03", "water"].iloc[0] == 0.0


def test_empty_analysis_frames():
    analysis = perform_monthly_analysis([])
    assert analysis == {ENERGY: {}, WATER: {}}
    assert combined_trend_frame(analysis).empty
    assert monthly_totals_frame([]).empty
