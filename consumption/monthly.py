"""Monthly aggregation and month-over-month trend of consumption records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional

import pandas as pd

from .records import ConsumptionRecord, SourceCategory

MonthlyAnalysis = Dict[SourceCategory, Dict[str, "MonthlyBucket"]]


class MonthKey(NamedTuple):
    """Composite ``(year, month, source)`` key; sorts chronologically."""

    year: int
    month: int
    source: SourceCategory

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def display(self) -> str:
        return f"{self.month:02d}/{self.year:04d}"


def _lower(current: Optional[float], value: float) -> float:
    return value if current is None else min(current, value)


def _upper(current: Optional[float], value: float) -> float:
    return value if current is None else max(current, value)


@dataclass
class MonthlyBucket:
    """Statistics of one source in one calendar month.

    Min/max attributes stay ``None`` until a qualifying value is folded and
    are reported as ``0`` once :meth:`finalize` runs.
    """

    key: MonthKey
    record_count: int = 0
    delta_count: int = 0
    consumption_sum: float = 0.0
    delta_sum: float = 0.0
    consumption_min: Optional[float] = None
    consumption_max: Optional[float] = None
    delta_min: Optional[float] = None
    delta_max: Optional[float] = None
    avg_daily_consumption: float = 0.0
    avg_daily_delta: float = 0.0
    variation_pct: float = 0.0

    @property
    def year(self) -> int:
        return self.key.year

    @property
    def month(self) -> int:
        return self.key.month

    @property
    def source(self) -> SourceCategory:
        return self.key.source

    def add(self, record: ConsumptionRecord) -> None:
        self.record_count += 1
        self.consumption_sum += record.consumption
        self.consumption_min = _lower(self.consumption_min, record.consumption)
        self.consumption_max = _upper(self.consumption_max, record.consumption)
        # zero and negative deltas mean "not measured"
        if record.daily_delta > 0:
            self.delta_count += 1
            self.delta_sum += record.daily_delta
            self.delta_min = _lower(self.delta_min, record.daily_delta)
            self.delta_max = _upper(self.delta_max, record.daily_delta)

    def finalize(self) -> None:
        self.avg_daily_consumption = self.consumption_sum / self.record_count if self.record_count else 0.0
        self.avg_daily_delta = self.delta_sum / self.delta_count if self.delta_count > 0 else 0.0
        self.consumption_min = 0.0 if self.consumption_min is None else self.consumption_min
        self.consumption_max = 0.0 if self.consumption_max is None else self.consumption_max
        self.delta_min = 0.0 if self.delta_min is None else self.delta_min
        self.delta_max = 0.0 if self.delta_max is None else self.delta_max


def month_key(record: ConsumptionRecord) -> MonthKey:
    return MonthKey(record.date.year, record.date.month, record.source)


def aggregate_monthly(
    records: Iterable[ConsumptionRecord],
    source: SourceCategory,
) -> Dict[str, MonthlyBucket]:
    """Fold the records of ``source`` into finalized monthly buckets.

    The result is ordered chronologically and keyed by ``"YYYY-MM"``.
    Variation is left at ``0``; see :func:`apply_month_over_month`.
    """

    buckets: Dict[MonthKey, MonthlyBucket] = {}
    for record in records:
        if record.source is not source:
            continue
        key = month_key(record)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = MonthlyBucket(key=key)
        bucket.add(record)

    ordered: Dict[str, MonthlyBucket] = {}
    for key in sorted(buckets):
        bucket = buckets[key]
        bucket.finalize()
        ordered[key.label] = bucket
    return ordered


def apply_month_over_month(buckets: Dict[str, MonthlyBucket]) -> Dict[str, MonthlyBucket]:
    """Set each bucket's percent variation of average daily delta.

    A month is compared with the month before it only when that month had a
    strictly positive average; otherwise, and for the first month, the
    variation is ``0``.
    """

    previous: Optional[MonthlyBucket] = None
    for label in sorted(buckets):
        current = buckets[label]
        current.variation_pct = 0.0
        if previous is not None and previous.avg_daily_delta > 0:
            current.variation_pct = (
                (current.avg_daily_delta - previous.avg_daily_delta) / previous.avg_daily_delta * 100
            )
        previous = current
    return buckets


def perform_monthly_analysis(records: Iterable[ConsumptionRecord]) -> MonthlyAnalysis:
    """Aggregate and trend both sources in one pass over ``records``."""

    records = list(records)
    return {
        source: apply_month_over_month(aggregate_monthly(records, source))
        for source in SourceCategory
    }


def latest_variation(buckets: Dict[str, MonthlyBucket]) -> Optional[float]:
    """Variation of the most recent month, or ``None`` with fewer than two months."""

    if len(buckets) < 2:
        return None
    return buckets[max(buckets)].variation_pct


MONTHLY_COLUMNS = [
    "source",
    "month",
    "label",
    "record_count",
    "delta_count",
    "consumption_sum",
    "avg_daily_consumption",
    "consumption_max",
    "consumption_min",
    "delta_sum",
    "avg_daily_delta",
    "delta_max",
    "delta_min",
    "variation_pct",
    "unit",
]


def monthly_frame(analysis: MonthlyAnalysis) -> pd.DataFrame:
    """Flatten the analysis into one row per source per month."""

    rows: List[dict] = []
    for source, buckets in analysis.items():
        for label, bucket in buckets.items():
            rows.append(
                {
                    "source": source.value,
                    "month": label,
                    "label": bucket.key.display,
                    "record_count": bucket.record_count,
                    "delta_count": bucket.delta_count,
                    "consumption_sum": bucket.consumption_sum,
                    "avg_daily_consumption": bucket.avg_daily_consumption,
                    "consumption_max": bucket.consumption_max,
                    "consumption_min": bucket.consumption_min,
                    "delta_sum": bucket.delta_sum,
                    "avg_daily_delta": bucket.avg_daily_delta,
                    "delta_max": bucket.delta_max,
                    "delta_min": bucket.delta_min,
                    "variation_pct": bucket.variation_pct,
                    "unit": source.unit,
                }
            )
    return pd.DataFrame(rows, columns=MONTHLY_COLUMNS)


def combined_trend_frame(analysis: MonthlyAnalysis) -> pd.DataFrame:
    """One row per month with both sources' averages and variations side by side.

    A source without data for a month contributes ``0``.
    """

    frame = monthly_frame(analysis)
    columns = ["month", "energy", "water", "energy_variation", "water_variation"]
    if frame.empty:
        return pd.DataFrame(columns=columns)
    averages = frame.pivot(index="month", columns="source", values="avg_daily_delta")
    variations = frame.pivot(index="month", columns="source", values="variation_pct")
    combined = pd.DataFrame(index=averages.index)
    for source in SourceCategory:
        combined[source.value] = averages.get(source.value, 0.0)
        combined[f"{source.value}_variation"] = variations.get(source.value, 0.0)
    combined = combined.fillna(0.0).sort_index().reset_index()
    combined["month_start"] = pd.to_datetime(combined["month"], format="%Y-%m")
    return combined[columns + ["month_start"]]


def monthly_totals_frame(records: Iterable[ConsumptionRecord]) -> pd.DataFrame:
    """Consumption totals per calendar month for each source."""

    data = pd.DataFrame(
        [
            {"month": f"{r.date.year:04d}-{r.date.month:02d}", "source": r.source.value, "consumption": r.consumption}
            for r in records
        ],
        columns=["month", "source", "consumption"],
    )
    if data.empty:
        return pd.DataFrame(columns=["month"] + [s.value for s in SourceCategory])
    totals = data.pivot_table(index="month", columns="source", values="consumption", aggfunc="sum", fill_value=0.0)
    totals = totals.reindex(columns=[s.value for s in SourceCategory], fill_value=0.0)
    return totals.sort_index().reset_index()
