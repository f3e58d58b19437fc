"""Descriptive statistics and short narrative summaries of consumption."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

import pandas as pd

from .monthly import MonthlyAnalysis, latest_variation
from .records import ConsumptionRecord, SourceCategory, is_measured, parse_strict_number


@dataclass(frozen=True)
class DailyStats:
    mean: float = 0.0
    total: float = 0.0
    count_used: int = 0
    had_negative: bool = False


@dataclass(frozen=True)
class SourceOverview:
    """Headline numbers of one source for the result cards."""

    source: SourceCategory
    daily: DailyStats
    consumption_total: float
    record_count: int
    latest_variation: Optional[float] = None


def _coerce(value: object) -> Optional[float]:
    if isinstance(value, bool):
        return None
    return parse_strict_number(value)


def summarize_daily_values(values: Optional[Iterable[object]]) -> DailyStats:
    """Mean and sum of the measured entries of ``values``.

    Blanks, non-numbers and zeros are dropped before averaging; negative
    survivors are kept and flagged through ``had_negative``.
    """

    if values is None:
        return DailyStats()
    used = [number for number in (_coerce(v) for v in values) if is_measured(number)]
    if not used:
        return DailyStats()
    total = float(sum(used))
    return DailyStats(
        mean=total / len(used),
        total=total,
        count_used=len(used),
        had_negative=any(v < 0 for v in used),
    )


def summarize_source(
    records: Iterable[ConsumptionRecord],
    source: SourceCategory,
    analysis: Optional[MonthlyAnalysis] = None,
) -> SourceOverview:
    selected = [r for r in records if r.source is source]
    variation = None
    if analysis is not None:
        variation = latest_variation(analysis.get(source, {}))
    return SourceOverview(
        source=source,
        daily=summarize_daily_values(r.daily_delta for r in selected),
        consumption_total=float(sum(r.consumption for r in selected)),
        record_count=len(selected),
        latest_variation=variation,
    )


STATISTICS_COLUMNS = ["Estatística", "Valor", "Unidade", "Soma Total", "Valores Utilizados"]


def statistics_frame(records: Iterable[ConsumptionRecord]) -> pd.DataFrame:
    """The four-row statistics table of the exported workbook."""

    records = list(records)
    water = summarize_source(records, SourceCategory.WATER)
    energy = summarize_source(records, SourceCategory.ENERGY)
    rows = []
    for overview in (water, energy):
        source = overview.source
        rows.append(
            {
                "Estatística": f"Média Diária - {source.display_name}",
                "Valor": round(overview.daily.mean, 2),
                "Unidade": f"{source.unit}/dia",
                "Soma Total": round(overview.daily.total, 2),
                "Valores Utilizados": overview.daily.count_used,
            }
        )
    for overview in (water, energy):
        source = overview.source
        rows.append(
            {
                "Estatística": f"Total {source.display_name}",
                "Valor": round(overview.consumption_total, 2),
                "Unidade": source.unit,
                "Soma Total": "-",
                "Valores Utilizados": overview.record_count,
            }
        )
    return pd.DataFrame(rows, columns=STATISTICS_COLUMNS)


def format_variation(value: Optional[float]) -> str:
    if value is None or pd.isna(value):
        return "―"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.1f}%"


def generate_summary(overviews: Mapping[SourceCategory, SourceOverview], timeframe: str = "") -> str:
    """Create a short narrative of the loaded data.

    Parameters
    ----------
    overviews:
        One :class:`SourceOverview` per source, as built by
        :func:`summarize_source`.
    timeframe:
        Optional label (e.g. ``"03/2024"``) prefixed to the text.
    """

    lines: List[str] = []
    for source in SourceCategory:
        overview = overviews.get(source)
        if overview is None or overview.record_count == 0:
            continue
        unit = source.unit
        lines.append(
            f"{source.display_name}: média diária de {overview.daily.mean:.2f} {unit}/dia "
            f"em {overview.daily.count_used} medições, total de {overview.consumption_total:.1f} {unit}."
        )
        if overview.latest_variation is not None:
            lines.append(f"{source.display_name}: {format_variation(overview.latest_variation)} vs mês anterior.")
        if overview.daily.had_negative:
            lines.append(f"Atenção: há diferenças diárias negativas em {source.display_name}.")
    if not lines:
        return "Nenhum dado carregado."
    summary = " ".join(lines)
    if timeframe:
        summary = f"{timeframe} | {summary}"
    return summary
