"""Build the downloadable Excel report.

The first sheet uses the unified layout so that a downloaded report can be
uploaded again; the provider sheets keep the original column names.
"""

from __future__ import annotations

import io
from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from .config import DEFAULT_SETTINGS, Settings
from .exceptions import NoValidDataError
from .monthly import MonthlyAnalysis, perform_monthly_analysis
from .records import ConsumptionRecord, SourceCategory
from .summary import statistics_frame

ENERGY_SHEET = "Coelba"
WATER_SHEET = "Embasa"
STATISTICS_SHEET = "Estatísticas"
MONTHLY_SHEET = "Análise Mensal"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def format_br_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def export_filename(settings: Settings = DEFAULT_SETTINGS, today: Optional[date] = None) -> str:
    """``relatorio_consumo_YYYY-MM-DD.xlsx`` for the given (or current) day."""

    today = today or date.today()
    return f"{settings.export_prefix}{today.isoformat()}.xlsx"


def unified_frame(records: Iterable[ConsumptionRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Data": format_br_date(r.date),
                "Origem": r.source.origin_label,
                "Consumo Total": round(r.consumption, 2),
                "Dif_dia": round(r.daily_delta, 2),
                "Unidade": r.source.unit,
            }
            for r in records
        ],
        columns=["Data", "Origem", "Consumo Total", "Dif_dia", "Unidade"],
    )


def original_frame(records: Iterable[ConsumptionRecord], source: SourceCategory) -> pd.DataFrame:
    """Provider layout: ``Dia, Medicao, Dif.dia`` (Coelba) or ``Dia, Consumo, Dif_dia`` (Embasa)."""

    if source is SourceCategory.ENERGY:
        columns = ["Dia", "Medicao", "Dif.dia"]
    else:
        columns = ["Dia", "Consumo", "Dif_dia"]
    rows = [
        [format_br_date(r.date), round(r.consumption, 2), round(r.daily_delta, 2)]
        for r in records
        if r.source is source
    ]
    return pd.DataFrame(rows, columns=columns)


MONTHLY_EXPORT_COLUMNS = [
    "Tipo",
    "Mês/Ano",
    "Registros",
    "Dias com Dif_dia",
    "Consumo Total",
    "Média Diária (Consumo)",
    "Maior Consumo",
    "Menor Consumo",
    "Total Dif_dia",
    "Média Diária (Dif_dia)",
    "Maior Dif_dia",
    "Menor Dif_dia",
    "Variação % vs Mês Anterior",
    "Unidade",
]


def monthly_export_frame(analysis: MonthlyAnalysis) -> pd.DataFrame:
    rows: List[dict] = []
    for source in (SourceCategory.ENERGY, SourceCategory.WATER):
        for bucket in analysis.get(source, {}).values():
            rows.append(
                {
                    "Tipo": source.display_name,
                    "Mês/Ano": bucket.key.display,
                    "Registros": bucket.record_count,
                    "Dias com Dif_dia": bucket.delta_count,
                    "Consumo Total": round(bucket.consumption_sum, 2),
                    "Média Diária (Consumo)": round(bucket.avg_daily_consumption, 2),
                    "Maior Consumo": round(bucket.consumption_max or 0.0, 2),
                    "Menor Consumo": round(bucket.consumption_min or 0.0, 2),
                    "Total Dif_dia": round(bucket.delta_sum, 2),
                    "Média Diária (Dif_dia)": round(bucket.avg_daily_delta, 2),
                    "Maior Dif_dia": round(bucket.delta_max or 0.0, 2),
                    "Menor Dif_dia": round(bucket.delta_min or 0.0, 2),
                    "Variação % vs Mês Anterior": round(bucket.variation_pct, 1),
                    "Unidade": source.unit,
                }
            )
    return pd.DataFrame(rows, columns=MONTHLY_EXPORT_COLUMNS)


def build_export_workbook(
    records: Iterable[ConsumptionRecord],
    analysis: Optional[MonthlyAnalysis] = None,
    settings: Settings = DEFAULT_SETTINGS,
) -> bytes:
    """Return the five-sheet ``.xlsx`` report as bytes.

    Raises
    ------
    NoValidDataError
        When there is nothing to export.
    """

    records = list(records)
    if not records:
        raise NoValidDataError("Nenhum dado disponível para download.")
    if analysis is None:
        analysis = perform_monthly_analysis(records)

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        unified_frame(records).to_excel(writer, sheet_name=settings.unified_sheet_name, index=False)
        original_frame(records, SourceCategory.ENERGY).to_excel(writer, sheet_name=ENERGY_SHEET, index=False)
        original_frame(records, SourceCategory.WATER).to_excel(writer, sheet_name=WATER_SHEET, index=False)
        statistics_frame(records).to_excel(writer, sheet_name=STATISTICS_SHEET, index=False)
        monthly_export_frame(analysis).to_excel(writer, sheet_name=MONTHLY_SHEET, index=False)
    return output.getvalue()
