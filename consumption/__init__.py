"""Water and energy consumption analysis for the Streamlit dashboard."""

from .data_loader import (
    detect_workbook_format,
    identify_source_sheets,
    load_records,
    load_workbook,
    parse_workbook,
)
from .dates import parse_date
from .monthly import aggregate_monthly, apply_month_over_month, perform_monthly_analysis
from .records import ConsumptionRecord, SourceCategory, is_measured
from .summary import summarize_daily_values

__all__ = [
    "ConsumptionRecord",
    "SourceCategory",
    "is_measured",
    "parse_date",
    "detect_workbook_format",
    "identify_source_sheets",
    "load_workbook",
    "load_records",
    "parse_workbook",
    "aggregate_monthly",
    "apply_month_over_month",
    "perform_monthly_analysis",
    "summarize_daily_values",
]
