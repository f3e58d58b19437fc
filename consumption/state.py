"""Session state for the dashboard.

All derived data lives in one immutable :class:`SessionSnapshot`; a new
upload or manual entry builds the next snapshot completely and swaps it in
with a single assignment, so readers never observe a half-updated state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

import streamlit as st

from .config import DEFAULT_SETTINGS, Settings
from .data_loader import WorkbookFormat, load_records
from .monthly import MonthlyAnalysis, perform_monthly_analysis
from .records import ConsumptionRecord, SourceCategory, build_manual_record
from .summary import SourceOverview, summarize_source

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    records: Tuple[ConsumptionRecord, ...] = ()
    monthly: MonthlyAnalysis = field(default_factory=dict)
    workbook_format: Optional[WorkbookFormat] = None
    sheets: Dict[SourceCategory, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def records_for(self, source: SourceCategory) -> Tuple[ConsumptionRecord, ...]:
        return tuple(r for r in self.records if r.source is source)

    def overview(self, source: SourceCategory) -> SourceOverview:
        return summarize_source(self.records, source, self.monthly)


class ConsumptionSession:
    """Owns the records of one user session and everything derived from them."""

    def __init__(self, settings: Settings = DEFAULT_SETTINGS):
        self.settings = settings
        self.snapshot = SessionSnapshot()

    @property
    def records(self) -> Tuple[ConsumptionRecord, ...]:
        return self.snapshot.records

    @property
    def monthly(self) -> MonthlyAnalysis:
        return self.snapshot.monthly

    def replace(
        self,
        records: Iterable[ConsumptionRecord],
        workbook_format: Optional[WorkbookFormat] = None,
        sheets: Optional[Dict[SourceCategory, str]] = None,
    ) -> SessionSnapshot:
        """Rebuild every aggregate from ``records`` and swap the snapshot."""

        ordered = tuple(sorted(records, key=lambda r: r.date))
        snapshot = SessionSnapshot(
            records=ordered,
            monthly=perform_monthly_analysis(ordered),
            workbook_format=workbook_format,
            sheets=dict(sheets or {}),
        )
        self.snapshot = snapshot
        return snapshot

    def load_workbook(self, file) -> SessionSnapshot:
        """Parse an uploaded workbook and replace all prior data.

        Any error propagates and leaves the current snapshot untouched.
        """

        try:
            result = load_records(file, self.settings)
        except ValueError as exc:
            logger.warning("Falha ao carregar planilha: %s", exc)
            raise
        return self.replace(result.records, result.workbook_format, result.sheets)

    def add_manual_entry(self, date_value, source, consumption) -> ConsumptionRecord:
        """Validate and append one record; raises ``ManualEntryError`` on bad input."""

        record = build_manual_record(date_value, source, consumption)
        self.replace(self.snapshot.records + (record,), self.snapshot.workbook_format, self.snapshot.sheets)
        logger.info("Registro manual adicionado: %s %s %.2f", record.date, record.source.value, record.consumption)
        return record

    def clear(self) -> None:
        """Drop every record, e.g. before starting a new period by hand."""

        self.snapshot = SessionSnapshot()
        logger.info("Dados da sessão descartados")


def bootstrap_state(settings: Optional[Settings] = None) -> ConsumptionSession:
    """Ensure the session object exists in ``st.session_state``."""

    if "consumption_session" not in st.session_state:
        st.session_state.consumption_session = ConsumptionSession(settings or DEFAULT_SETTINGS)
    return st.session_state.consumption_session
