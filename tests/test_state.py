import io
import zipfile
from datetime import date

import pandas as pd
import pytest

from consumption.data_loader import WorkbookFormat
from consumption.exceptions import ManualEntryError, SheetsNotIdentifiedError, UnsupportedFileError
from consumption.export import build_export_workbook
from consumption.records import ConsumptionRecord, SourceCategory
from consumption.state import ConsumptionSession


def _seed(session):
    return session.replace(
        [
            ConsumptionRecord(date(2024, 3, 2), SourceCategory.ENERGY, 110.0, 10.0),
            ConsumptionRecord(date(2024, 3, 1), SourceCategory.ENERGY, 100.0, 5.0),
        ]
    )


def test_replace_rebuilds_all_aggregates():
    session = ConsumptionSession()
    snapshot = _seed(session)
    assert [r.date for r in snapshot.records] == [date(2024, 3, 1), date(2024, 3, 2)]
    assert snapshot.monthly[SourceCategory.ENERGY]["2024-03"].avg_daily_delta == 7.5
    assert session.snapshot is snapshot


def test_manual_entry_appends_and_reaggregates():
    session = ConsumptionSession()
    _seed(session)
    record = session.add_manual_entry("2024-04-01", "energy", "15")
    assert record.daily_delta == 15.0
    assert len(session.records) == 3
    april = session.monthly[SourceCategory.ENERGY]["2024-04"]
    assert april.avg_daily_delta == 15.0
    assert april.variation_pct == pytest.approx(100.0)


def test_invalid_manual_entry_leaves_state_untouched():
    session = ConsumptionSession()
    before = _seed(session)
    with pytest.raises(ManualEntryError):
        session.add_manual_entry("2024-04-01", "energy", "muito")
    assert session.snapshot is before


def test_failed_upload_keeps_previous_snapshot(tmp_path):
    path = tmp_path / "planilha.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame({"a": [1]}).to_excel(writer, sheet_name="Resumo", index=False)
    session = ConsumptionSession()
    before = _seed(session)
    with pytest.raises(SheetsNotIdentifiedError):
        session.load_workbook(str(path))
    assert session.snapshot is before


def test_upload_replaces_everything():
    session = ConsumptionSession()
    _seed(session)
    content = build_export_workbook([ConsumptionRecord(date(2023, 1, 5), SourceCategory.WATER, 12.0, 0.4)])
    snapshot = session.load_workbook(io.BytesIO(content))
    assert snapshot.workbook_format is WorkbookFormat.UNIFIED
    assert [r.source for r in snapshot.records] == [SourceCategory.WATER]
    assert snapshot.monthly[SourceCategory.ENERGY] == {}
    assert snapshot.overview(SourceCategory.WATER).daily.mean == 0.4


def test_clear_resets_snapshot():
    session = ConsumptionSession()
    _seed(session)
    session.clear()
    assert session.snapshot.is_empty
    assert session.snapshot.sheets == {}


def test_damaged_upload_is_reported_and_keeps_snapshot():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        archive.writestr("xl/workbook.xml", "lixo")
    buffer.seek(0)
    buffer.name = "planilha.xlsx"
    session = ConsumptionSession()
    before = _seed(session)
    with pytest.raises(UnsupportedFileError):
        session.load_workbook(buffer)
    assert session.snapshot is before


def test_original_upload_remembers_identified_sheets(tmp_path):
    path = tmp_path / "contas.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame({"Dia": ["01/03/2024"], "Medicao": [10], "Dif.dia": [1.5]}).to_excel(
            writer, sheet_name="Jan-Dez Luz", index=False
        )
        pd.DataFrame({"Dia": ["01/03/2024"], "Consumo": [2], "Dif_dia": [0.2]}).to_excel(
            writer, sheet_name="Jan-Dez Água", index=False
        )
    session = ConsumptionSession()
    snapshot = session.load_workbook(str(path))
    assert snapshot.workbook_format is WorkbookFormat.ORIGINAL
    assert snapshot.sheets == {
        SourceCategory.ENERGY: "Jan-Dez Luz",
        SourceCategory.WATER: "Jan-Dez Água",
    }
    session.add_manual_entry("2024-03-02", "water", "3")
    assert session.snapshot.sheets == snapshot.sheets
