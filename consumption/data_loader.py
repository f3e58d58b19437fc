"""Utilities for ingesting utility consumption workbooks.

This module centralises the logic for reading user supplied workbooks and
converting them into a sorted list of :class:`ConsumptionRecord`.  Two
layouts are understood:

* the *unified* layout exported by this dashboard (a single
  ``Dados de Consumo`` sheet with one row per reading), and
* the *original* layout received from the providers, one sheet for Coelba
  (energy) and one for Embasa (water).

Everything after reading the bytes is side effect free so that it can be
unit tested without Streamlit.
"""

from __future__ import annotations

import io
import logging
import pathlib
import unicodedata
import zipfile
from dataclasses import dataclass, field
from enum import Enum
from io import BufferedReader
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from .config import DEFAULT_SETTINGS, Settings
from .dates import parse_date
from .exceptions import NoValidDataError, SheetsNotIdentifiedError, UnsupportedFileError
from .records import ConsumptionRecord, SourceCategory, parse_number

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".xlsx", ".xlsm")

Grid = Union[pd.DataFrame, Sequence[Sequence[object]]]
Workbook = Mapping[str, Grid]


class WorkbookFormat(str, Enum):
    UNIFIED = "unified"
    ORIGINAL = "original"


@dataclass
class ParseResult:
    """Outcome of parsing one workbook."""

    records: List[ConsumptionRecord]
    workbook_format: WorkbookFormat
    sheets: Dict[SourceCategory, str] = field(default_factory=dict)

    def count(self, source: SourceCategory) -> int:
        return sum(1 for r in self.records if r.source is source)


def _fold(text: object) -> str:
    """Lower-case and strip accents so that ``Água`` matches ``agua``."""

    decomposed = unicodedata.normalize("NFKD", str(text or "").lower().strip())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(_fold(keyword) in text for keyword in keywords)


def _is_blank_cell(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_blank_row(row: Sequence[object]) -> bool:
    return not row or all(_is_blank_cell(cell) for cell in row)


def grid_rows(grid: Grid) -> List[List[object]]:
    """Return the grid as a list of rows with blank cells as ``""``."""

    if isinstance(grid, pd.DataFrame):
        cleaned = grid.astype(object).where(grid.notna(), "")
        return cleaned.values.tolist()
    return [["" if _is_blank_cell(cell) else cell for cell in row] for row in grid]


def _cell(row: Sequence[object], index: int) -> object:
    if 0 <= index < len(row):
        return row[index]
    return ""


# --------------------------------------------------------------------------
# Format detection
# --------------------------------------------------------------------------


def detect_workbook_format(
    sheet_names: Iterable[str],
    settings: Settings = DEFAULT_SETTINGS,
) -> WorkbookFormat:
    """Return ``UNIFIED`` when the dashboard's own export sheet is present."""

    if settings.unified_sheet_name in list(sheet_names):
        return WorkbookFormat.UNIFIED
    return WorkbookFormat.ORIGINAL


def identify_source_sheets(
    sheet_names: Sequence[str],
    settings: Settings = DEFAULT_SETTINGS,
) -> Dict[SourceCategory, str]:
    """Find the energy and water sheets of a provider workbook.

    Names are matched against keyword sets; when no name matches either set
    the first two sheets are taken positionally (energy, then water).

    Raises
    ------
    SheetsNotIdentifiedError
        When fewer than two sheets exist or only one category was found.
    """

    energy_sheet: Optional[str] = None
    water_sheet: Optional[str] = None
    for name in sheet_names:
        folded = _fold(name)
        if _contains_any(folded, settings.energy_sheet_keywords):
            energy_sheet = name
        elif _contains_any(folded, settings.water_sheet_keywords):
            water_sheet = name

    if energy_sheet is None and water_sheet is None and len(sheet_names) >= 2:
        energy_sheet, water_sheet = sheet_names[0], sheet_names[1]
        logger.info("Planilhas atribuídas por posição: %s (energia), %s (água)", energy_sheet, water_sheet)

    if energy_sheet is None or water_sheet is None:
        raise SheetsNotIdentifiedError("Não foi possível identificar as planilhas da Coelba e Embasa.")
    return {SourceCategory.ENERGY: energy_sheet, SourceCategory.WATER: water_sheet}


# --------------------------------------------------------------------------
# Record extraction
# --------------------------------------------------------------------------


def classify_origin(label: object, settings: Settings = DEFAULT_SETTINGS) -> Optional[SourceCategory]:
    """Map an ``Origem`` label to its category, water checked first."""

    folded = _fold(label)
    if not folded:
        return None
    if _contains_any(folded, settings.water_label_keywords):
        return SourceCategory.WATER
    if _contains_any(folded, settings.energy_label_keywords):
        return SourceCategory.ENERGY
    return None


def _sort_records(records: List[ConsumptionRecord]) -> List[ConsumptionRecord]:
    return sorted(records, key=lambda r: r.date)


def parse_unified_sheet(grid: Grid, settings: Settings = DEFAULT_SETTINGS) -> List[ConsumptionRecord]:
    """Extract records from a ``[Data, Origem, Consumo Total, Dif_dia]`` sheet."""

    rows = grid_rows(grid)
    records: List[ConsumptionRecord] = []
    for index, row in enumerate(rows[1:], start=1):
        if _is_blank_row(row):
            continue
        parsed_date = parse_date(_cell(row, 0))
        if parsed_date is None:
            logger.debug("Linha %d ignorada: data inválida %r", index, _cell(row, 0))
            continue
        source = classify_origin(_cell(row, 1), settings)
        if source is None:
            logger.debug("Linha %d ignorada: origem desconhecida %r", index, _cell(row, 1))
            continue
        consumption = parse_number(_cell(row, 2))
        if consumption is None:
            logger.debug("Linha %d ignorada: consumo não numérico %r", index, _cell(row, 2))
            continue
        records.append(
            ConsumptionRecord(
                date=parsed_date,
                source=source,
                consumption=consumption,
                daily_delta=parse_number(_cell(row, 3)) or 0.0,
            )
        )
    return _sort_records(records)


def detect_sheet_columns(rows: Sequence[Sequence[object]]) -> Tuple[int, int, int]:
    """Infer ``(date_index, delta_index, start_row)`` from a provider sheet.

    ``delta_index`` is ``-1`` when the sheet has no daily-delta column.
    """

    date_index = 0
    delta_index = -1
    start_row = 0
    if rows:
        for index, header in enumerate(rows[0]):
            token = str(header if not _is_blank_cell(header) else "").lower().strip()
            if token == "dia" or "data" in token:
                date_index = index
                start_row = 1
            elif token in ("dif_dia", "dif.dia") or "dif" in token:
                delta_index = index
                start_row = 1

    if delta_index == -1 and len(rows) > 1 and len(rows[1]) >= 3:
        delta_index = 2
    return date_index, delta_index, start_row


def parse_original_sheet(
    grid: Grid,
    source: SourceCategory,
    sheet_name: str = "",
) -> List[ConsumptionRecord]:
    """Extract records from one provider sheet, all tagged with ``source``."""

    rows = grid_rows(grid)
    date_index, delta_index, start_row = detect_sheet_columns(rows)
    records: List[ConsumptionRecord] = []
    for index in range(start_row, len(rows)):
        row = rows[index]
        if _is_blank_row(row):
            continue
        parsed_date = parse_date(_cell(row, date_index))
        consumption = parse_number(_cell(row, 1))
        if parsed_date is None or consumption is None:
            logger.debug("%s linha %d ignorada: %r", sheet_name or source.provider, index, row)
            continue
        delta = parse_number(_cell(row, delta_index)) if delta_index != -1 else None
        records.append(
            ConsumptionRecord(
                date=parsed_date,
                source=source,
                consumption=consumption,
                daily_delta=delta or 0.0,
            )
        )
    return _sort_records(records)


def parse_workbook(workbook: Workbook, settings: Settings = DEFAULT_SETTINGS) -> ParseResult:
    """Detect the layout of ``workbook`` and extract its records.

    Raises
    ------
    SheetsNotIdentifiedError
        Provider workbook whose sheets cannot be assigned.
    NoValidDataError
        No row survived extraction.
    """

    sheet_names = list(workbook.keys())
    workbook_format = detect_workbook_format(sheet_names, settings)
    if workbook_format is WorkbookFormat.UNIFIED:
        records = parse_unified_sheet(workbook[settings.unified_sheet_name], settings)
        result = ParseResult(records=records, workbook_format=workbook_format)
    else:
        sheets = identify_source_sheets(sheet_names, settings)
        records = []
        for source, name in sheets.items():
            records.extend(parse_original_sheet(workbook[name], source, sheet_name=name))
        result = ParseResult(records=records, workbook_format=workbook_format, sheets=sheets)

    if not result.records:
        raise NoValidDataError("Nenhum dado válido foi encontrado nas planilhas.")
    logger.info(
        "Planilha %s carregada: %d registros de energia, %d de água",
        workbook_format.value,
        result.count(SourceCategory.ENERGY),
        result.count(SourceCategory.WATER),
    )
    return result


# --------------------------------------------------------------------------
# File reading
# --------------------------------------------------------------------------


FileLike = Union[io.BytesIO, BufferedReader]


def load_workbook(file: Union[FileLike, str, pathlib.Path, bytes]) -> Dict[str, pd.DataFrame]:
    """Read every sheet of an Excel file as a header-less grid.

    Parameters
    ----------
    file:
        A path, raw bytes or a file-like object such as Streamlit's
        ``UploadedFile``.  File-likes with a ``name`` must carry an Excel
        extension.
    """

    name = str(file) if isinstance(file, (str, pathlib.Path)) else getattr(file, "name", None)
    if name is not None and not str(name).lower().endswith(SUPPORTED_EXTENSIONS):
        raise UnsupportedFileError("Formato de arquivo não suportado. Envie uma planilha Excel.")

    if isinstance(file, (str, pathlib.Path)):
        with open(file, "rb") as f:
            data: Union[io.BytesIO, FileLike] = io.BytesIO(f.read())
    elif isinstance(file, (bytes, bytearray)):
        data = io.BytesIO(file)
    else:
        data = file

    try:
        sheets = pd.read_excel(data, sheet_name=None, header=None)
    except (ValueError, KeyError, OSError, zipfile.BadZipFile, InvalidFileException) as exc:
        raise UnsupportedFileError(f"Não foi possível ler a planilha: {exc}") from exc
    return dict(sheets)


def load_records(
    file: Union[FileLike, str, pathlib.Path, bytes],
    settings: Settings = DEFAULT_SETTINGS,
) -> ParseResult:
    """Read ``file`` and run :func:`parse_workbook` on it."""

    return parse_workbook(load_workbook(file), settings)
