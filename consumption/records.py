"""Core record types shared by the loader, the aggregator and the app."""

from __future__ import annotations

import math
import numbers
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Union

import pandas as pd

from .dates import parse_date
from .exceptions import ManualEntryError


class SourceCategory(str, Enum):
    """Closed set of metered utilities."""

    ENERGY = "energy"
    WATER = "water"

    @property
    def unit(self) -> str:
        return "kWh" if self is SourceCategory.ENERGY else "m³"

    @property
    def display_name(self) -> str:
        return "Energia" if self is SourceCategory.ENERGY else "Água"

    @property
    def provider(self) -> str:
        return "Coelba" if self is SourceCategory.ENERGY else "Embasa"

    @property
    def origin_label(self) -> str:
        """Label written to the ``Origem`` column of exported workbooks."""

        return f"{self.provider} ({self.display_name})"

    @classmethod
    def parse(cls, value: Union[str, "SourceCategory"]) -> "SourceCategory":
        """Accept the enum value itself or the provider name (``coelba``/``embasa``)."""

        if isinstance(value, SourceCategory):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.provider.lower()):
                return member
        raise ValueError(f"Origem desconhecida: {value}")


@dataclass(frozen=True)
class ConsumptionRecord:
    """One meter reading for one day.

    Attributes
    ----------
    date : datetime.date
        Calendar day of the reading.
    source : SourceCategory
        Utility the reading belongs to.
    consumption : float
        Total meter reading or period consumption.
    daily_delta : float
        Difference against the previous day; ``0`` when not measured.
    """

    date: date
    source: SourceCategory
    consumption: float
    daily_delta: float = 0.0


def is_measured(value: object) -> bool:
    """Return ``True`` for finite, non-zero numbers.

    Zero is the "not measured" marker in the utility sheets, so it is
    excluded from every average alongside blanks and non-numbers.
    """

    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value) and value != 0


_NUMERIC_PREFIX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def parse_number(value: object) -> Optional[float]:
    """Parse a spreadsheet cell leniently, returning ``None`` when not numeric.

    Strings are read the way users type them: ``"12,5"`` and ``"12.5 kWh"``
    both yield ``12.5``.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            return None
        try:
            number = float(value)  # numpy scalars, Decimal
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None
    text = value.strip()
    if "," in text and "." not in text:
        text = text.replace(",", ".")
    match = _NUMERIC_PREFIX.match(text)
    if not match:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def parse_strict_number(value: object) -> Optional[float]:
    """Like :func:`parse_number` but rejects trailing garbage in strings."""

    if isinstance(value, str):
        text = value.strip()
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return parse_number(value)


def build_manual_record(
    date_value: Optional[str],
    source: Optional[Union[str, SourceCategory]],
    consumption: Optional[str],
) -> ConsumptionRecord:
    """Validate a form submission and build a record from it.

    A manual entry is a period consumption, so its daily delta equals the
    consumption itself.  Raises :class:`ManualEntryError` with a message
    suitable for display.
    """

    fields = (date_value, source, consumption)
    if any(v is None or (isinstance(v, str) and not v.strip()) for v in fields):
        raise ManualEntryError("Por favor, preencha todos os campos.")

    amount = parse_strict_number(consumption)
    if amount is None:
        raise ManualEntryError("Por favor, insira um valor numérico válido para o consumo.")

    parsed_date = parse_date(date_value)
    if parsed_date is None:
        raise ManualEntryError(f"Data inválida: {date_value}")

    try:
        category = SourceCategory.parse(source)  # type: ignore[arg-type]
    except ValueError as exc:
        raise ManualEntryError(str(exc)) from exc

    return ConsumptionRecord(
        date=parsed_date,
        source=category,
        consumption=amount,
        daily_delta=amount,
    )
