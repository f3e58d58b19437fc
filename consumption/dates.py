"""Normalise the many shapes a date cell can take into a calendar date.

Utility sheets arrive with Excel serial numbers, Brazilian ``DD/MM/YYYY``
strings, ISO strings or native datetimes depending on who produced them.
:func:`parse_date` folds all of them into ``datetime.date`` and returns
``None`` when nothing matches so that callers can skip the row.
"""

from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime, timedelta
from typing import List, Optional

import pandas as pd

# Excel serial of 1970-01-01.
UNIX_EPOCH_SERIAL = 25569

_UNIX_EPOCH = datetime(1970, 1, 1)
_EXCEL_1900_EPOCH = datetime(1900, 1, 1)
# Excel counts 1900-01-01 as day 1 and believes 1900 was a leap year.
_EXCEL_1900_CORRECTION = 2

BRAZILIAN_DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def serial_to_date(serial: float) -> Optional[date]:
    """Convert a spreadsheet day count into a calendar date.

    Serials above :data:`UNIX_EPOCH_SERIAL` are anchored at the Unix epoch,
    anything at or below it at 1900-01-01 with the two day leap-year
    correction.  Fractions of a day (time of day) are dropped.
    """

    if not math.isfinite(serial):
        return None
    try:
        if serial > UNIX_EPOCH_SERIAL:
            moment = _UNIX_EPOCH + timedelta(days=serial - UNIX_EPOCH_SERIAL)
        else:
            moment = _EXCEL_1900_EPOCH + timedelta(days=serial - _EXCEL_1900_CORRECTION)
    except OverflowError:
        return None
    return moment.date()


def _candidate_strings(text: str) -> List[str]:
    return [
        text,
        text.replace("/", "-"),
        text.replace(".", "-"),
        "-".join(reversed(text.split("/"))),
        "-".join(reversed(text.split("."))),
    ]


def parse_date_string(text: str) -> Optional[date]:
    """Parse a free-form date string.

    ``DD/MM/YYYY`` is matched first and built directly so that ``03/04/2024``
    is always the 3rd of April, never March 4th.  Other shapes go through
    ``pandas.to_datetime`` after a few separator rewrites.
    """

    text = text.strip()
    if not text:
        return None

    match = BRAZILIAN_DATE_PATTERN.search(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            pass

    for candidate in _candidate_strings(text):
        try:
            parsed = pd.to_datetime(candidate, errors="coerce")
        except (TypeError, ValueError, OverflowError):
            continue
        if not pd.isna(parsed):
            return parsed.date()
    return None


def parse_date(value: object) -> Optional[date]:
    """Return the calendar date held by ``value`` or ``None`` if unparseable."""

    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        return serial_to_date(float(value))
    if isinstance(value, str):
        return parse_date_string(value)
    return None
