"""Regional date parsing for dates quoted inside bank SMS bodies.

Bank messages write dates as ``02Dec25``, ``21-Jun-24``, ``07-12-25`` or
``15 October 2024``. Each shape has its own interpreter; interpreters are tried
in order and the first one that yields a real calendar date wins.
"""

from datetime import date
from typing import Callable, List, Optional

from .compiled_patterns import CompiledPatterns

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}


def _year(raw: str) -> int:
    year = int(raw)
    return year + 2000 if year < 100 else year


def _build(year: str, month: Optional[int], day: str) -> Optional[date]:
    if month is None:
        return None
    try:
        return date(_year(year), month, int(day))
    except ValueError:
        return None


def parse_compact_month(value: str) -> Optional[date]:
    """02Dec25"""
    m = CompiledPatterns.Date.COMPACT_MONTH.match(value)
    if not m:
        return None
    return _build(m.group(3), MONTHS.get(m.group(2).lower()), m.group(1))


def parse_separated_month(value: str) -> Optional[date]:
    """21-Jun-24 or 21/Jun/24"""
    m = CompiledPatterns.Date.SEPARATED_MONTH.match(value)
    if not m:
        return None
    return _build(m.group(3), MONTHS.get(m.group(2).lower()), m.group(1))


def parse_numeric(value: str) -> Optional[date]:
    """07-12-25 or 15/10/2025, day first"""
    m = CompiledPatterns.Date.NUMERIC.match(value)
    if not m:
        return None
    return _build(m.group(3), int(m.group(2)), m.group(1))


def parse_spelled_month(value: str) -> Optional[date]:
    """15 October 2024; only the first three letters of the month count"""
    m = CompiledPatterns.Date.SPELLED_MONTH.match(value)
    if not m:
        return None
    return _build(m.group(3), MONTHS.get(m.group(2)[:3].lower()), m.group(1))


DATE_INTERPRETERS: List[Callable[[str], Optional[date]]] = [
    parse_compact_month,
    parse_separated_month,
    parse_numeric,
    parse_spelled_month,
]


def clean_date_string(value: str) -> str:
    return CompiledPatterns.Date.TRAILING_PUNCTUATION.sub("", value.strip())


def parse_date_string(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    cleaned = clean_date_string(value)
    for interpreter in DATE_INTERPRETERS:
        parsed = interpreter(cleaned)
        if parsed is not None:
            return parsed
    return None


def find_transaction_date(message: str) -> Optional[date]:
    """Returns the first date-like substring of the message that parses."""
    pos = 0
    while True:
        m = CompiledPatterns.Date.CANDIDATE.search(message, pos)
        if m is None:
            return None
        parsed = parse_date_string(m.group(1))
        if parsed is not None:
            return parsed
        # candidates overlap ("45 spent 02-Dec-25"); retry just past this one
        pos = m.start() + 1
