"""
Receipt date parsing.

Receipts print local wall-clock time without a zone, so every date is built
from its calendar fields as a naive datetime and formatted without a
trailing "Z".
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple
import logging
import re

from receipt_extractor.utils.locale import MONTH_ABBREVIATIONS

logger = logging.getLogger(__name__)

_ZERO_WIDTH_RE = re.compile('[\u200b-\u200d\ufeff]')
_WHITESPACE_RE = re.compile(r'\s+')


@dataclass(frozen=True)
class DateFormat:
    """A named date regex plus the function turning its match into fields."""
    name: str
    pattern: re.Pattern
    example: str
    build: Callable[[re.Match, Sequence[str]], Optional[Tuple[int, ...]]]


def _expand_year(raw: str) -> int:
    year = int(raw)
    return 2000 + year if year < 100 else year


def month_index(name: str, months: Sequence[str] = MONTH_ABBREVIATIONS) -> Optional[int]:
    """
    1-based month number for a month name, matched by abbreviation prefix.

    Examples:
        >>> month_index("September")
        9
        >>> month_index("Foo") is None
        True
    """
    lowered = name.lower()
    for index, abbreviation in enumerate(months):
        if lowered.startswith(abbreviation):
            return index + 1
    return None


def _build_day_month_name_time(match, months):
    day, month_name, year, hour, minute, second = match.groups()
    month = month_index(month_name, months)
    if month is None:
        return None
    return (_expand_year(year), month, int(day), int(hour), int(minute), int(second or 0))


def _build_iso(match, months):
    year, month, day = match.groups()
    return (int(year), int(month), int(day))


def _build_numeric(match, months):
    day, month, year = match.groups()
    return (_expand_year(year), int(month), int(day))


def _build_day_month_name(match, months):
    day, month_name, year = match.groups()
    month = month_index(month_name, months)
    if month is None:
        return None
    return (_expand_year(year), month, int(day))


def _build_year_only(match, months):
    return (int(match.group(1)), 1, 1)


# Tried in order; the first format producing a valid calendar date wins
DATE_FORMATS: Tuple[DateFormat, ...] = (
    DateFormat(
        name='day_month_name_time',
        # Tolerates OCR spacing before the year: "20-May- 18 22:55"
        pattern=re.compile(
            r'\b(\d{1,2})-([A-Za-z]{3,9})-?\s*(\d{2,4})[ ,T\-]+(\d{1,2}):(\d{2})(?::(\d{2}))?\b',
            re.IGNORECASE,
        ),
        example='20-May-18 22:55',
        build=_build_day_month_name_time,
    ),
    DateFormat(
        name='iso',
        pattern=re.compile(r'\b(20\d{2}|19\d{2})-(\d{2})-(\d{2})\b'),
        example='2024-01-15',
        build=_build_iso,
    ),
    DateFormat(
        name='numeric_dmy',
        pattern=re.compile(r'\b(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})\b'),
        example='15/01/2024',
        build=_build_numeric,
    ),
    DateFormat(
        name='day_month_name',
        pattern=re.compile(r'\b(\d{1,2})\s+([A-Za-z]{3,9})\.?,?\s+(\d{2,4})\b', re.IGNORECASE),
        example='15 Jan, 2024',
        build=_build_day_month_name,
    ),
    DateFormat(
        name='year_only',
        pattern=re.compile(r'\b(20\d{2}|19\d{2})\b'),
        example='FY 2024',
        build=_build_year_only,
    ),
)


def parse_date(text: str, months: Sequence[str] = MONTH_ABBREVIATIONS) -> Optional[datetime]:
    """
    Parse the first recognisable date in a receipt line.

    Formats are tried in priority order (see DATE_FORMATS). A format whose
    match does not form a real calendar date (e.g. month 13) is skipped and
    the next one is tried. A bare year yields January 1 of that year.

    Args:
        text: One line (or fragment) of receipt text
        months: Month abbreviations, January first

    Returns:
        Naive datetime in receipt-local time, or None
    """
    if not text or not isinstance(text, str):
        return None

    cleaned = _ZERO_WIDTH_RE.sub('', _WHITESPACE_RE.sub(' ', text)).strip()
    if not cleaned:
        return None

    for date_format in DATE_FORMATS:
        match = date_format.pattern.search(cleaned)
        if not match:
            continue
        fields = date_format.build(match, months)
        if fields is None:
            continue
        try:
            return datetime(*fields)
        except ValueError:
            logger.debug("Discarded impossible date", extra={
                "format": date_format.name,
                "fields": fields,
            })
            continue

    return None


def format_local_iso(value: datetime) -> str:
    """
    Format a datetime as YYYY-MM-DDTHH:MM:SS with no zone suffix.

    Examples:
        >>> format_local_iso(datetime(2018, 5, 20, 22, 55))
        '2018-05-20T22:55:00'
    """
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
