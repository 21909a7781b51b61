"""
Date helpers for CV annotations.

CV records carry dates in whatever shape the data files used: ISO strings,
"2020-05", bare years, or date objects from a YAML loader. Everything here
tolerates that and reports unparsable values as None rather than raising.
"""

from datetime import date, datetime
from typing import Any, List, Optional, Sequence, TypeVar

T = TypeVar("T")

# Tried in order after datetime.fromisoformat()
DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m",
    "%Y",
    "%Y/%m/%d",
    "%B %Y",
    "%b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
]


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a date-like value.

    Args:
        value: date, datetime, int year, or string

    Returns:
        The corresponding date, or None when the value is missing or unparsable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, int):
        try:
            return date(value, 1, 1)
        except ValueError:
            return None

    text = str(value).strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def get_year(value: Any) -> Optional[int]:
    """Calendar year of a date-like value (None if unparsable)."""
    parsed = parse_date(value)
    return parsed.year if parsed else None


def year_range(start: Any, end: Any) -> str:
    """
    Format a start/end pair as a LaTeX year range.

    Empty when either year cannot be determined.

    Example:
        >>> year_range("2018-09-01", "2022-06-01")
        '2018--2022'
    """
    start_year = get_year(start)
    end_year = get_year(end)
    if start_year is None or end_year is None:
        return ""
    return f"{start_year}--{end_year}"


def _get_field(item: Any, key: str) -> Any:
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def sort_by_date(items: Sequence[T], key: str) -> List[T]:
    """
    Sort items in reverse chronological order (most recent first).

    The sort is stable: entries with equal dates keep their input order.
    Entries whose date is missing or unparsable keep their relative order
    and go after every dated entry. The input is not modified.

    Args:
        items: Records (dataclasses, objects or dicts)
        key: Attribute or mapping key holding the date

    Returns:
        New list sorted by descending date
    """
    dated = []
    undated = []
    for item in items:
        parsed = parse_date(_get_field(item, key))
        if parsed is None:
            undated.append(item)
        else:
            dated.append((parsed, item))

    # reverse=True keeps ties in their original order
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in dated] + undated
