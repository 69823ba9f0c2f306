"""
Calendar-day helpers used for shelf life and expiry calculations.

Product labels carry dates in loose formats ("05-2026", "2026/05/14",
"14.05.2026"), so parsing works on digit groups rather than separators.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Dict, Union

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"\d+")
_TOKENS = re.compile(r"yyyy|mm|dd")

DateLike = Union[date, datetime]


def parse_date(value: str, fmt: str = "yyyy-mm-dd") -> date:
    """
    Parse `value` by assigning its digit groups to the tokens of `fmt`.

    The n-th token found in `fmt` (yyyy, mm or dd) takes the n-th digit
    group of `value`. Missing components default to the current year,
    January, and the 1st.

        >>> parse_date("05-2026", "mm-yyyy")
        datetime.date(2026, 5, 1)

    Raises:
        ValueError: `value` contains no digits, lacks a group for a token
            in `fmt`, or the components do not form a real date.
    """
    parts = _DIGITS.findall(value or "")
    if not parts:
        raise ValueError(f"Invalid date input: {value}")

    positions: Dict[str, int] = {}
    for index, match in enumerate(_TOKENS.finditer(fmt)):
        positions[match.group(0)] = index

    def component(token: str, default: int) -> int:
        if token not in positions:
            return default
        try:
            return int(parts[positions[token]])
        except IndexError:
            raise ValueError(f"Invalid date input: {value}") from None

    year = component("yyyy", date.today().year)
    month = component("mm", 1)
    day = component("dd", 1)
    return date(year, month, day)


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def date_diff_in_days(a: DateLike, b: DateLike) -> int:
    """Whole calendar days from `a` to `b`; time of day is ignored."""
    start, end = _as_date(a), _as_date(b)
    logger.debug("Date diff: %s -> %s", start.isoformat(), end.isoformat())
    return (end - start).days


def add_days(value: DateLike, days: int) -> DateLike:
    return value + timedelta(days=days)
