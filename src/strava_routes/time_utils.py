"""Parsing of ``after``/``before`` time bounds for activity queries.

Bounds are epoch seconds as the Strava API expects them. Callers may also
pass a calendar date (``YYYY-MM-DD``, UTC): a lower bound starts at
midnight, an upper bound ends at 23:59:59 so the whole day is included.
"""

import re
from datetime import UTC, datetime, time
from typing import Literal

from .errors import InvalidTimeBoundError

BoundKind = Literal["after", "before"]

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_time_bound(value: str | None, kind: BoundKind) -> int | None:
    """Parse a query-string time bound into epoch seconds.

    Args:
        value: Raw query value; ``None`` or blank means unbounded
        kind: Which side of the window the value bounds

    Returns:
        Epoch seconds, or None when unbounded

    Raises:
        InvalidTimeBoundError: If the value is neither an integer nor a date

    Examples:
        >>> parse_time_bound("1714521600", "after")
        1714521600
        >>> parse_time_bound("2024-05-01", "before")
        1714607999
    """
    if value is None or not value.strip():
        return None

    value = value.strip()

    if re.match(r"^-?\d+$", value):
        try:
            return int(value)
        except ValueError as e:
            raise InvalidTimeBoundError(f"Invalid {kind} value: too many digits") from e

    if _DATE_PATTERN.match(value):
        try:
            day = datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError as e:
            raise InvalidTimeBoundError(f"Invalid {kind} date: '{value}'") from e
        clock = time.min if kind == "after" else time(23, 59, 59)
        return int(datetime.combine(day, clock, tzinfo=UTC).timestamp())

    raise InvalidTimeBoundError(
        f"Invalid {kind} value: '{value}'. Expected epoch seconds or YYYY-MM-DD."
    )


def validate_window(after: int | None, before: int | None) -> None:
    """Reject windows whose lower bound lies after the upper bound."""
    if after is not None and before is not None and after > before:
        raise InvalidTimeBoundError(f"after ({after}) must not be later than before ({before})")
