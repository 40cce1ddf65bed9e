from __future__ import annotations

import logging
from datetime import datetime
from typing import Tuple


logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: str) -> Tuple[int, int, int]:
    """Parse a ``YYYY-MM-DD`` date into (year, month, day).

    Malformed dates, including the catalog's ``0000-00-00`` placeholder, give
    (0, 0, 0) instead of raising. Callers treat a zero year as unknown.
    """
    try:
        parsed = datetime.strptime(value or "", DATE_FORMAT)
    except ValueError:
        logger.debug(f"Could not parse release date {value!r}")
        return 0, 0, 0
    return parsed.year, parsed.month, parsed.day


def release_year(value: str):
    """Year of a release date, or None when it cannot be parsed."""
    year, _, _ = parse_date(value)
    return year or None
