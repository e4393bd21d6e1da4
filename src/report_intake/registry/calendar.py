"""Persian (Jalali) calendar helpers for displaying and filtering upload dates."""

import re
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import jdatetime

from report_intake.core.config import DEFAULT_TIMEZONE

PERSIAN_DATE_FORMAT = "%Y/%m/%d"

_PERSIAN_DATE_PATTERN = re.compile(r"^\s*(\d{4})[/-](\d{1,2})[/-](\d{1,2})\s*$")


def to_persian_date(moment: datetime, tz: Optional[str] = DEFAULT_TIMEZONE) -> str:
    """Format a timestamp as a zero-padded ``YYYY/MM/DD`` Persian date.

    Aware timestamps are converted to ``tz`` first; naive ones are taken as
    wall-clock time.
    """
    if moment.tzinfo is not None and tz:
        moment = moment.astimezone(ZoneInfo(tz))
    return jdatetime.date.fromgregorian(date=moment.date()).strftime(PERSIAN_DATE_FORMAT)


def parse_persian_date(text: str) -> jdatetime.date:
    """Parse ``YYYY/MM/DD`` (or ``YYYY-MM-DD``) in the Persian calendar.

    Persian and Arabic-Indic digits are accepted.

    Raises:
        ValueError: If the text is not a valid Persian calendar date
    """
    match = _PERSIAN_DATE_PATTERN.match(text or "")
    if not match:
        raise ValueError(f"Invalid Persian date: {text!r}")
    year, month, day = (int(part) for part in match.groups())
    return jdatetime.date(year, month, day)


def normalize_persian_date(text: str) -> str:
    """Rewrite a user-entered Persian date into the canonical filter form."""
    return parse_persian_date(text).strftime(PERSIAN_DATE_FORMAT)


def is_valid_persian_date(text: str) -> bool:
    try:
        parse_persian_date(text)
    except ValueError:
        return False
    return True
