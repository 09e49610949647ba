"""Pure normalization and validation helpers for event and booking fields.

Nothing in here touches the database; the record managers call these
directly for the fields a write actually supplies.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

from app.services.exceptions import InvalidDateError, InvalidEmailError, InvalidTimeError

SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
SLUG_SPACE_RE = re.compile(r"\s+")
SLUG_HYPHEN_RE = re.compile(r"-+")

TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
# One or two digits each side; longer digit runs are never salvaged.
TIME_SALVAGE_RE = re.compile(r"(?<!\d)(\d{1,2}):(\d{1,2})(?!\d)")

# Own grammar (quoted local parts, 2+ alphanumeric TLD); pydantic EmailStr
# accepts a different set of addresses.
_ATOM = r"[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+"
_QUOTED = r'"(?:[^"\\\r\n]|\\.)*"'
_LOCAL_SEGMENT = rf"(?:{_ATOM}|{_QUOTED})"
_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
EMAIL_RE = re.compile(
    rf"^{_LOCAL_SEGMENT}(?:\.{_LOCAL_SEGMENT})*@(?:{_LABEL}\.)+[A-Za-z0-9]{{2,}}$"
)
EMAIL_MAX_LENGTH = 320

# Human-friendly formats accepted on top of ISO-8601.
DATE_FORMATS = (
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%Y.%m.%d",
)
WEEKDAY_PREFIX_RE = re.compile(
    r"^(mon|tue|wed|thu|fri|sat|sun)[a-z]*,?\s+", re.IGNORECASE
)


def normalize_slug(title: str) -> str:
    slug = title.lower().strip()
    slug = SLUG_STRIP_RE.sub("", slug)
    slug = SLUG_SPACE_RE.sub("-", slug)
    slug = SLUG_HYPHEN_RE.sub("-", slug)
    return slug.strip("-")


def _parse_iso(raw: str) -> date | None:
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def normalize_date(value: str) -> str:
    """Return ``value`` as a ``YYYY-MM-DD`` calendar date.

    Timezone-aware datetimes are converted to UTC before the date is taken;
    naive inputs are read as UTC already. Raises :class:`InvalidDateError`
    for anything that is not a real calendar date.
    """
    raw = (value or "").strip()
    if not raw:
        raise InvalidDateError("Invalid date format")

    parsed = _parse_iso(raw)
    if parsed is None:
        candidate = WEEKDAY_PREFIX_RE.sub("", raw)
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(candidate, fmt).date()
                break
            except ValueError:
                continue

    if parsed is None:
        raise InvalidDateError("Invalid date format")
    return parsed.isoformat()


def normalize_time(value: str) -> str:
    """Return ``value`` as a zero-padded 24-hour ``HH:MM`` string.

    Inputs that are not already ``H:MM``/``HH:MM`` are salvaged from the first
    ``digits:digits`` run they contain, so ``"9:5"`` becomes ``"09:05"`` and
    ``"09:00 AM"`` becomes ``"09:00"``.
    """
    raw = (value or "").strip()

    match = TIME_RE.match(raw)
    if match:
        return f"{int(match.group(1)):02d}:{int(match.group(2)):02d}"

    match = TIME_SALVAGE_RE.search(raw)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if 0 <= hours <= 23 and 0 <= minutes <= 59:
            return f"{hours:02d}:{minutes:02d}"

    raise InvalidTimeError("Invalid time format. Use HH:MM format")


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def normalize_email(value: str | None) -> str:
    email = (value or "").strip().lower()
    if not email:
        raise InvalidEmailError("Email is required")
    if len(email) > EMAIL_MAX_LENGTH:
        raise InvalidEmailError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
    if not is_valid_email(email):
        raise InvalidEmailError("Please provide a valid email address")
    return email
