"""Value coercion for CSV cells: dates, emails, enums, booleans, phones, times.

Every lookup table here is a read-only mapping and is passed into the
functions as a parameter, so callers can swap in their own tables.
"""

import re
from collections.abc import Iterable, Mapping
from datetime import date
from types import MappingProxyType

# Generic enum synonyms. A synonym only applies when its target is one of
# the field's allowed values.
ENUM_SYNONYMS: Mapping[str, str] = MappingProxyType({
    # Gender
    "m": "male",
    "f": "female",
    "male": "male",
    "female": "female",
    "boy": "male",
    "girl": "female",
    "nb": "non-binary",
    "nonbinary": "non-binary",
    "non binary": "non-binary",
    "x": "other",
    "unknown": "other",
    "unspecified": "other",
    # Enrollment status
    "enrolled": "active",
    "current": "active",
    "left": "withdrawn",
    "departed": "withdrawn",
    "alumnus": "graduated",
    "alumni": "graduated",
    "completed": "graduated",
    "prospect": "inquiry",
    "enquiry": "inquiry",
    "pending": "applicant",
    "applied": "applicant",
    # Severity
    "life_threatening": "life_threatening",
    "life threatening": "life_threatening",
    "critical": "life_threatening",
    "anaphylaxis": "life_threatening",
    "anaphylactic": "life_threatening",
    "mild": "mild",
    "moderate": "moderate",
    "severe": "severe",
    "high": "severe",
    "low": "mild",
    "medium": "moderate",
    # Guardian relationship
    "mum": "mother",
    "mom": "mother",
    "dad": "father",
    "grandma": "grandparent",
    "grandmother": "grandparent",
    "grandpa": "grandparent",
    "grandfather": "grandparent",
    "nana": "grandparent",
    "nan": "grandparent",
    "pop": "grandparent",
    "step_parent": "step-parent",
    "step parent": "step-parent",
    "stepparent": "step-parent",
    "stepmom": "step-parent",
    "stepdad": "step-parent",
    "foster_parent": "foster-parent",
    "foster parent": "foster-parent",
    "carer": "other",
    "guardian": "other",
    "relative": "other",
    "aunt": "other",
    "uncle": "other",
})

# Attendance exports use their own codes (letters, ticks, crosses)
ATTENDANCE_STATUS_SYNONYMS: Mapping[str, str] = MappingProxyType({
    # Present
    "present": "present",
    "p": "present",
    "attended": "present",
    "in": "present",
    "yes": "present",
    "✓": "present",
    "✔": "present",
    # Absent
    "absent": "absent",
    "a": "absent",
    "away": "absent",
    "no": "absent",
    "missing": "absent",
    "✗": "absent",
    "✘": "absent",
    "x": "absent",
    # Late
    "late": "late",
    "l": "late",
    "tardy": "late",
    "late arrival": "late",
    "arrived late": "late",
    # Excused
    "excused": "excused",
    "e": "excused",
    "excused absence": "excused",
    "excused absent": "excused",
    "sick": "excused",
    "illness": "excused",
    "medical": "excused",
    "holiday": "excused",
    # Half day
    "half_day": "half_day",
    "half day": "half_day",
    "half": "half_day",
    "h": "half_day",
    "partial": "half_day",
    "half-day": "half_day",
    "am only": "half_day",
    "pm only": "half_day",
})

ATTENDANCE_STATUSES = ("present", "absent", "late", "excused", "half_day")

GUARDIAN_RELATIONSHIPS = ("mother", "father", "grandparent", "step-parent", "foster-parent", "other")

TRUE_VALUES = frozenset({"yes", "true", "1", "y", "on"})
FALSE_VALUES = frozenset({"no", "false", "0", "n", "off", ""})

MIN_YEAR = 1900
MAX_YEAR = 2100

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLASH_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DASH_DATE_RE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_DOT_DATE_RE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_STRIP_RE = re.compile(r"[\s\-()]")
_TIME_24H_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_TIME_12H_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(am|pm)$", re.IGNORECASE)
_HOUR_ONLY_RE = re.compile(r"^(\d{1,2})$")


def _calendar_date(year: int, month: int, day: int) -> date | None:
    if not MIN_YEAR <= year <= MAX_YEAR:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_flexible_date(value: str) -> str | None:
    """Parse a date in one of the common school export formats.

    Accepts YYYY-MM-DD, DD/MM/YYYY (falling back to MM/DD/YYYY when the
    day-first reading is not a real date), DD-MM-YYYY and DD.MM.YYYY.

    Returns:
        The ISO date (YYYY-MM-DD), or None when the value is not a real
        calendar date between 1900 and 2100.
    """
    trimmed = value.strip()

    if _ISO_DATE_RE.match(trimmed):
        year, month, day = (int(part) for part in trimmed.split("-"))
        parsed = _calendar_date(year, month, day)
        return parsed.isoformat() if parsed else None

    match = _SLASH_DATE_RE.match(trimmed)
    if match:
        first, second, year = (int(part) for part in match.groups())
        parsed = _calendar_date(year, second, first) or _calendar_date(year, first, second)
        return parsed.isoformat() if parsed else None

    for pattern in (_DASH_DATE_RE, _DOT_DATE_RE):
        match = pattern.match(trimmed)
        if match:
            day, month, year = (int(part) for part in match.groups())
            parsed = _calendar_date(year, month, day)
            return parsed.isoformat() if parsed else None

    return None


def is_valid_email(value: str) -> bool:
    """Check for a local@domain.tld shape."""
    return bool(_EMAIL_RE.match(value.strip()))


def normalize_enum_value(
    value: str,
    allowed: Iterable[str],
    synonyms: Mapping[str, str] = ENUM_SYNONYMS,
) -> str | None:
    """Resolve a cell to one of the allowed values.

    Tries an exact match, then a case-insensitive match, then the synonym
    table. Returns None when nothing matches.
    """
    allowed = tuple(allowed)
    trimmed = value.strip()
    lower = trimmed.lower()

    if trimmed in allowed:
        return trimmed

    for candidate in allowed:
        if candidate.lower() == lower:
            return candidate

    synonym = synonyms.get(lower)
    if synonym and synonym in allowed:
        return synonym
    return None


def normalize_attendance_status(
    value: str,
    synonyms: Mapping[str, str] = ATTENDANCE_STATUS_SYNONYMS,
) -> str | None:
    """Map an attendance code (P, A, ticks, "tardy", ...) to a status."""
    return synonyms.get(value.strip().lower())


def normalize_relationship(value: str | None) -> str:
    """Map a guardian relationship ("Mum", "Nana", ...) to a known value, else "other"."""
    return normalize_enum_value(value or "", GUARDIAN_RELATIONSHIPS) or "other"


def parse_boolean(value: str) -> bool | None:
    """Parse yes/no style values. Returns None when unrecognised."""
    lower = value.strip().lower()
    if lower in TRUE_VALUES:
        return True
    if lower in FALSE_VALUES:
        return False
    return None


def normalize_phone(value: str) -> str:
    """Strip spaces, dashes and parentheses from a phone number."""
    return _PHONE_STRIP_RE.sub("", value).strip()


def parse_time_string(value: str) -> str | None:
    """Parse HH:MM, HH:MM AM/PM or a bare hour into 24-hour HH:MM."""
    trimmed = value.strip()

    match = _TIME_24H_RE.match(trimmed)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours < 24 and minutes < 60:
            return f"{hours:02d}:{minutes:02d}"

    match = _TIME_12H_RE.match(trimmed)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        period = match.group(3).lower()
        if period == "pm" and hours < 12:
            hours += 12
        if period == "am" and hours == 12:
            hours = 0
        if hours < 24 and minutes < 60:
            return f"{hours:02d}:{minutes:02d}"

    match = _HOUR_ONLY_RE.match(trimmed)
    if match:
        hours = int(match.group(1))
        if hours < 24:
            return f"{hours:02d}:00"

    return None


def time_to_timestamp(date_value: str, time_value: str | None) -> str | None:
    """Anchor a time string to an ISO date as YYYY-MM-DDTHH:MM:00.

    Returns None when the time is blank or unparseable.
    """
    if not time_value:
        return None
    parsed = parse_time_string(time_value)
    if not parsed:
        return None
    return f"{date_value}T{parsed}:00"


def name_key(first_name: str | None, last_name: str | None) -> str:
    """Case-insensitive "first|last" key used for student lookups."""
    return f"{(first_name or '').strip().lower()}|{(last_name or '').strip().lower()}"
