"""
Rule-based slot extraction for noisy transcribed speech.

Every parser is a pure function: it takes the raw utterance (and today's
date where relative expressions matter) and returns a typed value, or
``None`` when nothing usable was said. Validation that depends on clinic
policy (how far ahead a date may be booked, weekends) lives in separate
validators so it can be re-run on values carried over from earlier turns.

Usage:
    parse_phone("it's 555 123 4567")            # '+15551234567'
    parse_date("next friday", today=date(2026, 10, 19))
    parse_time("2 pm", ["14:00", "14:30"])      # '14:00'
"""

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from medibook.utils import minutes_since_midnight, normalize_phone

logger = logging.getLogger(__name__)

# Validation thresholds
MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15
MAX_PATIENT_AGE_YEARS = 120

NAME_STOP_WORDS = frozenset({
    "my", "name", "is", "i'm", "im", "i", "am", "this", "it's", "its", "it",
    "call", "me", "the", "a", "an", "and", "or", "but", "in", "on", "at",
    "to", "for", "of", "with", "by", "hi", "hello", "hey", "yes", "sure",
    "well", "um", "uh", "speaking", "here",
})

DIGIT_WORDS = {
    "zero": "0", "oh": "0", "o": "0", "one": "1", "two": "2", "three": "3",
    "four": "4", "five": "5", "six": "6", "seven": "7", "eight": "8", "nine": "9",
}

HOUR_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
}

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
WEEKDAY_ABBREVIATIONS = ["mon", "tue|tues", "wed", "thu|thur|thurs", "fri", "sat", "sun"]

MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]
MONTH_ABBREVIATIONS = ["jan", "feb", "mar", "apr", "may", "jun",
                       "jul", "aug", "sep", "oct", "nov", "dec"]

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
EMAIL_LEAD_IN_WORDS = frozenset({
    "my", "email", "e-mail", "address", "is", "it's", "its", "it", "sure",
    "yes", "yeah", "ok", "okay", "the", "that's", "so",
})
SKIP_EMAIL_RE = re.compile(
    r"\b(skip|no email|don'?t have (one|an email|email)|no thanks|rather not)\b",
    re.IGNORECASE,
)

# (word, first hour, end hour exclusive); tried in this order, first fit wins
TIME_BUCKETS: list[tuple[str, int, int]] = [
    ("morning", 8, 12),
    ("noon", 12, 13),
    ("afternoon", 12, 17),
    ("evening", 17, 24),
]


# --------------------------------------------------------------------- #
# Name
# --------------------------------------------------------------------- #

def parse_name(utterance: str) -> Optional[str]:
    """Extract a first/last name from phrases like "my name is john smith"."""
    raw = (utterance or "").strip()
    tokens = [t.strip(".,!?;:\"") for t in raw.lower().split()]
    words = [t for t in tokens if len(t) > 1 and t not in NAME_STOP_WORDS]

    name = " ".join(w.capitalize() for w in words[:2]) or raw
    if len(name) < MIN_NAME_LENGTH:
        logger.debug("Name extraction failed for %r", utterance)
        return None
    return name


# --------------------------------------------------------------------- #
# Phone
# --------------------------------------------------------------------- #

def _spoken_digits_to_numerals(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        return DIGIT_WORDS[match.group(0).lower()]

    pattern = r"\b(" + "|".join(DIGIT_WORDS) + r")\b"
    return re.sub(pattern, replace, text, flags=re.IGNORECASE)


def parse_phone(utterance: str) -> Optional[str]:
    """Extract a phone number and normalise it to a +-prefixed form.

    10 digits are treated as a North American number without country code.
    """
    text = _spoken_digits_to_numerals(utterance or "")
    # Keep only the phone-looking part so words before a "+" don't hide it
    candidate = re.sub(r"[^\d+]", "", text)
    leading_plus = candidate.startswith("+")
    digits = re.sub(r"[^\d]", "", normalize_phone(candidate))

    if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
        logger.debug("Phone extraction failed: %d digits", len(digits))
        return None
    if len(digits) == 10 and not leading_plus:
        return f"+1{digits}"
    return f"+{digits}"


# --------------------------------------------------------------------- #
# Email
# --------------------------------------------------------------------- #

def parse_email(utterance: str) -> Optional[str]:
    """Extract an email address, including spoken forms ("john at gmail dot com")."""
    text = utterance or ""
    match = EMAIL_RE.search(text)
    if match:
        return match.group(0).lower()

    tokens = text.lower().replace(",", " ").split()
    while tokens and tokens[0] in EMAIL_LEAD_IN_WORDS:
        tokens.pop(0)
    spoken = re.sub(r"\s+at\s+", "@", f" {' '.join(tokens)} ")
    spoken = re.sub(r"\s+dot\s+", ".", spoken)
    spoken = re.sub(r"\s+", "", spoken)
    match = EMAIL_RE.search(spoken)
    if match:
        return match.group(0)
    logger.debug("Email extraction failed for %r", utterance)
    return None


def wants_to_skip(utterance: str) -> bool:
    """True when the caller declines to give an optional value."""
    return bool(SKIP_EMAIL_RE.search(utterance or ""))


# --------------------------------------------------------------------- #
# Dates
# --------------------------------------------------------------------- #

def add_months(day: date, months: int) -> date:
    """Calendar-month arithmetic, clamping to the last day of the month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_relative(text: str, today: date) -> Optional[date]:
    if "day after tomorrow" in text:
        return today + timedelta(days=2)
    if re.search(r"\btoday\b", text):
        return today
    if re.search(r"\btomorrow\b", text):
        return today + timedelta(days=1)
    if re.search(r"\b(next week|in a week)\b", text):
        return today + timedelta(days=7)
    match = re.search(r"\bin\s+(\d{1,3})\s+days?\b", text)
    if match:
        return today + timedelta(days=int(match.group(1)))
    return None


def _parse_weekday(text: str, today: date) -> Optional[date]:
    for index, (full, abbrev) in enumerate(zip(WEEKDAYS, WEEKDAY_ABBREVIATIONS)):
        if re.search(rf"\b({full}|{abbrev})\b", text):
            days_ahead = (index - today.weekday()) % 7
            return today + timedelta(days=days_ahead or 7)
    return None


def _parse_month_day(text: str, today: date) -> Optional[date]:
    for index, (full, abbrev) in enumerate(zip(MONTHS, MONTH_ABBREVIATIONS)):
        if not re.search(rf"\b({full}|{abbrev})\b", text):
            continue
        year_match = re.search(r"\b(19|20)\d{2}\b", text)
        without_year = re.sub(r"\b(19|20)\d{2}\b", " ", text)
        for day_match in re.finditer(r"\b(\d{1,2})(st|nd|rd|th)?\b", without_year):
            day_number = int(day_match.group(1))
            if not 1 <= day_number <= 31:
                continue
            if year_match:
                return _safe_date(int(year_match.group(0)), index + 1, day_number)
            candidate = _safe_date(today.year, index + 1, day_number)
            if candidate is not None and candidate < today:
                candidate = _safe_date(today.year + 1, index + 1, day_number)
            return candidate
    return None


def _parse_numeric(text: str) -> Optional[date]:
    match = re.search(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b", text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _safe_date(year, month, day)
    match = re.search(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4})\b", text)
    if match:
        month, day, year = (int(g) for g in match.groups())
        return _safe_date(year, month, day)
    return None


def parse_date(utterance: str, today: date) -> Optional[date]:
    """Resolve a spoken date relative to ``today``.

    Resolution order: relative keywords, weekday names, month name with a
    day number, then MM/DD/YYYY, MM-DD-YYYY and YYYY-MM-DD.
    """
    text = (utterance or "").lower().strip()
    if not text:
        return None
    for parser in (_parse_relative, _parse_weekday, _parse_month_day):
        result = parser(text, today)
        if result is not None:
            return result
    result = _parse_numeric(text)
    if result is None:
        logger.debug("Date extraction failed for %r", utterance)
    return result


@dataclass(frozen=True)
class DateValidation:
    """Result of checking a parsed date against clinic policy."""
    is_valid: bool
    reason: Optional[str] = None  # "past" | "too_far" | "weekend" | "future" | "implausible"


def validate_appointment_date(day: date, today: date, horizon_months: int) -> DateValidation:
    """Appointments must be today or later, within the horizon, on a weekday."""
    if day < today:
        return DateValidation(False, "past")
    if day > add_months(today, horizon_months):
        return DateValidation(False, "too_far")
    if day.weekday() >= 5:
        return DateValidation(False, "weekend")
    return DateValidation(True)


def validate_date_of_birth(day: date, today: date) -> DateValidation:
    if day > today:
        return DateValidation(False, "future")
    if day < add_months(today, -12 * MAX_PATIENT_AGE_YEARS):
        return DateValidation(False, "implausible")
    return DateValidation(True)


# --------------------------------------------------------------------- #
# Times
# --------------------------------------------------------------------- #

_TIME_RE = re.compile(
    r"\b(\d{1,2})(?::(\d{2}))?\s*(a\.?\s?m\.?|p\.?\s?m\.?|o'?\s?clock)?(?![\d/-])",
    re.IGNORECASE,
)


def _hour_words_to_numerals(text: str) -> str:
    pattern = r"\b(" + "|".join(HOUR_WORDS) + r")\b"
    return re.sub(pattern, lambda m: str(HOUR_WORDS[m.group(0)]), text)


def _closest_slot(target: int, candidates: list[str], tolerance: int) -> Optional[str]:
    best: Optional[str] = None
    best_diff = tolerance + 1
    for slot in candidates:
        diff = abs(minutes_since_midnight(slot) - target)
        if diff < best_diff:
            best, best_diff = slot, diff
    return best


def _match_clock_time(text: str, candidates: list[str], tolerance: int) -> Optional[str]:
    match = _TIME_RE.search(text)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = (match.group(3) or "").replace(".", "").replace(" ", "")
    if hour > 23 or minute > 59:
        return None

    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    targets = [hour * 60 + minute]
    if meridiem not in ("am", "pm") and hour < 12:
        # "two o'clock" at a clinic almost always means the afternoon
        targets.append((hour + 12) * 60 + minute)

    for target in targets:
        exact = f"{target // 60:02d}:{target % 60:02d}"
        if exact in candidates:
            return exact
    for target in targets:
        closest = _closest_slot(target, candidates, tolerance)
        if closest is not None:
            return closest
    return None


def _match_bucket(text: str, candidates: list[str]) -> Optional[str]:
    for word, start, end in TIME_BUCKETS:
        if re.search(rf"\b{word}\b", text):
            for slot in candidates:
                if start <= minutes_since_midnight(slot) // 60 < end:
                    return slot
    return None


def parse_time(utterance: str, candidates: list[str], tolerance_minutes: int = 30) -> Optional[str]:
    """Pick one of ``candidates`` (``HH:MM``) from a spoken time or time of day."""
    text = _hour_words_to_numerals((utterance or "").lower().strip())
    if not text or not candidates:
        return None

    result = _match_clock_time(text, candidates, tolerance_minutes)
    if result is None:
        result = _match_bucket(text, candidates)
    if result is None:
        logger.debug("Time extraction failed for %r against %s", utterance, candidates)
    return result
