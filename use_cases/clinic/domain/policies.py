"""
Clinic Domain Policies.

Pure business rules for patient data and scheduling.
These classes have NO I/O dependencies - they can be unit tested in isolation.
"""

import calendar
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.domain import ValidationError, Validator, utc_now


# =============================================================================
# CONSTANTS
# =============================================================================

INSURANCE_PROVIDERS = [
    "Blue Cross Blue Shield",
    "Blue Cross",
    "Aetna",
    "Cigna",
    "Delta Dental",
    "MetLife",
    "United Healthcare",
    "Humana",
    "Other Insurance",
    "No Insurance",
]

NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-']+$")
DOB_PATTERN = re.compile(r"^\d{8}$")
TIME_LABEL_PATTERN = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([AaPp][Mm])?\s*$")

MIN_DOB_YEAR = 1900
MIN_EMERGENCY_DETAILS = 5

# Time-of-day buckets as [start, end) hours on a 24-hour clock
TIME_OF_DAY_RANGES = {
    "morning": (0, 12),
    "afternoon": (12, 17),
    "evening": (17, 24),
}
ANY_TIME = "any"

# Window used when requested dates cannot be parsed, relative to the reference date
DEFAULT_WINDOW_OFFSETS = (2, 17)


@dataclass
class SchedulingContext:
    """Dates and clock that scheduling rules are evaluated against."""
    reference_date: date = date(2025, 10, 19)
    deployment_year: int = 2025
    clock: Callable[[], datetime] = field(default=utc_now)

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return self.clock().date()

    @property
    def default_window(self) -> Tuple[date, date]:
        start, end = DEFAULT_WINDOW_OFFSETS
        return (
            self.reference_date + timedelta(days=start),
            self.reference_date + timedelta(days=end),
        )


# =============================================================================
# FIELD RULES
# =============================================================================

def normalize_phone(phone: Any) -> Optional[str]:
    """
    Normalize a US phone number to 10 digits.

    Strips every non-digit; an 11-digit number with a leading 1 loses the
    country code. Returns None when the result is not 10 digits.
    """
    if phone is None:
        return None
    digits = re.sub(r"\D", "", str(phone))
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits if len(digits) == 10 else None


def check_phone(phone: Any, field_name: str = "phone") -> Optional[ValidationError]:
    if not phone:
        return ValidationError(field_name, "Phone number is required", "required")
    if normalize_phone(phone) is None:
        return ValidationError(field_name, "Please provide a valid 10-digit US phone number")
    return None


def check_name(name: Any, field_name: str = "full_name") -> Optional[ValidationError]:
    value = (name or "").strip() if isinstance(name, str) else ""
    if len(value) < 2:
        return ValidationError(
            field_name, "Please provide a valid full name (at least 2 characters)", "too_short"
        )
    if not NAME_PATTERN.match(value):
        return ValidationError(
            field_name, "Name can only contain letters, spaces, hyphens, and apostrophes"
        )
    return None


def check_date_of_birth(dob: Any, current_year: int) -> Optional[ValidationError]:
    if not dob:
        return ValidationError("date_of_birth", "Date of birth is required", "required")
    if not isinstance(dob, str) or not DOB_PATTERN.match(dob):
        return ValidationError(
            "date_of_birth",
            "Please provide date of birth in MMDDYYYY format (e.g., 08272000)",
            "format",
        )
    month, day, year = int(dob[0:2]), int(dob[2:4]), int(dob[4:8])
    if not 1 <= month <= 12:
        return ValidationError("date_of_birth", "Invalid month in date of birth")
    if not 1 <= day <= 31:
        return ValidationError("date_of_birth", "Invalid day in date of birth")
    if not MIN_DOB_YEAR <= year <= current_year:
        return ValidationError("date_of_birth", "Invalid year in date of birth")
    return None


def canonical_insurance(insurance: Any) -> Optional[str]:
    """Canonical spelling of an insurance provider, matched case-insensitively."""
    if not isinstance(insurance, str):
        return None
    wanted = insurance.strip().lower()
    for provider in INSURANCE_PROVIDERS:
        if provider.lower() == wanted:
            return provider
    return None


def check_insurance(insurance: Any) -> Optional[ValidationError]:
    if not isinstance(insurance, str) or len(insurance.strip()) < 2:
        return ValidationError("insurance", "Please select an insurance provider", "required")
    if canonical_insurance(insurance) is None:
        return ValidationError(
            "insurance", f"Please select from: {', '.join(INSURANCE_PROVIDERS)}"
        )
    return None


# =============================================================================
# VALIDATORS
# =============================================================================

class PatientRegistrationValidator(Validator):
    """
    Validates a new patient registration.

    Errors are reported in field order; the first one is the message shown
    to the patient.
    """

    def __init__(self, current_year: int):
        self.current_year = current_year

    def validate(self, data: Dict[str, Any]) -> List[ValidationError]:
        checks = [
            check_name(data.get("full_name")),
            check_phone(data.get("phone")),
            check_date_of_birth(data.get("date_of_birth"), self.current_year),
            check_insurance(data.get("insurance")),
        ]
        return [error for error in checks if error is not None]


class EmergencyReportValidator(Validator):
    """Validates an emergency notification before staff are alerted."""

    def validate(self, data: Dict[str, Any]) -> List[ValidationError]:
        errors = []
        name_error = check_name(data.get("patient_name"), "patient_name")
        if name_error:
            errors.append(name_error)
        phone_error = check_phone(data.get("contact_phone"), "contact_phone")
        if phone_error:
            errors.append(phone_error)
        details = data.get("details")
        if not isinstance(details, str) or len(details.strip()) < MIN_EMERGENCY_DETAILS:
            errors.append(ValidationError(
                "details",
                "Please provide details about the emergency (at least 5 characters)",
                "too_short",
            ))
        return errors


class FamilyMemberValidator(Validator):
    """Validates one entry of a family booking request."""

    def validate(self, data: Dict[str, Any]) -> List[ValidationError]:
        name = (data.get("name") or "").strip()
        if len(name) < 2:
            return [ValidationError("name", f"Invalid name for family member: {name or 'unnamed'}")]
        if len((data.get("relationship") or "").strip()) < 2:
            return [ValidationError("relationship", f"Invalid relationship for {name}")]
        if len((data.get("appointment_type") or "").strip()) < 2:
            return [ValidationError("appointment_type", f"Invalid appointment type for {name}")]
        return []


# =============================================================================
# TIME LABELS
# =============================================================================

def parse_time_label(label: str) -> Optional[time]:
    """Parse a 12-hour label such as "9:00 AM". Labels without AM/PM are read as 24-hour."""
    match = TIME_LABEL_PATTERN.match(label or "")
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = (match.group(3) or "").upper()
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        if meridiem == "PM" and hour != 12:
            hour += 12
        elif meridiem == "AM" and hour == 12:
            hour = 0
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def slot_sort_key(label: str) -> Tuple[int, int, str]:
    """Chronological sort key; unparsable labels sort last."""
    parsed = parse_time_label(label)
    if parsed is None:
        return (1, 0, label)
    return (0, parsed.hour * 60 + parsed.minute, label)


def time_of_day(label: str) -> Optional[str]:
    parsed = parse_time_label(label)
    if parsed is None:
        return None
    for bucket, (start, end) in TIME_OF_DAY_RANGES.items():
        if start <= parsed.hour < end:
            return bucket
    return None


def matches_preferred_times(label: str, preferred_times: Optional[List[str]]) -> bool:
    """True when no filter applies or the label falls in one of the requested buckets."""
    wanted = {p.strip().lower() for p in preferred_times or [] if isinstance(p, str)}
    if not wanted or ANY_TIME in wanted:
        return True
    return time_of_day(label) in wanted


# =============================================================================
# SUBJECTIVE DATES
# =============================================================================

def resolve_subjective_date(phrase: str, reference: date) -> Tuple[date, date]:
    """
    Resolve phrases like "early next week" or "late next month" to a date range.

    Args:
        phrase: Free-text description of when the patient wants to come in
        reference: The date the phrase is relative to

    Returns:
        Inclusive (start, end) dates
    """
    lower = (phrase or "").lower()

    if "later this week" in lower or "end of this week" in lower:
        return reference + timedelta(days=2), reference + timedelta(days=7)

    if "next week" in lower:
        start = reference + timedelta(days=7)
        end = reference + timedelta(days=14)
        if "early" in lower:
            end = start + timedelta(days=3)
        elif "late" in lower:
            start = start + timedelta(days=4)
        return start, end

    if "next month" in lower:
        year = reference.year + (1 if reference.month == 12 else 0)
        month = 1 if reference.month == 12 else reference.month + 1
        last_day = calendar.monthrange(year, month)[1]
        start, end = date(year, month, 1), date(year, month, last_day)
        if "early" in lower:
            end = date(year, month, 7)
        elif "late" in lower:
            start = date(year, month, 20)
        return start, end

    if "asap" in lower or "soonest" in lower:
        return reference, reference + timedelta(days=3)

    return reference, reference + timedelta(days=7)


# =============================================================================
# PRACTICE HOURS
# =============================================================================

WEEKDAY_SLOTS = ["9:00 AM", "10:00 AM", "11:00 AM", "1:00 PM", "2:00 PM", "3:00 PM", "4:00 PM"]
SATURDAY_SLOTS = ["9:00 AM", "10:00 AM", "11:00 AM"]


def standard_day_slots(day: date) -> List[str]:
    """Bookable times on a normal day: weekdays 9-4 with a lunch break, Saturday mornings, Sundays closed."""
    weekday = day.weekday()
    if weekday < 5:
        return list(WEEKDAY_SLOTS)
    if weekday == 5:
        return list(SATURDAY_SLOTS)
    return []
