"""
Domain Layer Base Classes.

The domain layer contains pure business logic with no external dependencies.
This makes business rules:
- Easy to test (no mocking needed)
- Reusable across different interfaces
- Clear and self-documenting

Expected failures are modelled as DomainError subclasses. They are raised
inside a unit of work (so the transaction rolls back) and converted to an
OperationResult at the operation boundary by the @returns_result decorator.
Anything that is not a DomainError is an unexpected fault and propagates.

Example Usage:
    class SlotUnavailable(DomainError):
        kind = ErrorKind.CONFLICT
        code = "slot_unavailable"

    @returns_result
    def book(...):
        with unit_of_work() as uow:
            ...
            raise SlotUnavailable("This time slot is no longer available")
"""

import functools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """Category of an expected failure."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    CAPACITY = "capacity"


class DomainError(Exception):
    """
    Base class for expected business failures.

    Attributes:
        kind: The error category (class-level)
        code: Stable machine-readable code (class-level)
        message: Human-readable explanation, safe to show to the user
        details: Additional context returned alongside the failure
    """
    kind: ErrorKind = ErrorKind.VALIDATION
    code: str = "domain_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


@dataclass
class OperationResult:
    """
    The typed outcome of a domain operation.

    Attributes:
        success: Whether the operation did what was asked
        message: Human-readable summary
        data: Operation-specific payload
        error: Error category when success is False
        code: Machine-readable error code when success is False
    """
    success: bool
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[ErrorKind] = None
    code: Optional[str] = None

    @classmethod
    def ok(cls, message: str = "", **data: Any) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def failure(cls, exc: DomainError) -> "OperationResult":
        return cls(
            success=False,
            message=exc.message,
            data=dict(exc.details),
            error=exc.kind,
            code=exc.code,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: Dict[str, Any] = {
            "success": self.success,
            "message": self.message,
        }
        if self.error is not None:
            result["error"] = self.error.value
        if self.code is not None:
            result["code"] = self.code
        result.update(self.data)
        return result


def returns_result(func: Callable[..., OperationResult]) -> Callable[..., OperationResult]:
    """
    Convert DomainErrors raised by an operation into failed OperationResults.

    The unit of work inside the operation has already rolled back by the time
    the exception reaches this wrapper.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> OperationResult:
        try:
            return func(*args, **kwargs)
        except DomainError as exc:
            logger.warning(f"{func.__name__} rejected ({exc.code}): {exc.message}")
            return OperationResult.failure(exc)
    return wrapper


@dataclass
class ValidationError:
    """A validation error with field and message."""
    field: str
    message: str
    code: str = "invalid"


class Validator(ABC):
    """
    Abstract base class for validators.

    Validators check that data meets business requirements before processing.
    """

    @abstractmethod
    def validate(self, data: Dict[str, Any]) -> List[ValidationError]:
        """
        Validate the data and return any errors.

        Args:
            data: The data to validate

        Returns:
            List of ValidationError objects (empty if valid)
        """
        pass

    def is_valid(self, data: Dict[str, Any]) -> bool:
        """Check if data is valid."""
        return len(self.validate(data)) == 0


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

# Accepted inputs for calendar dates, tried in order
DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
)

# Month-and-day inputs; the year comes from the caller
YEARLESS_DATE_FORMATS = (
    "%B %d",
    "%b %d",
    "%m/%d",
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_date(date_string: Optional[str], default_year: Optional[int] = None) -> Optional[date]:
    """
    Parse a calendar date string safely.

    With ``default_year``, month-and-day inputs such as "October 25" are
    read in that year.
    """
    if not date_string or not isinstance(date_string, str):
        return None
    value = date_string.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    if default_year is not None:
        for fmt in YEARLESS_DATE_FORMATS:
            try:
                return datetime.strptime(f"{value} {default_year}", f"{fmt} %Y").date()
            except ValueError:
                continue
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp; naive values are treated as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
