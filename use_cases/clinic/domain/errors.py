"""
Clinic Domain Errors.

Every expected booking failure, classified by kind so callers can tell a bad
request from a missing record, a conflict or a capacity shortfall.
"""

from typing import Any, Dict, List, Optional

from core.domain import DomainError, ErrorKind, ValidationError


class InvalidInput(DomainError):
    kind = ErrorKind.VALIDATION
    code = "validation_error"

    def __init__(self, errors: List[ValidationError], details: Optional[Dict[str, Any]] = None):
        self.errors = errors
        payload = dict(details or {})
        payload["field_errors"] = [
            {"field": e.field, "message": e.message, "code": e.code} for e in errors
        ]
        super().__init__(errors[0].message if errors else "Invalid input", payload)


class PatientNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = "patient_not_found"


class AppointmentNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = "appointment_not_found"


class NoActiveAppointments(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = "no_active_appointments"


class SlotUnavailable(DomainError):
    kind = ErrorKind.CONFLICT
    code = "slot_unavailable"


class PatientMismatch(DomainError):
    kind = ErrorKind.CONFLICT
    code = "patient_mismatch"


class AlreadyCancelled(DomainError):
    kind = ErrorKind.CONFLICT
    code = "already_cancelled"


class DuplicatePatient(DomainError):
    kind = ErrorKind.CONFLICT
    code = "duplicate_patient"


class InsufficientSlots(DomainError):
    kind = ErrorKind.CAPACITY
    code = "insufficient_slots"


class CapacityExhausted(DomainError):
    kind = ErrorKind.CAPACITY
    code = "capacity_exhausted"
