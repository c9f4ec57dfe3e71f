"""
Clinic Domain Layer.

Business rules and the three repositories that form one unit of consistency:
the patient directory, the slot availability store and the appointment ledger,
plus the emergency alert log.
"""

from .alerts import EmergencyAlertLog
from .directory import PatientDirectory
from .errors import (
    AlreadyCancelled,
    AppointmentNotFound,
    CapacityExhausted,
    DuplicatePatient,
    InsufficientSlots,
    InvalidInput,
    NoActiveAppointments,
    PatientMismatch,
    PatientNotFound,
    SlotUnavailable,
)
from .ledger import AppointmentLedger
from .policies import SchedulingContext, normalize_phone, resolve_subjective_date
from .slots import SlotAvailabilityStore

__all__ = [
    "AppointmentLedger",
    "EmergencyAlertLog",
    "PatientDirectory",
    "SlotAvailabilityStore",
    "SchedulingContext",
    "normalize_phone",
    "resolve_subjective_date",
    "AlreadyCancelled",
    "AppointmentNotFound",
    "CapacityExhausted",
    "DuplicatePatient",
    "InsufficientSlots",
    "InvalidInput",
    "NoActiveAppointments",
    "PatientMismatch",
    "PatientNotFound",
    "SlotUnavailable",
]
