"""
Clinic Appointment Booking Use Case.

Structure:
- domain/: Pure business logic and the clinic repositories
  - policies.py: field validation, time-of-day and subjective-date rules
  - directory.py: PatientDirectory
  - slots.py: SlotAvailabilityStore
  - ledger.py: AppointmentLedger
  - alerts.py: EmergencyAlertLog
  - errors.py: typed domain failures
- data/: Document store backends and ClinicUnitOfWork
- models.py: Persisted entities
- booking.py: BookingCoordinator
- family.py: FamilyBookingCoordinator
- emergency.py: EmergencyNotifier
- actions.py: Action token grammar and argument models
- gateway.py: ActionDispatchGateway
- server.py: Wiring from settings
"""

from .booking import BookingCoordinator
from .emergency import EmergencyNotifier
from .family import FamilyBookingCoordinator
from .gateway import ActionDispatchGateway, TurnResult
from .server import create_gateway

__all__ = [
    "ActionDispatchGateway",
    "BookingCoordinator",
    "EmergencyNotifier",
    "FamilyBookingCoordinator",
    "TurnResult",
    "create_gateway",
]
