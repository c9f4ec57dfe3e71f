"""
Booking Coordinator.

Books, cancels and reschedules single appointments. Every operation keeps
the ledger and the slot store consistent inside one ClinicUnitOfWork:
an active appointment's (date, time) is never in the open slot list.
"""

import logging
from typing import Callable, Iterable, List, Optional

from core.domain import OperationResult, returns_result

from .data.unit_of_work import ClinicUnitOfWork
from .domain.errors import (
    AlreadyCancelled,
    AppointmentNotFound,
    NoActiveAppointments,
    PatientMismatch,
    PatientNotFound,
    SlotUnavailable,
)
from .models import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

OVERWRITTEN_BY_NEW_BOOKING = "overwritten_by_new_booking"


def appointment_summary(appointment: Appointment) -> dict:
    return {
        "id": appointment.id,
        "patient_name": appointment.patient_name,
        "date": appointment.date,
        "time": appointment.time,
        "type": appointment.type,
        "status": appointment.status.value,
    }


class BookingCoordinator:
    """Coordinates single-appointment operations across the ledger and slot store."""

    def __init__(self, unit_of_work: Callable[[], ClinicUnitOfWork]):
        self._unit_of_work = unit_of_work

    # =========================================================================
    # PRIMITIVES (shared with family booking)
    # =========================================================================

    def supersede_same_day(
        self,
        uow: ClinicUnitOfWork,
        patient_ids: Iterable[str],
        date: str,
        reason: str,
    ) -> List[Appointment]:
        """Soft-cancel every active appointment these patients hold on ``date`` and free the slots."""
        superseded = uow.ledger.find_by_date_and_patients(date, patient_ids)
        for appointment in superseded:
            uow.slots.release(appointment.date, appointment.time)
            uow.ledger.mark_cancelled(appointment, reason)
        if superseded:
            logger.info(f"Overwrote {len(superseded)} existing appointment(s) on {date} ({reason})")
        return superseded

    def release_and_cancel(self, uow: ClinicUnitOfWork, appointment: Appointment, reason: Optional[str] = None):
        uow.slots.release(appointment.date, appointment.time)
        uow.ledger.mark_cancelled(appointment, reason)

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    @returns_result
    def book(self, patient_id: str, patient_name: str, date: str, time: str, appointment_type: str) -> OperationResult:
        """
        Book one appointment, replacing any other booking the patient has that day.

        Returns:
            OperationResult with ``appointment`` and ``overwritten`` on success
        """
        with self._unit_of_work() as uow:
            patient = uow.directory.get_by_id(patient_id)
            if patient is None:
                raise PatientNotFound(
                    f"Patient with ID {patient_id} not found. Please register the patient first."
                )
            if patient.full_name != patient_name:
                raise PatientMismatch(
                    f'Patient name mismatch. Expected "{patient.full_name}" but got "{patient_name}".',
                    {"expected_name": patient.full_name},
                )

            overwritten = self.supersede_same_day(uow, [patient.id], date, OVERWRITTEN_BY_NEW_BOOKING)
            uow.slots.reserve(date, time)
            appointment = uow.ledger.create(patient, date, time, appointment_type, AppointmentStatus.SCHEDULED)
            uow.commit()

        logger.info(f"Booked {appointment.id} for {patient.full_name} on {date} at {time}")
        return OperationResult.ok(
            "Appointment booked successfully",
            appointment=appointment.to_dict(),
            overwritten=[appointment_summary(a) for a in overwritten],
        )

    @returns_result
    def cancel(self, appointment_id: str) -> OperationResult:
        with self._unit_of_work() as uow:
            appointment = uow.ledger.get_by_id(appointment_id)
            if appointment is None:
                raise AppointmentNotFound("Appointment not found", {"appointment_id": appointment_id})
            if not appointment.is_active:
                raise AlreadyCancelled("Appointment is already cancelled", {"appointment_id": appointment_id})
            self.release_and_cancel(uow, appointment)
            uow.commit()

        logger.info(f"Cancelled {appointment.id} ({appointment.date} at {appointment.time})")
        return OperationResult.ok(
            "Appointment cancelled successfully",
            appointment=appointment_summary(appointment),
        )

    @returns_result
    def cancel_all(self, patient_id: str) -> OperationResult:
        with self._unit_of_work() as uow:
            active = uow.ledger.find_by_patient(patient_id)
            if not active:
                raise NoActiveAppointments(
                    "No active appointments found to cancel", {"patient_id": patient_id}
                )
            for appointment in active:
                self.release_and_cancel(uow, appointment)
            uow.commit()

        logger.info(f"Cancelled {len(active)} appointment(s) for patient {patient_id}")
        return OperationResult.ok(
            f"Successfully cancelled {len(active)} appointment(s)",
            cancelled_appointments=[appointment_summary(a) for a in active],
        )

    @returns_result
    def reschedule(self, appointment_id: str, new_date: str, new_time: str) -> OperationResult:
        with self._unit_of_work() as uow:
            appointment = uow.ledger.get_by_id(appointment_id)
            if appointment is None:
                raise AppointmentNotFound("Appointment not found", {"appointment_id": appointment_id})
            if not appointment.is_active:
                raise AlreadyCancelled(
                    "Cancelled appointments cannot be rescheduled", {"appointment_id": appointment_id}
                )
            if not uow.slots.is_open(new_date, new_time):
                raise SlotUnavailable(
                    "The requested time slot is not available",
                    {"date": new_date, "time": new_time},
                )

            uow.slots.release(appointment.date, appointment.time)
            uow.slots.reserve(new_date, new_time)
            uow.ledger.mark_rescheduled(appointment, new_date, new_time)
            uow.commit()

        logger.info(f"Rescheduled {appointment.id} to {new_date} at {new_time}")
        return OperationResult.ok(
            "Appointment rescheduled successfully",
            appointment=appointment.to_dict(),
        )
