"""
Appointment Ledger.

Pure record-keeping for appointments. Callers reserve and release slots;
the ledger only creates and transitions appointment records.
"""

import logging
from typing import Iterable, List, Optional

from core.data import DocumentRepository

from ..models import Appointment, AppointmentStatus, Patient, next_sequential_id
from .policies import SchedulingContext

logger = logging.getLogger(__name__)


class AppointmentLedger(DocumentRepository[Appointment]):
    collection = "appointments"
    entity_type = Appointment

    def __init__(self, entities: Optional[List[Appointment]] = None, context: Optional[SchedulingContext] = None):
        super().__init__(entities)
        self.context = context or SchedulingContext()

    def _timestamp(self) -> str:
        return self.context.now().isoformat()

    def create(
        self,
        patient: Patient,
        date: str,
        time: str,
        appointment_type: str,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
        patient_name: Optional[str] = None,
        relationship: Optional[str] = None,
    ) -> Appointment:
        appointment = Appointment(
            id=next_sequential_id("a", (a.id for a in self._entities)),
            patient_id=patient.id,
            patient_name=patient_name or patient.full_name,
            date=date,
            time=time,
            type=appointment_type,
            status=status,
            created_at=self._timestamp(),
            relationship=relationship,
        )
        self.add(appointment)
        return appointment

    def mark_cancelled(self, appointment: Appointment, reason: Optional[str] = None):
        appointment.status = AppointmentStatus.CANCELLED
        appointment.cancelled_at = self._timestamp()
        if reason:
            appointment.cancel_reason = reason
        self.mark_dirty()

    def mark_rescheduled(self, appointment: Appointment, new_date: str, new_time: str):
        appointment.rescheduled_from = {"date": appointment.date, "time": appointment.time}
        appointment.date = new_date
        appointment.time = new_time
        appointment.rescheduled_at = self._timestamp()
        self.mark_dirty()

    def find_by_patient(self, patient_id: str, exclude_cancelled: bool = True) -> List[Appointment]:
        return self.find(
            lambda a: a.patient_id == patient_id and (a.is_active or not exclude_cancelled)
        )

    def find_by_date_and_patients(self, date: str, patient_ids: Iterable[str]) -> List[Appointment]:
        """Active appointments on ``date`` held by any of ``patient_ids``."""
        wanted = set(patient_ids)
        return self.find(lambda a: a.date == date and a.is_active and a.patient_id in wanted)

    def times_held(self, date: str) -> List[str]:
        """Times on ``date`` taken by active appointments."""
        return [a.time for a in self.find(lambda a: a.date == date and a.is_active)]
