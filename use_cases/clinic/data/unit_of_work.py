"""
Clinic Unit of Work.

Loads the patient directory, slot store, appointment ledger and alert log
together so a booking operation commits all of them or none of them.
"""

from datetime import date
from typing import Callable, Optional, Tuple

from core.data import DocumentStore, DocumentUnitOfWork

from ..domain.alerts import EmergencyAlertLog
from ..domain.directory import PatientDirectory
from ..domain.ledger import AppointmentLedger
from ..domain.policies import SchedulingContext, standard_day_slots
from ..domain.slots import SlotAvailabilityStore, date_range


class ClinicUnitOfWork(DocumentUnitOfWork):
    """
    Transaction boundary for clinic operations.

    Attributes available inside the ``with`` block:
        directory: PatientDirectory
        slots: SlotAvailabilityStore
        ledger: AppointmentLedger
        alerts: EmergencyAlertLog
    """

    repositories = {
        "directory": PatientDirectory,
        "slots": SlotAvailabilityStore,
        "ledger": AppointmentLedger,
        "alerts": EmergencyAlertLog,
    }

    directory: PatientDirectory
    slots: SlotAvailabilityStore
    ledger: AppointmentLedger
    alerts: EmergencyAlertLog

    def __init__(self, store: DocumentStore, context: Optional[SchedulingContext] = None):
        self.context = context or SchedulingContext()
        super().__init__(store, context=self.context)

    def seed_standard_days(self, start: date, end: date, replace: bool = False) -> Tuple[int, int]:
        """
        Seed the practice's standard hours for every open day in [start, end].

        Times already held by active appointments stay closed. Returns
        (days written, existing days kept).
        """
        written = kept = 0
        for day in date_range(start, end):
            times = standard_day_slots(day)
            if not times:
                continue
            iso = day.isoformat()
            if self.slots.seed_day(iso, times, replace=replace, held=self.ledger.times_held(iso)):
                written += 1
            else:
                kept += 1
        return written, kept


def unit_of_work_factory(
    store: DocumentStore, context: Optional[SchedulingContext] = None
) -> Callable[[], ClinicUnitOfWork]:
    """A zero-argument callable producing fresh units of work over one store."""
    return lambda: ClinicUnitOfWork(store, context)
