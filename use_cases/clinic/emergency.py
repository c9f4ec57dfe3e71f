"""
Emergency Notifier.

Records staff alerts for dental emergencies, suppressing repeats from the
same phone within a trailing window.
"""

import logging
from datetime import timedelta
from typing import Callable, Optional

from core.domain import OperationResult, returns_result

from .data.unit_of_work import ClinicUnitOfWork
from .domain.errors import InvalidInput
from .domain.policies import EmergencyReportValidator, SchedulingContext, normalize_phone

logger = logging.getLogger(__name__)


class EmergencyNotifier:
    def __init__(
        self,
        unit_of_work: Callable[[], ClinicUnitOfWork],
        context: Optional[SchedulingContext] = None,
        dedup_minutes: int = 10,
    ):
        self._unit_of_work = unit_of_work
        self._context = context or SchedulingContext()
        self._dedup_window = timedelta(minutes=dedup_minutes)
        self._validator = EmergencyReportValidator()

    @returns_result
    def notify(self, patient_name: str, details: str, contact_phone: str) -> OperationResult:
        errors = self._validator.validate({
            "patient_name": patient_name,
            "details": details,
            "contact_phone": contact_phone,
        })
        if errors:
            raise InvalidInput(errors)

        name = patient_name.strip()
        summary = details.strip()
        phone = normalize_phone(contact_phone)

        with self._unit_of_work() as uow:
            now = self._context.now()
            recent = uow.alerts.latest_for_phone(phone, now - self._dedup_window)
            if recent is not None:
                logger.info(f"Suppressed duplicate emergency alert for {phone} (existing {recent.id})")
                return OperationResult.ok(
                    "Emergency already reported recently. Our team is on it.",
                    duplicate_suppressed=True,
                    alert=recent.to_dict(),
                )
            alert = uow.alerts.record(name, summary, phone, now)
            uow.commit()

        logger.warning(f"EMERGENCY ALERT {alert.id}: {name} ({phone}) - {summary}")
        return OperationResult.ok(
            f"EMERGENCY ALERT: Our dental team has been notified about {name}'s emergency "
            f"({summary}). They are preparing to provide immediate care.",
            duplicate_suppressed=False,
            alert=alert.to_dict(),
        )

    def list_alerts(self, status: Optional[str] = None) -> list:
        with self._unit_of_work() as uow:
            return [alert.to_dict() for alert in uow.alerts.by_status(status)]
