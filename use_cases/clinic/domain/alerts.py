"""
Emergency Alert Log.

Append-only record of staff alerts.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from core.data import DocumentRepository
from core.domain import parse_timestamp

from ..models import AlertStatus, EmergencyAlert


class EmergencyAlertLog(DocumentRepository[EmergencyAlert]):
    collection = "emergency_alerts"
    entity_type = EmergencyAlert

    def __init__(self, entities: Optional[List[EmergencyAlert]] = None, context=None):
        super().__init__(entities)
        self.context = context

    def record(self, patient_name: str, details: str, contact_phone: str, alerted_at: datetime) -> EmergencyAlert:
        alert = EmergencyAlert(
            id=f"emg_{uuid.uuid4().hex}",
            patient_name=patient_name,
            details=details,
            contact_phone=contact_phone,
            alerted_at=alerted_at.isoformat(),
            status=AlertStatus.PENDING,
        )
        return self.add(alert)

    def latest_for_phone(self, contact_phone: str, since: datetime) -> Optional[EmergencyAlert]:
        """Most recent alert for a phone raised at or after ``since``."""
        latest = None
        for alert in self._entities:
            if alert.contact_phone != contact_phone:
                continue
            alerted_at = parse_timestamp(alert.alerted_at)
            if alerted_at is not None and alerted_at >= since:
                latest = alert
        return latest

    def by_status(self, status: Optional[str] = None) -> List[EmergencyAlert]:
        if not status:
            return self.all()
        return self.find(lambda a: a.status.value == status)
