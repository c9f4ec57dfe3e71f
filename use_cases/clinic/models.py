"""
Clinic Data Models.

Entities persisted as whole documents. Every model converts to and from the
snake_case dictionaries stored in the collections.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class AlertStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


@dataclass
class FamilyMemberRef:
    """Pointer from a primary patient to a family member."""
    name: str
    relationship: str
    added_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "relationship": self.relationship,
            "added_date": self.added_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FamilyMemberRef":
        return cls(
            name=data.get("name", ""),
            relationship=data.get("relationship", ""),
            added_date=data.get("added_date", ""),
        )


@dataclass
class Patient:
    """A registered patient."""
    id: str
    full_name: str
    phone: str
    date_of_birth: str
    insurance: str
    registered_date: str
    family_members: List[FamilyMemberRef] = field(default_factory=list)

    def has_family_member(self, name: str) -> bool:
        wanted = name.strip().lower()
        return any(ref.name.strip().lower() == wanted for ref in self.family_members)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "phone": self.phone,
            "date_of_birth": self.date_of_birth,
            "insurance": self.insurance,
            "registered_date": self.registered_date,
            "family_members": [ref.to_dict() for ref in self.family_members],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Patient":
        return cls(
            id=data["id"],
            full_name=data.get("full_name", ""),
            phone=data.get("phone", ""),
            date_of_birth=data.get("date_of_birth", ""),
            insurance=data.get("insurance", ""),
            registered_date=data.get("registered_date", ""),
            family_members=[
                FamilyMemberRef.from_dict(ref) for ref in data.get("family_members") or []
            ],
        )


@dataclass
class SlotDay:
    """The currently open time labels for one date."""
    date: str
    slots: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "slots": list(self.slots)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SlotDay":
        return cls(date=data["date"], slots=list(data.get("slots") or []))


@dataclass
class Appointment:
    """A booked appointment. Cancelled appointments are kept, never deleted."""
    id: str
    patient_id: str
    patient_name: str
    date: str
    time: str
    type: str
    status: AppointmentStatus
    created_at: str
    relationship: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancel_reason: Optional[str] = None
    rescheduled_at: Optional[str] = None
    rescheduled_from: Optional[Dict[str, str]] = None

    @property
    def is_active(self) -> bool:
        return self.status != AppointmentStatus.CANCELLED

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "patient_id": self.patient_id,
            "patient_name": self.patient_name,
            "date": self.date,
            "time": self.time,
            "type": self.type,
            "status": self.status.value,
            "created_at": self.created_at,
            "cancelled_at": self.cancelled_at,
            "rescheduled_at": self.rescheduled_at,
        }
        if self.relationship is not None:
            data["relationship"] = self.relationship
        if self.cancel_reason is not None:
            data["cancel_reason"] = self.cancel_reason
        if self.rescheduled_from is not None:
            data["rescheduled_from"] = dict(self.rescheduled_from)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Appointment":
        return cls(
            id=data["id"],
            patient_id=data.get("patient_id", ""),
            patient_name=data.get("patient_name", ""),
            date=data.get("date", ""),
            time=data.get("time", ""),
            type=data.get("type", ""),
            status=AppointmentStatus(data.get("status", AppointmentStatus.SCHEDULED.value)),
            created_at=data.get("created_at", ""),
            relationship=data.get("relationship"),
            cancelled_at=data.get("cancelled_at"),
            cancel_reason=data.get("cancel_reason"),
            rescheduled_at=data.get("rescheduled_at"),
            rescheduled_from=data.get("rescheduled_from"),
        )


@dataclass
class EmergencyAlert:
    """A staff alert raised for a dental emergency."""
    id: str
    patient_name: str
    details: str
    contact_phone: str
    alerted_at: str
    status: AlertStatus = AlertStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "patient_name": self.patient_name,
            "details": self.details,
            "contact_phone": self.contact_phone,
            "alerted_at": self.alerted_at,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmergencyAlert":
        return cls(
            id=data["id"],
            patient_name=data.get("patient_name", ""),
            details=data.get("details", ""),
            contact_phone=data.get("contact_phone", ""),
            alerted_at=data.get("alerted_at", ""),
            status=AlertStatus(data.get("status", AlertStatus.PENDING.value)),
        )


@dataclass
class FamilyMemberRequest:
    """One family member in a family booking request."""
    name: str
    relationship: str
    appointment_type: str


# =============================================================================
# IDENTIFIERS
# =============================================================================

def next_sequential_id(prefix: str, existing_ids: Iterable[str]) -> str:
    """
    Next identifier in a ``<prefix>NNN`` sequence.

    Uses the highest numeric suffix seen so gaps never cause reuse.
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    highest = 0
    for existing in existing_ids:
        match = pattern.match(existing or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}{highest + 1:03d}"
