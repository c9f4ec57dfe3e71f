"""
Patient Directory.

Owns patient identity and each patient's family-ref list.
"""

import logging
from typing import List, Optional

from core.data import DocumentRepository
from core.domain import ValidationError

from ..models import FamilyMemberRef, Patient, next_sequential_id
from .errors import DuplicatePatient, InvalidInput, PatientNotFound
from .policies import (
    PatientRegistrationValidator,
    SchedulingContext,
    canonical_insurance,
    check_phone,
    normalize_phone,
)

logger = logging.getLogger(__name__)


class PatientDirectory(DocumentRepository[Patient]):
    collection = "patients"
    entity_type = Patient

    def __init__(self, entities: Optional[List[Patient]] = None, context: Optional[SchedulingContext] = None):
        super().__init__(entities)
        self.context = context or SchedulingContext()

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def find_by_phone(self, phone: str) -> Optional[Patient]:
        normalized = normalize_phone(phone)
        if normalized is None:
            return None
        for patient in self._entities:
            if patient.phone == normalized:
                return patient
        return None

    def find_by_name(self, name: str) -> Optional[Patient]:
        """Case-insensitive substring match in either direction."""
        wanted = (name or "").strip().lower()
        if not wanted:
            return None
        for patient in self._entities:
            candidate = patient.full_name.lower()
            if wanted in candidate or candidate in wanted:
                return patient
        return None

    def find_by_name_and_phone(self, name: str, phone: str) -> Optional[Patient]:
        wanted = (name or "").strip().lower()
        for patient in self._entities:
            if patient.full_name.strip().lower() == wanted and patient.phone == phone:
                return patient
        return None

    def search(self, phone: Optional[str] = None, name: Optional[str] = None) -> Patient:
        """
        Find a patient by phone, falling back to name.

        Raises:
            InvalidInput: A phone was given but is not a valid US number
            PatientNotFound: Nothing matched
        """
        patient = None
        if phone:
            error = check_phone(phone)
            if error:
                raise InvalidInput([error])
            patient = self.find_by_phone(phone)
            if patient is None:
                logger.info(f"No patient found with phone: {normalize_phone(phone)}")

        if patient is None and name:
            patient = self.find_by_name(name)

        if patient is None:
            raise PatientNotFound("No patient found with that information")

        logger.info(f"Found patient: {patient.full_name} ({patient.id})")
        return patient

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _next_id(self) -> str:
        return next_sequential_id("p", (p.id for p in self._entities))

    def register(self, full_name: str, phone: str, date_of_birth: str, insurance: str) -> Patient:
        """
        Register a new patient after validating every field.

        Raises:
            InvalidInput: A field failed validation (first error is the message)
            DuplicatePatient: The normalized phone already belongs to a patient
        """
        validator = PatientRegistrationValidator(current_year=self.context.today().year)
        errors: List[ValidationError] = validator.validate({
            "full_name": full_name,
            "phone": phone,
            "date_of_birth": date_of_birth,
            "insurance": insurance,
        })
        if errors:
            raise InvalidInput(errors)

        normalized = normalize_phone(phone)
        existing = self.find_by_phone(normalized)
        if existing is not None:
            raise DuplicatePatient(
                f"A patient with phone number {normalized} already exists",
                {"patient": existing.to_dict()},
            )

        patient = Patient(
            id=self._next_id(),
            full_name=full_name.strip(),
            phone=normalized,
            date_of_birth=date_of_birth,
            insurance=canonical_insurance(insurance),
            registered_date=self.context.today().isoformat(),
        )
        self.add(patient)
        logger.info(f"Registered patient {patient.full_name} ({patient.id})")
        return patient

    def create_family_patient(self, name: str, primary: Patient) -> Patient:
        """Create a patient record for a family member, inheriting the primary's contact details."""
        patient = Patient(
            id=self._next_id(),
            full_name=name.strip(),
            phone=primary.phone,
            date_of_birth=primary.date_of_birth,
            insurance=primary.insurance,
            registered_date=self.context.today().isoformat(),
        )
        self.add(patient)
        logger.info(f"Created patient record for family member: {patient.full_name} ({patient.id})")
        return patient

    def add_family_ref(self, primary: Patient, name: str, relationship: str) -> bool:
        """Append a family ref keyed by name. Returns False if it was already there."""
        if primary.has_family_member(name):
            return False
        primary.family_members.append(FamilyMemberRef(
            name=name.strip(),
            relationship=(relationship or "family").strip(),
            added_date=self.context.today().isoformat(),
        ))
        self.mark_dirty()
        return True
