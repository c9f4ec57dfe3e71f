"""
Family Booking Coordinator.

Books a primary patient and their family members into consecutive open
slots on one day. The capacity check and the allocation run in a single
unit of work: either the whole party is booked or nothing changes.
"""

import logging
from typing import Callable, List

from core.domain import OperationResult, ValidationError, returns_result

from .booking import BookingCoordinator, appointment_summary
from .data.unit_of_work import ClinicUnitOfWork
from .domain.errors import CapacityExhausted, InsufficientSlots, InvalidInput, PatientNotFound
from .domain.policies import FamilyMemberValidator
from .models import AppointmentStatus, FamilyMemberRequest

logger = logging.getLogger(__name__)

OVERWRITTEN_BY_FAMILY_BOOKING = "overwritten_by_family_booking"
DEFAULT_TIMING = "back-to-back"
DEFAULT_PRIMARY_TYPE = "Cleaning"


class FamilyBookingCoordinator:
    """Multi-party booking built on the single-booking primitives."""

    def __init__(
        self,
        booking: BookingCoordinator,
        unit_of_work: Callable[[], ClinicUnitOfWork],
        practice_phone: str = "555-DENTAL",
    ):
        self._booking = booking
        self._unit_of_work = unit_of_work
        self._practice_phone = practice_phone
        self._validator = FamilyMemberValidator()

    def _validate_members(self, members: List[FamilyMemberRequest]):
        if not members:
            raise InvalidInput([ValidationError(
                "family_members", "Family members information is required", "required"
            )])
        for member in members:
            errors = self._validator.validate({
                "name": member.name,
                "relationship": member.relationship,
                "appointment_type": member.appointment_type,
            })
            if errors:
                raise InvalidInput(errors)

    @staticmethod
    def _check_party(primary, members: List[FamilyMemberRequest]):
        """Each person may appear once: members cannot repeat or name the primary."""
        seen = {primary.full_name.strip().lower()}
        for member in members:
            key = member.name.strip().lower()
            if key == primary.full_name.strip().lower():
                raise InvalidInput([ValidationError(
                    "family_members",
                    f"{member.name.strip()} is the primary patient and is already booked",
                    "duplicate_member",
                )])
            if key in seen:
                raise InvalidInput([ValidationError(
                    "family_members",
                    f"{member.name.strip()} is listed more than once",
                    "duplicate_member",
                )])
            seen.add(key)

    @returns_result
    def book_family(
        self,
        primary_patient_id: str,
        family_members: List[FamilyMemberRequest],
        preferred_date: str,
        timing: str = DEFAULT_TIMING,
        primary_type: str = DEFAULT_PRIMARY_TYPE,
    ) -> OperationResult:
        """
        Book the primary patient and every family member on ``preferred_date``.

        Args:
            primary_patient_id: The patient making the booking
            family_members: Members in the order they should be seated
            preferred_date: ISO date to book on
            timing: Requested arrangement; slots are always taken in order
            primary_type: Appointment type for the primary patient

        Returns:
            OperationResult with the created ``appointments``; on a capacity
            shortfall the result carries the nearest alternative date.
        """
        with self._unit_of_work() as uow:
            primary = uow.directory.get_by_id(primary_patient_id)
            if primary is None:
                raise PatientNotFound("Primary patient not found", {"patient_id": primary_patient_id})
            self._validate_members(family_members)
            self._check_party(primary, family_members)

            party_ids = {primary.id}
            for member in family_members:
                existing = uow.directory.find_by_name_and_phone(member.name, primary.phone)
                if existing is not None:
                    party_ids.add(existing.id)
            overwritten = self._booking.supersede_same_day(
                uow, party_ids, preferred_date, OVERWRITTEN_BY_FAMILY_BOOKING
            )

            needed = 1 + len(family_members)
            open_slots = uow.slots.open_slots(preferred_date)
            if len(open_slots) < needed:
                self._raise_capacity_failure(uow, preferred_date, open_slots, needed, len(family_members))

            times = open_slots[:needed]
            primary_appointment = uow.ledger.create(
                primary, preferred_date, times[0], primary_type or DEFAULT_PRIMARY_TYPE,
                AppointmentStatus.CONFIRMED,
            )
            booked = [primary_appointment]

            for member, time in zip(family_members, times[1:]):
                member_patient = uow.directory.find_by_name_and_phone(member.name, primary.phone)
                if member_patient is None:
                    member_patient = uow.directory.create_family_patient(member.name, primary)
                booked.append(uow.ledger.create(
                    member_patient,
                    preferred_date,
                    time,
                    member.appointment_type,
                    AppointmentStatus.CONFIRMED,
                    patient_name=member.name.strip(),
                    relationship=member.relationship.strip(),
                ))
                uow.directory.add_family_ref(primary, member.name, member.relationship)

            uow.slots.reserve_many(preferred_date, times)
            uow.commit()

        logger.info(
            f"Family booking for {primary.full_name}: {len(booked)} appointment(s) on {preferred_date} ({timing})"
        )
        return OperationResult.ok(
            f"Successfully booked {len(booked)} appointments for you and your family!",
            appointments=[a.to_dict() for a in booked],
            family_members_added=len(family_members),
            overwritten=[appointment_summary(a) for a in overwritten],
            details=[f"{a.patient_name} - {a.date} at {a.time} - {a.type}" for a in booked],
        )

    def _raise_capacity_failure(
        self,
        uow: ClinicUnitOfWork,
        preferred_date: str,
        open_slots: List[str],
        needed: int,
        member_count: int,
    ):
        alternative = uow.slots.next_date_with_capacity(preferred_date, needed)
        if alternative is None:
            raise CapacityExhausted(
                "Not enough consecutive slots available. Please book earlier times or "
                f"contact us at {self._practice_phone}.",
                {"slots_needed": needed},
            )
        raise InsufficientSlots(
            f"Only {len(open_slots)} slot(s) available on {preferred_date}. Need {needed} slots "
            f"for you and {member_count} family members. Next available date is {alternative.date}.",
            {
                "available_slots": list(open_slots),
                "slots_needed": needed,
                "shortfall": needed - len(open_slots),
                "next_available_date": alternative.date,
                "next_available_slots": alternative.slots[:needed],
            },
        )
