"""
Action Dispatch Gateway.

Takes one conversational turn (model output text), extracts the action
tokens, executes each known operation in order and returns the structured
results together with the text stripped of tokens.

Domain failures come back as failed results. Anything else (for example a
StorageError) propagates to the caller, which owns the user-facing fallback.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from core.domain import OperationResult, returns_result
from core.orchestration import ToolRegistry
from core.session import SessionContext, SessionManager

from .actions import (
    ActionCall,
    ActionParser,
    BookAppointmentArgs,
    BookFamilyAppointmentsArgs,
    CancelAllAppointmentsArgs,
    CancelAppointmentArgs,
    GetAvailableSlotsArgs,
    MalformedAction,
    NotifyStaffEmergencyArgs,
    RegisterNewPatientArgs,
    RescheduleAppointmentArgs,
    SearchPatientArgs,
    UnknownAction,
)
from .booking import BookingCoordinator
from .data.unit_of_work import ClinicUnitOfWork
from .emergency import EmergencyNotifier
from .family import FamilyBookingCoordinator
from .models import FamilyMemberRequest

logger = logging.getLogger(__name__)


class ActionStatus:
    EXECUTED = "executed"
    UNKNOWN = "unknown"
    SKIPPED = "skipped"


@dataclass
class ActionOutcome:
    operation: str
    status: str
    result: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"operation": self.operation, "status": self.status, "result": self.result}


@dataclass
class TurnResult:
    conversation_id: str
    text: str
    results: List[ActionOutcome] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversationId": self.conversation_id,
            "text": self.text,
            "results": [outcome.to_dict() for outcome in self.results],
        }


class ActionDispatchGateway:
    """
    Routes action tokens to the clinic coordinators.

    Each handler is called with (arguments, session) and returns an
    OperationResult.
    """

    def __init__(
        self,
        unit_of_work: Callable[[], ClinicUnitOfWork],
        sessions: SessionManager,
        booking: BookingCoordinator,
        family: FamilyBookingCoordinator,
        emergency: EmergencyNotifier,
    ):
        self.unit_of_work = unit_of_work
        self.sessions = sessions
        self.booking = booking
        self.family = family
        self.emergency = emergency
        self.registry = ToolRegistry()
        self._register_tools()
        self.parser = ActionParser(self.registry.argument_models())

    def _register_tools(self):
        register = self.registry.register
        register("search_patient", "Find a patient by phone or name",
                 self._search_patient, SearchPatientArgs, category="patients")
        register("register_new_patient", "Register a new patient",
                 self._register_new_patient, RegisterNewPatientArgs, category="patients")
        register("get_available_slots", "List open appointment slots",
                 self._get_available_slots, GetAvailableSlotsArgs, category="scheduling")
        register("book_appointment", "Book a single appointment",
                 self._book_appointment, BookAppointmentArgs, category="scheduling")
        register("book_family_appointments", "Book appointments for a patient and family members",
                 self._book_family_appointments, BookFamilyAppointmentsArgs, category="scheduling")
        register("cancel_appointment", "Cancel one appointment",
                 self._cancel_appointment, CancelAppointmentArgs, category="scheduling")
        register("cancel_all_appointments", "Cancel every active appointment for a patient",
                 self._cancel_all_appointments, CancelAllAppointmentsArgs, category="scheduling")
        register("reschedule_appointment", "Move an appointment to a new slot",
                 self._reschedule_appointment, RescheduleAppointmentArgs, category="scheduling")
        register("notify_staff_emergency", "Alert staff about a dental emergency",
                 self._notify_staff_emergency, NotifyStaffEmergencyArgs, category="emergency")

    # =========================================================================
    # TURN HANDLING
    # =========================================================================

    def handle_turn(self, conversation_id: str, text: str) -> TurnResult:
        """
        Execute every action in one turn of model output.

        Args:
            conversation_id: Conversation the turn belongs to
            text: Raw model output containing zero or more action tokens

        Returns:
            TurnResult with ordered outcomes and the cleaned text
        """
        session = self.sessions.get_or_create(conversation_id)
        parsed = self.parser.parse(text)
        outcomes = []

        for action in parsed.actions:
            if isinstance(action, ActionCall):
                result = self.execute(action, session)
                outcomes.append(ActionOutcome(action.name, ActionStatus.EXECUTED, result.to_dict()))
            elif isinstance(action, UnknownAction):
                logger.warning(f"Unknown operation requested: {action.name}")
                outcomes.append(ActionOutcome(action.name, ActionStatus.UNKNOWN, {
                    "success": False,
                    "code": "unknown_operation",
                    "message": f"Unknown operation: {action.name}",
                }))
            elif isinstance(action, MalformedAction):
                logger.warning(f"Skipped malformed {action.name} action: {action.reason}")
                outcomes.append(ActionOutcome(action.name, ActionStatus.SKIPPED, {
                    "success": False,
                    "code": "malformed_arguments",
                    "message": action.reason,
                }))

        session.add_message("assistant", parsed.text, limit=self.sessions.history_limit)
        return TurnResult(conversation_id=conversation_id, text=parsed.text, results=outcomes)

    def operations_by_category(self) -> Dict[str, List[str]]:
        """Registered operation names grouped by category."""
        return {
            category: [tool.name for tool in self.registry.get_tools([category])]
            for category in self.registry.get_categories()
        }

    def execute(self, call: ActionCall, session: SessionContext) -> OperationResult:
        tool = self.registry.get(call.name)
        logger.info(f"Executing {call.name} for conversation {session.conversation_id}")
        result = tool.function(call.arguments, session)
        if not result.success:
            logger.info(f"{call.name} failed ({result.code}): {result.message}")
        return result

    # =========================================================================
    # HANDLERS
    # =========================================================================

    @returns_result
    def _search_patient(self, args: SearchPatientArgs, session: SessionContext) -> OperationResult:
        with self.unit_of_work() as uow:
            patient = uow.directory.search(phone=args.phone, name=args.name)
            appointments = uow.ledger.find_by_patient(patient.id)

        session.set_patient(patient.id, patient.full_name)
        return OperationResult.ok(
            f"Found patient {patient.full_name}",
            found=True,
            patient=patient.to_dict(),
            appointments=[a.to_dict() for a in appointments],
            family_members=[ref.to_dict() for ref in patient.family_members],
        )

    @returns_result
    def _register_new_patient(self, args: RegisterNewPatientArgs, session: SessionContext) -> OperationResult:
        with self.unit_of_work() as uow:
            patient = uow.directory.register(
                args.full_name, args.phone, args.date_of_birth, args.insurance
            )
            uow.commit()
        return OperationResult.ok("Patient registered successfully", patient=patient.to_dict())

    def _get_available_slots(self, args: GetAvailableSlotsArgs, session: SessionContext) -> OperationResult:
        with self.unit_of_work() as uow:
            start, end = uow.slots.resolve_window(args.start_date, args.end_date, args.subjective_date)
            days = uow.slots.list_available(start, end, args.preferred_times)

        message = (
            f"Found open slots on {len(days)} day(s)" if days
            else "No available slots in that date range"
        )
        return OperationResult.ok(
            message,
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            slots=[day.to_dict() for day in days],
        )

    def _book_appointment(self, args: BookAppointmentArgs, session: SessionContext) -> OperationResult:
        return self.booking.book(args.patient_id, args.patient_name, args.date, args.time, args.type)

    def _book_family_appointments(self, args: BookFamilyAppointmentsArgs, session: SessionContext) -> OperationResult:
        primary_id = args.primary_patient_id
        if session.patient_id and session.patient_id != primary_id:
            logger.info(
                f"Using session patient {session.patient_id} as primary instead of {primary_id}"
            )
            primary_id = session.patient_id

        members = [
            FamilyMemberRequest(m.name, m.relationship, m.appointment_type)
            for m in args.family_members
        ]
        return self.family.book_family(
            primary_id,
            members,
            args.preferred_date,
            timing=args.timing,
            primary_type=args.primary_patient_appointment_type,
        )

    def _cancel_appointment(self, args: CancelAppointmentArgs, session: SessionContext) -> OperationResult:
        return self.booking.cancel(args.appointment_id)

    def _cancel_all_appointments(self, args: CancelAllAppointmentsArgs, session: SessionContext) -> OperationResult:
        return self.booking.cancel_all(args.patient_id)

    def _reschedule_appointment(self, args: RescheduleAppointmentArgs, session: SessionContext) -> OperationResult:
        return self.booking.reschedule(args.appointment_id, args.new_date, args.new_time)

    def _notify_staff_emergency(self, args: NotifyStaffEmergencyArgs, session: SessionContext) -> OperationResult:
        return self.emergency.notify(args.patient_name, args.emergency_details, args.contact_phone)
