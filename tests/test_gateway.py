import pytest

from config import settings
from core.data import DocumentStore, StorageError
from use_cases.clinic import create_gateway

REGISTER = (
    '[ACTION: register_new_patient({"fullName": "John Doe", "phone": "123-456-7890", '
    '"dateOfBirth": "01151990", "insurance": "blue cross"})]'
)


def test_register_search_and_book_across_turns(gateway):
    registered = gateway.handle_turn("c1", f"Welcome aboard! {REGISTER}")
    assert registered.text == "Welcome aboard!"
    [outcome] = registered.results
    assert (outcome.operation, outcome.status) == ("register_new_patient", "executed")
    assert outcome.result["patient"]["id"] == "p001"

    found = gateway.handle_turn("c1", '[ACTION: search_patient({"phone": "11234567890"})]')
    assert found.results[0].result["found"] is True
    assert gateway.sessions.get("c1").patient_id == "p001"

    booked = gateway.handle_turn(
        "c1",
        '[ACTION: book_appointment({"patientId": "p001", "patientName": "John Doe", '
        '"date": "2025-10-25", "time": "2:00 PM", "type": "Cleaning"})]',
    )
    assert booked.results[0].result["success"] is True

    slots = gateway.handle_turn("c1", '[ACTION: get_available_slots({"startDate": "2025-10-25", "endDate": "2025-10-25"})]')
    assert slots.results[0].result["slots"] == [
        {"date": "2025-10-25", "slots": ["9:00 AM", "10:00 AM", "11:00 AM", "5:00 PM"]}
    ]


def test_family_booking_uses_session_patient_as_primary(gateway):
    gateway.handle_turn("c1", REGISTER)
    gateway.handle_turn("c1", '[ACTION: search_patient({"name": "john"})]')

    result = gateway.handle_turn(
        "c1",
        '[ACTION: book_family_appointments({"primaryPatientId": "p999", "preferredDate": "2025-10-21", '
        '"familyMembers": [{"name": "Jane Doe", "relationship": "daughter", "appointmentType": "Checkup"}]})]',
    )

    outcome = result.results[0].result
    assert outcome["success"] is True
    assert [a["patient_id"] for a in outcome["appointments"]] == ["p001", "p002"]


def test_unknown_and_malformed_actions_are_reported_in_order(gateway):
    result = gateway.handle_turn(
        "c1",
        '[ACTION: fly_to_moon({})] [ACTION: cancel_appointment({"id": 1})] '
        '[ACTION: cancel_appointment({"appointmentId": "a404"})]',
    )

    assert [(r.operation, r.status) for r in result.results] == [
        ("fly_to_moon", "unknown"),
        ("cancel_appointment", "skipped"),
        ("cancel_appointment", "executed"),
    ]
    assert result.results[0].result["code"] == "unknown_operation"
    assert result.results[1].result["code"] == "malformed_arguments"
    assert result.results[2].result["code"] == "appointment_not_found"
    assert result.results[2].result["error"] == "not_found"


def test_search_distinguishes_bad_phone_from_miss(gateway):
    bad = gateway.handle_turn("c1", '[ACTION: search_patient({"phone": "555"})]').results[0].result
    miss = gateway.handle_turn("c1", '[ACTION: search_patient({"phone": "5550000000"})]').results[0].result

    assert bad["error"] == "validation"
    assert miss["error"] == "not_found"
    assert miss["message"] == "No patient found with that information"


def test_duplicate_registration_carries_existing_patient(gateway):
    gateway.handle_turn("c1", REGISTER)
    result = gateway.handle_turn("c1", REGISTER).results[0].result

    assert result["code"] == "duplicate_patient"
    assert result["patient"]["id"] == "p001"


def test_history_is_bounded(gateway):
    for i in range(settings.session_history_limit + 5):
        gateway.handle_turn("c1", f"message {i}")

    history = gateway.sessions.get("c1").history
    assert len(history) == settings.session_history_limit
    assert history[-1]["content"] == f"message {settings.session_history_limit + 4}"


class BrokenStore(DocumentStore):
    def read_document(self, name):
        raise StorageError("disk on fire")

    def write_document(self, name, document):
        raise StorageError("disk on fire")


def test_storage_faults_propagate(clock):
    gateway = create_gateway(BrokenStore(), settings, clock=clock)
    with pytest.raises(StorageError):
        gateway.handle_turn("c1", '[ACTION: search_patient({"name": "John"})]')


def test_registry_groups_operations_by_category(gateway):
    registry = gateway.registry

    assert registry.get_categories() == ["patients", "scheduling", "emergency"]
    assert [t.name for t in registry.get_tools(["emergency"])] == ["notify_staff_emergency"]
    assert len(registry.get_tools()) == 9
    with pytest.raises(ValueError):
        registry.register("search_patient", "dup", lambda args, session: None, object)


def test_operations_are_listed_by_category(gateway):
    operations = gateway.operations_by_category()

    assert operations["patients"] == ["search_patient", "register_new_patient"]
    assert operations["emergency"] == ["notify_staff_emergency"]
    assert sum(len(names) for names in operations.values()) == 9
