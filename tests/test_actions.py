from use_cases.clinic.actions import (
    ActionCall,
    ActionParser,
    BookAppointmentArgs,
    GetAvailableSlotsArgs,
    MalformedAction,
    SearchPatientArgs,
    UnknownAction,
)

PARSER = ActionParser({
    "search_patient": SearchPatientArgs,
    "get_available_slots": GetAvailableSlotsArgs,
    "book_appointment": BookAppointmentArgs,
})


def test_parses_calls_in_order_and_strips_tokens():
    text = (
        'Let me look that up.\n[ACTION: search_patient({"phone": "555-123-4567"})]\n\n\n\n'
        'Checking times too. [ACTION: get_available_slots({"startDate": "2025-10-21", "preferredTimes": ["morning"]})]'
    )

    parsed = PARSER.parse(text)

    assert [type(a) for a in parsed.actions] == [ActionCall, ActionCall]
    assert parsed.actions[0].arguments.phone == "555-123-4567"
    assert parsed.actions[1].arguments.start_date == "2025-10-21"
    assert parsed.actions[1].arguments.preferred_times == ["morning"]
    assert parsed.text == "Let me look that up.\n\nChecking times too."


def test_unknown_operation_is_reported_not_dropped():
    parsed = PARSER.parse('[ACTION: order_pizza({"size": "large"})]')
    [action] = parsed.actions
    assert isinstance(action, UnknownAction)
    assert action.name == "order_pizza"
    assert parsed.text == ""


def test_malformed_payload_does_not_stop_the_scan():
    text = '[ACTION: search_patient({phone: 555})] then [ACTION: search_patient({"name": "John"})]'

    parsed = PARSER.parse(text)

    assert isinstance(parsed.actions[0], MalformedAction)
    assert "not valid JSON" in parsed.actions[0].reason
    assert isinstance(parsed.actions[1], ActionCall)
    assert parsed.actions[1].arguments.name == "John"
    assert parsed.text == "then"


def test_schema_failure_is_malformed():
    parsed = PARSER.parse('[ACTION: book_appointment({"patientId": "p001"})]')
    [action] = parsed.actions
    assert isinstance(action, MalformedAction)
    assert "patientName" in action.reason


def test_non_object_arguments_are_malformed():
    [action] = PARSER.parse('[ACTION: search_patient(["5551234567"])]').actions
    assert isinstance(action, MalformedAction)
    assert action.reason == "arguments must be a JSON object"


def test_empty_arguments_use_defaults():
    [action] = PARSER.parse("[ACTION: get_available_slots()]").actions
    assert isinstance(action, ActionCall)
    assert action.arguments.preferred_times == []
    assert action.arguments.subjective_date is None


def test_closing_sequence_inside_json_string_is_not_a_terminator():
    [action] = PARSER.parse('[ACTION: search_patient({"name": "odd )] name"})]').actions
    assert action.arguments.name == "odd )] name"


def test_numeric_phone_is_accepted_as_text():
    [action] = PARSER.parse('[ACTION: search_patient({"phone": 5551234567})]').actions
    assert action.arguments.phone == "5551234567"


def test_snake_case_keys_are_accepted():
    [action] = PARSER.parse(
        '[ACTION: book_appointment({"patient_id": "p001", "patientName": "John Doe", '
        '"date": "2025-10-21", "time": "9:00 AM", "type": "Cleaning"})]'
    ).actions
    assert action.arguments.patient_id == "p001"


def test_text_without_tokens_is_returned_trimmed():
    parsed = PARSER.parse("  Hello! How can I help?  ")
    assert parsed.actions == []
    assert parsed.text == "Hello! How can I help?"


def test_unterminated_token_does_not_swallow_the_next_one():
    text = '[ACTION: search_patient({"phone": "555"] then [ACTION: search_patient({"name": "John"})]'

    parsed = PARSER.parse(text)

    assert [type(a) for a in parsed.actions] == [MalformedAction, ActionCall]
    assert parsed.actions[0].raw == '[ACTION: search_patient({"phone": "555"]'
    assert parsed.actions[1].arguments.name == "John"
    assert parsed.text == "then"


def test_token_without_any_closer_ends_at_the_next_token():
    text = 'Hi [ACTION: search_patient({"phone": [ACTION: search_patient({"phone": "5551234567"})]'

    parsed = PARSER.parse(text)

    assert [type(a) for a in parsed.actions] == [MalformedAction, ActionCall]
    assert parsed.actions[1].arguments.phone == "5551234567"
    assert parsed.text == "Hi"
