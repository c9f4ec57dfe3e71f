import threading
from datetime import date

from core.domain import ErrorKind


def test_register_then_book_removes_the_slot(register, booking, open_slots):
    patient = register("John Doe", "1234567890", "01151990", "Blue Cross")
    assert patient.id == "p001"
    assert patient.insurance == "Blue Cross"

    result = booking.book("p001", "John Doe", "2025-10-25", "2:00 PM", "Cleaning")

    assert result.success
    assert result.data["appointment"]["status"] == "scheduled"
    assert result.data["appointment"]["id"] == "a001"
    assert "2:00 PM" not in open_slots("2025-10-25")


def test_cancel_returns_the_slot_in_order(register, booking, open_slots):
    register()
    booked = booking.book("p001", "John Doe", "2025-10-21", "10:00 AM", "Cleaning")

    result = booking.cancel(booked.data["appointment"]["id"])

    assert result.success
    assert result.data["appointment"]["status"] == "cancelled"
    assert open_slots("2025-10-21") == ["9:00 AM", "10:00 AM", "11:00 AM", "2:00 PM", "3:00 PM"]


def test_second_booking_same_day_overwrites_the_first(register, booking, open_slots, appointments):
    register()
    booking.book("p001", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")

    result = booking.book("p001", "John Doe", "2025-10-21", "11:00 AM", "Checkup")

    assert result.success
    assert [a["id"] for a in result.data["overwritten"]] == ["a001"]
    first, second = appointments()
    assert first.status.value == "cancelled"
    assert first.cancel_reason == "overwritten_by_new_booking"
    assert second.is_active
    assert open_slots("2025-10-21") == ["9:00 AM", "10:00 AM", "2:00 PM", "3:00 PM"]


def test_failed_reservation_rolls_back_the_overwrite(register, booking, open_slots, appointments):
    register()
    booking.book("p001", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")

    result = booking.book("p001", "John Doe", "2025-10-21", "4:00 PM", "Cleaning")

    assert not result.success
    assert result.code == "slot_unavailable"
    assert result.error is ErrorKind.CONFLICT
    [only] = appointments()
    assert only.is_active
    assert "9:00 AM" not in open_slots("2025-10-21")


def test_book_rejects_unknown_patient_and_name_mismatch(register, booking):
    missing = booking.book("p404", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")
    assert missing.code == "patient_not_found"
    assert missing.error is ErrorKind.NOT_FOUND

    register()
    mismatch = booking.book("p001", "john doe", "2025-10-21", "9:00 AM", "Cleaning")
    assert mismatch.code == "patient_mismatch"
    assert mismatch.data["expected_name"] == "John Doe"


def test_cancelling_twice_does_not_release_again(register, booking, open_slots):
    register()
    booked = booking.book("p001", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")
    appointment_id = booked.data["appointment"]["id"]
    booking.cancel(appointment_id)
    booking.book("p001", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")

    result = booking.cancel(appointment_id)

    assert result.code == "already_cancelled"
    assert "9:00 AM" not in open_slots("2025-10-21")


def test_cancel_unknown_appointment(booking):
    result = booking.cancel("a999")
    assert result.code == "appointment_not_found"


def test_cancel_all(register, booking, open_slots):
    register()
    assert booking.cancel_all("p001").code == "no_active_appointments"

    booking.book("p001", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")
    booking.book("p001", "John Doe", "2025-10-22", "10:00 AM", "Cleaning")

    result = booking.cancel_all("p001")

    assert result.success
    assert len(result.data["cancelled_appointments"]) == 2
    assert "9:00 AM" in open_slots("2025-10-21")
    assert open_slots("2025-10-22") == ["9:00 AM", "10:00 AM"]


def test_reschedule_moves_the_slot_and_records_history(register, booking, open_slots):
    register()
    booked = booking.book("p001", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")

    result = booking.reschedule(booked.data["appointment"]["id"], "2025-10-24", "1:00 PM")

    assert result.success
    appointment = result.data["appointment"]
    assert (appointment["date"], appointment["time"]) == ("2025-10-24", "1:00 PM")
    assert appointment["rescheduled_from"] == {"date": "2025-10-21", "time": "9:00 AM"}
    assert appointment["rescheduled_at"]
    assert "9:00 AM" in open_slots("2025-10-21")
    assert "1:00 PM" not in open_slots("2025-10-24")


def test_reschedule_to_taken_slot_changes_nothing(register, booking, open_slots):
    register()
    booked = booking.book("p001", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")

    result = booking.reschedule(booked.data["appointment"]["id"], "2025-10-24", "4:00 PM")

    assert result.code == "slot_unavailable"
    assert "9:00 AM" not in open_slots("2025-10-21")


def test_reschedule_cancelled_appointment_is_rejected(register, booking, open_slots):
    register()
    booked = booking.book("p001", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")
    booking.cancel(booked.data["appointment"]["id"])

    result = booking.reschedule(booked.data["appointment"]["id"], "2025-10-24", "1:00 PM")

    assert result.code == "already_cancelled"
    assert "1:00 PM" in open_slots("2025-10-24")


def test_reseeding_a_day_keeps_booked_times_closed(register, booking, uow_factory, open_slots):
    register()
    booking.book("p001", "John Doe", "2025-10-21", "9:00 AM", "Cleaning")

    with uow_factory() as uow:
        written, kept = uow.seed_standard_days(date(2025, 10, 21), date(2025, 10, 21), replace=True)
        uow.commit()

    assert (written, kept) == (1, 0)
    assert open_slots("2025-10-21") == ["10:00 AM", "11:00 AM", "1:00 PM", "2:00 PM", "3:00 PM", "4:00 PM"]


def test_reseeding_ignores_cancelled_appointments(register, booking, uow_factory, open_slots):
    register()
    booked = booking.book("p001", "John Doe", "2025-10-22", "9:00 AM", "Cleaning")
    booking.cancel(booked.data["appointment"]["id"])

    with uow_factory() as uow:
        uow.seed_standard_days(date(2025, 10, 22), date(2025, 10, 22), replace=True)
        uow.commit()

    assert "9:00 AM" in open_slots("2025-10-22")


def test_simultaneous_bookings_cannot_share_a_slot(register, booking, appointments, open_slots):
    register("John Doe", "1234567890")
    register("Jane Roe", "2345678901")
    barrier = threading.Barrier(2)
    results = {}

    def book(patient_id, name):
        barrier.wait()
        results[patient_id] = booking.book(patient_id, name, "2025-10-22", "10:00 AM", "Cleaning")

    threads = [
        threading.Thread(target=book, args=("p001", "John Doe")),
        threading.Thread(target=book, args=("p002", "Jane Roe")),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    outcomes = sorted(result.success for result in results.values())
    assert outcomes == [False, True]
    assert [r.code for r in results.values() if not r.success] == ["slot_unavailable"]
    assert len([a for a in appointments() if a.is_active]) == 1
    assert open_slots("2025-10-22") == ["9:00 AM"]
