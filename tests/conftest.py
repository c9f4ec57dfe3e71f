from datetime import date, datetime, timedelta, timezone

import pytest

from config import settings
from use_cases.clinic import BookingCoordinator, EmergencyNotifier, FamilyBookingCoordinator, create_gateway
from use_cases.clinic.data import InMemoryDocumentStore, unit_of_work_factory
from use_cases.clinic.domain.policies import SchedulingContext

PRACTICE_PHONE = "555-DENTAL (555-336-8251)"

SLOT_DAYS = [
    {"date": "2025-10-21", "slots": ["9:00 AM", "10:00 AM", "11:00 AM", "2:00 PM", "3:00 PM"]},
    {"date": "2025-10-22", "slots": ["9:00 AM", "10:00 AM"]},
    {"date": "2025-10-24", "slots": ["9:00 AM", "10:00 AM", "11:00 AM", "1:00 PM"]},
    {"date": "2025-10-25", "slots": ["9:00 AM", "10:00 AM", "11:00 AM", "2:00 PM", "5:00 PM"]},
    {"date": "2025-11-03", "slots": ["9:00 AM", "1:00 PM"]},
]


class FrozenClock:
    def __init__(self, now):
        self.current = now

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 10, 19, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def context(clock):
    return SchedulingContext(reference_date=date(2025, 10, 19), deployment_year=2025, clock=clock)


@pytest.fixture
def store():
    return InMemoryDocumentStore({"available_slots": {"available_slots": SLOT_DAYS}})


@pytest.fixture
def uow_factory(store, context):
    return unit_of_work_factory(store, context)


@pytest.fixture
def booking(uow_factory):
    return BookingCoordinator(uow_factory)


@pytest.fixture
def family(booking, uow_factory):
    return FamilyBookingCoordinator(booking, uow_factory, practice_phone=PRACTICE_PHONE)


@pytest.fixture
def notifier(uow_factory, context):
    return EmergencyNotifier(uow_factory, context, dedup_minutes=10)


@pytest.fixture
def gateway(store, clock):
    return create_gateway(store, settings, clock=clock)


@pytest.fixture
def register(uow_factory):
    def _register(full_name="John Doe", phone="1234567890", date_of_birth="01151990", insurance="Blue Cross"):
        with uow_factory() as uow:
            patient = uow.directory.register(full_name, phone, date_of_birth, insurance)
            uow.commit()
        return patient
    return _register


@pytest.fixture
def open_slots(uow_factory):
    def _open_slots(day):
        with uow_factory() as uow:
            return uow.slots.open_slots(day)
    return _open_slots


@pytest.fixture
def appointments(uow_factory):
    def _appointments():
        with uow_factory() as uow:
            return uow.ledger.all()
    return _appointments
