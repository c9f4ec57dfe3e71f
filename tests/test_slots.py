from datetime import date

import pytest

from use_cases.clinic.domain import SlotUnavailable
from use_cases.clinic.domain.policies import SchedulingContext
from use_cases.clinic.domain.slots import SlotAvailabilityStore
from use_cases.clinic.models import SlotDay


@pytest.fixture
def slots():
    days = [
        SlotDay("2025-10-24", ["9:00 AM", "10:00 AM", "11:00 AM", "1:00 PM"]),
        SlotDay("2025-10-21", ["9:00 AM", "2:00 PM", "5:30 PM"]),
        SlotDay("2025-10-22", []),
        SlotDay("2025-11-10", ["9:00 AM"]),
    ]
    return SlotAvailabilityStore(days, context=SchedulingContext(reference_date=date(2025, 10, 19)))


def test_list_available_returns_non_empty_days_in_range_in_date_order(slots):
    days = slots.list_available(date(2025, 10, 20), date(2025, 10, 31))
    assert [d.date for d in days] == ["2025-10-21", "2025-10-24"]


def test_list_available_filters_by_time_of_day_and_drops_empty_days(slots):
    days = slots.list_available(date(2025, 10, 20), date(2025, 10, 31), ["evening"])
    assert [(d.date, d.slots) for d in days] == [("2025-10-21", ["5:30 PM"])]


def test_list_available_returns_copies(slots):
    days = slots.list_available(date(2025, 10, 20), date(2025, 10, 31))
    days[0].slots.clear()
    assert slots.open_slots("2025-10-21") == ["9:00 AM", "2:00 PM", "5:30 PM"]
    assert not slots.is_dirty


def test_resolve_window_falls_back_to_default_window(slots):
    assert slots.resolve_window(None, None) == (date(2025, 10, 21), date(2025, 11, 5))
    assert slots.resolve_window("not a date", "2025-10-30") == (date(2025, 10, 21), date(2025, 10, 30))


def test_resolve_window_moves_dates_into_deployment_year(slots):
    assert slots.resolve_window("2024-10-22", "2026-10-25") == (date(2025, 10, 22), date(2025, 10, 25))


def test_resolve_window_reads_month_and_day_in_deployment_year(slots):
    assert slots.resolve_window("October 25", "Nov 3") == (date(2025, 10, 25), date(2025, 11, 3))
    assert slots.resolve_window("10/28", None) == (date(2025, 10, 28), date(2025, 11, 5))


def test_resolve_window_prefers_subjective_phrase(slots):
    assert slots.resolve_window("2025-12-01", "2025-12-31", "asap") == (date(2025, 10, 19), date(2025, 10, 22))


def test_release_keeps_chronological_order_and_is_idempotent(slots):
    assert slots.release("2025-10-21", "10:00 AM")
    assert not slots.release("2025-10-21", "10:00 AM")
    assert slots.open_slots("2025-10-21") == ["9:00 AM", "10:00 AM", "2:00 PM", "5:30 PM"]
    assert slots.is_dirty


def test_release_on_unknown_date_is_a_no_op(slots):
    assert not slots.release("2025-12-25", "9:00 AM")
    assert not slots.is_dirty


def test_reserve_missing_time_raises(slots):
    with pytest.raises(SlotUnavailable):
        slots.reserve("2025-10-21", "10:00 AM")
    with pytest.raises(SlotUnavailable):
        slots.reserve("2025-12-25", "9:00 AM")


def test_reserve_many_is_all_or_nothing(slots):
    with pytest.raises(SlotUnavailable) as excinfo:
        slots.reserve_many("2025-10-24", ["9:00 AM", "4:00 PM"])
    assert excinfo.value.details["times"] == ["4:00 PM"]
    assert slots.open_slots("2025-10-24") == ["9:00 AM", "10:00 AM", "11:00 AM", "1:00 PM"]

    slots.reserve_many("2025-10-24", ["9:00 AM", "10:00 AM"])
    assert slots.open_slots("2025-10-24") == ["11:00 AM", "1:00 PM"]


def test_next_date_with_capacity_picks_nearest_later_date(slots):
    assert slots.next_date_with_capacity("2025-10-20", 3).date == "2025-10-21"
    assert slots.next_date_with_capacity("2025-10-21", 3).date == "2025-10-24"
    assert slots.next_date_with_capacity("2025-10-24", 2) is None


def test_seed_day_does_not_overwrite_without_replace(slots):
    assert not slots.seed_day("2025-10-21", ["4:00 PM"])
    assert slots.seed_day("2025-10-21", ["4:00 PM", "9:00 AM"], replace=True)
    assert slots.open_slots("2025-10-21") == ["9:00 AM", "4:00 PM"]
    assert slots.seed_day("2025-10-23", ["9:00 AM"])
    assert slots.open_slots("2025-10-23") == ["9:00 AM"]
