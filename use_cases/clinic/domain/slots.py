"""
Slot Availability Store.

The single source of truth for which time labels are open on each date.
Every day's list is kept deduplicated and in chronological order.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from core.data import DocumentRepository
from core.domain import parse_date

from ..models import SlotDay
from .errors import SlotUnavailable
from .policies import (
    SchedulingContext,
    matches_preferred_times,
    resolve_subjective_date,
    slot_sort_key,
)

logger = logging.getLogger(__name__)


def sort_slots(labels: Iterable[str]) -> List[str]:
    return sorted(dict.fromkeys(labels), key=slot_sort_key)


class SlotAvailabilityStore(DocumentRepository[SlotDay]):
    collection = "available_slots"
    entity_type = SlotDay
    id_attr = "date"

    def __init__(self, entities: Optional[List[SlotDay]] = None, context: Optional[SchedulingContext] = None):
        super().__init__(entities)
        self.context = context or SchedulingContext()

    def get_day(self, day: str) -> Optional[SlotDay]:
        return self.get_by_id(day)

    def open_slots(self, day: str) -> List[str]:
        slot_day = self.get_day(day)
        return list(slot_day.slots) if slot_day else []

    def is_open(self, day: str, time: str) -> bool:
        return time in self.open_slots(day)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def resolve_window(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        subjective_date: Optional[str] = None,
    ) -> Tuple[date, date]:
        """
        Turn a request into an inclusive date range.

        A subjective phrase wins over explicit dates. Explicit dates are moved
        into the deployment year; anything unparsable falls back to the
        matching end of the default window.
        """
        if subjective_date:
            return resolve_subjective_date(subjective_date, self.context.reference_date)

        default_start, default_end = self.context.default_window
        start = self._in_deployment_year(parse_date(start_date, self.context.deployment_year)) or default_start
        end = self._in_deployment_year(parse_date(end_date, self.context.deployment_year)) or default_end
        return start, end

    def _in_deployment_year(self, value: Optional[date]) -> Optional[date]:
        if value is None or value.year == self.context.deployment_year:
            return value
        try:
            return value.replace(year=self.context.deployment_year)
        except ValueError:
            # Feb 29 outside a leap year
            return None

    def list_available(
        self,
        start: date,
        end: date,
        preferred_times: Optional[List[str]] = None,
    ) -> List[SlotDay]:
        """
        Open slot days within [start, end], optionally filtered by time of day.

        Returns copies in date order; days left without slots are dropped.
        """
        results = []
        for slot_day in self._entities:
            day = parse_date(slot_day.date)
            if day is None or not start <= day <= end:
                continue
            labels = [t for t in slot_day.slots if matches_preferred_times(t, preferred_times)]
            if labels:
                results.append(SlotDay(date=slot_day.date, slots=labels))
        results.sort(key=lambda d: d.date)
        return results

    def next_date_with_capacity(self, after: str, needed: int) -> Optional[SlotDay]:
        """The nearest date strictly after ``after`` with at least ``needed`` open slots."""
        after_day = parse_date(after)
        candidates = []
        for slot_day in self._entities:
            day = parse_date(slot_day.date)
            if day is None or (after_day is not None and day <= after_day):
                continue
            if len(slot_day.slots) >= needed:
                candidates.append((day, slot_day))
        if not candidates:
            return None
        candidates.sort(key=lambda pair: pair[0])
        return candidates[0][1]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def release(self, day: str, time: str) -> bool:
        """
        Return a time label to availability.

        Idempotent. Returns True if the label was re-inserted.
        """
        slot_day = self.get_day(day)
        if slot_day is None:
            logger.warning(f"No slot day for {day}; cannot release {time}")
            return False
        if time in slot_day.slots:
            logger.debug(f"Slot {time} already available for {day}")
            return False
        slot_day.slots = sort_slots(slot_day.slots + [time])
        self.mark_dirty()
        logger.info(f"Returned slot {time} to availability for {day}")
        return True

    def reserve(self, day: str, time: str):
        """
        Remove an open time label.

        Raises:
            SlotUnavailable: The day has no such open time
        """
        slot_day = self.get_day(day)
        if slot_day is None or time not in slot_day.slots:
            raise SlotUnavailable(
                "This time slot is no longer available",
                {"date": day, "time": time},
            )
        slot_day.slots = [t for t in slot_day.slots if t != time]
        self.mark_dirty()

    def reserve_many(self, day: str, times: List[str]):
        """Remove several open time labels at once; all must be open."""
        slot_day = self.get_day(day)
        missing = [t for t in times if slot_day is None or t not in slot_day.slots]
        if missing:
            raise SlotUnavailable(
                "One or more requested time slots are no longer available",
                {"date": day, "times": missing},
            )
        taken = set(times)
        slot_day.slots = [t for t in slot_day.slots if t not in taken]
        self.mark_dirty()

    def seed_day(
        self,
        day: str,
        times: List[str],
        replace: bool = False,
        held: Iterable[str] = (),
    ) -> bool:
        """
        Create (or with ``replace`` overwrite) the open slots for a date.

        Times in ``held`` belong to active appointments and are never listed.
        Returns True if the day was written.
        """
        existing = self.get_day(day)
        if existing is not None and not replace:
            return False
        held = set(held)
        opened = sort_slots([t for t in times if t not in held])
        if existing is None:
            self.add(SlotDay(date=day, slots=opened))
        else:
            existing.slots = opened
            self.mark_dirty()
        return True


def date_range(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
