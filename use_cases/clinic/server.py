"""
Clinic Server Wiring.

Builds the gateway and its collaborators from application settings.
"""

import logging
from datetime import timedelta
from typing import Callable, Optional

from core.data import DocumentStore
from core.domain import utc_now
from core.session import SessionManager

from .booking import BookingCoordinator
from .data.unit_of_work import unit_of_work_factory
from .domain.policies import SchedulingContext
from .emergency import EmergencyNotifier
from .family import FamilyBookingCoordinator
from .gateway import ActionDispatchGateway

logger = logging.getLogger(__name__)


def create_gateway(store: DocumentStore, settings, clock: Optional[Callable] = None) -> ActionDispatchGateway:
    """
    Wire a gateway over ``store``.

    Args:
        store: Backing document store
        settings: Application settings (see config.Settings)
        clock: Source of the current time, defaults to UTC now
    """
    clock = clock or utc_now
    context = SchedulingContext(
        reference_date=settings.reference_date,
        deployment_year=settings.deployment_year,
        clock=clock,
    )
    unit_of_work = unit_of_work_factory(store, context)
    booking = BookingCoordinator(unit_of_work)
    gateway = ActionDispatchGateway(
        unit_of_work=unit_of_work,
        sessions=SessionManager(
            idle_timeout=timedelta(hours=settings.session_idle_hours),
            history_limit=settings.session_history_limit,
            clock=clock,
        ),
        booking=booking,
        family=FamilyBookingCoordinator(booking, unit_of_work, practice_phone=settings.practice_phone),
        emergency=EmergencyNotifier(unit_of_work, context, dedup_minutes=settings.emergency_dedup_minutes),
    )
    logger.info(f"Clinic gateway ready with {len(gateway.registry.get_tool_names())} operations")
    return gateway
