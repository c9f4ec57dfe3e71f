"""
Shared modules for the Clinic Booking application.

This package contains shared configuration and utilities used across the application.
"""

from shared.store_config import (
    COSMOS_ENDPOINT,
    DATABASE_NAME,
    CLINIC_CONTAINER,
    CLINIC_COLLECTIONS,
)

__all__ = [
    "COSMOS_ENDPOINT",
    "DATABASE_NAME",
    "CLINIC_CONTAINER",
    "CLINIC_COLLECTIONS",
]
