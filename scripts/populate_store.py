"""
Slot Seeding Script for the Clinic Booking service.

Pre-populates the available_slots collection with the practice's standard
day for a range of dates, in whichever backend STORE_BACKEND selects.
Existing slot days are left untouched unless --reset is given.

Usage:
    python scripts/populate_store.py
    python scripts/populate_store.py --start 2025-10-20 --days 30 --reset

Environment:
    STORE_BACKEND - memory, json (default) or cosmos
    DATA_DIR      - Directory for the JSON backend
    COSMOS_ENDPOINT / COSMOS_DATABASE - Cosmos DB overrides
"""

import argparse
import logging
import sys
from datetime import date, timedelta
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import settings
from use_cases.clinic.data import ClinicUnitOfWork, create_document_store
from use_cases.clinic.domain.policies import SchedulingContext

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

logging.getLogger("azure.cosmos").setLevel(logging.WARNING)
logging.getLogger("azure.core").setLevel(logging.WARNING)
logging.getLogger("azure.identity").setLevel(logging.WARNING)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Seed open appointment slots")
    parser.add_argument(
        "--start",
        type=date.fromisoformat,
        default=settings.reference_date + timedelta(days=1),
        help="First date to seed (YYYY-MM-DD), defaults to the day after the reference date",
    )
    parser.add_argument("--days", type=int, default=30, help="Number of days to seed")
    parser.add_argument("--reset", action="store_true", help="Overwrite slot days that already exist")
    return parser.parse_args(argv)


def main(argv=None):
    """Seed slot days into the configured document store."""
    args = parse_args(argv)
    end = args.start + timedelta(days=args.days - 1)

    logger.info("=" * 60)
    logger.info(f"{settings.practice_name} - Slot Seeding Script")
    logger.info("=" * 60)
    logger.info(f"Backend: {settings.store_backend}")
    logger.info(f"Range: {args.start.isoformat()} .. {end.isoformat()}")
    logger.info(f"Reset existing days: {args.reset}")
    logger.info("=" * 60)

    store = create_document_store(settings.store_backend, settings.data_dir)
    context = SchedulingContext(reference_date=settings.reference_date, deployment_year=settings.deployment_year)

    with ClinicUnitOfWork(store, context) as uow:
        written, skipped = uow.seed_standard_days(args.start, end, replace=args.reset)
        uow.commit()

    logger.info(f"COMPLETE: {written} day(s) written, {skipped} existing day(s) kept")


if __name__ == "__main__":
    main()
