"""
Document Store Configuration.

Centralized configuration for the Cosmos DB backend and the logical
collections used across the application, the seeding script and tests.

Environment Variables (optional overrides):
    COSMOS_ENDPOINT - Override the default Cosmos DB endpoint
    COSMOS_DATABASE - Override the default database name
"""

import os

# =============================================================================
# COSMOS DB CONNECTION
# =============================================================================

COSMOS_ENDPOINT = os.getenv(
    "COSMOS_ENDPOINT",
    "https://common-nosql-db.documents.azure.com:443/"
)

DATABASE_NAME = os.getenv(
    "COSMOS_DATABASE",
    "db001"
)

# =============================================================================
# CLINIC COLLECTIONS
# =============================================================================

# All collections live as one item each in a single container
# Format: (container_name, partition_key_path)
CLINIC_CONTAINER = ("Clinic_Documents", "/id")

# Logical collection names, each stored as {"<name>": [...]}
CLINIC_COLLECTIONS = (
    "patients",
    "appointments",
    "available_slots",
    "emergency_alerts",
)

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_collection_file_name(collection: str) -> str:
    """File name used by the JSON backend for a logical collection."""
    if collection not in CLINIC_COLLECTIONS:
        raise ValueError(f"Unknown clinic collection: {collection}")
    return f"{collection}.json"
