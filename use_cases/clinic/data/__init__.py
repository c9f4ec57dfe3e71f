"""
Clinic Data Access Layer.

Document store backends and the unit of work that spans every clinic collection.
"""

from .stores import (
    CosmosDocumentStore,
    InMemoryDocumentStore,
    JsonFileDocumentStore,
    create_document_store,
)
from .unit_of_work import ClinicUnitOfWork, unit_of_work_factory

__all__ = [
    "CosmosDocumentStore",
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
    "create_document_store",
    "ClinicUnitOfWork",
    "unit_of_work_factory",
]
