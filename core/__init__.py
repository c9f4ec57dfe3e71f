"""
Core Framework for Conversational Use Cases.

This module provides the extensible base classes and interfaces
that all use cases should implement. The layered architecture ensures:

1. Domain Layer - Pure business rules, typed errors and results, no I/O
2. Data Layer - Document stores, repositories and the unit of work
3. Orchestration Layer - The operation registry that wires everything together
4. Session Layer - Per-conversation state with an explicit lifecycle

Each use case follows this pattern for consistency and reusability.
"""

from .domain import (
    DomainError,
    ErrorKind,
    OperationResult,
    ValidationError,
    Validator,
    returns_result,
)
from .data import (
    DocumentRepository,
    DocumentStore,
    DocumentUnitOfWork,
    Repository,
    StorageError,
    UnitOfWork,
)
from .orchestration import ToolDefinition, ToolRegistry
from .session import SessionManager, SessionContext

__all__ = [
    # Domain
    "DomainError",
    "ErrorKind",
    "OperationResult",
    "ValidationError",
    "Validator",
    "returns_result",
    # Data
    "DocumentRepository",
    "DocumentStore",
    "DocumentUnitOfWork",
    "Repository",
    "StorageError",
    "UnitOfWork",
    # Orchestration
    "ToolDefinition",
    "ToolRegistry",
    # Session
    "SessionManager",
    "SessionContext",
]
