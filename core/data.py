"""
Data Layer Base Classes.

The data layer provides the Repository pattern for data access.
This abstracts away the specific data store (JSON files, Cosmos DB, memory)
and provides a clean interface for the domain layer.

Key principles:
- A DocumentStore only reads and writes whole named documents
- Repositories hold one collection in memory and return domain objects
- A UnitOfWork loads the repositories, lets the caller mutate them, and
  writes back only what changed on commit
- Support for different backends via dependency injection
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

# Type variable for entity types
T = TypeVar("T")


class StorageError(Exception):
    """Raised when a backing store cannot be read or written."""


# =============================================================================
# DOCUMENT STORE
# =============================================================================

class DocumentStore(ABC):
    """
    Abstract whole-document storage.

    Each logical collection is kept as a single document shaped
    ``{"<name>": [...]}``. Implementations raise StorageError for anything
    other than a missing document, which reads as an empty collection.

    The store owns the lock that serializes units of work over it.
    """

    def __init__(self):
        self.lock = threading.RLock()

    @abstractmethod
    def read_document(self, name: str) -> Dict[str, Any]:
        """
        Read a named document.

        Args:
            name: Collection name (e.g. "patients")

        Returns:
            The document, or ``{name: []}`` if it does not exist yet
        """
        pass

    @abstractmethod
    def write_document(self, name: str, document: Dict[str, Any]) -> None:
        """Replace a named document."""
        pass


# =============================================================================
# REPOSITORIES
# =============================================================================

class Repository(ABC, Generic[T]):
    """
    Abstract base class for repositories.

    A Repository provides data access methods for a specific entity type.
    It abstracts the underlying data store and provides a consistent interface.

    Type parameter T represents the entity type this repository manages.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """
        Get an entity by its ID.

        Args:
            id: The entity's unique identifier

        Returns:
            The entity if found, None otherwise
        """
        pass

    @abstractmethod
    def find(self, predicate: Optional[Callable[[T], bool]] = None) -> List[T]:
        """
        Find entities matching a predicate (all entities when None).
        """
        pass

    @abstractmethod
    def add(self, entity: T) -> T:
        """
        Add a new entity.

        Args:
            entity: The entity to add

        Returns:
            The stored entity
        """
        pass


class DocumentRepository(Repository[T]):
    """
    Repository over one whole-document collection.

    Subclasses set ``collection`` (the document name), ``entity_type`` (a
    class with ``from_dict``/``to_dict``) and, if the key is not ``id``,
    ``id_attr``. Every mutation must go through ``mark_dirty`` so the unit
    of work knows to write the collection back.
    """

    collection: str = ""
    entity_type: Type[Any]
    id_attr: str = "id"

    def __init__(self, entities: Optional[List[T]] = None):
        self._entities: List[T] = list(entities or [])
        self._dirty = False

    @classmethod
    def from_document(cls, document: Dict[str, Any], **kwargs):
        items = document.get(cls.collection) or []
        return cls([cls.entity_type.from_dict(item) for item in items], **kwargs)

    def to_document(self) -> Dict[str, Any]:
        return {self.collection: [entity.to_dict() for entity in self._entities]}

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self):
        self._dirty = True

    def get_by_id(self, id: str) -> Optional[T]:
        for entity in self._entities:
            if getattr(entity, self.id_attr) == id:
                return entity
        return None

    def find(self, predicate: Optional[Callable[[T], bool]] = None) -> List[T]:
        if predicate is None:
            return list(self._entities)
        return [entity for entity in self._entities if predicate(entity)]

    def add(self, entity: T) -> T:
        self._entities.append(entity)
        self.mark_dirty()
        return entity

    def all(self) -> List[T]:
        return list(self._entities)

    def __len__(self) -> int:
        return len(self._entities)


# =============================================================================
# UNIT OF WORK PATTERN
# =============================================================================

class UnitOfWork(ABC):
    """
    Abstract base class for Unit of Work pattern.

    Provides transactional semantics across multiple repository operations.
    Use when you need to ensure multiple operations succeed or fail together.
    """

    @abstractmethod
    def __enter__(self):
        """Begin the unit of work."""
        pass

    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb):
        """End the unit of work, committing or rolling back."""
        pass

    @abstractmethod
    def commit(self):
        """Commit all changes."""
        pass

    @abstractmethod
    def rollback(self):
        """Rollback all changes."""
        pass


class DocumentUnitOfWork(UnitOfWork):
    """
    Unit of work over a DocumentStore.

    Entering acquires the store's re-entrant lock and loads every repository
    named in ``repositories`` (attribute name -> DocumentRepository class).
    ``commit()`` serializes all dirty collections first and then writes
    them; leaving the block without committing discards the loaded copies.

    Example:
        class ShopUnitOfWork(DocumentUnitOfWork):
            repositories = {"orders": OrderRepository}

        with ShopUnitOfWork(store) as uow:
            uow.orders.add(order)
            uow.commit()
    """

    repositories: Dict[str, Type[DocumentRepository]] = {}

    def __init__(self, store: DocumentStore, **repository_kwargs: Any):
        self._store = store
        self._repository_kwargs = repository_kwargs
        self._loaded: Dict[str, DocumentRepository] = {}
        self._committed = False

    def __enter__(self):
        self._store.lock.acquire()
        try:
            self._load()
        except BaseException:
            self._store.lock.release()
            raise
        self._committed = False
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if not self._committed:
                self.rollback()
        finally:
            self._store.lock.release()
        return False

    def __getattr__(self, name: str) -> DocumentRepository:
        loaded = self.__dict__.get("_loaded") or {}
        if name in loaded:
            return loaded[name]
        raise AttributeError(name)

    def _load(self):
        self._loaded = {}
        for attr, repository_cls in self.repositories.items():
            document = self._store.read_document(repository_cls.collection)
            self._loaded[attr] = repository_cls.from_document(document, **self._repository_kwargs)

    def commit(self):
        dirty = {
            repo.collection: repo.to_document()
            for repo in self._loaded.values()
            if repo.is_dirty
        }
        for name, document in dirty.items():
            self._store.write_document(name, document)
        if dirty:
            logger.debug(f"Committed collections: {', '.join(dirty)}")
        self._committed = True

    def rollback(self):
        if any(repo.is_dirty for repo in self._loaded.values()):
            logger.debug("Discarding uncommitted changes")
        self._loaded = {}
