"""
Document Store Backends.

Three interchangeable implementations of core.data.DocumentStore:
- InMemoryDocumentStore: tests and demos
- JsonFileDocumentStore: one pretty-printed JSON file per collection
- CosmosDocumentStore: one Cosmos DB item per collection in a single container
"""

import copy
import json
import logging
import os
import tempfile
from typing import Any, Dict, Optional

from azure.cosmos import CosmosClient
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError
from azure.identity import DefaultAzureCredential

from core.data import DocumentStore, StorageError
from shared.store_config import (
    CLINIC_CONTAINER,
    COSMOS_ENDPOINT,
    DATABASE_NAME,
    get_collection_file_name,
)

logger = logging.getLogger(__name__)


def _empty(name: str) -> Dict[str, Any]:
    return {name: []}


class InMemoryDocumentStore(DocumentStore):
    """Keeps documents in a dict. Reads and writes are deep copies."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        super().__init__()
        self._documents: Dict[str, Dict[str, Any]] = copy.deepcopy(documents or {})

    def read_document(self, name: str) -> Dict[str, Any]:
        if name not in self._documents:
            return _empty(name)
        return copy.deepcopy(self._documents[name])

    def write_document(self, name: str, document: Dict[str, Any]) -> None:
        self._documents[name] = copy.deepcopy(document)


class JsonFileDocumentStore(DocumentStore):
    """
    Stores each collection as ``<data_dir>/<name>.json``.

    A missing file reads as an empty collection. Writes go to a temporary
    file that then replaces the target, so a failed write never leaves a
    half-written collection behind.
    """

    def __init__(self, data_dir: str):
        super().__init__()
        self.data_dir = data_dir

    def _path(self, name: str) -> str:
        return os.path.join(self.data_dir, get_collection_file_name(name))

    def read_document(self, name: str) -> Dict[str, Any]:
        path = self._path(name)
        if not os.path.exists(path):
            return _empty(name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {path}: {e}", exc_info=True)
            raise StorageError(f"Could not read collection '{name}'") from e
        if not isinstance(document, dict):
            raise StorageError(f"Collection '{name}' is not a JSON object")
        return document

    def write_document(self, name: str, document: Dict[str, Any]) -> None:
        path = self._path(name)
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error writing {path}: {e}", exc_info=True)
            raise StorageError(f"Could not write collection '{name}'") from e


class CosmosDocumentStore(DocumentStore):
    """
    Azure Cosmos DB-based document store.

    Every collection is one item (``id`` = collection name) in the clinic
    container. Uses DefaultAzureCredential for flexible authentication.
    """

    def __init__(
        self,
        endpoint: str = COSMOS_ENDPOINT,
        database_name: str = DATABASE_NAME,
        container_name: str = CLINIC_CONTAINER[0],
        container: Any = None,
    ):
        """
        Initialize the Cosmos DB store.

        Args:
            endpoint: Cosmos DB endpoint URL
            database_name: Database name
            container_name: Container holding the collection items
            container: Pre-built container client (skips connecting)
        """
        super().__init__()
        self.container_name = container_name
        if container is not None:
            self._container = container
            return

        logger.info("Initializing Cosmos DB connection...")
        self._credential = DefaultAzureCredential(
            exclude_interactive_browser_credential=False,
            exclude_shared_token_cache_credential=False,
        )
        self._client = CosmosClient(endpoint, credential=self._credential)
        self._container = self._client.get_database_client(database_name).get_container_client(container_name)
        logger.info(f"Connected to Cosmos DB: {database_name}/{container_name}")

    def read_document(self, name: str) -> Dict[str, Any]:
        try:
            item = self._container.read_item(item=name, partition_key=name)
        except CosmosResourceNotFoundError:
            return _empty(name)
        except CosmosHttpResponseError as e:
            logger.error(f"Error reading {name} from Cosmos DB: {e}", exc_info=True)
            raise StorageError(f"Could not read collection '{name}'") from e
        return {name: item.get(name) or []}

    def write_document(self, name: str, document: Dict[str, Any]) -> None:
        item = {"id": name, name: document.get(name, [])}
        try:
            self._container.upsert_item(item)
        except CosmosHttpResponseError as e:
            logger.error(f"Error writing {name} to Cosmos DB: {e}", exc_info=True)
            raise StorageError(f"Could not write collection '{name}'") from e


def create_document_store(backend: str, data_dir: str = "./data") -> DocumentStore:
    """Build the configured backend: memory, json or cosmos."""
    backend = (backend or "").strip().lower()
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "json":
        return JsonFileDocumentStore(data_dir)
    if backend == "cosmos":
        return CosmosDocumentStore()
    raise ValueError(f"Unknown store backend: {backend}")
