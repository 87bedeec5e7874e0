# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Process-local document store.

Behaves like a Cosmos DB container for the operations chat histories use:
documents are partitioned, every write issues a fresh _etag, and missing
documents raise DocumentNotFoundError. Useful for development and tests.
"""

import copy
import logging
import uuid
from typing import Any, Dict, Optional, Tuple

from chat_history_core.config import ChatHistoryStorageConfig
from chat_history_core.exceptions import (
    DocumentNotFoundError,
    DocumentStoreError,
    PreconditionFailedError,
)
from chat_history_core.models import PARTITION_KEY_FIELD
from chat_history_core.storage import DocumentContainer, DocumentStore

logger = logging.getLogger(__name__)


class InMemoryDocumentContainer(DocumentContainer):
    """In-memory container. Storage: {partition_key: {id: document}}."""

    partition_key_field = PARTITION_KEY_FIELD

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _check_body(self, partition_key: str, body: Dict[str, Any]) -> str:
        doc_id = body.get("id")
        if not doc_id:
            raise DocumentStoreError("Document must have a non-empty 'id'", status_code=400)
        if body.get(self.partition_key_field) != partition_key:
            raise DocumentStoreError(
                f"Partition key '{partition_key}' does not match document field "
                f"'{self.partition_key_field}'",
                status_code=400,
            )
        return doc_id

    def _store(self, partition_key: str, doc_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        document = copy.deepcopy(body)
        document["_etag"] = f'"{uuid.uuid4()}"'
        self._data.setdefault(partition_key, {})[doc_id] = document
        return copy.deepcopy(document)

    async def upsert_item(
        self, partition_key: str, body: Dict[str, Any], *, etag: Optional[str] = None
    ) -> Dict[str, Any]:
        doc_id = self._check_body(partition_key, body)
        if etag is not None:
            current = self._data.get(partition_key, {}).get(doc_id)
            if current is None or current["_etag"] != etag:
                raise PreconditionFailedError(
                    f"Document with id '{doc_id}' was modified concurrently",
                    status_code=412,
                )
        return self._store(partition_key, doc_id, body)

    async def create_item(
        self, partition_key: str, body: Dict[str, Any]
    ) -> Dict[str, Any]:
        doc_id = self._check_body(partition_key, body)
        if doc_id in self._data.get(partition_key, {}):
            raise PreconditionFailedError(
                f"Document with id '{doc_id}' already exists", status_code=409
            )
        return self._store(partition_key, doc_id, body)

    async def read_item(self, partition_key: str, item_id: str) -> Dict[str, Any]:
        document = self._data.get(partition_key, {}).get(item_id)
        if document is None:
            raise DocumentNotFoundError(f"Document with id '{item_id}' not found")
        # Return a copy to prevent mutation
        return copy.deepcopy(document)

    async def delete_item(self, partition_key: str, item_id: str) -> None:
        partition = self._data.get(partition_key, {})
        if item_id not in partition:
            raise DocumentNotFoundError(f"Document with id '{item_id}' not found")

        del partition[item_id]

        # Clean up empty partitions
        if not partition:
            del self._data[partition_key]

    def get_all_documents(self) -> list:
        """Return copies of all documents (for inspection in tests)."""
        return [
            copy.deepcopy(doc)
            for partition in self._data.values()
            for doc in partition.values()
        ]


class InMemoryDocumentStore(DocumentStore):
    """In-memory document store; containers are created on first access."""

    def __init__(self):
        self._containers: Dict[Tuple[str, str], InMemoryDocumentContainer] = {}

    @classmethod
    async def from_config(
        cls, storage_config: ChatHistoryStorageConfig
    ) -> "InMemoryDocumentStore":
        return cls()

    def get_container(
        self, database_id: str, container_id: str
    ) -> InMemoryDocumentContainer:
        key = (database_id, container_id)
        if key not in self._containers:
            logger.debug(f"Creating in-memory container {database_id}/{container_id}")
            self._containers[key] = InMemoryDocumentContainer()
        return self._containers[key]

    async def close(self) -> None:
        self._containers.clear()
