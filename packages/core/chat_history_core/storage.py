# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Document store interface and backend factory.

A document store is a partitioned document backend addressed by
(partition key, document id). Chat histories only need upsert, point read
and point delete against it, plus a conditional create for optimistic
concurrency.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from chat_history_core.config import ChatHistoryStorageConfig

logger = logging.getLogger(__name__)


class DocumentContainer(ABC):
    """
    One container (collection) of a document store.

    Every returned document carries the store-assigned "_etag".

    Raises, for every operation:
        DocumentNotFoundError: The addressed document does not exist
        PreconditionFailedError: A conditional write lost
        DocumentStoreError: Any other failure
    """

    @abstractmethod
    async def upsert_item(
        self, partition_key: str, body: Dict[str, Any], *, etag: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create the document or fully replace it.

        Args:
            partition_key: Partition key value; must match the body's partition key field
            body: The full document, including its "id"
            etag: If given, only replace a document whose current ETag matches

        Returns:
            The stored document
        """
        pass

    @abstractmethod
    async def create_item(
        self, partition_key: str, body: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Create the document, failing with PreconditionFailedError if it exists.

        Returns:
            The stored document
        """
        pass

    @abstractmethod
    async def read_item(self, partition_key: str, item_id: str) -> Dict[str, Any]:
        """Point read of a single document."""
        pass

    @abstractmethod
    async def delete_item(self, partition_key: str, item_id: str) -> None:
        """Point delete of a single document."""
        pass


class DocumentStore(ABC):
    """A document store account holding databases of containers."""

    @abstractmethod
    def get_container(self, database_id: str, container_id: str) -> DocumentContainer:
        """
        Resolve a container handle.

        Must not perform I/O: the database and container are not required to
        exist until the first operation on the returned handle.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the store and release resources it owns."""
        pass


async def create_document_store(
    storage_config: Optional[ChatHistoryStorageConfig],
) -> DocumentStore:
    """
    Create the appropriate document store from configuration.

    Args:
        storage_config: Chat history storage configuration

    Returns:
        Document store instance

    Raises:
        ValueError: If configuration is missing, disabled or names an unknown backend
    """
    if storage_config is None:
        raise ValueError("No chat_history configuration provided")

    if not storage_config.enabled:
        raise ValueError("Chat history storage is not enabled in configuration")

    backend_type = storage_config.type

    # Map backend types to modules
    backend_map = {
        "cosmos": "chat_history_cosmos.cosmos_store.CosmosDocumentStore",
        "memory": "chat_history_core.memory.InMemoryDocumentStore",
    }

    if backend_type not in backend_map:
        raise ValueError(f"Unknown storage backend: {backend_type}")

    module_path, class_name = backend_map[backend_type].rsplit(".", 1)
    module = importlib.import_module(module_path)
    backend_class = getattr(module, class_name)

    logger.info(f"Creating {backend_type} document store ({class_name})")
    return await backend_class.from_config(storage_config)
