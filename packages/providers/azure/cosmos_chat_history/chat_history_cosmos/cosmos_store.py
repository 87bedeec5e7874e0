# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Azure Cosmos DB document store for chat histories.
Uses the native async client; errors are translated to chat history
document store errors.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from azure.core import MatchConditions
from azure.core.exceptions import AzureError
from azure.cosmos import PartitionKey, exceptions
from azure.cosmos.aio import CosmosClient
from azure.identity.aio import DefaultAzureCredential

from chat_history_core.config import ChatHistoryStorageConfig
from chat_history_core.exceptions import (
    DocumentNotFoundError,
    DocumentStoreError,
    PreconditionFailedError,
)
from chat_history_core.models import PARTITION_KEY_FIELD, PARTITION_KEY_PATH
from chat_history_core.storage import DocumentContainer, DocumentStore

logger = logging.getLogger(__name__)


@contextmanager
def _translate_cosmos_errors(action: str, item_id: str):
    """Map Cosmos DB and Azure Core exceptions to document store errors."""
    try:
        yield
    except exceptions.CosmosResourceNotFoundError as e:
        raise DocumentNotFoundError(
            f"Document with id '{item_id}' not found"
        ) from e
    except (
        exceptions.CosmosAccessConditionFailedError,
        exceptions.CosmosResourceExistsError,
    ) as e:
        raise PreconditionFailedError(
            f"Failed to {action} document '{item_id}': {e.http_error_message}",
            status_code=e.status_code,
        ) from e
    except exceptions.CosmosHttpResponseError as e:
        raise DocumentStoreError(
            f"Failed to {action} document '{item_id}' in Cosmos DB: {e.http_error_message}",
            status_code=e.status_code,
        ) from e
    except AzureError as e:
        raise DocumentStoreError(
            f"Failed to {action} document '{item_id}' in Cosmos DB: {e}"
        ) from e


class CosmosDocumentContainer(DocumentContainer):
    """A Cosmos DB container addressed by (partition key, id)."""

    partition_key_path = PARTITION_KEY_PATH

    def __init__(
        self,
        client: CosmosClient,
        database_id: str,
        container_id: str,
    ):
        self.database_id = database_id
        self.container_id = container_id
        self._client = client
        # Proxies are local handles; nothing is sent until the first call
        self._container = client.get_database_client(database_id).get_container_client(
            container_id
        )

    def _check_partition_key(self, partition_key: str, body: Dict[str, Any]) -> str:
        item_id = body.get("id", "")
        if body.get(PARTITION_KEY_FIELD) != partition_key:
            raise DocumentStoreError(
                f"Partition key '{partition_key}' does not match document field '{PARTITION_KEY_FIELD}'",
                status_code=400,
            )
        return item_id

    async def upsert_item(
        self, partition_key: str, body: Dict[str, Any], *, etag: Optional[str] = None
    ) -> Dict[str, Any]:
        item_id = self._check_partition_key(partition_key, body)
        with _translate_cosmos_errors("upsert", item_id):
            if etag is None:
                result = await self._container.upsert_item(body)
            else:
                result = await self._container.upsert_item(
                    body, etag=etag, match_condition=MatchConditions.IfNotModified
                )
        return dict(result)

    async def create_item(
        self, partition_key: str, body: Dict[str, Any]
    ) -> Dict[str, Any]:
        item_id = self._check_partition_key(partition_key, body)
        with _translate_cosmos_errors("create", item_id):
            result = await self._container.create_item(body)
        return dict(result)

    async def read_item(self, partition_key: str, item_id: str) -> Dict[str, Any]:
        with _translate_cosmos_errors("read", item_id):
            result = await self._container.read_item(
                item=item_id, partition_key=partition_key
            )
        return dict(result)

    async def delete_item(self, partition_key: str, item_id: str) -> None:
        with _translate_cosmos_errors("delete", item_id):
            await self._container.delete_item(item=item_id, partition_key=partition_key)

    async def ensure_exists(self, default_ttl: Optional[int] = None) -> None:
        """
        Create the database and container if they don't exist.

        Never called implicitly; histories expect a provisioned container.

        Args:
            default_ttl: Container default TTL in seconds. -1 enables per-item
                ttl without a default expiry.
        """
        with _translate_cosmos_errors("provision", self.container_id):
            database = await self._client.create_database_if_not_exists(
                id=self.database_id
            )
            kwargs: Dict[str, Any] = {}
            if default_ttl is not None:
                kwargs["default_ttl"] = default_ttl
            await database.create_container_if_not_exists(
                id=self.container_id,
                partition_key=PartitionKey(path=self.partition_key_path),
                **kwargs,
            )
        logger.info(
            f"Cosmos DB container ready: database={self.database_id}, "
            f"container={self.container_id}, partition_key={self.partition_key_path}"
        )


class CosmosDocumentStore(DocumentStore):
    """
    Document store over an async CosmosClient.

    The client is shared by every container handed out. When this store
    created the client (from_config), close() closes it together with the
    Azure AD credential it was built with, if any.
    """

    def __init__(
        self,
        client: CosmosClient,
        *,
        owns_client: bool = False,
        credential: Optional[DefaultAzureCredential] = None,
    ):
        if client is None:
            raise ValueError("Cosmos DB client cannot be None")
        self.client = client
        self._owns_client = owns_client
        self._credential = credential

    @classmethod
    async def from_config(
        cls, storage_config: ChatHistoryStorageConfig
    ) -> "CosmosDocumentStore":
        """
        Create a store with its own client from configuration.

        With auth_method "azure_ad" the store also creates and owns a
        DefaultAzureCredential; otherwise the api key is used.

        Raises:
            ValueError: If the endpoint or credentials are not configured
        """
        if not storage_config.endpoint:
            raise ValueError(
                "Cosmos DB endpoint not configured. "
                "Set endpoint_env in config.yaml chat_history section."
            )

        owned_credential = None
        if storage_config.auth_method == "azure_ad":
            owned_credential = DefaultAzureCredential()
            credential = owned_credential
        elif storage_config.api_key:
            credential = storage_config.api_key
        else:
            raise ValueError(
                "Cosmos DB requires either api_key or auth_method='azure_ad'"
            )

        client = CosmosClient(storage_config.endpoint, credential=credential)
        logger.info(
            f"CosmosDocumentStore initialized: endpoint={storage_config.endpoint}, "
            f"auth_method={storage_config.auth_method}"
        )
        return cls(client, owns_client=True, credential=owned_credential)

    def get_container(
        self, database_id: str, container_id: str
    ) -> CosmosDocumentContainer:
        return CosmosDocumentContainer(self.client, database_id, container_id)

    async def close(self) -> None:
        """Close the Cosmos client and credential if this store owns them."""
        if self._owns_client and self.client is not None:
            await self.client.close()
            self.client = None
        if self._credential is not None:
            await self._credential.close()
            self._credential = None
