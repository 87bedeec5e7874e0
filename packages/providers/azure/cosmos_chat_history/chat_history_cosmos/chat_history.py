# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Chat message history stored in Azure Cosmos DB.
"""

from typing import Optional

from azure.cosmos.aio import CosmosClient

from chat_history_core.exceptions import InvalidArgumentError
from chat_history_core.history import ChatMessageHistory
from chat_history_cosmos.cosmos_store import CosmosDocumentStore


class CosmosDBChatMessageHistory(ChatMessageHistory):
    """
    ChatMessageHistory bound directly to a CosmosClient.

    The client is borrowed, not owned: share one client across histories and
    close it at shutdown. Construction resolves local database and container
    proxies only, so it succeeds even if they do not exist yet; the first
    operation surfaces that failure.

    Pre-reqs:
    - database and container should be created in advance
      (see CosmosDocumentContainer.ensure_exists)
    - container should have partition key as /userid
    - (optional) container should have TTL set on either the container or item level
    """

    def __init__(
        self,
        client: CosmosClient,
        database_id: str,
        container_id: str,
        session_id: str,
        user_id: str,
        *,
        ttl_seconds: Optional[int] = None,
        optimistic_concurrency: bool = False,
    ):
        if client is None:
            raise InvalidArgumentError("Cosmos DB client cannot be None")
        super().__init__(
            CosmosDocumentStore(client),
            database_id,
            container_id,
            session_id,
            user_id,
            ttl_seconds=ttl_seconds,
            optimistic_concurrency=optimistic_concurrency,
        )
