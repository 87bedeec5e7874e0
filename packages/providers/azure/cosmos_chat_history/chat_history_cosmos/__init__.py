# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""Azure Cosmos DB provider for chat history storage."""

from chat_history_cosmos.chat_history import CosmosDBChatMessageHistory
from chat_history_cosmos.cosmos_store import (
    CosmosDocumentContainer,
    CosmosDocumentStore,
)

__all__ = [
    "CosmosDBChatMessageHistory",
    "CosmosDocumentContainer",
    "CosmosDocumentStore",
]
