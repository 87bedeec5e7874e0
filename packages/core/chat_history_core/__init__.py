"""Chat history core library."""

__version__ = "0.1.0"

from chat_history_core.exceptions import (
    ChatHistoryError,
    ConcurrencyConflictError,
    DocumentNotFoundError,
    DocumentStoreError,
    InvalidArgumentError,
    PreconditionFailedError,
    StorageFailureError,
)
from chat_history_core.history import ChatMessageHistory, open_chat_history
from chat_history_core.memory import InMemoryDocumentStore
from chat_history_core.models import ChatMessage, ChatMessageType
from chat_history_core.storage import (
    DocumentContainer,
    DocumentStore,
    create_document_store,
)

__all__ = [
    "ChatHistoryError",
    "ChatMessage",
    "ChatMessageHistory",
    "ChatMessageType",
    "ConcurrencyConflictError",
    "DocumentContainer",
    "DocumentNotFoundError",
    "DocumentStore",
    "DocumentStoreError",
    "InMemoryDocumentStore",
    "InvalidArgumentError",
    "PreconditionFailedError",
    "StorageFailureError",
    "create_document_store",
    "open_chat_history",
]
