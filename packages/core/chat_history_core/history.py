# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Chat message history persisted as one document per session.

The whole ordered message list of a (user, session) pair lives in a single
document: id = session id, partition key = user id. Every write rewrites the
full document. Each instance keeps an in-memory copy of the messages that is
replaced, never merged, on every successful read or write.

Pre-reqs for Cosmos DB:
- database and container should be created in advance
- container should have partition key as /userid
- (optional) container should have TTL enabled for per-item ttl to apply
"""

import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError

from chat_history_core.codec import decode_history, encode_history
from chat_history_core.config import ChatHistoryStorageConfig
from chat_history_core.exceptions import (
    ConcurrencyConflictError,
    DocumentNotFoundError,
    DocumentStoreError,
    InvalidArgumentError,
    PreconditionFailedError,
    StorageFailureError,
)
from chat_history_core.models import ChatMessage
from chat_history_core.storage import DocumentStore

logger = logging.getLogger(__name__)


class ChatMessageHistory:
    """
    Ordered chat history for one (user, session) pair.

    get_messages() is the only reconciliation point with storage: it replaces
    the cached messages with whatever is stored, so instances bound to the
    same session converge on the last committed write.

    Writes are unconditional upserts by default, so the last writer wins and
    a concurrent append made since this instance's last read is overwritten.
    With optimistic_concurrency=True, writes are conditional on the ETag of
    the last read or write and raise ConcurrencyConflictError when the stored
    document changed in between.

    Instances hold no lock; concurrent tasks sharing one instance must
    serialize their calls themselves.
    """

    def __init__(
        self,
        store: DocumentStore,
        database_id: str,
        container_id: str,
        session_id: str,
        user_id: str,
        *,
        ttl_seconds: Optional[int] = None,
        optimistic_concurrency: bool = False,
    ):
        """
        Bind a history to one session. Performs no I/O.

        Args:
            store: Document store shared across histories; not owned by this instance
            database_id: Database holding the container
            container_id: Container partitioned by /userid
            session_id: Session id, stored as the document id
            user_id: User id, stored as the partition key
            ttl_seconds: Optional per-item time to live written with every document
            optimistic_concurrency: Make writes conditional on the last seen ETag

        Raises:
            InvalidArgumentError: If the store is None or any identifier is empty
        """
        if store is None:
            raise InvalidArgumentError("document store cannot be None")
        for value in (database_id, container_id, session_id, user_id):
            if not isinstance(value, str) or not value:
                raise InvalidArgumentError(
                    "database_id, container_id, session_id and user_id are mandatory"
                )
        if ttl_seconds is not None and (ttl_seconds == 0 or ttl_seconds < -1):
            raise InvalidArgumentError("ttl_seconds must be positive or -1")

        self._database_id = database_id
        self._container_id = container_id
        self._session_id = session_id
        self._user_id = user_id
        self._ttl_seconds = ttl_seconds
        self._optimistic_concurrency = optimistic_concurrency

        self._container = store.get_container(database_id, container_id)
        self._messages: List[ChatMessage] = []
        self._etag: Optional[str] = None

    @property
    def database_id(self) -> str:
        return self._database_id

    @property
    def container_id(self) -> str:
        return self._container_id

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def cached_messages(self) -> List[ChatMessage]:
        """Copy of the in-memory messages, without touching storage."""
        return list(self._messages)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(database_id={self._database_id!r}, "
            f"container_id={self._container_id!r}, session_id={self._session_id!r}, "
            f"user_id={self._user_id!r})"
        )

    async def add_message(self, message: ChatMessage) -> None:
        """
        Append a message and persist the whole history.

        The message is appended to the in-memory cache before the write. If
        the write fails the cache keeps the message while storage does not;
        call get_messages() before trusting the cache again.

        Raises:
            InvalidArgumentError: If message is None or not a ChatMessage
            StorageFailureError: If the write fails
        """
        _check_message(message)
        self._messages.append(message)
        await self._write(list(self._messages), "add_message")

    async def add_messages(self, messages: Iterable[ChatMessage]) -> None:
        """Append several messages with a single write."""
        if messages is None:
            raise InvalidArgumentError("messages cannot be None")
        new_messages = list(messages)
        for message in new_messages:
            _check_message(message)
        self._messages.extend(new_messages)
        await self._write(list(self._messages), "add_messages")

    async def add_user_message(self, text: str) -> None:
        await self.add_message(ChatMessage.human(text))

    async def add_ai_message(self, text: str) -> None:
        await self.add_message(ChatMessage.ai(text))

    async def get_messages(self) -> List[ChatMessage]:
        """
        Read the history from storage and replace the in-memory cache with it.

        A missing document is an empty history, not an error.

        Returns:
            The stored messages in order

        Raises:
            StorageFailureError: If the read fails or the stored document is
                malformed; the cache is left untouched
        """
        try:
            document = await self._container.read_item(self._user_id, self._session_id)
        except DocumentNotFoundError:
            logger.debug(f"No history stored for session {self._session_id}")
            self._messages = []
            self._etag = None
            return []
        except DocumentStoreError as e:
            raise self._storage_failure(
                "get_messages",
                f"failed to read chat history for session {self._session_id}",
                e,
            ) from e

        try:
            messages = decode_history(document)
        except ValidationError as e:
            raise self._storage_failure(
                "get_messages", "failed to decode chat history", e
            ) from e

        self._messages = messages
        self._etag = document.get("_etag")
        logger.debug(
            f"Loaded {len(messages)} messages for session {self._session_id}"
        )
        return list(messages)

    async def set_messages(self, messages: Optional[Iterable[ChatMessage]]) -> None:
        """
        Replace the whole history.

        Clears the stored document, then writes the new messages if there are
        any. None is treated as an empty list. The cache becomes a copy of
        the given messages once the write succeeds.

        Raises:
            InvalidArgumentError: If any item is not a ChatMessage
            StorageFailureError: If clearing or writing fails
        """
        new_messages = list(messages) if messages is not None else []
        for message in new_messages:
            _check_message(message)

        try:
            await self.clear()
        except StorageFailureError as e:
            raise StorageFailureError(
                f"failed to clear existing messages: {e}",
                operation="set_messages",
                user_id=self._user_id,
                session_id=self._session_id,
            ) from e

        if not new_messages:
            return

        await self._write(new_messages, "set_messages")
        self._messages = list(new_messages)

    async def clear(self) -> None:
        """
        Empty the cache and delete the stored document.

        Deleting a document that does not exist succeeds. The cache is reset
        even when the delete fails.

        Raises:
            StorageFailureError: If the delete fails for any other reason
        """
        self._messages = []
        self._etag = None

        try:
            await self._container.delete_item(self._user_id, self._session_id)
        except DocumentNotFoundError:
            # Item didn't exist, which is fine for a clear
            logger.debug(f"Nothing to clear for session {self._session_id}")
        except DocumentStoreError as e:
            raise self._storage_failure("clear", "failed to clear chat history", e) from e

    async def _write(self, messages: List[ChatMessage], operation: str) -> None:
        body = encode_history(
            self._session_id, self._user_id, messages, ttl=self._ttl_seconds
        )

        try:
            if not self._optimistic_concurrency:
                stored = await self._container.upsert_item(self._user_id, body)
            elif self._etag is None:
                stored = await self._container.create_item(self._user_id, body)
            else:
                stored = await self._container.upsert_item(
                    self._user_id, body, etag=self._etag
                )
        except PreconditionFailedError as e:
            raise self._storage_failure(
                operation,
                "chat history was modified concurrently",
                e,
                error_class=ConcurrencyConflictError,
            ) from e
        except DocumentNotFoundError as e:
            if self._optimistic_concurrency and self._etag is not None:
                raise self._storage_failure(
                    operation,
                    "chat history was deleted concurrently",
                    e,
                    error_class=ConcurrencyConflictError,
                ) from e
            raise self._storage_failure(
                operation, "failed to upsert chat history", e
            ) from e
        except DocumentStoreError as e:
            raise self._storage_failure(
                operation, "failed to upsert chat history", e
            ) from e

        self._etag = stored.get("_etag") if stored else None
        logger.debug(
            f"Stored {len(messages)} messages for session {self._session_id}"
        )

    def _storage_failure(
        self,
        operation: str,
        message: str,
        error: Exception,
        error_class: type = StorageFailureError,
    ) -> StorageFailureError:
        logger.error(
            f"{operation}: {message} (user_id={self._user_id}, "
            f"session_id={self._session_id}): {error}",
            exc_info=True,
        )
        return error_class(
            f"{message}: {error}",
            operation=operation,
            user_id=self._user_id,
            session_id=self._session_id,
        )


def _check_message(message) -> None:
    if message is None:
        raise InvalidArgumentError("message cannot be None")
    if not isinstance(message, ChatMessage):
        raise InvalidArgumentError(
            f"expected ChatMessage, got {type(message).__name__}"
        )


def open_chat_history(
    store: DocumentStore,
    storage_config: ChatHistoryStorageConfig,
    session_id: str,
    user_id: str,
) -> ChatMessageHistory:
    """
    Build a history for a session using database, container, TTL and
    concurrency settings from configuration.
    """
    return ChatMessageHistory(
        store,
        storage_config.database_name or "",
        storage_config.container_name or "",
        session_id,
        user_id,
        ttl_seconds=storage_config.ttl_seconds,
        optimistic_concurrency=storage_config.optimistic_concurrency,
    )
