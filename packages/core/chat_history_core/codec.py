# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Conversion between ChatMessage values and the persisted session document.
"""

from typing import Any, Dict, Iterable, List, Optional

from chat_history_core.models import (
    KNOWN_ROLE_TAGS,
    ChatMessage,
    ChatMessageType,
    ConversationDocument,
    StoredMessage,
)


def message_to_stored(message: ChatMessage) -> StoredMessage:
    """Convert a ChatMessage to its storage-neutral form."""
    role = message.type.value
    # Generic messages keep their custom role name as the tag
    if message.type is ChatMessageType.GENERIC and message.role:
        role = message.role
    return StoredMessage(
        role=role,
        content=message.content,
        name=message.name,
        tool_call_id=message.tool_call_id,
    )


def stored_to_message(stored: StoredMessage) -> ChatMessage:
    """
    Convert a stored message back to a ChatMessage.

    Unknown role tags are not an error: they come back as generic messages
    carrying the tag as their role, so they re-encode to the same tag.
    """
    if stored.role in KNOWN_ROLE_TAGS:
        return ChatMessage(
            type=ChatMessageType(stored.role),
            content=stored.content,
            name=stored.name,
            tool_call_id=stored.tool_call_id,
        )
    return ChatMessage(
        type=ChatMessageType.GENERIC,
        role=stored.role,
        content=stored.content,
        name=stored.name,
        tool_call_id=stored.tool_call_id,
    )


def encode_history(
    session_id: str,
    user_id: str,
    messages: Iterable[ChatMessage],
    ttl: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Build the full session document for a message sequence.

    Args:
        session_id: Document id
        user_id: Partition key value
        messages: Ordered messages to persist
        ttl: Optional per-item time to live in seconds

    Returns:
        JSON-compatible document dict
    """
    document = ConversationDocument(
        id=session_id,
        userid=user_id,
        messages=[message_to_stored(m) for m in messages],
        ttl=ttl,
    )
    return document.model_dump(mode="json", exclude_none=True)


def decode_history(document: Dict[str, Any]) -> List[ChatMessage]:
    """
    Decode a stored session document into ordered ChatMessages.

    Raises:
        pydantic.ValidationError: If the document is malformed
    """
    parsed = ConversationDocument.model_validate(document)
    return [stored_to_message(m) for m in parsed.messages]
