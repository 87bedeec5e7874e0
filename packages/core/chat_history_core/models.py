# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Data models for chat message history.

ChatMessage is the in-memory representation handed to and returned from a
chat history. StoredMessage and ConversationDocument describe the persisted
document, one per (user, session) pair.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ChatMessageType(str, Enum):
    """Role of a conversational turn. The value is the stored role tag."""

    HUMAN = "human"
    AI = "ai"
    SYSTEM = "system"
    GENERIC = "generic"
    TOOL = "tool"
    FUNCTION = "function"


KNOWN_ROLE_TAGS = frozenset(t.value for t in ChatMessageType)

# Session documents are partitioned by the user id field
PARTITION_KEY_FIELD = "userid"
PARTITION_KEY_PATH = "/" + PARTITION_KEY_FIELD


class ChatMessage(BaseModel):
    """
    One conversational turn.

    Messages are immutable and have no identity of their own; their position
    in the history is their only ordering.

    Optional fields:
    - role: free-form role name, only valid on generic messages
    - name: function or tool name (function messages)
    - tool_call_id: id of the tool call this message answers (tool messages)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ChatMessageType = Field(..., description="Role of the message author")
    content: str = Field("", description="Message text")
    role: Optional[str] = Field(
        None, description="Custom role name for generic messages"
    )
    name: Optional[str] = Field(None, description="Function or tool name")
    tool_call_id: Optional[str] = Field(
        None, description="Tool call this message responds to"
    )

    @field_validator("role")
    @classmethod
    def _normalize_role(cls, role: Optional[str]) -> Optional[str]:
        # "generic" and "" are stored as the plain generic tag
        if role in ("", ChatMessageType.GENERIC.value):
            return None
        return role

    @model_validator(mode="after")
    def _check_role(self) -> "ChatMessage":
        if self.role is None:
            return self
        if self.type is not ChatMessageType.GENERIC:
            raise ValueError("role can only be set on generic messages")
        if self.role in KNOWN_ROLE_TAGS:
            raise ValueError(
                f"generic role '{self.role}' collides with a built-in message type"
            )
        return self

    @classmethod
    def human(cls, content: str) -> "ChatMessage":
        return cls(type=ChatMessageType.HUMAN, content=content)

    @classmethod
    def ai(cls, content: str) -> "ChatMessage":
        return cls(type=ChatMessageType.AI, content=content)

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(type=ChatMessageType.SYSTEM, content=content)

    @classmethod
    def generic(cls, role: str, content: str) -> "ChatMessage":
        return cls(type=ChatMessageType.GENERIC, role=role, content=content)

    @classmethod
    def tool(cls, content: str, tool_call_id: Optional[str] = None) -> "ChatMessage":
        return cls(type=ChatMessageType.TOOL, content=content, tool_call_id=tool_call_id)

    @classmethod
    def function(cls, name: str, content: str) -> "ChatMessage":
        return cls(type=ChatMessageType.FUNCTION, name=name, content=content)


class StoredMessage(BaseModel):
    """Storage-neutral form of a message: a role tag plus text."""

    model_config = ConfigDict(extra="ignore")

    role: str
    content: str = ""
    name: Optional[str] = None
    tool_call_id: Optional[str] = None


class ConversationDocument(BaseModel):
    """
    The persisted document for one session.

    id is the session id and doubles as the document key; userid is the user
    id and the partition key. Fields added by the store (Cosmos system
    properties such as _rid, _etag, _ts) or by newer writers are ignored.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "session_20250115103000",
                "userid": "user123",
                "messages": [
                    {"role": "human", "content": "Hello"},
                    {"role": "ai", "content": "Hi there"},
                ],
            }
        },
    )

    id: str = Field(..., description="Session id (document key)")
    userid: str = Field(..., description="User id (partition key)")
    messages: List[StoredMessage] = Field(default_factory=list)
    ttl: Optional[int] = Field(
        None, description="Per-item time to live in seconds"
    )
