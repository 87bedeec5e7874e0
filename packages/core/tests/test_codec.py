# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""Tests for ChatMessage validation and the session document codec."""

import pytest
from pydantic import ValidationError

from chat_history_core.codec import (
    decode_history,
    encode_history,
    message_to_stored,
    stored_to_message,
)
from chat_history_core.models import ChatMessage, ChatMessageType, StoredMessage


class TestChatMessage:
    """Tests for ChatMessage construction."""

    def test_constructors_set_type(self):
        assert ChatMessage.human("a").type is ChatMessageType.HUMAN
        assert ChatMessage.ai("a").type is ChatMessageType.AI
        assert ChatMessage.system("a").type is ChatMessageType.SYSTEM
        assert ChatMessage.generic("critic", "a").type is ChatMessageType.GENERIC
        assert ChatMessage.tool("a").type is ChatMessageType.TOOL
        assert ChatMessage.function("f", "a").type is ChatMessageType.FUNCTION

    def test_messages_are_immutable(self):
        message = ChatMessage.human("Hello")
        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_role_only_on_generic(self):
        with pytest.raises(ValidationError, match="generic"):
            ChatMessage(type=ChatMessageType.HUMAN, content="a", role="critic")

    def test_generic_role_cannot_shadow_builtin_type(self):
        with pytest.raises(ValidationError, match="collides"):
            ChatMessage.generic("ai", "a")

    @pytest.mark.parametrize("role", ["generic", ""])
    def test_plain_generic_role_is_normalized(self, role):
        message = ChatMessage.generic(role, "x")
        assert message.role is None
        assert message == ChatMessage(type=ChatMessageType.GENERIC, content="x")

    def test_generic_tag_decodes_to_equal_message(self):
        message = ChatMessage.generic("generic", "x")
        assert stored_to_message(message_to_stored(message)) == message

    def test_equality_by_value(self):
        assert ChatMessage.human("x") == ChatMessage.human("x")
        assert ChatMessage.human("x") != ChatMessage.ai("x")

    def test_role_tags_are_stable(self):
        assert [t.value for t in ChatMessageType] == [
            "human",
            "ai",
            "system",
            "generic",
            "tool",
            "function",
        ]


class TestMessageConversion:
    """Tests for message_to_stored / stored_to_message."""

    def test_known_type_uses_type_tag(self):
        stored = message_to_stored(ChatMessage.system("Be brief"))
        assert stored == StoredMessage(role="system", content="Be brief")

    def test_generic_uses_custom_role(self):
        stored = message_to_stored(ChatMessage.generic("critic", "Hmm"))
        assert stored.role == "critic"

    def test_generic_without_role_uses_generic_tag(self):
        stored = message_to_stored(
            ChatMessage(type=ChatMessageType.GENERIC, content="x")
        )
        assert stored.role == "generic"

    def test_unknown_tag_becomes_generic(self):
        message = stored_to_message(StoredMessage(role="narrator", content="Once"))
        assert message.type is ChatMessageType.GENERIC
        assert message.role == "narrator"

    def test_optional_fields_preserved(self):
        message = stored_to_message(
            StoredMessage(role="tool", content="42", tool_call_id="call_7")
        )
        assert message == ChatMessage.tool("42", tool_call_id="call_7")


class TestEncodeDecode:
    """Tests for encode_history / decode_history."""

    def test_encode_layout(self):
        body = encode_history(
            "session-1",
            "user-1",
            [ChatMessage.human("Hello"), ChatMessage.function("lookup", "{}")],
        )
        assert body == {
            "id": "session-1",
            "userid": "user-1",
            "messages": [
                {"role": "human", "content": "Hello"},
                {"role": "function", "content": "{}", "name": "lookup"},
            ],
        }

    def test_encode_empty_history_keeps_messages_field(self):
        body = encode_history("s", "u", [])
        assert body["messages"] == []

    def test_encode_ttl(self):
        assert encode_history("s", "u", [], ttl=60)["ttl"] == 60

    def test_decode_ignores_cosmos_system_properties(self):
        document = {
            "id": "s",
            "userid": "u",
            "messages": [{"role": "ai", "content": "Hi"}],
            "_rid": "abc==",
            "_self": "dbs/abc/colls/def/docs/ghi/",
            "_etag": '"00000000-0000-0000-0000-000000000000"',
            "_attachments": "attachments/",
            "_ts": 1736937000,
        }
        assert decode_history(document) == [ChatMessage.ai("Hi")]

    def test_decode_missing_messages_is_empty(self):
        assert decode_history({"id": "s", "userid": "u"}) == []

    def test_decode_missing_id_raises(self):
        with pytest.raises(ValidationError):
            decode_history({"userid": "u", "messages": []})

    def test_encode_decode_preserves_order(self):
        messages = [ChatMessage.human(str(i)) for i in range(10)]
        assert decode_history(encode_history("s", "u", messages)) == messages
