# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""Pytest configuration and fixtures for core package tests."""

import pytest

from chat_history_core.history import ChatMessageHistory
from chat_history_core.memory import InMemoryDocumentStore

TEST_DATABASE = "testDatabase"
TEST_CONTAINER = "testContainer"


@pytest.fixture
def store():
    """Provide a fresh in-memory document store for each test."""
    return InMemoryDocumentStore()


@pytest.fixture
def container(store):
    """The container every history built by make_history writes to."""
    return store.get_container(TEST_DATABASE, TEST_CONTAINER)


@pytest.fixture
def make_history(store):
    """Factory for histories bound to the shared test container."""

    def _make(session_id: str = "session-1", user_id: str = "user-1", **kwargs):
        return ChatMessageHistory(
            store, TEST_DATABASE, TEST_CONTAINER, session_id, user_id, **kwargs
        )

    return _make
