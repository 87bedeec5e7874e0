# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Test fixtures for the Cosmos DB chat history provider.

Provides FakeCosmosContainer - an in-memory test double for an Azure Cosmos DB
async container proxy that raises the real azure.cosmos exceptions.
"""

import uuid
from typing import Any, Optional

import pytest
from azure.core import MatchConditions
from azure.cosmos import exceptions


class FakeCosmosContainer:
    """
    In-memory test double for an async Cosmos DB container proxy.

    Implements the subset of the async interface used by the provider:
    - read_item(item, partition_key) -> dict
    - upsert_item(body, etag=None, match_condition=None) -> dict
    - create_item(body) -> dict
    - delete_item(item, partition_key) -> None

    Set fail_with to make every call raise that exception. A container that
    does not exist raises CosmosResourceNotFoundError for every call, like
    the service does.
    """

    def __init__(self, exists: bool = True):
        # Storage: {partition_key: {id: document}}
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        self.exists = exists
        self.fail_with: Optional[Exception] = None
        self.calls: list[str] = []

    def _before(self, operation: str):
        self.calls.append(operation)
        if self.fail_with is not None:
            raise self.fail_with
        if not self.exists:
            raise exceptions.CosmosResourceNotFoundError(
                status_code=404, message="Resource Not Found: container does not exist"
            )

    def _not_found(self, item: str):
        return exceptions.CosmosResourceNotFoundError(
            status_code=404,
            message=f"Document with id '{item}' not found",
        )

    def _store(self, body: dict[str, Any]) -> dict[str, Any]:
        document = dict(body)
        document["_etag"] = f'"{uuid.uuid4()}"'
        document["_rid"] = "fakeRid=="
        document["_ts"] = 1736937000
        self._data.setdefault(body["userid"], {})[body["id"]] = document
        return dict(document)

    async def read_item(self, item: str, partition_key: str) -> dict[str, Any]:
        self._before("read_item")
        document = self._data.get(partition_key, {}).get(item)
        if document is None:
            raise self._not_found(item)
        # Return a copy to prevent mutation
        return dict(document)

    async def upsert_item(
        self,
        body: dict[str, Any],
        etag: Optional[str] = None,
        match_condition: Optional[MatchConditions] = None,
    ) -> dict[str, Any]:
        self._before("upsert_item")
        if match_condition == MatchConditions.IfNotModified:
            current = self._data.get(body["userid"], {}).get(body["id"])
            if current is None or current["_etag"] != etag:
                raise exceptions.CosmosAccessConditionFailedError(
                    status_code=412,
                    message="Operation cannot be performed because one of the specified precondition is not met.",
                )
        return self._store(body)

    async def create_item(self, body: dict[str, Any]) -> dict[str, Any]:
        self._before("create_item")
        if body["id"] in self._data.get(body["userid"], {}):
            raise exceptions.CosmosResourceExistsError(
                status_code=409,
                message="Entity with the specified id already exists in the system.",
            )
        return self._store(body)

    async def delete_item(self, item: str, partition_key: str) -> None:
        self._before("delete_item")
        partition = self._data.get(partition_key, {})
        if item not in partition:
            raise self._not_found(item)
        del partition[item]

    def get_all_documents(self) -> list[dict[str, Any]]:
        """Return all documents (for test assertions)."""
        docs = []
        for partition in self._data.values():
            docs.extend(partition.values())
        return docs


class FakeDatabaseClient:
    """Fake database proxy handing out containers from its client."""

    def __init__(self, client: "FakeCosmosClient", database_name: str):
        self._client = client
        self.id = database_name

    def get_container_client(self, container_name: str) -> FakeCosmosContainer:
        return self._client.container_for(self.id, container_name)

    async def create_container_if_not_exists(self, id: str, partition_key, **kwargs):
        self._client.provisioned.append(
            {"database": self.id, "container": id, "partition_key": partition_key, **kwargs}
        )
        container = self._client.container_for(self.id, id)
        container.exists = True
        return container


class FakeCosmosClient:
    """
    Fake async CosmosClient.

    Databases listed in missing_databases yield containers that do not exist.
    """

    def __init__(self, endpoint: str = "https://fake-cosmos.documents.azure.com:443/", credential: Any = None):
        self.endpoint = endpoint
        self.credential = credential
        self.missing_databases: set[str] = set()
        self.provisioned: list[dict[str, Any]] = []
        self.closed = False
        self._containers: dict[tuple[str, str], FakeCosmosContainer] = {}

    def container_for(self, database_name: str, container_name: str) -> FakeCosmosContainer:
        key = (database_name, container_name)
        if key not in self._containers:
            self._containers[key] = FakeCosmosContainer(
                exists=database_name not in self.missing_databases
            )
        return self._containers[key]

    def get_database_client(self, database_name: str) -> FakeDatabaseClient:
        return FakeDatabaseClient(self, database_name)

    async def create_database_if_not_exists(self, id: str, **kwargs) -> FakeDatabaseClient:
        self.missing_databases.discard(id)
        return FakeDatabaseClient(self, id)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    """Provide a fresh FakeCosmosClient for each test."""
    return FakeCosmosClient()


@pytest.fixture
def fake_container(fake_client):
    """The container at testDatabase/testContainer."""
    return fake_client.container_for("testDatabase", "testContainer")


@pytest.fixture
def make_cosmos_history(fake_client):
    """Factory for CosmosDBChatMessageHistory bound to the fake client."""
    from chat_history_cosmos.chat_history import CosmosDBChatMessageHistory

    def _make(session_id: str = "session-1", user_id: str = "user-1", **kwargs):
        return CosmosDBChatMessageHistory(
            fake_client, "testDatabase", "testContainer", session_id, user_id, **kwargs
        )

    return _make
