"""
목적: Cosmos 저장소 어댑터의 변환/위임 동작을 검증한다.
설명: 실제 계정 없이 가짜 SDK 객체로 예외 변환, 연결 공유, 쿼리 요청 형태를 확인한다.
디자인 패턴: 테스트 더블
참조: src/cosmos_odm/integrations/db/engines/cosmos/engine.py, src/cosmos_odm/integrations/db/engines/cosmos/connection.py
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest
from azure.core.exceptions import ServiceRequestError
from azure.cosmos import exceptions as cosmos_exceptions

from cosmos_odm.integrations.db.base import QuerySpec
from cosmos_odm.integrations.db.base.models import SqlParameter
from cosmos_odm.integrations.db.engines.cosmos import (
    CosmosCollection,
    CosmosConnectionManager,
    CosmosStoreClient,
    translate_cosmos_error,
)
from cosmos_odm.shared.exceptions import (
    DocumentConflictError,
    DocumentNotFoundError,
    ErrorCode,
    InvalidArgumentError,
    StoreOperationError,
    StoreUnavailableError,
)


class _FakePager:
    def __init__(self, items: List[Dict[str, Any]]) -> None:
        self._items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Dict[str, Any]:
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


class _FakeContainer:
    """요청을 기록하고 지정한 예외를 던지는 컨테이너 대역."""

    def __init__(self) -> None:
        self.requests: List[Dict[str, Any]] = []
        self.read_error: Exception | None = None

    async def create_item(self, body: Dict[str, Any]) -> Dict[str, Any]:
        raise cosmos_exceptions.CosmosResourceExistsError(status_code=409, message="Conflict")

    async def read_item(self, item: str, partition_key: Any) -> Dict[str, Any]:
        if self.read_error is not None:
            raise self.read_error
        return {"id": item, "pk": partition_key}

    def query_items(self, **request: Any) -> _FakePager:
        self.requests.append(request)
        return _FakePager([{"id": "a"}, {"id": "b"}])


class _FakeSdkClient:
    instances = 0

    def __init__(self, endpoint: str, credential: str) -> None:
        type(self).instances += 1
        self.endpoint = endpoint
        self.credential = credential
        self.closed = False

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_shared_managers():
    CosmosConnectionManager.reset_shared()
    yield
    CosmosConnectionManager.reset_shared()


def test_translate_not_found_and_conflict() -> None:
    missing = translate_cosmos_error(
        cosmos_exceptions.CosmosResourceNotFoundError(status_code=404, message="Missing"),
        "read_item",
        "doc-1",
    )
    exists = translate_cosmos_error(
        cosmos_exceptions.CosmosResourceExistsError(status_code=409, message="Exists"),
        "create_item",
        "doc-1",
    )

    assert isinstance(missing, DocumentNotFoundError)
    assert missing.detail.metadata == {"operation": "read_item", "resource": "doc-1", "status_code": 404}
    assert isinstance(exists, DocumentConflictError)
    assert exists.detail.code == ErrorCode.CONFLICT


def test_translate_throttling_adds_hint() -> None:
    error = translate_cosmos_error(
        cosmos_exceptions.CosmosHttpResponseError(status_code=429, message="Too many requests"),
        "query_items",
    )

    assert type(error) is StoreOperationError
    assert error.detail.hint is not None
    assert error.detail.metadata["status_code"] == 429


def test_translate_transport_error_is_unavailable() -> None:
    error = translate_cosmos_error(ServiceRequestError("connection refused"), "create_database", "appdb")

    assert isinstance(error, StoreUnavailableError)
    assert error.detail.code == ErrorCode.STORE_UNAVAILABLE


def test_connection_manager_is_shared_per_credentials(odm_logger) -> None:
    first = CosmosConnectionManager.shared("https://a.example", "k1", odm_logger, _FakeSdkClient)
    again = CosmosConnectionManager.shared("https://a.example", "k1", odm_logger, _FakeSdkClient)
    other = CosmosConnectionManager.shared("https://a.example", "k2", odm_logger, _FakeSdkClient)

    assert first is again
    assert first is not other
    assert CosmosConnectionManager.shared_count() == 2


def test_connection_manager_rejects_blank_credentials(odm_logger) -> None:
    with pytest.raises(InvalidArgumentError):
        CosmosConnectionManager.shared(" ", "k1", odm_logger, _FakeSdkClient)
    with pytest.raises(InvalidArgumentError):
        CosmosConnectionManager.shared("https://a.example", "", odm_logger, _FakeSdkClient)


@pytest.mark.asyncio
async def test_connection_manager_creates_client_once_and_closes(odm_logger) -> None:
    _FakeSdkClient.instances = 0
    manager = CosmosConnectionManager.shared("https://a.example", "k1", odm_logger, _FakeSdkClient)

    client = manager.ensure_client()
    assert manager.ensure_client() is client
    assert _FakeSdkClient.instances == 1
    assert client.credential == "k1"

    await manager.close()

    assert client.closed
    assert not manager.is_connected
    assert CosmosConnectionManager.lookup("https://a.example", "k1") is None


def test_missing_sdk_reports_unavailable(odm_logger) -> None:
    manager = CosmosConnectionManager("https://a.example", "k1", odm_logger, None)

    with pytest.raises(StoreUnavailableError):
        manager.ensure_client()


def test_store_clients_share_connection(odm_logger) -> None:
    first = CosmosStoreClient("https://a.example", "k1", logger=odm_logger)
    second = CosmosStoreClient("https://a.example", "k1", logger=odm_logger)

    assert first.name == "cosmos"
    assert first.connection is second.connection


@pytest.mark.asyncio
async def test_collection_query_passes_parameters(odm_logger) -> None:
    container = _FakeContainer()
    collection = CosmosCollection(container, "members", "/id", odm_logger)
    spec = QuerySpec(
        query="SELECT * FROM c WHERE c.status = @param1",
        parameters=[SqlParameter(name="@param1", value="active")],
    )

    rows = await collection.query_items(spec)
    await collection.query_items(QuerySpec(query="SELECT * FROM c"))

    assert [row["id"] for row in rows] == ["a", "b"]
    assert container.requests == [
        {
            "query": "SELECT * FROM c WHERE c.status = @param1",
            "parameters": [{"name": "@param1", "value": "active"}],
        },
        {"query": "SELECT * FROM c"},
    ]


@pytest.mark.asyncio
async def test_collection_read_missing_returns_none(odm_logger) -> None:
    container = _FakeContainer()
    collection = CosmosCollection(container, "members", "/id", odm_logger)

    found = await collection.read_item("doc-1", "doc-1")
    container.read_error = cosmos_exceptions.CosmosResourceNotFoundError(status_code=404, message="Missing")
    missing = await collection.read_item("doc-1", "doc-1")

    assert found == {"id": "doc-1", "pk": "doc-1"}
    assert missing is None


@pytest.mark.asyncio
async def test_collection_translates_write_errors(odm_logger) -> None:
    collection = CosmosCollection(_FakeContainer(), "members", "/id", odm_logger)

    with pytest.raises(DocumentConflictError) as caught:
        await collection.create_item({"id": "doc-1"})

    assert caught.value.detail.metadata["resource"] == "doc-1"
