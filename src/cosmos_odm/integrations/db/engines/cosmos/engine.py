"""
목적: Azure Cosmos DB 기반 저장소 엔진을 제공한다.
설명: azure-cosmos 비동기 SDK 호출을 저장소 포트로 감싸고 드라이버 예외를 ODM 예외로 변환한다.
디자인 패턴: 어댑터 패턴
참조: src/cosmos_odm/integrations/db/base/engine.py, src/cosmos_odm/integrations/db/engines/cosmos/connection.py
"""

from __future__ import annotations

from typing import Any, Awaitable, List, Optional, TypeVar

from cosmos_odm.integrations.db.base.engine import (
    BaseCollectionHandle,
    BaseDatabaseHandle,
    BaseStoreClient,
    Document,
)
from cosmos_odm.integrations.db.base.models import QuerySpec
from cosmos_odm.integrations.db.engines.cosmos.connection import CosmosConnectionManager
from cosmos_odm.shared.exceptions import (
    DocumentConflictError,
    DocumentNotFoundError,
    OdmError,
    StoreOperationError,
    StoreUnavailableError,
)
from cosmos_odm.shared.logging import LogContext, Logger, create_default_logger

CosmosClient: Any | None
PartitionKey: Any | None
cosmos_exceptions: Any | None
AzureError: Any
try:
    from azure.core.exceptions import AzureError as _AzureError
    from azure.cosmos import PartitionKey as _PartitionKey
    from azure.cosmos import exceptions as _cosmos_exceptions
    from azure.cosmos.aio import CosmosClient as _CosmosClient
except ImportError:  # pragma: no cover - 환경 의존 로딩
    CosmosClient = None
    PartitionKey = None
    cosmos_exceptions = None
    AzureError = None
else:  # pragma: no cover - 환경 의존 로딩
    CosmosClient = _CosmosClient
    PartitionKey = _PartitionKey
    cosmos_exceptions = _cosmos_exceptions
    AzureError = _AzureError

T = TypeVar("T")

_THROTTLED_STATUS = 429


def translate_cosmos_error(exc: Exception, operation: str, resource: str = "") -> OdmError:
    """SDK 예외를 ODM 예외로 변환한다."""

    metadata = {"operation": operation}
    if resource:
        metadata["resource"] = resource
    status_code = getattr(exc, "status_code", None)
    if status_code is not None:
        metadata["status_code"] = status_code
    if cosmos_exceptions is not None:
        if isinstance(exc, cosmos_exceptions.CosmosResourceNotFoundError):
            return DocumentNotFoundError(
                f"Resource not found: {resource or operation}", metadata=metadata, original=exc
            )
        if isinstance(exc, cosmos_exceptions.CosmosResourceExistsError):
            return DocumentConflictError(
                f"Resource already exists: {resource or operation}", metadata=metadata, original=exc
            )
        if isinstance(exc, cosmos_exceptions.CosmosHttpResponseError):
            hint = "요청이 제한되었습니다. 잠시 후 다시 시도하세요." if status_code == _THROTTLED_STATUS else None
            return StoreOperationError(
                f"Cosmos DB {operation} 실패: {getattr(exc, 'message', exc)}",
                hint=hint,
                metadata=metadata,
                original=exc,
            )
    return StoreUnavailableError(
        f"Cosmos DB {operation} 호출 중 연결 오류가 발생했습니다: {exc}",
        metadata=metadata,
        original=exc,
    )


async def _guarded(awaitable: Awaitable[T], operation: str, resource: str = "") -> T:
    try:
        return await awaitable
    except AzureError as exc:
        raise translate_cosmos_error(exc, operation, resource) from exc


class CosmosCollection(BaseCollectionHandle):
    """Cosmos 컨테이너 핸들 어댑터."""

    def __init__(self, container: Any, name: str, partition_key_path: str, logger: Logger) -> None:
        self._container = container
        self._name = name
        self._partition_key_path = partition_key_path
        self._logger = logger

    @property
    def id(self) -> str:
        return self._name

    @property
    def partition_key_path(self) -> str:
        return self._partition_key_path

    @property
    def container(self) -> Any:
        return self._container

    async def create_item(self, body: Document) -> Document:
        return await _guarded(self._container.create_item(body=body), "create_item", str(body.get("id")))

    async def read_item(self, item_id: str, partition_key: Any) -> Optional[Document]:
        try:
            return await _guarded(
                self._container.read_item(item=item_id, partition_key=partition_key),
                "read_item",
                item_id,
            )
        except DocumentNotFoundError:
            return None

    async def upsert_item(self, body: Document) -> Document:
        return await _guarded(self._container.upsert_item(body=body), "upsert_item", str(body.get("id")))

    async def replace_item(self, item_id: str, body: Document) -> Document:
        return await _guarded(
            self._container.replace_item(item=item_id, body=body), "replace_item", item_id
        )

    async def delete_item(self, item_id: str, partition_key: Any) -> None:
        await _guarded(
            self._container.delete_item(item=item_id, partition_key=partition_key),
            "delete_item",
            item_id,
        )

    async def query_items(self, spec: QuerySpec) -> List[Any]:
        request = spec.to_request()
        context = LogContext(collection=self._name, operation="query_items")
        self._logger.debug(f"Cosmos 쿼리 실행: {request['query']}", context)
        return await _guarded(self._collect(request), "query_items", self._name)

    async def _collect(self, request: dict) -> List[Any]:
        pager = self._container.query_items(**request)
        return [item async for item in pager]


class CosmosDatabase(BaseDatabaseHandle):
    """Cosmos 데이터베이스 핸들 어댑터."""

    def __init__(self, proxy: Any, name: str, logger: Logger) -> None:
        self._proxy = proxy
        self._name = name
        self._logger = logger

    @property
    def id(self) -> str:
        return self._name

    async def create_collection_if_not_exists(
        self, name: str, partition_key_path: str
    ) -> BaseCollectionHandle:
        container = await _guarded(
            self._proxy.create_container_if_not_exists(
                id=name, partition_key=PartitionKey(path=partition_key_path)
            ),
            "create_container",
            f"{self._name}/{name}",
        )
        self._logger.info(f"Cosmos 컨테이너 준비 완료: {self._name}/{name}")
        return CosmosCollection(container, name, partition_key_path, self._logger)


class CosmosStoreClient(BaseStoreClient):
    """Azure Cosmos DB 저장소 클라이언트 구현체."""

    def __init__(
        self,
        endpoint: str,
        key: str,
        logger: Optional[Logger] = None,
    ) -> None:
        self._logger = logger or create_default_logger("CosmosStoreClient")
        self._connection = CosmosConnectionManager.shared(
            endpoint=endpoint,
            key=key,
            logger=self._logger,
            cosmos_client_cls=CosmosClient,
        )

    @property
    def name(self) -> str:
        return "cosmos"

    @property
    def connection(self) -> CosmosConnectionManager:
        return self._connection

    async def create_database_if_not_exists(self, name: str) -> BaseDatabaseHandle:
        client = self._connection.ensure_client()
        proxy = await _guarded(client.create_database_if_not_exists(id=name), "create_database", name)
        self._logger.info(f"Cosmos 데이터베이스 준비 완료: {name}")
        return CosmosDatabase(proxy, name, self._logger)

    async def close(self) -> None:
        await self._connection.close()
