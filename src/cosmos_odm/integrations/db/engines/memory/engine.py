"""
목적: 인메모리 문서 저장소 엔진을 제공한다.
설명: 원격 저장소와 같은 코루틴 계약을 프로세스 메모리 위에서 구현한다. 테스트와 로컬 실행에 사용한다.
디자인 패턴: 어댑터 패턴
참조: src/cosmos_odm/integrations/db/base/engine.py, src/cosmos_odm/integrations/db/engines/memory/query_engine.py
"""

from __future__ import annotations

import asyncio
import copy
import json
from typing import Any, Dict, List, Optional, Tuple

from cosmos_odm.integrations.db.base.engine import (
    BaseCollectionHandle,
    BaseDatabaseHandle,
    BaseStoreClient,
    Document,
)
from cosmos_odm.integrations.db.base.models import QuerySpec
from cosmos_odm.integrations.db.engines.memory.query_engine import execute_query
from cosmos_odm.shared.const import OdmConst
from cosmos_odm.shared.exceptions import (
    DocumentConflictError,
    DocumentNotFoundError,
    StoreOperationError,
)
from cosmos_odm.shared.logging import Logger, create_default_logger

_StoreKey = Tuple[str, str]


class InMemoryCollection(BaseCollectionHandle):
    """인메모리 컬렉션.

    문서는 (파티션 키 값, id) 쌍으로 저장되며 삽입 순서를 유지한다.
    """

    def __init__(self, name: str, partition_key_path: str = OdmConst.DEFAULT_PARTITION_KEY_PATH) -> None:
        self._name = name
        self._partition_key_path = partition_key_path
        self._segments = [segment for segment in partition_key_path.split("/") if segment]
        self._items: Dict[_StoreKey, Document] = {}

    @property
    def id(self) -> str:
        return self._name

    @property
    def partition_key_path(self) -> str:
        return self._partition_key_path

    def __len__(self) -> int:
        return len(self._items)

    def documents(self) -> List[Document]:
        """저장된 문서 사본 목록을 반환한다."""

        return [copy.deepcopy(doc) for doc in self._items.values()]

    async def create_item(self, body: Document) -> Document:
        await asyncio.sleep(0)
        key = self._key_of(body)
        if key in self._items:
            raise DocumentConflictError(
                f"Document already exists: {body['id']}",
                metadata={"status_code": 409, "collection": self._name},
            )
        self._items[key] = copy.deepcopy(body)
        return copy.deepcopy(body)

    async def read_item(self, item_id: str, partition_key: Any) -> Optional[Document]:
        await asyncio.sleep(0)
        found = self._items.get((self._encode(partition_key), item_id))
        return copy.deepcopy(found) if found is not None else None

    async def upsert_item(self, body: Document) -> Document:
        await asyncio.sleep(0)
        key = self._key_of(body)
        self._items[key] = copy.deepcopy(body)
        return copy.deepcopy(body)

    async def replace_item(self, item_id: str, body: Document) -> Document:
        await asyncio.sleep(0)
        if body.get("id") != item_id:
            raise StoreOperationError(
                "Replace target id does not match the document id.",
                metadata={"status_code": 400, "collection": self._name},
            )
        key = self._key_of(body)
        if key not in self._items:
            raise DocumentNotFoundError(
                f"Document not found: {item_id}",
                metadata={"status_code": 404, "collection": self._name},
            )
        self._items[key] = copy.deepcopy(body)
        return copy.deepcopy(body)

    async def delete_item(self, item_id: str, partition_key: Any) -> None:
        await asyncio.sleep(0)
        key = (self._encode(partition_key), item_id)
        if key not in self._items:
            raise DocumentNotFoundError(
                f"Document not found: {item_id}",
                metadata={"status_code": 404, "collection": self._name},
            )
        del self._items[key]

    async def query_items(self, spec: QuerySpec) -> List[Any]:
        await asyncio.sleep(0)
        return execute_query(
            spec.query,
            list(self._items.values()),
            [parameter.model_dump() for parameter in spec.parameters or []],
        )

    def _key_of(self, body: Document) -> _StoreKey:
        item_id = body.get("id")
        if not isinstance(item_id, str) or not item_id:
            raise StoreOperationError(
                "Document id must be a non-empty string.",
                metadata={"status_code": 400, "collection": self._name},
            )
        return (self._encode(self._partition_value(body)), item_id)

    def _partition_value(self, body: Document) -> Any:
        current: Any = body
        for segment in self._segments:
            if not isinstance(current, dict) or segment not in current:
                return None
            current = current[segment]
        return current

    @staticmethod
    def _encode(value: Any) -> str:
        return json.dumps(value, sort_keys=True, default=str)


class InMemoryDatabase(BaseDatabaseHandle):
    """인메모리 데이터베이스."""

    def __init__(self, name: str, logger: Optional[Logger] = None) -> None:
        self._name = name
        self._logger = logger or create_default_logger("InMemoryDatabase")
        self._collections: Dict[str, InMemoryCollection] = {}
        self.collection_creations = 0

    @property
    def id(self) -> str:
        return self._name

    def get_collection(self, name: str) -> Optional[InMemoryCollection]:
        return self._collections.get(name)

    async def create_collection_if_not_exists(
        self, name: str, partition_key_path: str
    ) -> BaseCollectionHandle:
        self.collection_creations += 1
        await asyncio.sleep(0)
        collection = self._collections.get(name)
        if collection is None:
            collection = InMemoryCollection(name, partition_key_path)
            self._collections[name] = collection
            self._logger.debug(f"인메모리 컬렉션 생성: {self._name}/{name}")
        return collection


class InMemoryStoreClient(BaseStoreClient):
    """인메모리 저장소 클라이언트.

    `database_creations`는 생성 호출 횟수이며 캐시 동작 검증에 사용한다.
    """

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._logger = logger or create_default_logger("InMemoryStoreClient")
        self._databases: Dict[str, InMemoryDatabase] = {}
        self.database_creations = 0
        self.closed = False

    @property
    def name(self) -> str:
        return "memory"

    def get_database(self, name: str) -> Optional[InMemoryDatabase]:
        return self._databases.get(name)

    async def create_database_if_not_exists(self, name: str) -> BaseDatabaseHandle:
        self.database_creations += 1
        await asyncio.sleep(0)
        database = self._databases.get(name)
        if database is None:
            database = InMemoryDatabase(name, logger=self._logger)
            self._databases[name] = database
            self._logger.debug(f"인메모리 데이터베이스 생성: {name}")
        return database

    async def close(self) -> None:
        self.closed = True
        self._logger.info("인메모리 저장소 클라이언트를 종료했습니다.")
