"""
목적: 데이터베이스/컬렉션 핸들 캐시를 제공한다.
설명: 이름별 핸들을 한 번만 생성하도록 동시 최초 요청을 하나의 생성 작업으로 합친다.
디자인 패턴: 매니저 패턴, 싱글 플라이트
참조: src/cosmos_odm/integrations/db/base/engine.py, src/cosmos_odm/integrations/db/client.py
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from cosmos_odm.integrations.db.base.engine import (
    BaseCollectionHandle,
    BaseDatabaseHandle,
    BaseStoreClient,
)
from cosmos_odm.shared.const import OdmConst
from cosmos_odm.shared.exceptions import InvalidNameError
from cosmos_odm.shared.logging import LogContext, Logger, create_default_logger

T = TypeVar("T")


class ConnectionCache:
    """핸들 캐시 관리자.

    진행 중인 생성 작업은 첫 대기 이전에 동기적으로 등록되므로, 같은 이름의
    동시 최초 요청은 항상 같은 작업을 기다린다. 작업이 끝나면 성공/실패와
    무관하게 진행 중 목록에서 제거된다.
    """

    def __init__(self, client: BaseStoreClient, logger: Optional[Logger] = None) -> None:
        self._client = client
        self._logger = logger or create_default_logger("ConnectionCache")
        self._databases: Dict[str, BaseDatabaseHandle] = {}
        self._collections: Dict[str, Dict[str, BaseCollectionHandle]] = {}
        self._pending_databases: Dict[str, asyncio.Task] = {}
        self._pending_collections: Dict[str, asyncio.Task] = {}
        self._generation = 0

    @property
    def client(self) -> BaseStoreClient:
        return self._client

    async def resolve_database(self, name: str) -> BaseDatabaseHandle:
        """데이터베이스 핸들을 반환한다. 없으면 생성한다."""

        self._validate_name(name, "Database")
        cached = self._databases.get(name)
        if cached is not None:
            return cached
        task = self._pending_databases.get(name)
        if task is None:
            generation = self._generation
            task = self._start(
                self._pending_databases,
                name,
                lambda: self._create_database(name, generation),
            )
        return await asyncio.shield(task)

    async def resolve_collection(
        self,
        database_name: str,
        collection_name: str,
        partition_key_path: str = OdmConst.DEFAULT_PARTITION_KEY_PATH,
    ) -> BaseCollectionHandle:
        """컬렉션 핸들을 반환한다. 없으면 데이터베이스부터 보장한 뒤 생성한다."""

        self._validate_name(database_name, "Database")
        self._validate_name(collection_name, "Collection")
        cached = self._collections.get(database_name, {}).get(collection_name)
        if cached is not None:
            return cached
        key = f"{database_name}:{collection_name}"
        task = self._pending_collections.get(key)
        if task is None:
            generation = self._generation
            task = self._start(
                self._pending_collections,
                key,
                lambda: self._create_collection(
                    database_name,
                    collection_name,
                    partition_key_path or OdmConst.DEFAULT_PARTITION_KEY_PATH,
                    generation,
                ),
            )
        return await asyncio.shield(task)

    def close(self) -> None:
        """캐시와 진행 중 목록을 비운다. 이미 시작된 원격 호출은 취소하지 않는다."""

        self._generation += 1
        self._databases.clear()
        self._collections.clear()
        self._pending_databases.clear()
        self._pending_collections.clear()
        self._logger.info("연결 캐시를 초기화했습니다.")

    def cached_databases(self) -> List[str]:
        return list(self._databases)

    def cached_collections(self) -> List[Tuple[str, str]]:
        return [
            (database, collection)
            for database, collections in self._collections.items()
            for collection in collections
        ]

    def pending_count(self) -> int:
        return len(self._pending_databases) + len(self._pending_collections)

    def _start(
        self,
        pending: Dict[str, asyncio.Task],
        key: str,
        factory: Callable[[], Awaitable[T]],
    ) -> asyncio.Task:
        task = asyncio.ensure_future(self._run(pending, key, factory))
        pending[key] = task
        return task

    async def _run(
        self,
        pending: Dict[str, asyncio.Task],
        key: str,
        factory: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await factory()
        finally:
            # close() 이후 같은 키로 새 작업이 등록됐다면 그 작업은 건드리지 않는다.
            if pending.get(key) is asyncio.current_task():
                del pending[key]

    async def _create_database(self, name: str, generation: int) -> BaseDatabaseHandle:
        context = LogContext(database=name, operation="resolve_database")
        self._logger.info(f"데이터베이스 생성 요청: {name}", context)
        try:
            database = await self._client.create_database_if_not_exists(name)
        except Exception as exc:
            self._logger.error(f"데이터베이스 생성 실패: {name} ({exc})", context)
            raise
        if generation == self._generation:
            self._databases[name] = database
        return database

    async def _create_collection(
        self,
        database_name: str,
        collection_name: str,
        partition_key_path: str,
        generation: int,
    ) -> BaseCollectionHandle:
        context = LogContext(
            database=database_name,
            collection=collection_name,
            operation="resolve_collection",
        )
        database = await self.resolve_database(database_name)
        self._logger.info(
            f"컬렉션 생성 요청: {database_name}/{collection_name} (partition={partition_key_path})",
            context,
        )
        try:
            collection = await database.create_collection_if_not_exists(
                collection_name, partition_key_path
            )
        except Exception as exc:
            self._logger.error(
                f"컬렉션 생성 실패: {database_name}/{collection_name} ({exc})", context
            )
            raise
        if generation == self._generation:
            self._collections.setdefault(database_name, {})[collection_name] = collection
        return collection

    @staticmethod
    def _validate_name(name: str, kind: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise InvalidNameError(f"{kind} name must be a non-empty string.")
        if any(char in name for char in OdmConst.INVALID_NAME_CHARS):
            raise InvalidNameError(
                f"{kind} name contains invalid characters.",
                hint="'/', '\\', '?', '#' 문자는 사용할 수 없습니다.",
                metadata={"name": name},
            )
