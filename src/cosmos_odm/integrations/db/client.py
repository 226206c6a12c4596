"""
목적: ODM 진입점 클라이언트를 제공한다.
설명: 저장소 클라이언트와 연결 캐시를 묶어 컬렉션별 Model을 만들어 준다.
디자인 패턴: 파사드
참조: src/cosmos_odm/integrations/db/connection/cache.py, src/cosmos_odm/integrations/db/model/model.py
"""

from __future__ import annotations

from typing import Optional, Type, Union

from pydantic import BaseModel

from cosmos_odm.integrations.db.base.engine import BaseStoreClient
from cosmos_odm.integrations.db.base.schema import DocumentSchema
from cosmos_odm.integrations.db.connection import ConnectionCache
from cosmos_odm.integrations.db.engines.cosmos import CosmosStoreClient
from cosmos_odm.integrations.db.model import Model
from cosmos_odm.shared.config import OdmSettings
from cosmos_odm.shared.exceptions import InvalidArgumentError
from cosmos_odm.shared.logging import Logger, create_default_logger


class OdmClient:
    """ODM 클라이언트.

    Args:
        store: 저장소 클라이언트 구현체.
        settings: 기본 데이터베이스/파티션/배치 설정.
        logger: 주입 가능한 로거.
    """

    def __init__(
        self,
        store: BaseStoreClient,
        settings: Optional[OdmSettings] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self._store = store
        self._settings = settings or OdmSettings()
        self._logger = logger or create_default_logger("OdmClient")
        self._cache = ConnectionCache(store, logger=self._logger)

    @classmethod
    def from_settings(
        cls,
        settings: OdmSettings,
        logger: Optional[Logger] = None,
    ) -> "OdmClient":
        """설정의 endpoint/key로 Cosmos 저장소 클라이언트를 만든다."""

        store = CosmosStoreClient(
            endpoint=settings.endpoint or "",
            key=settings.key or "",
            logger=logger,
        )
        return cls(store, settings=settings, logger=logger)

    @property
    def store(self) -> BaseStoreClient:
        return self._store

    @property
    def cache(self) -> ConnectionCache:
        return self._cache

    @property
    def settings(self) -> OdmSettings:
        return self._settings

    async def model(
        self,
        schema: Union[Type[BaseModel], DocumentSchema],
        collection: str,
        database: Optional[str] = None,
        partition_key_path: Optional[str] = None,
    ) -> Model:
        """컬렉션을 보장하고 설정값이 적용된 Model을 반환한다."""

        database_name = database or self._settings.database
        if not database_name:
            raise InvalidArgumentError(
                "데이터베이스 이름이 필요합니다.",
                hint="database 인자 또는 COSMOS_ODM__DATABASE 설정을 지정하세요.",
            )
        handle = await self._cache.resolve_collection(
            database_name,
            collection,
            partition_key_path or self._settings.partition_key_path,
        )
        return Model(
            schema,
            handle,
            logger=self._logger,
            batch_mode=self._settings.batch_mode,
            default_limit=self._settings.default_limit,
            partition_key_field=self._settings.partition_key_field,
        )

    async def close(self) -> None:
        """캐시를 비우고 저장소 연결을 종료한다."""

        self._cache.close()
        await self._store.close()
