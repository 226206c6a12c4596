"""
목적: Azure Cosmos DB 연결 관리 모듈을 제공한다.
설명: (endpoint, key) 단위로 비동기 SDK 클라이언트를 하나만 만들어 공유한다.
디자인 패턴: 매니저 패턴
참조: src/cosmos_odm/integrations/db/engines/cosmos/engine.py
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Optional, Tuple

from cosmos_odm.shared.exceptions import InvalidArgumentError, StoreUnavailableError
from cosmos_odm.shared.logging import Logger


class CosmosConnectionManager:
    """Cosmos DB 연결 관리자.

    같은 자격 증명으로 만든 관리자는 프로세스 안에서 하나의 인스턴스를 공유한다.
    """

    _shared: ClassVar[Dict[Tuple[str, str], "CosmosConnectionManager"]] = {}

    def __init__(
        self,
        endpoint: str,
        key: str,
        logger: Logger,
        cosmos_client_cls,
    ) -> None:
        self._endpoint = endpoint
        self._key = key
        self._logger = logger
        self._cosmos_client_cls = cosmos_client_cls
        self._client: Any | None = None

    @classmethod
    def shared(
        cls,
        endpoint: str,
        key: str,
        logger: Logger,
        cosmos_client_cls,
    ) -> "CosmosConnectionManager":
        """자격 증명별 공유 관리자를 반환한다."""

        if not isinstance(endpoint, str) or not endpoint.strip():
            raise InvalidArgumentError("Cosmos endpoint must be a non-empty string.")
        if not isinstance(key, str) or not key.strip():
            raise InvalidArgumentError("Cosmos key must be a non-empty string.")
        manager = cls._shared.get((endpoint, key))
        if manager is None:
            manager = cls(endpoint, key, logger, cosmos_client_cls)
            cls._shared[(endpoint, key)] = manager
        return manager

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def ensure_client(self):
        """초기화된 SDK 클라이언트를 반환한다. 없으면 만든다."""

        if self._cosmos_client_cls is None:
            raise StoreUnavailableError(
                "azure-cosmos 패키지가 설치되어 있지 않습니다.",
                hint="pip install azure-cosmos aiohttp",
            )
        if self._client is None:
            self._client = self._cosmos_client_cls(self._endpoint, credential=self._key)
            self._logger.info(f"Cosmos DB 클라이언트가 초기화되었습니다: {self._endpoint}")
        return self._client

    async def close(self) -> None:
        """SDK 클라이언트를 닫고 공유 목록에서 제거한다."""

        if self._shared.get((self._endpoint, self._key)) is self:
            del self._shared[(self._endpoint, self._key)]
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.close()
        self._logger.info("Cosmos DB 연결이 종료되었습니다.")

    @classmethod
    def reset_shared(cls) -> None:
        """공유 관리자 목록을 비운다. 열린 클라이언트는 닫지 않는다."""

        cls._shared.clear()

    @classmethod
    def shared_count(cls) -> int:
        return len(cls._shared)

    @classmethod
    def lookup(cls, endpoint: str, key: str) -> Optional["CosmosConnectionManager"]:
        return cls._shared.get((endpoint, key))
