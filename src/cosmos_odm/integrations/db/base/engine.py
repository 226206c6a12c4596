"""
목적: 문서 저장소 엔진 추상 인터페이스를 정의한다.
설명: 데이터베이스/컬렉션 프로비저닝, 문서 단건 연산, 쿼리 실행을 위한 표준 코루틴을 제공한다.
디자인 패턴: 전략 패턴
참조: src/cosmos_odm/integrations/db/engines/cosmos/engine.py, src/cosmos_odm/integrations/db/engines/memory/engine.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from cosmos_odm.integrations.db.base.models import QuerySpec

Document = Dict[str, Any]


class BaseCollectionHandle(ABC):
    """컬렉션 핸들 인터페이스.

    단건 연산은 (id, partition_key)로 문서를 찾는다.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """컬렉션 이름을 반환한다."""

    @property
    @abstractmethod
    def partition_key_path(self) -> str:
        """파티션 키 경로를 반환한다."""

    @abstractmethod
    async def create_item(self, body: Document) -> Document:
        """문서를 생성한다. 같은 id가 있으면 DocumentConflictError."""

    @abstractmethod
    async def read_item(self, item_id: str, partition_key: Any) -> Optional[Document]:
        """문서를 조회한다. 없으면 None."""

    @abstractmethod
    async def upsert_item(self, body: Document) -> Document:
        """id 기준으로 생성 또는 교체한다."""

    @abstractmethod
    async def replace_item(self, item_id: str, body: Document) -> Document:
        """기존 문서를 교체한다. 없으면 DocumentNotFoundError."""

    @abstractmethod
    async def delete_item(self, item_id: str, partition_key: Any) -> None:
        """문서를 삭제한다. 없으면 DocumentNotFoundError."""

    @abstractmethod
    async def query_items(self, spec: QuerySpec) -> List[Any]:
        """쿼리를 실행해 결과 전체를 반환한다."""


class BaseDatabaseHandle(ABC):
    """데이터베이스 핸들 인터페이스."""

    @property
    @abstractmethod
    def id(self) -> str:
        """데이터베이스 이름을 반환한다."""

    @abstractmethod
    async def create_collection_if_not_exists(
        self, name: str, partition_key_path: str
    ) -> BaseCollectionHandle:
        """컬렉션이 없으면 생성하고 핸들을 반환한다."""


class BaseStoreClient(ABC):
    """저장소 클라이언트 인터페이스."""

    @property
    @abstractmethod
    def name(self) -> str:
        """엔진 이름을 반환한다."""

    @abstractmethod
    async def create_database_if_not_exists(self, name: str) -> BaseDatabaseHandle:
        """데이터베이스가 없으면 생성하고 핸들을 반환한다."""

    @abstractmethod
    async def close(self) -> None:
        """클라이언트 연결을 종료한다."""
