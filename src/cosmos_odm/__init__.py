"""
목적: cosmos_odm 패키지 최상위 공개 API를 제공한다.
설명: 자주 쓰는 진입점(클라이언트, 모델, 쿼리 빌더, 설정)을 한곳에서 노출한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/integrations/db/__init__.py, src/cosmos_odm/shared/__init__.py
"""

from cosmos_odm.integrations.db import (
    BatchMode,
    ConnectionCache,
    CosmosStoreClient,
    DocumentSchema,
    InMemoryStoreClient,
    Model,
    OdmClient,
    QueryBuilder,
    ResultEnvelope,
    asc,
    desc,
    order,
    qb,
)
from cosmos_odm.shared import OdmSettings

__version__ = "0.1.0"

__all__ = [
    "BatchMode",
    "ConnectionCache",
    "CosmosStoreClient",
    "DocumentSchema",
    "InMemoryStoreClient",
    "Model",
    "OdmClient",
    "OdmSettings",
    "QueryBuilder",
    "ResultEnvelope",
    "asc",
    "desc",
    "order",
    "qb",
]
