"""
목적: DB 통합 모듈 공개 API를 제공한다.
설명: ODM 클라이언트, 모델, 쿼리 빌더, 연결 캐시, 저장소 엔진을 노출한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/integrations/db/client.py
"""

from cosmos_odm.integrations.db.base import (
    BatchMode,
    DocumentSchema,
    FieldDescriptor,
    FieldMap,
    QuerySpec,
    ResultEnvelope,
)
from cosmos_odm.integrations.db.client import OdmClient
from cosmos_odm.integrations.db.connection import ConnectionCache
from cosmos_odm.integrations.db.engines import CosmosStoreClient, InMemoryStoreClient
from cosmos_odm.integrations.db.model import Model
from cosmos_odm.integrations.db.query_builder import (
    ParamSession,
    QueryBuilder,
    asc,
    desc,
    order,
    qb,
)

__all__ = [
    "BatchMode",
    "ConnectionCache",
    "CosmosStoreClient",
    "DocumentSchema",
    "FieldDescriptor",
    "FieldMap",
    "InMemoryStoreClient",
    "Model",
    "OdmClient",
    "ParamSession",
    "QueryBuilder",
    "QuerySpec",
    "ResultEnvelope",
    "asc",
    "desc",
    "order",
    "qb",
]
