"""
목적: Cosmos DB 엔진 패키지를 노출한다.
설명: 저장소 클라이언트와 예외 변환 함수를 외부로 공개한다.
디자인 패턴: 퍼사드 패턴
참조: src/cosmos_odm/integrations/db/engines/cosmos/engine.py
"""

from cosmos_odm.integrations.db.engines.cosmos.connection import CosmosConnectionManager
from cosmos_odm.integrations.db.engines.cosmos.engine import (
    CosmosCollection,
    CosmosDatabase,
    CosmosStoreClient,
    translate_cosmos_error,
)

__all__ = [
    "CosmosCollection",
    "CosmosConnectionManager",
    "CosmosDatabase",
    "CosmosStoreClient",
    "translate_cosmos_error",
]
