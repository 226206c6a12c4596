"""
목적: 저장소 엔진 구현체 모듈을 제공한다.
설명: 각 저장소 클라이언트 클래스를 외부에 노출한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/integrations/db/engines/*/engine.py
"""

from cosmos_odm.integrations.db.engines.cosmos import CosmosStoreClient
from cosmos_odm.integrations.db.engines.memory import InMemoryStoreClient

__all__ = [
    "CosmosStoreClient",
    "InMemoryStoreClient",
]
