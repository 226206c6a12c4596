"""
목적: 인메모리 엔진 패키지를 노출한다.
설명: 인메모리 저장소 클라이언트와 쿼리 실행기를 외부로 공개한다.
디자인 패턴: 퍼사드 패턴
참조: src/cosmos_odm/integrations/db/engines/memory/engine.py
"""

from cosmos_odm.integrations.db.engines.memory.engine import (
    InMemoryCollection,
    InMemoryDatabase,
    InMemoryStoreClient,
)
from cosmos_odm.integrations.db.engines.memory.query_engine import (
    UNDEFINED,
    SelectStatement,
    execute_query,
    parse_query,
)

__all__ = [
    "InMemoryCollection",
    "InMemoryDatabase",
    "InMemoryStoreClient",
    "SelectStatement",
    "UNDEFINED",
    "execute_query",
    "parse_query",
]
