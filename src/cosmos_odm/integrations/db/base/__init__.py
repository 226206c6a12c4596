"""
목적: DB 베이스 모듈 공개 API를 제공한다.
설명: 공통 모델, 스키마/필드 맵, 엔진 인터페이스를 노출한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/integrations/db/base/models.py, src/cosmos_odm/integrations/db/base/engine.py
"""

from .engine import BaseCollectionHandle, BaseDatabaseHandle, BaseStoreClient, Document
from .field_map import FieldMap
from .models import (
    BatchMode,
    BuiltQuery,
    FieldDescriptor,
    ItemError,
    QuerySpec,
    ResultEnvelope,
    SqlParameter,
)
from .schema import DocumentSchema, ValidationOutcome, ensure_schema

__all__ = [
    "BaseStoreClient",
    "BaseDatabaseHandle",
    "BaseCollectionHandle",
    "Document",
    "BatchMode",
    "BuiltQuery",
    "FieldDescriptor",
    "FieldMap",
    "ItemError",
    "QuerySpec",
    "ResultEnvelope",
    "SqlParameter",
    "DocumentSchema",
    "ValidationOutcome",
    "ensure_schema",
]
