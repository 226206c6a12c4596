"""
목적: DB 쿼리 빌더 모듈 공개 API를 제공한다.
설명: 조건 빌더, 파라미터 세션, 정렬 헬퍼를 외부에 노출한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/integrations/db/query_builder/query_builder.py
"""

from .query_builder import (
    FieldRef,
    ParamSession,
    QueryBuilder,
    asc,
    desc,
    field_path,
    is_identifier,
    order,
    parse_order,
    qb,
)

__all__ = [
    "FieldRef",
    "ParamSession",
    "QueryBuilder",
    "asc",
    "desc",
    "field_path",
    "is_identifier",
    "order",
    "parse_order",
    "qb",
]
