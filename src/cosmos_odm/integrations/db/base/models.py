"""
목적: DB 통합 인터페이스에서 공통으로 사용하는 모델을 정의한다.
설명: 쿼리 파라미터/쿼리 스펙/필드 디스크립터/배치 모드/결과 엔벨로프 모델을 제공한다.
디자인 패턴: 데이터 전송 객체(DTO)
참조: src/cosmos_odm/integrations/db/model/model.py, src/cosmos_odm/integrations/db/query_builder/query_builder.py
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cosmos_odm.shared.exceptions import ExceptionDetail


class SqlParameter(BaseModel):
    """이름 기반 쿼리 파라미터."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: Any = None


class BuiltQuery(BaseModel):
    """QueryBuilder.build() 결과."""

    query: str = ""
    params: List[SqlParameter] = Field(default_factory=list)

    def has_params(self) -> bool:
        """바인딩된 파라미터 존재 여부를 반환한다."""

        return bool(self.params)


class QuerySpec(BaseModel):
    """저장소 쿼리 엔드포인트로 전달되는 쿼리 스펙."""

    query: str
    parameters: Optional[List[SqlParameter]] = None

    def to_request(self) -> Dict[str, Any]:
        """저장소 요청 형태로 변환한다.

        파라미터가 없으면 `parameters` 키 자체를 생략한다.
        """

        request: Dict[str, Any] = {"query": self.query}
        if self.parameters:
            request["parameters"] = [param.model_dump() for param in self.parameters]
        return request


class FieldDescriptor(BaseModel):
    """필드 주소 디스크립터.

    `name`은 점으로 연결된 경로이며, 중첩 객체 필드는 `children`을 가진다.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    children: Dict[str, "FieldDescriptor"] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        """경로의 마지막 세그먼트를 반환한다."""

        return self.name.rsplit(".", 1)[-1]

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def __getitem__(self, key: str) -> "FieldDescriptor":
        try:
            return self.children[key]
        except KeyError as exc:
            raise KeyError(f"{self.name}에 하위 필드 '{key}'가 없습니다.") from exc

    def walk(self) -> Iterator["FieldDescriptor"]:
        """자신과 모든 하위 디스크립터를 깊이 우선으로 순회한다."""

        yield self
        for child in self.children.values():
            yield from child.walk()


class BatchMode(str, Enum):
    """배치 부분 실패 처리 방식."""

    LENIENT = "lenient"
    STRICT = "strict"


class ItemError(BaseModel):
    """배치 항목별 오류."""

    item_id: Optional[str] = None
    error: ExceptionDetail


class ResultEnvelope(BaseModel):
    """모든 모델 연산이 반환하는 결과 엔벨로프.

    각 연산은 자신과 관련된 필드만 채운다. `to_dict()`는 채워진 필드만
    camelCase 키로 직렬화한다.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    resource: Optional[Dict[str, Any]] = None
    resources: Optional[List[Any]] = None
    count: Optional[int] = None
    deleted: Optional[bool] = None
    items_updated: Optional[int] = None
    items_failed: Optional[int] = None
    item_errors: Optional[List[ItemError]] = None
    error: Optional[ExceptionDetail] = None
    query_spec: Optional[QuerySpec] = None

    @classmethod
    def ok(cls, **fields: Any) -> "ResultEnvelope":
        return cls(success=True, **fields)

    @classmethod
    def fail(cls, error: ExceptionDetail, **fields: Any) -> "ResultEnvelope":
        return cls(success=False, error=error, **fields)

    def to_dict(self) -> Dict[str, Any]:
        """채워진 필드만 직렬화한다. 성공한 단건 조회의 빈 결과는 `resource: null`로 남긴다."""

        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.success and self.resource is None and "resource" in self.model_fields_set:
            data["resource"] = None
        return data


FieldDescriptor.model_rebuild()
