"""
목적: 문서 스키마 검증 기능을 제공한다.
설명: Pydantic 모델 클래스를 감싸 단건/배열 검증 결과를 예외 없이 반환한다.
디자인 패턴: 어댑터 패턴
참조: src/cosmos_odm/integrations/db/base/field_map.py, src/cosmos_odm/integrations/db/model/model.py
"""

from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

TModel = TypeVar("TModel", bound=BaseModel)


class ValidationOutcome(BaseModel):
    """검증 결과. 성공 시 `data`, 실패 시 `errors`를 채운다."""

    ok: bool
    data: Any = None
    errors: List[Dict[str, Any]] = Field(default_factory=list)

    def summary(self) -> str:
        """사람이 읽을 수 있는 오류 요약을 반환한다."""

        parts = []
        for error in self.errors:
            location = ".".join(str(item) for item in error.get("loc", ()))
            parts.append(f"{location or '<root>'}: {error.get('msg', '')}")
        return "; ".join(parts)


class DocumentSchema(Generic[TModel]):
    """Pydantic 모델 기반 문서 스키마.

    검증된 문서는 JSON 호환 dict로 덤프되며 필드 별칭을 키로 사용한다.
    모델은 생성 후 변경하지 않는다.
    """

    def __init__(self, model: Type[TModel], exclude_none: bool = False) -> None:
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise TypeError("schema 모델은 pydantic BaseModel 하위 클래스여야 합니다.")
        self._model = model
        self._exclude_none = exclude_none
        self._many: TypeAdapter[List[TModel]] = TypeAdapter(List[model])  # type: ignore[valid-type]

    @property
    def model(self) -> Type[TModel]:
        return self._model

    def validate(self, value: Any) -> ValidationOutcome:
        """단건 문서를 검증한다."""

        try:
            instance = self._model.model_validate(self._as_input(value))
        except ValidationError as exc:
            return ValidationOutcome(ok=False, errors=self._errors(exc))
        return ValidationOutcome(ok=True, data=self._dump(instance))

    def validate_many(self, values: Sequence[Any]) -> ValidationOutcome:
        """문서 배열을 한 번에 검증한다. 하나라도 실패하면 전체가 실패다."""

        try:
            instances = self._many.validate_python([self._as_input(item) for item in values])
        except ValidationError as exc:
            return ValidationOutcome(ok=False, errors=self._errors(exc))
        return ValidationOutcome(ok=True, data=[self._dump(item) for item in instances])

    def to_patch(self, value: Any) -> Dict[str, Any]:
        """부분 갱신용 dict를 만든다. 모델 인스턴스는 명시된 필드만 남긴다."""

        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return dict(value)

    def _as_input(self, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(by_alias=True)
        return value

    def _dump(self, instance: BaseModel) -> Dict[str, Any]:
        return instance.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=self._exclude_none,
        )

    def _errors(self, exc: ValidationError) -> List[Dict[str, Any]]:
        return [
            {
                "loc": list(error.get("loc", ())),
                "msg": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]


def ensure_schema(schema: Any) -> Optional[DocumentSchema]:
    """모델 클래스 또는 DocumentSchema를 DocumentSchema로 보정한다."""

    if schema is None or isinstance(schema, DocumentSchema):
        return schema
    return DocumentSchema(schema)
