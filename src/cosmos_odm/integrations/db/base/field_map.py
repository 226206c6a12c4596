"""
목적: 스키마 기반 필드 맵을 제공한다.
설명: Pydantic 모델의 (중첩) 필드를 점 경로 디스크립터 트리로 변환한다.
디자인 패턴: 빌더 패턴
참조: src/cosmos_odm/integrations/db/base/models.py, src/cosmos_odm/integrations/db/base/schema.py
"""

from __future__ import annotations

import types
from typing import Any, Dict, List, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel

from .models import FieldDescriptor


def _nested_model(annotation: Any) -> Optional[Type[BaseModel]]:
    """Optional/Union을 풀어 단일 중첩 모델 타입을 찾는다. 배열은 말단으로 취급한다."""

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    if get_origin(annotation) in (Union, types.UnionType):
        candidates = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(candidates) == 1:
            return _nested_model(candidates[0])
    return None


class FieldMap:
    """스키마 필드 경로 맵.

    `fields()`는 최상위 디스크립터 dict를, `get("a.b")`는 임의 깊이의
    디스크립터를 반환한다. 중간(객체) 필드와 말단 필드 모두 디스크립터를 가진다.
    """

    def __init__(self, model: Type[BaseModel]) -> None:
        self._roots = self._build(model, prefix="", seen=(model,))
        self._index: Dict[str, FieldDescriptor] = {
            descriptor.name: descriptor
            for root in self._roots.values()
            for descriptor in root.walk()
        }

    def fields(self) -> Dict[str, FieldDescriptor]:
        return dict(self._roots)

    def get(self, path: str) -> FieldDescriptor:
        try:
            return self._index[path]
        except KeyError as exc:
            raise KeyError(f"스키마에 없는 필드 경로입니다: {path}") from exc

    def paths(self) -> List[str]:
        return list(self._index)

    def __getitem__(self, key: str) -> FieldDescriptor:
        return self._roots[key]

    def __contains__(self, path: object) -> bool:
        return path in self._index

    def _build(
        self,
        model: Type[BaseModel],
        prefix: str,
        seen: tuple,
    ) -> Dict[str, FieldDescriptor]:
        descriptors: Dict[str, FieldDescriptor] = {}
        for attr_name, info in model.model_fields.items():
            key = info.alias or attr_name
            name = f"{prefix}{key}"
            children: Dict[str, FieldDescriptor] = {}
            nested = _nested_model(info.annotation)
            # 자기 참조 모델은 한 단계에서 멈춘다.
            if nested is not None and nested not in seen:
                children = self._build(nested, prefix=f"{name}.", seen=seen + (nested,))
            descriptors[key] = FieldDescriptor(name=name, children=children)
        return descriptors
