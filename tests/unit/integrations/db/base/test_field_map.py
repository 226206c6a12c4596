"""
목적: 스키마 기반 필드 맵 생성을 검증한다.
설명: 중첩 모델, 별칭, Optional 래핑, 자기 참조 모델의 디스크립터 트리를 확인한다.
디자인 패턴: 상태 기반 단위 테스트
참조: src/cosmos_odm/integrations/db/base/field_map.py
"""

from __future__ import annotations

from typing import List, Optional

import pytest
from pydantic import BaseModel, Field

from cosmos_odm.integrations.db.base import FieldMap


class Geo(BaseModel):
    lat: float
    lng: float


class Address(BaseModel):
    city: str
    zip_code: str = Field(alias="zipCode")
    geo: Optional[Geo] = None


class Profile(BaseModel):
    id: str
    address: Address
    tags: List[str] = []
    parent: Optional["Profile"] = None


Profile.model_rebuild()


def test_field_map_builds_nested_tree() -> None:
    """중간/말단 필드 모두 점 경로 디스크립터를 가진다."""

    fields = FieldMap(Profile)

    assert set(fields.fields()) == {"id", "address", "tags", "parent"}
    assert fields["address"].name == "address"
    assert not fields["address"].is_leaf
    assert fields["address"]["city"].name == "address.city"
    assert fields["address"]["geo"]["lat"].name == "address.geo.lat"
    assert fields["tags"].is_leaf


def test_field_map_prefers_alias() -> None:
    fields = FieldMap(Profile)

    assert "address.zipCode" in fields
    assert "address.zip_code" not in fields
    assert fields.get("address.zipCode").key == "zipCode"


def test_field_map_stops_at_self_reference() -> None:
    fields = FieldMap(Profile)

    assert fields["parent"].is_leaf


def test_field_map_lists_all_paths() -> None:
    paths = FieldMap(Profile).paths()

    assert "address.geo.lng" in paths
    assert len(paths) == len(set(paths))


def test_field_map_unknown_path_raises() -> None:
    with pytest.raises(KeyError):
        FieldMap(Profile).get("address.country")
    with pytest.raises(KeyError):
        FieldMap(Profile)["address"]["country"]
