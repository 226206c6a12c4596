"""
목적: 문서 스키마 검증 래퍼 동작을 검증한다.
설명: 단건/배열 검증 결과, 별칭 덤프, 부분 갱신 dict 생성을 확인한다.
디자인 패턴: 어댑터 패턴
참조: src/cosmos_odm/integrations/db/base/schema.py
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import pytest
from pydantic import BaseModel, Field

from cosmos_odm.integrations.db.base import DocumentSchema, ensure_schema


class Order(BaseModel):
    id: str
    amount: int
    partition_key: str = Field(alias="partitionKey")
    memo: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


def test_validate_dumps_json_compatible_by_alias() -> None:
    schema = DocumentSchema(Order)
    created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    outcome = schema.validate({"id": "o-1", "amount": "15", "partitionKey": "t-1", "createdAt": created})

    assert outcome.ok
    assert outcome.data == {
        "id": "o-1",
        "amount": 15,
        "partitionKey": "t-1",
        "memo": None,
        "createdAt": "2024-01-02T03:04:05Z",
    }


def test_validate_reports_errors_without_raising() -> None:
    outcome = DocumentSchema(Order).validate({"id": "o-1", "amount": "many"})

    assert not outcome.ok
    locations = {tuple(error["loc"]) for error in outcome.errors}
    assert ("amount",) in locations
    assert ("partitionKey",) in locations
    assert "amount" in outcome.summary()


def test_validate_many_fails_whole_batch() -> None:
    schema = DocumentSchema(Order, exclude_none=True)
    valid = {"id": "o-1", "amount": 1, "partitionKey": "t"}

    passed = schema.validate_many([valid, {**valid, "id": "o-2"}])
    failed = schema.validate_many([valid, {"id": "o-3"}])

    assert passed.ok
    assert [item["id"] for item in passed.data] == ["o-1", "o-2"]
    assert "memo" not in passed.data[0]
    assert not failed.ok
    assert failed.errors[0]["loc"][0] == 1


def test_to_patch_keeps_only_set_fields_of_model_instance() -> None:
    schema = DocumentSchema(Order)
    instance = Order.model_construct(amount=30)
    instance_with_set = Order.model_validate({"id": "o-1", "amount": 3, "partitionKey": "t"})

    assert schema.to_patch({"amount": 30}) == {"amount": 30}
    assert schema.to_patch(instance_with_set) == {"id": "o-1", "amount": 3, "partitionKey": "t"}
    assert schema.to_patch(instance) == {"amount": 30}


def test_ensure_schema_wraps_model_class() -> None:
    schema = DocumentSchema(Order)

    assert ensure_schema(schema) is schema
    assert ensure_schema(Order).model is Order
    assert ensure_schema(None) is None
    with pytest.raises(TypeError):
        DocumentSchema(dict)
