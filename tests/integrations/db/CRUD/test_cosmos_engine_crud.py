"""
목적: Cosmos DB 엔진의 기본 CRUD 동작을 검증한다.
설명: 실제 Cosmos DB 계정에서 컬렉션 준비, 문서 저장/조회/갱신/삭제 흐름을 확인한다.
디자인 패턴: 테스트 케이스
참조: src/cosmos_odm/integrations/db/engines/cosmos/engine.py
"""

from __future__ import annotations

import logging
import os
import uuid

import pytest

from cosmos_odm.integrations.db import OdmClient, qb
from cosmos_odm.shared.config import OdmSettings


_LOGGER = logging.getLogger("tests.crud")


def _log_step(action: str, **context) -> None:
    """CRUD 단계별 동작을 로깅한다."""

    if context:
        payload = ", ".join(f"{key}={value}" for key, value in context.items())
        _LOGGER.info("%s | %s", action, payload)
        return
    _LOGGER.info("%s", action)


@pytest.mark.asyncio
async def test_cosmos_engine_basic_crud(member_schema, make_member) -> None:
    """Cosmos CRUD 기본 동작을 검증한다."""

    if not (os.getenv("COSMOS_ODM__ENDPOINT") and os.getenv("COSMOS_ODM__KEY")):
        pytest.skip("COSMOS_ODM__ENDPOINT, COSMOS_ODM__KEY 환경 변수가 필요합니다.")

    settings = OdmSettings.from_env()
    if not settings.database:
        settings = settings.model_copy(update={"database": "cosmos_odm_tests"})
    _log_step("클라이언트 생성", database=settings.database)
    client = OdmClient.from_settings(settings)
    collection = _collection_name("members")
    _log_step("컬렉션 준비", name=collection)
    model = await client.model(member_schema, collection)

    try:
        _log_step("문서 저장", doc_id="m-1")
        created = await model.insert(make_member("m-1", age=30))
        assert created.success, created.error

        _log_step("문서 조회", doc_id="m-1")
        loaded = await model.find_by_id("m-1")
        assert loaded.resource["age"] == 30

        _log_step("조건 조회", field="status", op="eq", value="active")
        found = await model.find(filter=qb().eq("status", "active"))
        assert [doc["id"] for doc in found.resources] == ["m-1"]

        _log_step("문서 갱신", doc_id="m-1")
        updated = await model.update_by_id({"age": 31}, "m-1")
        assert updated.resource["age"] == 31

        _log_step("카운트", field="status")
        counted = await model.count(filter=qb().eq("status", "active"))
        assert counted.count == 1

        _log_step("문서 삭제", doc_id="m-1")
        deleted = await model.delete_by_id("m-1")
        assert deleted.deleted
        _log_step("삭제 확인", doc_id="m-1")
        assert (await model.find_by_id("m-1")).resource is None
    finally:
        _log_step("컬렉션 삭제", name=collection)
        database = client.store.connection.ensure_client().get_database_client(settings.database)
        await database.delete_container(collection)
        _log_step("연결 종료")
        await client.close()


def _collection_name(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"
