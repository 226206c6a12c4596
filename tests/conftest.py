"""
목적: 테스트 공통 환경/픽스처/로깅 훅을 단일화해 제공한다.
설명: 선택적 .env 로딩, 인메모리 저장소/모델 픽스처, 세션/테스트 로깅 훅을 함께 제공한다.
디자인 패턴: 테스트 픽스처 + 테스트 훅
참조: tests/integrations/db/CRUD/test_cosmos_engine_crud.py, pyproject.toml
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from cosmos_odm.integrations.db.engines.memory import InMemoryCollection, InMemoryStoreClient
from cosmos_odm.integrations.db.model import Model
from cosmos_odm.shared.logging import InMemoryLogger, InMemoryLogRepository


_LOGGER = logging.getLogger("tests")
_PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _load_env_files() -> None:
    """프로젝트 루트의 .env가 있으면 로딩한다. 단위 테스트는 .env 없이 동작한다."""

    env_path = _PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


_load_env_files()


class Address(BaseModel):
    """테스트용 중첩 주소 스키마."""

    city: str
    zip_code: Optional[str] = Field(default=None, alias="zipCode")


class Member(BaseModel):
    """테스트용 회원 문서 스키마."""

    id: str
    name: str
    status: str = "active"
    age: int = 0
    tags: List[str] = Field(default_factory=list)
    address: Optional[Address] = None
    partition_key: Optional[str] = Field(default=None, alias="partitionKey")


@pytest.fixture
def log_repository() -> InMemoryLogRepository:
    return InMemoryLogRepository()


@pytest.fixture
def odm_logger(log_repository: InMemoryLogRepository) -> InMemoryLogger:
    return InMemoryLogger(name="tests", repository=log_repository)


@pytest.fixture
def store() -> InMemoryStoreClient:
    return InMemoryStoreClient()


@pytest.fixture
def members_collection() -> InMemoryCollection:
    return InMemoryCollection("members")


@pytest.fixture
def member_schema() -> type:
    return Member


@pytest.fixture
def member_model(members_collection: InMemoryCollection, odm_logger: InMemoryLogger) -> Model:
    return Model(Member, members_collection, logger=odm_logger)


@pytest.fixture
def make_member():
    """기본값이 채워진 회원 문서 dict 생성기를 반환한다."""

    def factory(doc_id: str, **fields) -> Dict[str, object]:
        document: Dict[str, object] = {"id": doc_id, "name": f"member-{doc_id}"}
        document.update(fields)
        return document

    return factory


def pytest_sessionstart(session) -> None:  # noqa: D401 - pytest 훅 시그니처 유지
    """테스트 세션 시작을 로깅한다."""

    _LOGGER.info("테스트 세션 시작")


def pytest_sessionfinish(session, exitstatus: int) -> None:  # noqa: D401 - pytest 훅 시그니처 유지
    """테스트 세션 종료를 로깅한다."""

    _LOGGER.info("테스트 세션 종료 (exitstatus=%s)", exitstatus)


def pytest_runtest_logstart(nodeid: str, location) -> None:  # noqa: D401 - pytest 훅 시그니처 유지
    """각 테스트 시작을 로깅한다."""

    _LOGGER.info("테스트 시작: %s", nodeid)


def pytest_runtest_logreport(report) -> None:  # noqa: D401 - pytest 훅 시그니처 유지
    """테스트 결과를 로깅한다."""

    if report.when != "call":
        return
    if report.passed:
        _LOGGER.info("테스트 완료: %s", report.nodeid)
        return
    if report.skipped:
        _LOGGER.warning("테스트 스킵: %s", report.nodeid)
        return
    _LOGGER.error("테스트 실패: %s", report.nodeid)
