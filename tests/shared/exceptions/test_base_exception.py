"""
목적: 공통 예외 모델과 ODM 예외 계층 동작을 검증한다.
설명: 예외 메시지/상세 모델/원본 예외 저장, 직렬화, 하위 예외별 기본 코드를 확인한다.
디자인 패턴: 도메인 예외 객체, DTO
참조: src/cosmos_odm/shared/exceptions/base.py, src/cosmos_odm/shared/exceptions/models.py
"""

from __future__ import annotations

import pytest

from cosmos_odm.shared.exceptions import (
    BaseAppException,
    DocumentConflictError,
    DocumentNotFoundError,
    ErrorCode,
    ExceptionDetail,
    InvalidNameError,
    PreconditionError,
    StoreOperationError,
    StoreUnavailableError,
)


def test_base_app_exception_to_dict() -> None:
    """BaseAppException의 직렬화 결과를 검증한다."""

    detail = ExceptionDetail(
        code=ErrorCode.INVALID_ARGUMENT,
        cause="입력 데이터 누락",
        hint="필수 파라미터를 확인하세요.",
        metadata={"field": "name"},
    )
    original = ValueError("name is required")
    error = BaseAppException(message="유효하지 않은 요청입니다.", detail=detail, original=original)

    result = error.to_dict()

    assert error.message == "유효하지 않은 요청입니다."
    assert error.detail.code == ErrorCode.INVALID_ARGUMENT
    assert error.original is original
    assert result["message"] == "유효하지 않은 요청입니다."
    assert result["detail"]["code"] == "INVALID_ARGUMENT"
    assert result["detail"]["metadata"]["field"] == "name"
    assert "ValueError" in result["original"]


@pytest.mark.parametrize(
    ("error_cls", "code"),
    [
        (InvalidNameError, ErrorCode.INVALID_NAME),
        (PreconditionError, ErrorCode.PRECONDITION_FAILED),
        (DocumentNotFoundError, ErrorCode.NOT_FOUND),
        (StoreOperationError, ErrorCode.STORE_ERROR),
        (DocumentConflictError, ErrorCode.CONFLICT),
        (StoreUnavailableError, ErrorCode.STORE_UNAVAILABLE),
    ],
)
def test_odm_errors_carry_default_code(error_cls, code) -> None:
    """하위 예외는 메시지만으로 기본 코드가 채워진 상세 모델을 만든다."""

    error = error_cls("실패", metadata={"status_code": 500})

    assert isinstance(error, BaseAppException)
    assert error.detail.code == code
    assert error.detail.cause == "실패"
    assert error.detail.metadata == {"status_code": 500}


def test_store_error_family_shares_base_class() -> None:
    """충돌/연결 오류는 저장소 오류로도 잡힌다."""

    with pytest.raises(StoreOperationError):
        raise DocumentConflictError("exists")
    with pytest.raises(StoreOperationError):
        raise StoreUnavailableError("down")
