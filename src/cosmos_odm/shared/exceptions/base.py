"""
목적: 공통 예외 베이스 클래스와 ODM 도메인 예외를 제공한다.
설명: 메시지와 상세 모델을 함께 보관하며, 하위 예외는 기본 에러 코드를 가진다.
디자인 패턴: 도메인 예외 객체
참조: src/cosmos_odm/shared/exceptions/models.py
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from cosmos_odm.shared.exceptions.models import ErrorCode, ExceptionDetail


class BaseAppException(Exception):
    """애플리케이션 공통 예외 클래스이다.

    Args:
        message: 사용자 또는 시스템에 전달할 메시지.
        detail: 예외 상세 정보 모델.
        original: 원본 예외 객체.
    """

    def __init__(
        self,
        message: str,
        detail: ExceptionDetail,
        original: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self._message = message
        self._detail = detail
        self._original = original

    @property
    def message(self) -> str:
        """주입된 메시지를 반환한다."""

        return self._message

    @property
    def detail(self) -> ExceptionDetail:
        """예외 상세 모델을 반환한다."""

        return self._detail

    @property
    def original(self) -> Optional[Exception]:
        """원본 예외를 반환한다."""

        return self._original

    def to_dict(self) -> dict:
        """예외 정보를 사전으로 변환한다."""

        return {
            "message": self._message,
            "detail": self._detail.model_dump(mode="json"),
            "original": repr(self._original) if self._original else None,
        }


class OdmError(BaseAppException):
    """ODM 예외의 루트 클래스.

    하위 클래스는 `code`만 바꾸고 메시지로 상세 모델을 자동 구성한다.
    """

    code: ErrorCode = ErrorCode.STORE_ERROR

    def __init__(
        self,
        message: str,
        hint: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        original: Optional[Exception] = None,
    ) -> None:
        detail = ExceptionDetail(
            code=self.code,
            cause=message,
            hint=hint,
            metadata=metadata or {},
        )
        super().__init__(message=message, detail=detail, original=original)


class InvalidNameError(OdmError):
    """데이터베이스/컬렉션 이름이 비어 있거나 허용되지 않는 문자를 포함한다."""

    code = ErrorCode.INVALID_NAME


class InvalidArgumentError(OdmError):
    """호출 인자가 유효하지 않다."""

    code = ErrorCode.INVALID_ARGUMENT


class PreconditionError(OdmError):
    """호출 전제 조건 위반(프로그래머 오류)."""

    code = ErrorCode.PRECONDITION_FAILED


class SchemaValidationError(OdmError):
    """스키마 검증 실패."""

    code = ErrorCode.VALIDATION_FAILED


class DocumentNotFoundError(OdmError):
    """대상 문서가 존재하지 않는다."""

    code = ErrorCode.NOT_FOUND


class StoreOperationError(OdmError):
    """원격 저장소 호출 실패."""

    code = ErrorCode.STORE_ERROR


class DocumentConflictError(StoreOperationError):
    """같은 id의 문서가 이미 존재한다."""

    code = ErrorCode.CONFLICT


class StoreUnavailableError(StoreOperationError):
    """저장소 드라이버가 없거나 연결할 수 없다."""

    code = ErrorCode.STORE_UNAVAILABLE
