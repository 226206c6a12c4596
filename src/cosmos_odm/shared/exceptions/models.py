"""
목적: 공통 예외 모델을 정의한다.
설명: 에러 코드 열거형과 코드/원인/힌트/메타데이터를 담는 Pydantic 모델을 제공한다.
디자인 패턴: 데이터 전송 객체(DTO)
참조: src/cosmos_odm/shared/exceptions/base.py, src/cosmos_odm/integrations/db/base/models.py
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """ODM 전반에서 사용하는 에러 코드."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_NAME = "INVALID_NAME"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    CONFLICT = "CONFLICT"
    STORE_ERROR = "STORE_ERROR"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    BATCH_PARTIAL_FAILURE = "BATCH_PARTIAL_FAILURE"


class ExceptionDetail(BaseModel):
    """예외 상세 정보를 담는 모델이다.

    결과 엔벨로프의 `error` 필드와 배치 항목별 오류에 그대로 실린다.

    Args:
        code: 에러 코드.
        cause: 에러의 직접 원인 설명.
        hint: 해결을 위한 힌트.
        metadata: 검증 진단, 상태 코드 등 구조화 메타데이터.
    """

    code: ErrorCode = Field(..., description="에러 코드")
    cause: Optional[str] = Field(default=None, description="에러 원인")
    hint: Optional[str] = Field(default=None, description="해결 힌트")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="추가 메타데이터")
