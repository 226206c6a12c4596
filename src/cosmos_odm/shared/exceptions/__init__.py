"""
목적: 예외 모듈 공개 API를 제공한다.
설명: 외부에서 사용할 예외 모델, 베이스 클래스, ODM 도메인 예외를 노출한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/shared/exceptions/models.py, src/cosmos_odm/shared/exceptions/base.py
"""

from cosmos_odm.shared.exceptions.base import (
    BaseAppException,
    DocumentConflictError,
    DocumentNotFoundError,
    InvalidArgumentError,
    InvalidNameError,
    OdmError,
    PreconditionError,
    SchemaValidationError,
    StoreOperationError,
    StoreUnavailableError,
)
from cosmos_odm.shared.exceptions.models import ErrorCode, ExceptionDetail

__all__ = [
    "BaseAppException",
    "ExceptionDetail",
    "ErrorCode",
    "OdmError",
    "InvalidNameError",
    "InvalidArgumentError",
    "PreconditionError",
    "SchemaValidationError",
    "DocumentNotFoundError",
    "DocumentConflictError",
    "StoreOperationError",
    "StoreUnavailableError",
]
