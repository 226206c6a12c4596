"""
목적: shared 패키지의 공개 API를 제공한다.
설명: 예외, 로깅, 설정 모듈에 대한 접근 포인트를 제공한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/shared/exceptions, src/cosmos_odm/shared/logging, src/cosmos_odm/shared/config
"""

from cosmos_odm.shared.config import ConfigLoader, OdmSettings
from cosmos_odm.shared.exceptions import BaseAppException, ErrorCode, ExceptionDetail, OdmError
from cosmos_odm.shared.logging import (
    InMemoryLogger,
    LogContext,
    LogLevel,
    LogRecord,
    Logger,
    LogRepository,
    StdlibLogRepository,
    create_default_logger,
)

__all__ = [
    "BaseAppException",
    "ErrorCode",
    "ExceptionDetail",
    "OdmError",
    "ConfigLoader",
    "OdmSettings",
    "LogContext",
    "LogLevel",
    "LogRecord",
    "Logger",
    "LogRepository",
    "StdlibLogRepository",
    "InMemoryLogger",
    "create_default_logger",
]
