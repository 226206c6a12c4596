"""
목적: 로거 인터페이스와 기본 구현체를 제공한다.
설명: 저장소 주입형 로거와 인메모리/표준 logging 저장소를 포함한다.
디자인 패턴: 전략 패턴, 저장소 패턴
참조: src/cosmos_odm/shared/logging/models.py
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from .models import LogContext, LogLevel, LogRecord


class LogRepository(ABC):
    """로그 저장소 인터페이스."""

    @abstractmethod
    def add(self, record: LogRecord) -> None:
        """로그 레코드를 저장한다."""

    @abstractmethod
    def list(self) -> List[LogRecord]:
        """저장된 로그를 반환한다."""


class InMemoryLogRepository(LogRepository):
    """인메모리 로그 저장소 구현체.

    최근 `buffer_size`건만 보관한다. 0이면 보관하지 않는다.
    """

    def __init__(self, buffer_size: int = 1000) -> None:
        if buffer_size < 0:
            raise ValueError("buffer_size는 0 이상이어야 합니다.")
        self._buffer_size = buffer_size
        self._records: List[LogRecord] = []

    def add(self, record: LogRecord) -> None:
        if self._buffer_size == 0:
            return
        self._records.append(record)
        if len(self._records) > self._buffer_size:
            del self._records[: len(self._records) - self._buffer_size]

    def list(self) -> List[LogRecord]:
        return list(self._records)


class StdlibLogRepository(LogRepository):
    """표준 logging 모듈로 레코드를 전달하는 저장소.

    호스트 애플리케이션의 핸들러 구성을 그대로 따르며, 최근 레코드는
    `buffer_size`만큼 메모리에도 남겨 둔다.
    """

    _LEVEL_MAP = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }

    def __init__(self, logger_name: str = "cosmos_odm", buffer_size: int = 200) -> None:
        if buffer_size < 0:
            raise ValueError("buffer_size는 0 이상이어야 합니다.")
        self._logger = logging.getLogger(logger_name)
        self._buffer_size = buffer_size
        self._records: List[LogRecord] = []

    def add(self, record: LogRecord) -> None:
        extra = {"odm_logger": record.logger_name}
        if record.context is not None:
            extra["odm_context"] = record.context.model_dump(exclude_none=True)
        if record.metadata:
            extra["odm_metadata"] = dict(record.metadata)
        self._logger.log(
            self._LEVEL_MAP[record.level],
            "[%s] %s",
            record.logger_name,
            record.message,
            extra=extra,
        )
        if self._buffer_size == 0:
            return
        self._records.append(record)
        if len(self._records) > self._buffer_size:
            del self._records[: len(self._records) - self._buffer_size]

    def list(self) -> List[LogRecord]:
        return list(self._records)


class Logger(ABC):
    """로거 인터페이스."""

    @abstractmethod
    def log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        """로그를 기록한다."""

    @abstractmethod
    def with_context(self, context: LogContext) -> "Logger":
        """컨텍스트가 합쳐진 새 로거를 반환한다."""

    def debug(self, message: str, context: Optional[LogContext] = None, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.DEBUG, message, context, metadata)

    def info(self, message: str, context: Optional[LogContext] = None, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.INFO, message, context, metadata)

    def warning(self, message: str, context: Optional[LogContext] = None, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.WARNING, message, context, metadata)

    def error(self, message: str, context: Optional[LogContext] = None, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.ERROR, message, context, metadata)

    def critical(self, message: str, context: Optional[LogContext] = None, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.CRITICAL, message, context, metadata)


class InMemoryLogger(Logger):
    """저장소 주입형 로거 구현체. 기본 저장소는 인메모리다."""

    def __init__(
        self,
        name: str,
        repository: Optional[LogRepository] = None,
        base_context: Optional[LogContext] = None,
        emit_stdout: Optional[bool] = None,
    ) -> None:
        self._name = name
        self._repository = repository or InMemoryLogRepository()
        self._base_context = base_context
        self._emit_stdout = _read_emit_stdout_env() if emit_stdout is None else emit_stdout

    @property
    def name(self) -> str:
        return self._name

    @property
    def repository(self) -> LogRepository:
        """저장소를 반환한다."""

        return self._repository

    def log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        record = LogRecord(
            level=level,
            message=message,
            timestamp=datetime.now(timezone.utc),
            logger_name=self._name,
            context=self._merge_context(context),
            metadata=metadata or {},
        )
        self._repository.add(record)
        if self._emit_stdout:
            self._write_stdout(record)

    def with_context(self, context: LogContext) -> "Logger":
        return InMemoryLogger(
            name=self._name,
            repository=self._repository,
            base_context=self._merge_context(context),
            emit_stdout=self._emit_stdout,
        )

    def _merge_context(self, context: Optional[LogContext]) -> Optional[LogContext]:
        if self._base_context is None:
            return context
        if context is None:
            return self._base_context
        base = self._base_context
        return LogContext(
            request_id=context.request_id or base.request_id,
            database=context.database or base.database,
            collection=context.collection or base.collection,
            operation=context.operation or base.operation,
            tags={**base.tags, **context.tags},
        )

    def _write_stdout(self, record: LogRecord) -> None:
        payload: dict[str, object] = {
            "timestamp": record.timestamp.astimezone(timezone.utc).isoformat(),
            "level": record.level.value,
            "logger": record.logger_name,
            "message": record.message,
        }
        if record.context is not None:
            payload["context"] = record.context.model_dump(exclude_none=True)
        if record.metadata:
            payload["metadata"] = record.metadata
        print(json.dumps(payload, ensure_ascii=False, default=str), flush=True)


def _read_emit_stdout_env() -> bool:
    raw = os.getenv("LOG_STDOUT")
    if raw is None:
        return False
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def create_default_logger(
    name: str,
    repository: Optional[LogRepository] = None,
) -> InMemoryLogger:
    """기본 로거를 생성한다.

    저장소를 주지 않으면 크기가 제한된 인메모리 저장소를 쓰며,
    `LOG_STDOUT`이 켜져 있으면 JSON 한 줄로 표준 출력에도 기록한다.
    """

    return InMemoryLogger(name=name, repository=repository)
