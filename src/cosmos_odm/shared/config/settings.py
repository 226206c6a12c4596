"""
목적: ODM 런타임 설정 모델을 제공한다.
설명: 저장소 자격 증명과 모델 기본값을 검증된 Pydantic 모델로 묶는다.
디자인 패턴: 데이터 전송 객체(DTO)
참조: src/cosmos_odm/shared/config/loader.py, src/cosmos_odm/integrations/db/client.py
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from cosmos_odm.shared.config.loader import ConfigLoader
from cosmos_odm.shared.const import OdmConst, SharedConst


class OdmSettings(BaseModel):
    """ODM 설정 모델이다.

    Args:
        endpoint: 문서 저장소 엔드포인트.
        key: 저장소 접근 키.
        database: 기본 데이터베이스 이름.
        partition_key_path: 컬렉션 생성 시 사용할 파티션 키 경로.
        default_limit: find 기본 조회 수.
        batch_mode: 배치 부분 실패 처리 방식(lenient/strict).
        partition_key_field: 문서에서 파티션 키 값을 읽을 필드. 없으면 컬렉션 경로를 따른다.
    """

    endpoint: Optional[str] = None
    key: Optional[str] = Field(default=None, repr=False)
    database: Optional[str] = None
    partition_key_path: str = OdmConst.DEFAULT_PARTITION_KEY_PATH
    default_limit: int = Field(default=OdmConst.DEFAULT_LIMIT, ge=1)
    batch_mode: Literal["lenient", "strict"] = "lenient"
    partition_key_field: Optional[str] = None

    @field_validator("partition_key_path")
    @classmethod
    def _check_partition_key_path(cls, value: str) -> str:
        if not value.startswith("/") or len(value) < 2:
            raise ValueError("partition_key_path는 '/field' 형식이어야 합니다.")
        return value

    @classmethod
    def from_env(
        cls,
        prefix: str = SharedConst.ENV_PREFIX,
        env_file: Optional[str] = None,
        loader: Optional[ConfigLoader] = None,
    ) -> "OdmSettings":
        """`.env` 파일과 환경 변수에서 설정을 읽는다. 환경 변수가 우선한다."""

        loader = loader or ConfigLoader()
        if env_file:
            loader.add_env_file(env_file, prefix=prefix)
        loader.add_env(prefix=prefix)
        return cls.model_validate(loader.build())
