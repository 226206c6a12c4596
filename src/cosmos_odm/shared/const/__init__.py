"""
목적: 공통 상수를 제공한다.
설명: 설정 로딩과 ODM 쿼리 생성에 쓰이는 기본값을 한곳에 모은다.
디자인 패턴: 상수 모듈
참조: src/cosmos_odm/shared/config/loader.py, src/cosmos_odm/integrations/db/model/model.py
"""

from __future__ import annotations


class SharedConst:
    """설정/로딩 공통 상수."""

    DEFAULT_ENCODING = "utf-8"
    ENV_NESTED_DELIMITER = "__"
    ENV_PREFIX = "COSMOS_ODM__"


class OdmConst:
    """ODM 쿼리/모델 기본 상수."""

    COLLECTION_ALIAS = "c"
    PARAM_PREFIX = "@param"
    DEFAULT_LIMIT = 100
    DEFAULT_OFFSET = 0
    DEFAULT_PARTITION_KEY_PATH = "/id"
    ID_FIELD = "id"
    INVALID_NAME_CHARS = ("/", "\\", "?", "#")
    EMPTY_IN_CLAUSE = "false"
