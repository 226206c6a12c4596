"""
목적: 설정 로더 공개 API를 제공한다.
설명: 일반 설정 병합 로더와 ODM 설정 모델을 외부에 노출한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/shared/config/loader.py, src/cosmos_odm/shared/config/settings.py
"""

from cosmos_odm.shared.config.loader import ConfigLoader
from cosmos_odm.shared.config.settings import OdmSettings

__all__ = ["ConfigLoader", "OdmSettings"]
