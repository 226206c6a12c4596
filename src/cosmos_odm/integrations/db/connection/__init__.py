"""
목적: 연결 캐시 모듈 공개 API를 제공한다.
설명: 싱글 플라이트 핸들 캐시를 외부에 노출한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/integrations/db/connection/cache.py
"""

from .cache import ConnectionCache

__all__ = ["ConnectionCache"]
