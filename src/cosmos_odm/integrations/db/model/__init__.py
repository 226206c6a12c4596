"""
목적: CRUD 모델 모듈 공개 API를 제공한다.
설명: 컬렉션 단위 범용 모델을 외부로 노출한다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/integrations/db/model/model.py
"""

from cosmos_odm.integrations.db.model.model import Model

__all__ = ["Model"]
