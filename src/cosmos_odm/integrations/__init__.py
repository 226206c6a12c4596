"""
목적: 외부 통합 모듈 패키지를 정의한다.
설명: 문서 저장소 통합(db) 하위 패키지를 묶는다.
디자인 패턴: 퍼사드
참조: src/cosmos_odm/integrations/db
"""
