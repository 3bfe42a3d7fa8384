# app/models/prediction.py
from sqlalchemy import Column, String, Integer, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from app.database import Base

# 공식 결과/공식 브라켓을 담는 scope
OFFICIAL_SCOPE = "official"

class PredictionRecord(Base):
    """예측 레코드 (scope + key 단위 key-value)"""
    __tablename__ = "prediction_records"
    __table_args__ = (
        UniqueConstraint("scope", "key", name="uq_prediction_scope_key"),
    )

    # 기본 필드
    id = Column(Integer, primary_key=True, autoincrement=True)
    scope = Column(String, index=True, nullable=False)  # 참가자 id 또는 "official"
    key = Column(String, nullable=False)                # "match:A1", "slot:89"

    # 값
    payload = Column(JSON, nullable=False)  # {"home_goals": 2, "away_goals": 1} / {"home": .., "away": .., "winner": ..}

    # 타임스탬프
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<PredictionRecord {self.scope}:{self.key}>"
