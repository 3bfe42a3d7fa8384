# app/models/participant.py
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.database import Base
import uuid

class Participant(Base):
    """참가자 모델 (포인트는 저장하지 않고 매번 계산)"""
    __tablename__ = "participants"

    # 기본 필드
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(30), unique=True, index=True, nullable=False)

    # 타임스탬프
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Participant {self.name}>"
