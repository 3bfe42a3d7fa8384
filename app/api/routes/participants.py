# app/api/routes/participants.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_participant, predictions_locked
from app.config import settings
from app.core.exceptions import PredictionsLocked
from app.core.logger import logger
from app.database import get_db
from app.models.participant import Participant
from app.models.prediction import OFFICIAL_SCOPE
from app.schemas.pool import ParticipantCreate, ParticipantResponse, ResetResponse
from app.services.prediction_store import SqlPredictionStore

router = APIRouter(prefix="/api/v1/participants", tags=["참가자"])

@router.post("", response_model=ParticipantResponse, status_code=status.HTTP_201_CREATED)
def create_participant(data: ParticipantCreate, db: Session = Depends(get_db)):
    """참가자 등록"""
    name = data.name.strip()
    if not name or name.lower() == OFFICIAL_SCOPE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="사용할 수 없는 이름입니다"
        )

    # 이름 중복 체크
    existing = db.query(Participant).filter(Participant.name == name).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="이미 사용 중인 이름입니다"
        )

    participant = Participant(name=name)
    db.add(participant)
    db.commit()
    db.refresh(participant)

    logger.info(f"참가자 등록: {participant.name} ({participant.id})")
    return participant

@router.get("", response_model=List[ParticipantResponse])
def list_participants(db: Session = Depends(get_db)):
    """참가자 목록"""
    return db.query(Participant).order_by(Participant.name).all()

@router.get("/{participant_id}", response_model=ParticipantResponse)
def get_participant_detail(participant_id: str, db: Session = Depends(get_db)):
    return get_participant(participant_id, db)

@router.delete("/{participant_id}/predictions", response_model=ResetResponse)
def reset_predictions(participant_id: str, db: Session = Depends(get_db)):
    """참가자 예측 전체 초기화"""
    participant = get_participant(participant_id, db)
    if predictions_locked():
        raise PredictionsLocked(f"예측이 마감되었습니다 ({settings.predictions_lock_at.isoformat()})")

    deleted = SqlPredictionStore(db, participant.id).clear()
    return {"participant_id": participant.id, "deleted_records": deleted}
