# app/api/deps.py
import hmac
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import PredictionsLocked, UnknownParticipant
from app.core.logger import logger
from app.database import get_db
from app.models.participant import Participant
from app.models.prediction import OFFICIAL_SCOPE
from app.schemas.tournament import TournamentConfig
from app.services.bracket_service import BracketGraph
from app.services.prediction_store import SqlPredictionStore
from app.services.tournament_service import get_bracket, get_tournament


def get_tournament_config() -> TournamentConfig:
    return get_tournament()


def get_bracket_graph() -> BracketGraph:
    return get_bracket()


def get_participant(participant_id: str, db: Session) -> Participant:
    """참가자 조회 (없으면 404)"""
    participant = db.query(Participant).filter(Participant.id == participant_id).first()
    if participant is None:
        raise UnknownParticipant(participant_id)
    return participant


def get_scope_store(scope: str, db: Session = Depends(get_db)) -> SqlPredictionStore:
    """경로의 scope ("official" 또는 참가자 id) 저장소"""
    if scope != OFFICIAL_SCOPE:
        get_participant(scope, db)
    return SqlPredictionStore(db, scope)


def predictions_locked(now: Optional[datetime] = None) -> bool:
    """예측 마감 여부 (마감 시각에 timezone이 없으면 UTC로 본다)"""
    lock_at = settings.predictions_lock_at
    if lock_at is None:
        return False
    if lock_at.tzinfo is None:
        lock_at = lock_at.replace(tzinfo=timezone.utc)
    return (now or datetime.now(timezone.utc)) >= lock_at


def get_writable_store(
    store: SqlPredictionStore = Depends(get_scope_store),
    x_admin_token: Optional[str] = Header(None),
) -> SqlPredictionStore:
    """
    쓰기 가능한 저장소

    - official: 관리자 토큰 필요 (설정되지 않았으면 항상 거부)
    - 참가자: 예측 마감 이후 수정 불가
    """
    if store.scope == OFFICIAL_SCOPE:
        if not settings.admin_token or not x_admin_token or \
                not hmac.compare_digest(x_admin_token, settings.admin_token):
            logger.warning("공식 결과 수정 거부: 관리자 토큰 불일치")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="공식 결과는 관리자만 수정할 수 있습니다"
            )
        return store

    if predictions_locked():
        raise PredictionsLocked(f"예측이 마감되었습니다 ({settings.predictions_lock_at.isoformat()})")
    return store
