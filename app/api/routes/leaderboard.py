# app/api/routes/leaderboard.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_bracket_graph
from app.core.exceptions import UnknownMatch
from app.database import get_db
from app.models.participant import Participant
from app.models.prediction import OFFICIAL_SCOPE
from app.schemas.pool import ExactHitsResponse, ScoreCardResponse
from app.services.bracket_service import BracketGraph
from app.services.prediction_store import SqlPredictionStore, read_result
from app.services.scoring_service import build_leaderboard, exact_hitters, score_participant

router = APIRouter(prefix="/api/v1/leaderboard", tags=["순위"])

@router.get("", response_model=List[ScoreCardResponse])
def get_leaderboard(
    db: Session = Depends(get_db),
    graph: BracketGraph = Depends(get_bracket_graph)
):
    """전체 순위 (총점 > 정확히 맞힌 수 > 이름, 동점이면 같은 순위)"""
    official = SqlPredictionStore(db, OFFICIAL_SCOPE).snapshot()
    official_resolver = graph.resolver(official)

    cards = [
        score_participant(
            graph,
            participant.id,
            participant.name,
            SqlPredictionStore(db, participant.id).snapshot(),
            official,
            official_resolver
        )
        for participant in db.query(Participant).all()
    ]

    leaderboard = []
    rank = 0
    previous = None
    for position, card in enumerate(build_leaderboard(cards), start=1):
        if (card.total, card.exact_hits) != previous:
            rank = position
            previous = (card.total, card.exact_hits)
        leaderboard.append({"rank": rank, **card.to_dict()})
    return leaderboard

@router.get("/matches/{match_id}/exact-hits", response_model=ExactHitsResponse)
def get_exact_hits(
    match_id: str,
    db: Session = Depends(get_db),
    graph: BracketGraph = Depends(get_bracket_graph)
):
    """공식 스코어를 정확히 맞힌 참가자"""
    if graph.tournament.find_fixture(match_id) is None:
        raise UnknownMatch(match_id)

    official = SqlPredictionStore(db, OFFICIAL_SCOPE).snapshot()
    result = read_result(official, match_id)
    participants = [
        (participant.name, SqlPredictionStore(db, participant.id).snapshot())
        for participant in db.query(Participant).all()
    ]
    return {
        "match_id": match_id,
        "result": result.to_payload() if result else None,
        "participants": exact_hitters(match_id, official, participants)
    }
