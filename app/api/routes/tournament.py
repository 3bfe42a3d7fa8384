# app/api/routes/tournament.py
from fastapi import APIRouter, Depends

from app.api.deps import get_tournament_config
from app.schemas.tournament import TournamentConfig

router = APIRouter(prefix="/api/v1/tournament", tags=["대회"])

@router.get("", response_model=TournamentConfig)
def get_tournament_format(tournament: TournamentConfig = Depends(get_tournament_config)):
    """대회 포맷 (조, 일정, 대진표, 점수표)"""
    return tournament
