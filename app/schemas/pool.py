# app/schemas/pool.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, List, Optional

class ResultRequest(BaseModel):
    """조별 경기 스코어 입력"""
    home_goals: int = Field(..., ge=0)
    away_goals: int = Field(..., ge=0)

class ResultResponse(BaseModel):
    """스코어 입력 응답"""
    match_id: str
    home_goals: int
    away_goals: int
    cleared_slots: List[int] = []  # 대진 변경으로 삭제된 승자 선택

class WinnerRequest(BaseModel):
    """토너먼트 승자 선택"""
    team: str = Field(..., min_length=1)

class WinnerResponse(BaseModel):
    number: int
    home: str
    away: str
    winner: str
    cleared_slots: List[int] = []

class DeleteResponse(BaseModel):
    deleted: bool
    cleared_slots: List[int] = []

class ParticipantCreate(BaseModel):
    """참가자 등록"""
    name: str = Field(..., min_length=1, max_length=30)

class ParticipantResponse(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ResetResponse(BaseModel):
    participant_id: str
    deleted_records: int

class ScoreCardResponse(BaseModel):
    """리더보드 한 줄"""
    rank: int
    participant_id: str
    name: str
    group_points: int
    exact_hits: int
    outcome_hits: int
    round_points: Dict[str, int]
    knockout_points: int
    champion_bonus: int
    total: int

class ExactHitsResponse(BaseModel):
    match_id: str
    result: Optional[Dict[str, int]] = None
    participants: List[str] = []
