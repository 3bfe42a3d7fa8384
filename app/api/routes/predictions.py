# app/api/routes/predictions.py
"""
예측 / 공식 결과 API

scope가 "official"이면 공식 결과(관리자), 참가자 id면 그 참가자의 예측이다.
조회는 스냅샷 하나로 계산만 하고, 쓰기 후에는 영향받는 라운드만 다시 생성한다.
"""
from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_bracket_graph, get_scope_store, get_writable_store
from app.core.exceptions import UnknownMatch
from app.core.logger import logger
from app.models.prediction import OFFICIAL_SCOPE
from app.schemas.pool import DeleteResponse, ResultRequest, ResultResponse, WinnerRequest, WinnerResponse
from app.services import feed_service
from app.services.bracket_service import BracketGraph
from app.services.prediction_store import GroupResult, SqlPredictionStore, match_key, slot_key

router = APIRouter(prefix="/api/v1/predictions/{scope}", tags=["예측"])

# ----- 조별리그 -----

@router.get("/groups")
def get_group_tables(
    store: SqlPredictionStore = Depends(get_scope_store),
    graph: BracketGraph = Depends(get_bracket_graph)
) -> List[dict]:
    """전체 조 순위표"""
    return feed_service.group_tables_feed(graph.tournament, store.snapshot())

@router.get("/groups/{group}")
def get_group_table(
    group: str,
    store: SqlPredictionStore = Depends(get_scope_store),
    graph: BracketGraph = Depends(get_bracket_graph)
) -> dict:
    return feed_service.group_table_feed(graph.tournament, store.snapshot(), group)

@router.get("/matches")
def get_matches(
    store: SqlPredictionStore = Depends(get_scope_store),
    graph: BracketGraph = Depends(get_bracket_graph)
) -> List[dict]:
    """조별 경기 목록 + 입력된 스코어 (참가자면 공식 스코어와 경기별 점수 포함)"""
    official = None
    if store.scope != OFFICIAL_SCOPE:
        official = SqlPredictionStore(store.db, OFFICIAL_SCOPE).snapshot()
    return feed_service.matches_feed(graph.tournament, store.snapshot(), official)

@router.put("/matches/{match_id}", response_model=ResultResponse)
def put_match_result(
    match_id: str,
    data: ResultRequest,
    store: SqlPredictionStore = Depends(get_writable_store),
    graph: BracketGraph = Depends(get_bracket_graph)
):
    """스코어 입력 (덮어쓰기)"""
    if graph.tournament.find_fixture(match_id) is None:
        raise UnknownMatch(match_id)

    result = GroupResult.create(data.home_goals, data.away_goals)
    key = match_key(match_id)
    with store.lock(key):
        store.set(key, result.to_payload())
    logger.info(f"[{store.scope}] {match_id} 스코어 입력: {result.home_goals}-{result.away_goals}")

    cleared = graph.recompute_from(store, key)
    return {"match_id": match_id, **result.to_payload(), "cleared_slots": cleared}

@router.delete("/matches/{match_id}", response_model=DeleteResponse)
def delete_match_result(
    match_id: str,
    store: SqlPredictionStore = Depends(get_writable_store),
    graph: BracketGraph = Depends(get_bracket_graph)
):
    if graph.tournament.find_fixture(match_id) is None:
        raise UnknownMatch(match_id)

    key = match_key(match_id)
    with store.lock(key):
        deleted = store.delete(key)
    if not deleted:
        return {"deleted": False, "cleared_slots": []}

    logger.info(f"[{store.scope}] {match_id} 스코어 삭제")
    return {"deleted": True, "cleared_slots": graph.recompute_from(store, key)}

# ----- 토너먼트 -----

@router.get("/bracket")
def get_bracket(
    store: SqlPredictionStore = Depends(get_scope_store),
    graph: BracketGraph = Depends(get_bracket_graph)
) -> List[dict]:
    """전체 브라켓 (라운드 순서)"""
    return feed_service.bracket_feed(graph, store.snapshot())

@router.get("/bracket/{round_key}")
def get_round(
    round_key: str,
    store: SqlPredictionStore = Depends(get_scope_store),
    graph: BracketGraph = Depends(get_bracket_graph)
) -> dict:
    return feed_service.round_feed(graph, store.snapshot(), round_key)

@router.put("/bracket/slots/{number}", response_model=WinnerResponse)
def put_slot_winner(
    number: int,
    data: WinnerRequest,
    store: SqlPredictionStore = Depends(get_writable_store),
    graph: BracketGraph = Depends(get_bracket_graph)
):
    """승자 선택 (이후 라운드에서 대진이 바뀐 선택은 삭제)"""
    pick = graph.record_winner(store, number, data.team)
    cleared = graph.recompute_from(store, slot_key(number))
    return {
        "number": number,
        "home": pick.home,
        "away": pick.away,
        "winner": pick.winner,
        "cleared_slots": cleared
    }

@router.delete("/bracket/slots/{number}", response_model=DeleteResponse)
def delete_slot_winner(
    number: int,
    store: SqlPredictionStore = Depends(get_writable_store),
    graph: BracketGraph = Depends(get_bracket_graph)
):
    if not graph.clear_winner(store, number):
        return {"deleted": False, "cleared_slots": []}
    return {"deleted": True, "cleared_slots": graph.recompute_from(store, slot_key(number))}
