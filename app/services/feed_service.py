# app/services/feed_service.py
"""
화면용 읽기 전용 피드

저장소 스냅샷 하나로 조 순위표/경기 목록/브라켓을 만든다. 여기서는 아무것도
저장하지 않는다 (무효화된 선택 정리는 recompute_from이 쓰기 시점에 한다).
"""
from typing import List, Mapping, Optional

from app.core.exceptions import NotFoundError
from app.schemas.tournament import TournamentConfig
from app.services.bracket_service import BracketGraph
from app.services.prediction_store import read_result
from app.services.qualification_service import Qualification, collect_results, resolve_qualification
from app.services.scoring_service import calculate_points


def _zone(qualification: Qualification, tournament: TournamentConfig, group: str, place: int, team: str) -> str:
    """순위표 행 구분 (직행 / 3위 후보 / 와일드카드 진출 / 탈락)"""
    direct = tournament.qualification.direct_places
    if place <= direct:
        return "qualified"
    if place == direct + 1:
        # 와일드카드는 모든 조가 끝나야 확정된다
        if qualification.complete and any(e.team == team for e in qualification.best_thirds):
            return "best_third"
        return "third_candidate"
    return "eliminated"


def _table_view(qualification: Qualification, tournament: TournamentConfig, group: str) -> dict:
    table = qualification.tables[group]
    rows = []
    for place, row in enumerate(table.rows, start=1):
        data = row.to_dict()
        data["position"] = place
        data["zone"] = _zone(qualification, tournament, group, place, row.team)
        rows.append(data)
    return {
        "group": group,
        "status": "final" if table.complete else "partial",
        "played": table.played,
        "expected": table.expected,
        "rows": rows,
    }


def group_tables_feed(tournament: TournamentConfig, records: Mapping[str, dict]) -> List[dict]:
    qualification = resolve_qualification(tournament, collect_results(tournament, records))
    return [_table_view(qualification, tournament, group.name) for group in tournament.groups]


def group_table_feed(tournament: TournamentConfig, records: Mapping[str, dict], group: str) -> dict:
    if tournament.group(group) is None:
        raise NotFoundError(f"조를 찾을 수 없습니다: {group}")
    qualification = resolve_qualification(tournament, collect_results(tournament, records))
    return _table_view(qualification, tournament, group)


def matches_feed(
    tournament: TournamentConfig,
    records: Mapping[str, dict],
    official: Optional[Mapping[str, dict]] = None,
) -> List[dict]:
    """
    조별 경기 목록

    official이 주어지면 (참가자 scope) 각 경기에 공식 스코어와 그 예측의
    획득 점수를 붙인다. 예측이 없으면 points는 None, 경기 전이면 0.
    """
    matches = []
    for group, fixture in tournament.iter_fixtures():
        result = read_result(records, fixture.id)
        row = {
            "id": fixture.id,
            "group": group.name,
            "matchday": fixture.matchday,
            "home": fixture.home,
            "away": fixture.away,
            "result": result.to_payload() if result else None,
        }
        if official is not None:
            actual = read_result(official, fixture.id)
            row["official_result"] = actual.to_payload() if actual else None
            row["points"] = calculate_points(actual, result, tournament.points) if result else None
        matches.append(row)
    return matches


def round_feed(graph: BracketGraph, records: Mapping[str, dict], round_key: str) -> dict:
    round_config = graph.round_config(round_key)
    return graph.resolver(records).round_state(round_config).to_dict()


def bracket_feed(graph: BracketGraph, records: Mapping[str, dict]) -> List[dict]:
    resolver = graph.resolver(records)
    return [resolver.round_state(r).to_dict() for r in graph.tournament.rounds]
