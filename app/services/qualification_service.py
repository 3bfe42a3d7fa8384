# app/services/qualification_service.py
"""
본선 토너먼트 진출팀 결정

- 각 조 1·2위 직행 (direct_places)
- 각 조 3위를 전 조 통합으로 줄세워 상위 N팀 (best_thirds)

결과가 바뀔 때마다 처음부터 다시 계산한다 (캐시 없음).
"""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from app.core.exceptions import IncompleteGroupData
from app.core.logger import logger
from app.schemas.tournament import TournamentConfig
from app.services.prediction_store import GroupResult, read_result
from app.services.references import POOL_PLACES, PooledThird
from app.services.standings_service import GroupTable, calculate_standings, final_positions


@dataclass
class PlacedTeam:
    """조 순위가 확정된 팀 (조 간 비교용)"""
    team: str
    group: str
    place: int
    points: int
    goal_difference: int
    goals_for: int
    played: int


@dataclass
class Qualification:
    tables: Dict[str, GroupTable]
    places: Dict[str, List[str]] = field(default_factory=dict)  # 확정된 조만
    thirds: List[PlacedTeam] = field(default_factory=list)      # 3위 후보 (정렬됨)
    best_thirds: List[PlacedTeam] = field(default_factory=list)
    group_order: List[str] = field(default_factory=list)
    missing_results: int = 0

    @property
    def complete(self) -> bool:
        """조별리그 전 경기 결과가 입력됨"""
        return self.missing_results == 0

    def team_at(self, group: str, place: int) -> Optional[str]:
        order = self.places.get(group)
        if not order or place > len(order):
            return None
        return order[place - 1]

    def pool_ranking(self, pool: str) -> List[PlacedTeam]:
        """같은 순위 팀들을 조 구분 없이 줄세움 ("winner", "runner-up", "third")"""
        if pool == "third":
            return list(self.thirds)
        place = POOL_PLACES[pool]
        entries = [
            _placed(self.tables[group], group, place)
            for group in self.group_order
            if group in self.places
        ]
        return rank_pool(entries, self.group_order)


def _placed(table: GroupTable, group: str, place: int) -> PlacedTeam:
    row = table.rows[place - 1]
    return PlacedTeam(
        team=row.team,
        group=group,
        place=place,
        points=row.points,
        goal_difference=row.goal_difference,
        goals_for=row.goals_for,
        played=row.played,
    )


def rank_pool(entries: Sequence[PlacedTeam], group_order: Sequence[str]) -> List[PlacedTeam]:
    """승점 > 득실차 > 다득점 > 적은 경기 수 > 조 순서"""
    index = {group: i for i, group in enumerate(group_order)}
    return sorted(
        entries,
        key=lambda e: (-e.points, -e.goal_difference, -e.goals_for, e.played, index.get(e.group, len(index)))
    )


def collect_results(tournament: TournamentConfig, records: Mapping[str, dict]) -> Dict[str, GroupResult]:
    """저장소 스냅샷에서 조별 경기 스코어만 추출"""
    results = {}
    for _, fixture in tournament.iter_fixtures():
        result = read_result(records, fixture.id)
        if result is not None:
            results[fixture.id] = result
    return results


def resolve_qualification(tournament: TournamentConfig, results: Mapping[str, GroupResult]) -> Qualification:
    """조별 순위표 -> 직행팀 + 와일드카드 3위"""
    qualification = Qualification(
        tables={},
        group_order=[group.name for group in tournament.groups],
    )
    third_place = tournament.qualification.direct_places + 1

    for group in tournament.groups:
        table = calculate_standings(group, results)
        qualification.tables[group.name] = table
        qualification.missing_results += table.expected - table.played

        try:
            qualification.places[group.name] = final_positions(table)
        except IncompleteGroupData as e:
            # 아직 결정되지 않은 조는 후보에서 제외 (하위 슬롯은 TBD)
            logger.debug(e.detail)
            continue

        if len(table.rows) >= third_place:
            qualification.thirds.append(_placed(table, group.name, third_place))

    qualification.thirds = rank_pool(qualification.thirds, qualification.group_order)
    qualification.best_thirds = qualification.thirds[:tournament.qualification.best_thirds]
    return qualification


def assign_pooled_thirds(
    slots: Sequence[Tuple[int, PooledThird]],
    best_thirds: Sequence[PlacedTeam],
    group_order: Sequence[str],
) -> Dict[int, str]:
    """
    와일드카드 3위를 슬롯에 배정

    각 슬롯은 받을 수 있는 조 목록을 가진다 (예: "3rd Group A/B/C/D/F").
    슬롯 번호 오름차순으로, 후보 조는 설정된 조 순서대로 시도하며
    모든 슬롯이 채워지는 첫 배정을 찾는다 (백트래킹, 결정적).

    Returns:
        슬롯 번호 -> 팀. 가능한 배정이 없으면 빈 dict.
    """
    team_by_group = {entry.group: entry.team for entry in best_thirds}
    index = {group: i for i, group in enumerate(group_order)}
    ordered = sorted(slots, key=lambda item: item[0])
    chosen: Dict[int, str] = {}
    used = set()

    def place(i: int) -> bool:
        if i == len(ordered):
            return True
        number, reference = ordered[i]
        for group in sorted(reference.groups, key=lambda g: index.get(g, len(index))):
            if group not in team_by_group or group in used:
                continue
            used.add(group)
            chosen[number] = group
            if place(i + 1):
                return True
            used.discard(group)
            del chosen[number]
        return False

    if not place(0):
        logger.warning(
            f"3위 배정 불가: 진출 조 {sorted(team_by_group)} / 슬롯 {[n for n, _ in ordered]}"
        )
        return {}
    return {number: team_by_group[group] for number, group in chosen.items()}
