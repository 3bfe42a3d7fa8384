# app/services/standings_service.py
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Mapping

from app.core.exceptions import IncompleteGroupData
from app.schemas.tournament import GroupConfig
from app.services.prediction_store import GroupResult


@dataclass
class GroupStanding:
    """조 순위표 한 줄 (승점/득실차는 항상 파생값)"""
    team: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def points(self) -> int:
        return 3 * self.won + self.drawn

    def to_dict(self) -> dict:
        data = asdict(self)
        data["goal_difference"] = self.goal_difference
        data["points"] = self.points
        return data


@dataclass
class GroupTable:
    """한 조의 정렬된 순위표"""
    group: str
    rows: List[GroupStanding] = field(default_factory=list)
    played: int = 0    # 결과가 입력된 경기 수
    expected: int = 0  # 일정상 전체 경기 수

    @property
    def complete(self) -> bool:
        return self.played >= self.expected

    def team_order(self) -> List[str]:
        return [row.team for row in self.rows]


def _record_match(home: GroupStanding, away: GroupStanding, result: GroupResult) -> None:
    home.played += 1
    away.played += 1
    home.goals_for += result.home_goals
    home.goals_against += result.away_goals
    away.goals_for += result.away_goals
    away.goals_against += result.home_goals

    if result.home_goals > result.away_goals:
        home.won += 1
        away.lost += 1
    elif result.home_goals < result.away_goals:
        away.won += 1
        home.lost += 1
    else:
        home.drawn += 1
        away.drawn += 1


def calculate_standings(group: GroupConfig, results: Mapping[str, GroupResult]) -> GroupTable:
    """
    조 순위 계산

    Args:
        group: 조 설정 (팀, 일정)
        results: 경기 id -> 스코어 (다른 조 경기는 무시)

    Returns:
        승점 > 득실차 > 다득점 순으로 정렬된 GroupTable.
        세 기준이 모두 같으면 설정 파일의 팀 순서를 유지한다 (안정 정렬).
    """
    rows: Dict[str, GroupStanding] = {team: GroupStanding(team) for team in group.teams}
    played = 0

    for fixture in group.fixtures:
        result = results.get(fixture.id)
        if result is None:
            continue
        _record_match(rows[fixture.home], rows[fixture.away], result)
        played += 1

    ordered = sorted(
        rows.values(),
        key=lambda r: (-r.points, -r.goal_difference, -r.goals_for)
    )
    return GroupTable(group=group.name, rows=ordered, played=played, expected=len(group.fixtures))


def final_positions(table: GroupTable) -> List[str]:
    """확정 순위 (경기가 남아 있으면 IncompleteGroupData)"""
    if not table.complete:
        raise IncompleteGroupData(table.group, table.played, table.expected)
    return table.team_order()
