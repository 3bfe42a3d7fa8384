# app/services/scoring_service.py
"""
점수 계산

- 조별 경기: 정확한 스코어 5점, 승/무/패만 맞히면 2점
- 토너먼트: 라운드별로 공식 브라켓과 참가자 브라켓에 모두 있는 팀마다 점수
  (슬롯 위치는 무관, 라운드 단위 교집합)
- 우승팀을 맞히면 보너스
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from app.schemas.tournament import DEFAULT_POINTS, PointsTable, TournamentConfig
from app.services.bracket_service import BracketGraph, BracketResolver
from app.services.prediction_store import read_result


def outcome_sign(home_goals: int, away_goals: int) -> int:
    """홈 승 1, 무 0, 원정 승 -1"""
    return (home_goals > away_goals) - (home_goals < away_goals)


def is_exact(actual: Tuple[int, int], predicted: Tuple[int, int]) -> bool:
    return tuple(actual) == tuple(predicted)


def calculate_points(
    actual: Optional[Tuple[int, int]],
    predicted: Tuple[int, int],
    points: PointsTable = DEFAULT_POINTS,
) -> int:
    """예측 하나의 점수 (경기 전이면 0)"""
    if actual is None:
        return 0
    if is_exact(actual, predicted):
        return points.exact_score
    if outcome_sign(*actual) == outcome_sign(*predicted):
        return points.correct_outcome
    return 0


@dataclass
class ScoreCard:
    """참가자 점수 내역"""
    participant_id: str
    name: str
    group_points: int = 0
    exact_hits: int = 0
    outcome_hits: int = 0
    round_points: Dict[str, int] = field(default_factory=dict)
    champion_bonus: int = 0

    @property
    def knockout_points(self) -> int:
        return sum(self.round_points.values())

    @property
    def total(self) -> int:
        return self.group_points + self.knockout_points + self.champion_bonus

    def to_dict(self) -> dict:
        return {
            "participant_id": self.participant_id,
            "name": self.name,
            "group_points": self.group_points,
            "exact_hits": self.exact_hits,
            "outcome_hits": self.outcome_hits,
            "round_points": dict(self.round_points),
            "knockout_points": self.knockout_points,
            "champion_bonus": self.champion_bonus,
            "total": self.total,
        }


def group_stage_points(
    tournament: TournamentConfig,
    predicted: Mapping[str, dict],
    official: Mapping[str, dict],
) -> Tuple[int, int, int]:
    """(점수, 정확히 맞힌 수, 승무패만 맞힌 수)"""
    total = exact = outcome = 0
    for _, fixture in tournament.iter_fixtures():
        actual = read_result(official, fixture.id)
        guess = read_result(predicted, fixture.id)
        if actual is None or guess is None:
            continue
        earned = calculate_points(actual, guess, tournament.points)
        total += earned
        if is_exact(actual, guess):
            exact += 1
        elif outcome_sign(*actual) == outcome_sign(*guess):
            outcome += 1
    return total, exact, outcome


def presence_points(
    graph: BracketGraph,
    predicted: BracketResolver,
    official: BracketResolver,
    points: PointsTable = DEFAULT_POINTS,
) -> Dict[str, int]:
    """라운드별 존재 점수 (공식·참가자 양쪽 라운드에 모두 있는 팀 수 × 라운드 점수)"""
    earned = {}
    for round_config in graph.tournament.rounds:
        per_team = points.round_presence.get(round_config.key, 0)
        if per_team <= 0:
            continue
        common = predicted.round_teams(round_config.key) & official.round_teams(round_config.key)
        earned[round_config.key] = len(common) * per_team
    return earned


def champion_bonus(
    graph: BracketGraph,
    predicted: BracketResolver,
    official: BracketResolver,
    points: PointsTable = DEFAULT_POINTS,
) -> int:
    champion = official.winner(graph.tournament.champion_slot)
    if champion and predicted.winner(graph.tournament.champion_slot) == champion:
        return points.champion_bonus
    return 0


def score_participant(
    graph: BracketGraph,
    participant_id: str,
    name: str,
    predicted: Mapping[str, dict],
    official: Mapping[str, dict],
    official_resolver: Optional[BracketResolver] = None,
) -> ScoreCard:
    """참가자 한 명의 전체 점수 (스냅샷 기반, 부수효과 없음)"""
    tournament = graph.tournament
    official_resolver = official_resolver or graph.resolver(official)
    predicted_resolver = graph.resolver(predicted)

    card = ScoreCard(participant_id=participant_id, name=name)
    card.group_points, card.exact_hits, card.outcome_hits = group_stage_points(
        tournament, predicted, official
    )
    card.round_points = presence_points(graph, predicted_resolver, official_resolver, tournament.points)
    card.champion_bonus = champion_bonus(graph, predicted_resolver, official_resolver, tournament.points)
    return card


def build_leaderboard(cards: Iterable[ScoreCard]) -> List[ScoreCard]:
    """총점 > 정확히 맞힌 수 > 이름"""
    return sorted(cards, key=lambda c: (-c.total, -c.exact_hits, c.name))


def exact_hitters(
    fixture_id: str,
    official: Mapping[str, dict],
    participants: Iterable[Tuple[str, Mapping[str, dict]]],
) -> List[str]:
    """공식 스코어를 정확히 맞힌 참가자 이름"""
    actual = read_result(official, fixture_id)
    if actual is None:
        return []
    return sorted(
        name
        for name, records in participants
        if read_result(records, fixture_id) == actual
    )
