"""
점수 계산 단위 테스트
"""
import pytest

from app.schemas.tournament import PointsTable
from app.services.prediction_store import GroupResult, InMemoryPredictionStore, match_key
from app.services.scoring_service import (
    ScoreCard,
    build_leaderboard,
    calculate_points,
    exact_hitters,
    outcome_sign,
    score_participant,
)


class TestCalculatePoints:
    """조별 경기 한 경기 점수"""

    def test_exact_score(self):
        assert calculate_points((3, 1), (3, 1)) == 5

    def test_correct_outcome(self):
        """3-1 결과에 2-0 예측: 승리 팀만 맞힘"""
        assert calculate_points((3, 1), (2, 0)) == 2

    def test_wrong_outcome(self):
        assert calculate_points((3, 1), (1, 1)) == 0
        assert calculate_points((3, 1), (0, 2)) == 0

    def test_draw_outcome(self):
        assert calculate_points((2, 2), (0, 0)) == 2
        assert calculate_points((2, 2), (2, 2)) == 5

    def test_unplayed_match(self):
        assert calculate_points(None, (1, 0)) == 0

    def test_custom_points_table(self):
        points = PointsTable(exact_score=10, correct_outcome=3)
        assert calculate_points((1, 0), (1, 0), points) == 10
        assert calculate_points((1, 0), (4, 0), points) == 3

    def test_idempotent(self):
        assert calculate_points((2, 1), (1, 0)) == calculate_points((2, 1), (1, 0))

    @pytest.mark.parametrize("home,away,expected", [(2, 0, 1), (1, 1, 0), (0, 3, -1)])
    def test_outcome_sign(self, home, away, expected):
        assert outcome_sign(home, away) == expected


class TestScoreParticipant:
    """참가자 전체 점수"""

    def test_group_stage_points(self, mini_graph):
        official = {
            match_key("A1"): {"home_goals": 3, "away_goals": 1},
            match_key("A2"): {"home_goals": 0, "away_goals": 0},
            match_key("A3"): {"home_goals": 1, "away_goals": 2},
        }
        predicted = {
            match_key("A1"): {"home_goals": 3, "away_goals": 1},  # 5
            match_key("A2"): {"home_goals": 1, "away_goals": 1},  # 2
            match_key("A3"): {"home_goals": 2, "away_goals": 0},  # 0
            match_key("A4"): {"home_goals": 2, "away_goals": 0},  # 미진행
        }
        card = score_participant(mini_graph, "p1", "Ana", predicted, official)

        assert card.group_points == 7
        assert card.exact_hits == 1
        assert card.outcome_hits == 1
        assert card.total == 7

    def test_presence_and_champion_bonus(self, mini_cup, mini_graph, seed, fill):
        """공식·참가자 브라켓 모두에 있는 팀 수 × 라운드 점수 + 우승 보너스"""
        official = InMemoryPredictionStore("official")
        fill(official, seed(mini_cup))
        mini_graph.record_winner(official, 1, "Ajax")
        mini_graph.record_winner(official, 2, "Everton")
        mini_graph.record_winner(official, 4, "Ajax")

        # 참가자: A조 1·2위를 반대로 예측
        predicted = InMemoryPredictionStore("p1")
        fill(predicted, seed(mini_cup, {"A": ["Benfica", "Ajax", "Celtic", "Dynamo"]}))
        mini_graph.record_winner(predicted, 1, "Benfica")
        mini_graph.record_winner(predicted, 2, "Ajax")
        mini_graph.record_winner(predicted, 4, "Ajax")

        card = score_participant(mini_graph, "p1", "Ana", predicted.snapshot(), official.snapshot())

        # 준결승 4팀 모두 일치 (슬롯 위치 무관)
        assert card.round_points["SF"] == 4 * 3
        # 결승: 공식 Ajax/Everton, 예측 Benfica/Ajax -> Ajax만
        assert card.round_points["Final"] == 1 * 6
        assert card.champion_bonus == 4

    def test_third_place_match_not_counted(self, mini_cup, mini_graph, seed, fill):
        official = InMemoryPredictionStore("official")
        fill(official, seed(mini_cup))
        mini_graph.record_winner(official, 1, "Ajax")
        mini_graph.record_winner(official, 2, "Everton")

        predicted = InMemoryPredictionStore("p1")
        fill(predicted, seed(mini_cup))
        mini_graph.record_winner(predicted, 1, "Feyenoord")
        mini_graph.record_winner(predicted, 2, "Benfica")

        card = score_participant(mini_graph, "p1", "Ana", predicted.snapshot(), official.snapshot())

        # 예측 결승 팀 = 공식 3·4위전 팀 (3·4위전은 집계 제외)
        assert card.round_points["Final"] == 0
        assert card.champion_bonus == 0

    def test_no_official_results(self, mini_cup, mini_graph, seed, fill):
        predicted = InMemoryPredictionStore("p1")
        fill(predicted, seed(mini_cup))
        card = score_participant(mini_graph, "p1", "Ana", predicted.snapshot(), {})
        assert card.total == 0


class TestLeaderboard:
    def test_ordering(self):
        cards = [
            ScoreCard("1", "Carla", group_points=10, exact_hits=1),
            ScoreCard("2", "Bruno", group_points=12, exact_hits=0),
            ScoreCard("3", "Ana", group_points=10, exact_hits=2),
            ScoreCard("4", "Abel", group_points=10, exact_hits=1),
        ]
        ordered = [c.name for c in build_leaderboard(cards)]
        assert ordered == ["Bruno", "Ana", "Abel", "Carla"]

    def test_total_includes_knockout(self):
        card = ScoreCard("1", "Ana", group_points=10, round_points={"R32": 4, "R16": 3}, champion_bonus=4)
        assert card.knockout_points == 7
        assert card.total == 21
        assert card.to_dict()["total"] == 21


class TestExactHitters:
    def test_exact_hitters(self):
        official = {match_key("A1"): GroupResult(2, 1).to_payload()}
        participants = [
            ("Zoe", {match_key("A1"): {"home_goals": 2, "away_goals": 1}}),
            ("Ana", {match_key("A1"): {"home_goals": 2, "away_goals": 1}}),
            ("Bruno", {match_key("A1"): {"home_goals": 1, "away_goals": 0}}),
            ("Carla", {}),
        ]
        assert exact_hitters("A1", official, participants) == ["Ana", "Zoe"]

    def test_no_official_result(self):
        assert exact_hitters("A1", {}, [("Ana", {match_key("A1"): {"home_goals": 0, "away_goals": 0}})]) == []
