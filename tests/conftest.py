# tests/conftest.py
import os
import tempfile

# 앱 모듈 import 전에 설정 (로그 디렉토리, 관리자 토큰)
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="porra-logs-"))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token-0001")

from typing import Dict, List, Optional

import pytest

from app.models.prediction import OFFICIAL_SCOPE
from app.schemas.tournament import TournamentConfig
from app.services.bracket_service import BracketGraph
from app.services.prediction_store import GroupResult, InMemoryPredictionStore, match_key
from app.services.tournament_service import load_tournament


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def _round_robin(group: str, teams: List[str]) -> List[dict]:
    pairs = [(0, 1, 1), (2, 3, 1), (0, 2, 2), (1, 3, 2), (0, 3, 3), (1, 2, 3)]
    return [
        {"id": f"{group}{i}", "matchday": md, "home": teams[h], "away": teams[a]}
        for i, (h, a, md) in enumerate(pairs, start=1)
    ]


MINI_GROUPS = {
    "A": ["Ajax", "Benfica", "Celtic", "Dynamo"],
    "B": ["Everton", "Feyenoord", "Galatasaray", "Hajduk"],
}


def mini_cup_config() -> dict:
    """2개 조 + 준결승/결승 (3·4위전 포함)"""
    return {
        "name": "Mini Cup",
        "groups": [
            {"name": name, "teams": list(teams), "fixtures": _round_robin(name, teams)}
            for name, teams in MINI_GROUPS.items()
        ],
        "qualification": {"direct_places": 2, "best_thirds": 0},
        "rounds": [
            {
                "key": "SF",
                "name": "Semi-finals",
                "slots": [
                    {"number": 1, "home": "Winner Group A", "away": "Runner-up Group B"},
                    {"number": 2, "home": "Winner Group B", "away": "Runner-up Group A"},
                ],
            },
            {
                "key": "Final",
                "name": "Final",
                "slots": [
                    {"number": 3, "title": "3rd place", "home": "Loser Match 1", "away": "Loser Match 2",
                     "counts_for_presence": False},
                    {"number": 4, "title": "Final", "home": "Winner Match 1", "away": "Winner Match 2"},
                ],
            },
        ],
        "champion_slot": 4,
        "points": {
            "exact_score": 5,
            "correct_outcome": 2,
            "round_presence": {"SF": 3, "Final": 6},
            "champion_bonus": 4,
        },
    }


def seeded_results(tournament: TournamentConfig, order: Optional[Dict[str, List[str]]] = None) -> Dict[str, GroupResult]:
    """
    순위가 정해진 결과 생성

    order[조]의 앞 팀이 뒤 팀을 (순위 차이)-0으로 이긴다. order가 없으면 설정 순서.
    """
    order = order or {}
    results = {}
    for group, fixture in tournament.iter_fixtures():
        ranking = order.get(group.name, group.teams)
        home, away = ranking.index(fixture.home), ranking.index(fixture.away)
        if home < away:
            results[fixture.id] = GroupResult(away - home, 0)
        else:
            results[fixture.id] = GroupResult(0, home - away)
    return results


def fill_results(store, results: Dict[str, GroupResult], skip=()) -> None:
    for fixture_id, result in results.items():
        if fixture_id in skip:
            continue
        store.set(match_key(fixture_id), result.to_payload())


@pytest.fixture(scope="session")
def worldcup() -> TournamentConfig:
    """기본 2026 포맷"""
    return load_tournament()


@pytest.fixture(scope="session")
def worldcup_graph(worldcup) -> BracketGraph:
    return BracketGraph(worldcup)


@pytest.fixture
def mini_cup() -> TournamentConfig:
    return TournamentConfig.model_validate(mini_cup_config())


@pytest.fixture
def mini_graph(mini_cup) -> BracketGraph:
    return BracketGraph(mini_cup)


@pytest.fixture
def official_store() -> InMemoryPredictionStore:
    return InMemoryPredictionStore(OFFICIAL_SCOPE)


@pytest.fixture
def seeded_mini_store(mini_cup, official_store) -> InMemoryPredictionStore:
    """조별리그가 설정 순서대로 끝난 저장소 (A: Ajax > Benfica > Celtic > Dynamo)"""
    fill_results(official_store, seeded_results(mini_cup))
    return official_store


@pytest.fixture
def seed():
    """seeded_results 헬퍼"""
    return seeded_results


@pytest.fixture
def fill():
    """fill_results 헬퍼"""
    return fill_results


@pytest.fixture
def mini_config() -> dict:
    """변형 포맷 테스트용 원본 dict (매번 새로 생성)"""
    return mini_cup_config()


@pytest.fixture
def make_mini_config():
    """mini_cup_config 헬퍼"""
    return mini_cup_config
