"""
대회 포맷 로딩 / 검증 단위 테스트
"""
import json

import pytest
from pydantic import ValidationError

from app.core.exceptions import TournamentConfigError
from app.schemas.tournament import TournamentConfig
from app.services.bracket_service import BracketGraph
from app.services.references import GroupPlace, PooledThird, TeamRef, WinnerOf
from app.services.tournament_service import load_tournament


class TestDefaultTournament:
    """기본 2026 포맷"""

    def test_layout(self, worldcup):
        assert len(worldcup.groups) == 12
        assert worldcup.teams_per_group == 4
        assert worldcup.expected_results == 72
        assert [r.key for r in worldcup.rounds] == ["R32", "R16", "QF", "SF", "Final"]
        assert [len(r.slots) for r in worldcup.rounds] == [16, 8, 4, 2, 2]
        assert worldcup.champion_slot == 104

    def test_every_team_plays_three_matches(self, worldcup):
        for group in worldcup.groups:
            for team in group.teams:
                played = [f for f in group.fixtures if team in (f.home, f.away)]
                assert len(played) == 3

    def test_group_stage_qualifiers_used_once(self, worldcup_graph, worldcup):
        places = []
        for slot in worldcup.rounds[0].slots:
            for reference in worldcup_graph.references(slot.number):
                if isinstance(reference, GroupPlace):
                    places.append((reference.group, reference.place))
        assert len(places) == len(set(places)) == 24
        assert len(worldcup_graph.pooled_slots) == 8

    def test_known_edges(self, worldcup_graph):
        assert worldcup_graph.references(89) == (WinnerOf(74), WinnerOf(77))
        assert worldcup_graph.references(74)[1] == PooledThird(("A", "B", "C", "D", "F"))
        assert worldcup_graph.round_of_slot(104).key == "Final"
        assert worldcup_graph.slot(103).counts_for_presence is False

    def test_find_fixture(self, worldcup):
        group, fixture = worldcup.find_fixture("C1")
        assert group.name == "C"
        assert (fixture.home, fixture.away) == ("Brazil", "Morocco")
        assert worldcup.find_fixture("Z1") is None


class TestLoadTournament:

    def test_missing_file(self, tmp_path):
        with pytest.raises(TournamentConfigError):
            load_tournament(tmp_path / "missing.json")

    def test_invalid_file(self, tmp_path, mini_config):
        mini_config["groups"][0]["fixtures"][0]["home"] = "Nobody"
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(mini_config), encoding="utf-8")

        with pytest.raises(TournamentConfigError) as exc:
            load_tournament(path)
        assert exc.value.status_code == 500

    def test_custom_file(self, tmp_path, mini_config):
        path = tmp_path / "mini.json"
        path.write_text(json.dumps(mini_config), encoding="utf-8")
        assert load_tournament(path).name == "Mini Cup"


class TestSchemaValidation:

    def test_duplicate_team(self, mini_config):
        mini_config["groups"][0]["teams"][1] = "Ajax"
        with pytest.raises(ValidationError):
            TournamentConfig.model_validate(mini_config)

    def test_uneven_groups(self, mini_config):
        mini_config["groups"][1]["teams"].append("Inter")
        with pytest.raises(ValidationError):
            TournamentConfig.model_validate(mini_config)

    def test_configs_do_not_share_team_lists(self, make_mini_config):
        """한 테스트의 변형이 다음 설정에 남지 않음"""
        first = make_mini_config()
        first["groups"][0]["teams"][1] = "Ajax"
        first["groups"][1]["teams"].append("Inter")

        second = make_mini_config()
        assert second["groups"][0]["teams"] == ["Ajax", "Benfica", "Celtic", "Dynamo"]
        assert len(second["groups"][1]["teams"]) == 4
        assert second["groups"][0]["fixtures"][0]["away"] == "Benfica"
        TournamentConfig.model_validate(second)

    def test_champion_slot_must_be_last_round(self, mini_config):
        mini_config["champion_slot"] = 1
        with pytest.raises(ValidationError):
            TournamentConfig.model_validate(mini_config)


class TestBracketGraphValidation:
    """대진표 그래프 검증 (로딩 시 한 번)"""

    def _graph(self, config):
        return BracketGraph(TournamentConfig.model_validate(config))

    def test_valid(self, mini_config):
        assert self._graph(mini_config).slot(4).title == "Final"

    def test_duplicate_slot_number(self, mini_config):
        mini_config["rounds"][1]["slots"][0]["number"] = 1
        mini_config["rounds"][1]["slots"][0]["home"] = "Winner Match 2"
        with pytest.raises(TournamentConfigError):
            self._graph(mini_config)

    def test_unknown_upstream(self, mini_config):
        mini_config["rounds"][1]["slots"][1]["home"] = "Winner Match 9"
        with pytest.raises(TournamentConfigError):
            self._graph(mini_config)

    def test_upstream_must_be_previous_round(self, mini_config):
        mini_config["rounds"][0]["slots"][0]["home"] = "Winner Match 4"
        with pytest.raises(TournamentConfigError):
            self._graph(mini_config)

    def test_group_reference_only_in_first_round(self, mini_config):
        mini_config["rounds"][1]["slots"][1]["away"] = "Winner Group A"
        with pytest.raises(TournamentConfigError):
            self._graph(mini_config)

    def test_unknown_group(self, mini_config):
        mini_config["rounds"][0]["slots"][0]["home"] = "Winner Group Q"
        with pytest.raises(TournamentConfigError):
            self._graph(mini_config)

    def test_best_third_rank_out_of_range(self, mini_config):
        mini_config["rounds"][0]["slots"][0]["away"] = "Best 3rd #1"
        with pytest.raises(TournamentConfigError):
            self._graph(mini_config)

    def test_two_pooled_thirds_in_one_slot(self, mini_config):
        mini_config["qualification"]["best_thirds"] = 2
        mini_config["rounds"][0]["slots"][0]["home"] = "3rd Group A/B"
        mini_config["rounds"][0]["slots"][0]["away"] = "3rd Group A/B"
        with pytest.raises(TournamentConfigError):
            self._graph(mini_config)

    def test_misspelled_reference_rejected(self, mini_config):
        """"Winner match 1" 같은 오타는 팀 이름으로도 없으므로 로딩 실패"""
        mini_config["rounds"][1]["slots"][1]["home"] = "Winner match 1"
        with pytest.raises(TournamentConfigError) as exc:
            self._graph(mini_config)
        assert "Winner match 1" in exc.value.detail

    def test_unknown_literal_team_rejected(self, mini_config):
        mini_config["rounds"][0]["slots"][0]["away"] = "Nobody"
        with pytest.raises(TournamentConfigError):
            self._graph(mini_config)

    def test_literal_team_accepted(self, mini_config):
        mini_config["rounds"][0]["slots"][0]["away"] = "Celtic"
        graph = self._graph(mini_config)
        assert graph.references(1)[1] == TeamRef("Celtic")

    def test_group_place_out_of_range(self, mini_config):
        mini_config["rounds"][0]["slots"][0]["away"] = "#5 Group A"
        with pytest.raises(TournamentConfigError):
            self._graph(mini_config)

    def test_single_group_third_resolves(self, mini_config, official_store, seed, fill):
        mini_config["rounds"][0]["slots"][1]["away"] = "3rd Group A"
        graph = self._graph(mini_config)
        assert graph.references(2)[1] == GroupPlace("A", 3)

        home, away = graph.resolve_slot(official_store, 2)
        assert away.label == "3rd Group A"
        assert not away.resolved

        fill(official_store, seed(graph.tournament))
        home, away = graph.resolve_slot(official_store, 2)
        assert (home.team, away.team) == ("Everton", "Celtic")
