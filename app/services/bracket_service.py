# app/services/bracket_service.py
"""
토너먼트 브라켓 그래프

슬롯(경기 번호) 간 의존성은 설정에서 한 번 읽어 고정한다. 각 슬롯의 두 팀은
저장된 결과로부터 매번 새로 계산하며 (호출 단위 memo만 사용), 상위 슬롯의
승자가 바뀌어 대진이 달라지면 하위 슬롯에 저장된 선택은 무효가 된다.

    resolve_slot    : 슬롯의 두 팀 (미정이면 TBD / placeholder)
    record_winner   : 승자 기록 (양쪽 팀이 확정되어야 함)
    clear_winner    : 승자 삭제
    generate_round  : 라운드 재생성 + 대진이 바뀐 슬롯의 선택 삭제
    recompute_from  : 변경된 key 이후 라운드만 순서대로 재생성
"""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple

from app.core.exceptions import (
    TournamentConfigError,
    UnknownMatch,
    UnknownRound,
    UnknownSlot,
    UnknownWinnerChoice,
    UnresolvedSlotReference,
)
from app.core.logger import logger
from app.schemas.tournament import RoundConfig, SlotConfig, TournamentConfig
from app.services.prediction_store import PredictionStore, SlotPick, parse_key, read_pick, slot_key
from app.services.qualification_service import (
    Qualification,
    assign_pooled_thirds,
    collect_results,
    resolve_qualification,
)
from app.services.references import (
    TBD,
    GroupPlace,
    LoserOf,
    PooledThird,
    QualifierRank,
    SlotReference,
    TeamRef,
    WinnerOf,
    parse_reference,
    upstream_slot,
)


@dataclass(frozen=True)
class Side:
    """슬롯의 한쪽 (team이 None이면 미정, label은 표시용)"""
    team: Optional[str]
    label: str

    @property
    def resolved(self) -> bool:
        return self.team is not None

    @classmethod
    def of(cls, team: str) -> "Side":
        return cls(team, team)

    @classmethod
    def pending(cls, label: str = TBD) -> "Side":
        return cls(None, label)


@dataclass
class SlotState:
    number: int
    round_key: str
    label: str
    home: Side
    away: Side
    winner: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.home.resolved and self.away.resolved

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "round": self.round_key,
            "label": self.label,
            "home": self.home.label,
            "away": self.away.label,
            "ready": self.ready,
            "winner": self.winner,
        }


@dataclass
class RoundState:
    key: str
    name: str
    slots: List[SlotState] = field(default_factory=list)
    blocked: bool = False      # 조별리그 미완료로 생성 불가
    missing_results: int = 0
    cleared: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "blocked": self.blocked,
            "missing_results": self.missing_results,
            "cleared": list(self.cleared),
            "slots": [slot.to_dict() for slot in self.slots],
        }


class BracketResolver:
    """저장소 스냅샷 하나에 대한 슬롯 해석기 (memo는 이 객체 수명 동안만)"""

    def __init__(self, graph: "BracketGraph", records: Mapping[str, dict]):
        self.graph = graph
        self.records = records
        self._qualification: Optional[Qualification] = None
        self._pooled: Optional[Dict[int, str]] = None
        self._sides: Dict[int, Tuple[Side, Side]] = {}

    @property
    def qualification(self) -> Qualification:
        if self._qualification is None:
            tournament = self.graph.tournament
            self._qualification = resolve_qualification(
                tournament, collect_results(tournament, self.records)
            )
        return self._qualification

    def sides(self, number: int) -> Tuple[Side, Side]:
        if number not in self._sides:
            home_ref, away_ref = self.graph.references(number)
            self._sides[number] = (self._side(number, home_ref), self._side(number, away_ref))
        return self._sides[number]

    def pick(self, number: int) -> Optional[SlotPick]:
        """현재 대진과 일치하는 저장된 선택 (아니면 None)"""
        stored = read_pick(self.records, number)
        if stored is None:
            return None
        home, away = self.sides(number)
        if not (home.resolved and away.resolved):
            return None
        if (stored.home, stored.away) != (home.team, away.team):
            return None
        if stored.winner not in (home.team, away.team):
            return None
        return stored

    def winner(self, number: int) -> Optional[str]:
        pick = self.pick(number)
        return pick.winner if pick else None

    def loser(self, number: int) -> Optional[str]:
        pick = self.pick(number)
        if pick is None:
            return None
        return pick.away if pick.winner == pick.home else pick.home

    def pooled_thirds(self) -> Dict[int, str]:
        if self._pooled is None:
            qualification = self.qualification
            self._pooled = assign_pooled_thirds(
                self.graph.pooled_slots, qualification.best_thirds, qualification.group_order
            )
        return self._pooled

    def _side(self, number: int, reference: SlotReference) -> Side:
        if isinstance(reference, TeamRef):
            return Side.of(reference.team)

        if isinstance(reference, WinnerOf):
            team = self.winner(reference.slot)
            return Side.of(team) if team else Side.pending()

        if isinstance(reference, LoserOf):
            team = self.loser(reference.slot)
            return Side.of(team) if team else Side.pending()

        # 조 순위 참조는 조별리그가 모두 끝나야 해석한다
        qualification = self.qualification
        if not qualification.complete:
            return Side.pending(reference.placeholder())

        team = None
        if isinstance(reference, GroupPlace):
            team = qualification.team_at(reference.group, reference.place)
        elif isinstance(reference, QualifierRank):
            if reference.pool == "third":
                ranking = qualification.best_thirds
            else:
                ranking = qualification.pool_ranking(reference.pool)
            if reference.rank <= len(ranking):
                team = ranking[reference.rank - 1].team
        elif isinstance(reference, PooledThird):
            team = self.pooled_thirds().get(number)

        return Side.of(team) if team else Side.pending(reference.placeholder())

    def slot_state(self, slot: SlotConfig, round_key: str) -> SlotState:
        home, away = self.sides(slot.number)
        return SlotState(
            number=slot.number,
            round_key=round_key,
            label=slot.label,
            home=home,
            away=away,
            winner=self.winner(slot.number),
        )

    def round_state(self, round_config: RoundConfig) -> RoundState:
        """읽기 전용 라운드 상태 (첫 라운드는 조별리그 완료 전까지 비어 있음)"""
        qualification = self.qualification
        state = RoundState(
            key=round_config.key,
            name=round_config.name,
            missing_results=qualification.missing_results,
        )
        if self.graph.round_position(round_config.key) == 0 and not qualification.complete:
            state.blocked = True
            return state
        state.slots = [self.slot_state(slot, round_config.key) for slot in round_config.slots]
        return state

    def round_teams(self, round_key: str, presence_only: bool = True) -> Set[str]:
        """라운드에 확정된 팀 집합 (presence_only면 3·4위전 제외)"""
        round_config = self.graph.round_config(round_key)
        teams = set()
        for slot in round_config.slots:
            if presence_only and not slot.counts_for_presence:
                continue
            for side in self.sides(slot.number):
                if side.resolved:
                    teams.add(side.team)
        return teams


class BracketGraph:
    """고정된 슬롯 의존성 그래프 (경기 번호 -> 슬롯)"""

    def __init__(self, tournament: TournamentConfig):
        self.tournament = tournament
        self._slots: Dict[int, SlotConfig] = {}
        self._round_of: Dict[int, int] = {}
        self._references: Dict[int, Tuple[SlotReference, SlotReference]] = {}

        for index, round_config in enumerate(tournament.rounds):
            for slot in round_config.slots:
                if slot.number in self._slots:
                    raise TournamentConfigError(f"슬롯 번호 중복: M{slot.number}")
                self._slots[slot.number] = slot
                self._round_of[slot.number] = index
                self._references[slot.number] = (
                    parse_reference(slot.home),
                    parse_reference(slot.away),
                )

        if tournament.champion_slot not in self._slots:
            raise TournamentConfigError(f"결승 슬롯이 없습니다: M{tournament.champion_slot}")
        self._validate()

        self.pooled_slots: List[Tuple[int, PooledThird]] = [
            (number, reference)
            for number, references in self._references.items()
            for reference in references
            if isinstance(reference, PooledThird)
        ]

    def _validate(self) -> None:
        groups = {group.name for group in self.tournament.groups}
        teams = {team for group in self.tournament.groups for team in group.teams}
        best_thirds = self.tournament.qualification.best_thirds
        teams_per_group = self.tournament.teams_per_group

        for number, references in self._references.items():
            round_index = self._round_of[number]
            pooled = 0
            for reference in references:
                upstream = upstream_slot(reference)
                if upstream is not None:
                    if upstream not in self._slots:
                        raise TournamentConfigError(f"M{number}: 없는 슬롯 참조 M{upstream}")
                    if self._round_of[upstream] != round_index - 1:
                        raise TournamentConfigError(
                            f"M{number}: M{upstream}은(는) 바로 이전 라운드 슬롯이 아닙니다"
                        )
                    continue

                # 파싱되지 않은 라벨은 팀 이름이어야 한다 (오타 방지)
                if isinstance(reference, TeamRef):
                    if reference.team not in teams:
                        raise TournamentConfigError(f"M{number}: 알 수 없는 참조 또는 팀 {reference.team!r}")
                    continue
                if round_index != 0:
                    raise TournamentConfigError(f"M{number}: 조 순위 참조는 첫 라운드에서만 가능합니다")

                if isinstance(reference, GroupPlace):
                    if reference.group not in groups or not 1 <= reference.place <= teams_per_group:
                        raise TournamentConfigError(f"M{number}: 잘못된 조 순위 {reference.placeholder()}")
                elif isinstance(reference, PooledThird):
                    pooled += 1
                    unknown = set(reference.groups) - groups
                    if unknown:
                        raise TournamentConfigError(f"M{number}: 없는 조 {sorted(unknown)}")
                elif isinstance(reference, QualifierRank):
                    limit = best_thirds if reference.pool == "third" else len(groups)
                    if not 1 <= reference.rank <= limit:
                        raise TournamentConfigError(f"M{number}: 잘못된 순위 {reference.placeholder()}")

            if pooled > 1:
                raise TournamentConfigError(f"M{number}: 3위 pool 참조는 슬롯당 하나만 가능합니다")

    # ----- 조회 -----

    def slot(self, number: int) -> SlotConfig:
        if number not in self._slots:
            raise UnknownSlot(number)
        return self._slots[number]

    def references(self, number: int) -> Tuple[SlotReference, SlotReference]:
        self.slot(number)
        return self._references[number]

    def round_config(self, round_key: str) -> RoundConfig:
        round_config = self.tournament.round(round_key)
        if round_config is None:
            raise UnknownRound(round_key)
        return round_config

    def round_position(self, round_key: str) -> int:
        return self.tournament.rounds.index(self.round_config(round_key))

    def round_of_slot(self, number: int) -> RoundConfig:
        self.slot(number)
        return self.tournament.rounds[self._round_of[number]]

    def resolver(self, records: Mapping[str, dict]) -> BracketResolver:
        return BracketResolver(self, records)

    # ----- 연산 -----

    def resolve_slot(self, store: PredictionStore, number: int) -> Tuple[Side, Side]:
        """슬롯의 두 팀 (미정이면 TBD/placeholder, 예외 없음)"""
        self.slot(number)
        return self.resolver(store.snapshot()).sides(number)

    def record_winner(self, store: PredictionStore, number: int, team: str) -> SlotPick:
        """승자 기록 (양쪽 팀 확정 + 둘 중 하나여야 함)"""
        self.slot(number)
        key = slot_key(number)

        with store.lock(key):
            home, away = self.resolver(store.snapshot()).sides(number)
            if not (home.resolved and away.resolved):
                logger.warning(f"[{store.scope}] M{number} 미확정 대진에 승자 기록 시도: {home.label} vs {away.label}")
                raise UnresolvedSlotReference(number, home.label, away.label)
            if team not in (home.team, away.team):
                logger.warning(f"[{store.scope}] M{number} 잘못된 승자 {team!r}")
                raise UnknownWinnerChoice(number, team, home.label, away.label)

            pick = SlotPick(home.team, away.team, team)
            store.set(key, pick.to_payload())

        logger.info(f"[{store.scope}] M{number} 승자 기록: {team} ({home.team} vs {away.team})")
        return pick

    def clear_winner(self, store: PredictionStore, number: int) -> bool:
        """승자와 남아 있는 스코어 데이터까지 슬롯 레코드 전체 삭제"""
        self.slot(number)
        key = slot_key(number)
        with store.lock(key):
            removed = store.delete(key)
        if removed:
            logger.info(f"[{store.scope}] M{number} 승자 삭제")
        return removed

    def generate_round(self, store: PredictionStore, round_key: str) -> RoundState:
        """
        라운드 재생성

        저장된 선택의 대진이 지금 계산한 대진과 다르면 그 선택을 지운다.
        조별리그가 끝나지 않았으면 첫 라운드는 blocked, 이후 라운드는 지우지 않는다.
        """
        round_config = self.round_config(round_key)
        resolver = self.resolver(store.snapshot())

        if not resolver.qualification.complete:
            return resolver.round_state(round_config)

        cleared = []
        for slot in round_config.slots:
            if read_pick(resolver.records, slot.number) is None:
                continue
            if resolver.pick(slot.number) is not None:
                continue
            key = slot_key(slot.number)
            with store.lock(key):
                # 스냅샷 이후 새로 기록된 선택은 건드리지 않는다
                if store.get(key) != resolver.records.get(key):
                    continue
                store.delete(key)
            cleared.append(slot.number)

        if cleared:
            logger.info(f"[{store.scope}] {round_key} 대진 변경으로 선택 초기화: {['M%d' % n for n in cleared]}")
            resolver = self.resolver(store.snapshot())

        state = resolver.round_state(round_config)
        state.cleared = cleared
        return state

    def recompute_from(self, store: PredictionStore, changed_key: str) -> List[int]:
        """
        변경된 key의 영향을 받는 라운드만 재생성

        Args:
            changed_key: "match:<경기 id>" 이면 첫 라운드부터, "slot:<번호>" 이면 다음 라운드부터

        Returns:
            선택이 삭제된 슬롯 번호 목록
        """
        kind, value = parse_key(changed_key)
        if kind == "match":
            if self.tournament.find_fixture(value) is None:
                raise UnknownMatch(value)
            start = 0
        else:
            start = self.round_position(self.round_of_slot(value).key) + 1

        cleared = []
        for round_config in self.tournament.rounds[start:]:
            state = self.generate_round(store, round_config.key)
            if state.blocked:
                break
            cleared.extend(state.cleared)
        return cleared
