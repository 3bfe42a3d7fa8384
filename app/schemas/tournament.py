# app/schemas/tournament.py
"""
대회 포맷 설정 스키마

조 구성, 조별 일정, 토너먼트 대진표(슬롯 → 상위 슬롯 의존성), 점수표를
모두 데이터로 주입한다. 대회마다 바뀌는 규칙은 코드가 아니라 여기서 바꾼다.
"""
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class FixtureConfig(BaseModel):
    """조별 경기 (jornada = matchday)"""
    id: str = Field(..., min_length=1)
    matchday: int = Field(..., ge=1)
    home: str
    away: str


class GroupConfig(BaseModel):
    """조 설정"""
    name: str = Field(..., min_length=1)
    teams: List[str] = Field(..., min_length=2)
    fixtures: List[FixtureConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_fixtures(self):
        if len(set(self.teams)) != len(self.teams):
            raise ValueError(f"{self.name}조에 중복된 팀이 있습니다")
        for fixture in self.fixtures:
            if fixture.home not in self.teams or fixture.away not in self.teams:
                raise ValueError(
                    f"{fixture.id}: {fixture.home} vs {fixture.away}는 {self.name}조 팀이 아닙니다"
                )
            if fixture.home == fixture.away:
                raise ValueError(f"{fixture.id}: 같은 팀끼리 경기할 수 없습니다")
        return self


class SlotConfig(BaseModel):
    """토너먼트 슬롯 (경기 번호로 식별)"""
    number: int = Field(..., ge=1)
    title: Optional[str] = None
    home: str
    away: str
    counts_for_presence: bool = True  # 3·4위전은 false

    @property
    def label(self) -> str:
        if self.title:
            return f"{self.title} (M{self.number})"
        return f"M{self.number}"


class RoundConfig(BaseModel):
    """토너먼트 라운드"""
    key: str = Field(..., min_length=1)
    name: str
    slots: List[SlotConfig] = Field(..., min_length=1)


class QualificationConfig(BaseModel):
    direct_places: int = Field(2, ge=1)  # 조 1·2위 직행
    best_thirds: int = Field(8, ge=0)    # 3위 중 상위 N팀


class PointsTable(BaseModel):
    """점수표"""
    exact_score: int = 5
    correct_outcome: int = 2
    round_presence: Dict[str, int] = Field(
        default_factory=lambda: {"R32": 2, "R16": 3, "QF": 4, "SF": 5, "Final": 6}
    )
    champion_bonus: int = 4


class TournamentConfig(BaseModel):
    """대회 전체 포맷"""
    name: str
    groups: List[GroupConfig] = Field(..., min_length=1)
    qualification: QualificationConfig = Field(default_factory=QualificationConfig)
    rounds: List[RoundConfig] = Field(..., min_length=1)
    champion_slot: int
    points: PointsTable = Field(default_factory=PointsTable)

    @model_validator(mode="after")
    def check_layout(self):
        names = [g.name for g in self.groups]
        if len(set(names)) != len(names):
            raise ValueError("조 이름이 중복되었습니다")

        sizes = {len(g.teams) for g in self.groups}
        if len(sizes) != 1:
            raise ValueError("모든 조의 팀 수가 같아야 합니다")

        fixture_ids = [f.id for g in self.groups for f in g.fixtures]
        if len(set(fixture_ids)) != len(fixture_ids):
            raise ValueError("경기 id가 중복되었습니다")

        round_keys = [r.key for r in self.rounds]
        if len(set(round_keys)) != len(round_keys):
            raise ValueError("라운드 key가 중복되었습니다")

        if self.champion_slot not in {s.number for s in self.rounds[-1].slots}:
            raise ValueError("champion_slot은 마지막 라운드 슬롯이어야 합니다")

        if self.qualification.direct_places >= sizes.pop():
            raise ValueError("direct_places가 조 팀 수보다 작아야 합니다")
        return self

    @property
    def teams_per_group(self) -> int:
        return len(self.groups[0].teams)

    @property
    def expected_results(self) -> int:
        """조별리그 전체 경기 수"""
        return sum(len(g.fixtures) for g in self.groups)

    def group(self, name: str) -> Optional[GroupConfig]:
        for group in self.groups:
            if group.name == name:
                return group
        return None

    def round(self, key: str) -> Optional[RoundConfig]:
        for round_config in self.rounds:
            if round_config.key == key:
                return round_config
        return None

    def iter_fixtures(self) -> Iterator[Tuple[GroupConfig, FixtureConfig]]:
        for group in self.groups:
            for fixture in group.fixtures:
                yield group, fixture

    def find_fixture(self, fixture_id: str) -> Optional[Tuple[GroupConfig, FixtureConfig]]:
        for group, fixture in self.iter_fixtures():
            if fixture.id == fixture_id:
                return group, fixture
        return None


DEFAULT_POINTS = PointsTable()
