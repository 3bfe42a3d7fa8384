# app/services/references.py
"""
토너먼트 슬롯 참조 (tagged union)

설정 파일에서는 사람이 읽는 라벨로 적고, 로딩 시 아래 타입으로 파싱한다.

    "Winner Match 74"      -> WinnerOf(74)
    "Loser Match 101"      -> LoserOf(101)
    "Winner Group E"       -> GroupPlace("E", 1)
    "Runner-up Group A"    -> GroupPlace("A", 2)
    "Best 3rd #1"          -> QualifierRank("third", 1)
    "3rd Group C"          -> GroupPlace("C", 3)
    "#4 Group D"           -> GroupPlace("D", 4)
    "3rd Group A/B/C/D/F"  -> PooledThird(("A", "B", "C", "D", "F"))
    그 외                   -> TeamRef(라벨 그대로)
"""
import re
from dataclasses import dataclass
from typing import Tuple, Union

TBD = "TBD"

# 조 순위 pool 이름 -> 조 내 순위
POOL_PLACES = {"winner": 1, "runner-up": 2, "third": 3}

_POOL_LABELS = {"winner": "Winner", "runner-up": "Runner-up", "third": "3rd"}

_WINNER_MATCH = re.compile(r"^Winner Match (\d+)$")
_LOSER_MATCH = re.compile(r"^Loser Match (\d+)$")
_WINNER_GROUP = re.compile(r"^Winner Group (\w+)$")
_RUNNER_UP_GROUP = re.compile(r"^Runner-up Group (\w+)$")
_THIRD_GROUP = re.compile(r"^3rd Group (\w+)$")
_PLACE_GROUP = re.compile(r"^#(\d+) Group (\w+)$")
_POOLED_THIRD = re.compile(r"^3rd Group (\w+(?:/\w+)+)$")
_QUALIFIER_RANK = re.compile(r"^Best (Winner|Runner-up|3rd) #(\d+)$")


@dataclass(frozen=True)
class TeamRef:
    team: str

    def placeholder(self) -> str:
        return self.team


@dataclass(frozen=True)
class WinnerOf:
    slot: int

    def placeholder(self) -> str:
        return TBD


@dataclass(frozen=True)
class LoserOf:
    slot: int

    def placeholder(self) -> str:
        return TBD


@dataclass(frozen=True)
class GroupPlace:
    group: str
    place: int

    def placeholder(self) -> str:
        if self.place == 1:
            return f"Winner Group {self.group}"
        if self.place == 2:
            return f"Runner-up Group {self.group}"
        if self.place == 3:
            return f"3rd Group {self.group}"
        return f"#{self.place} Group {self.group}"


@dataclass(frozen=True)
class QualifierRank:
    """조 순위별 pool을 전 조 통합으로 줄세운 N번째 팀"""
    pool: str
    rank: int

    def placeholder(self) -> str:
        return f"Best {_POOL_LABELS[self.pool]} #{self.rank}"


@dataclass(frozen=True)
class PooledThird:
    """지정된 조들 중 하나의 3위 (배정은 qualification_service가 생성)"""
    groups: Tuple[str, ...]

    def placeholder(self) -> str:
        return f"3rd Group {'/'.join(self.groups)}"


SlotReference = Union[TeamRef, WinnerOf, LoserOf, GroupPlace, QualifierRank, PooledThird]


def parse_reference(label: str) -> SlotReference:
    """설정 라벨을 SlotReference로 변환"""
    label = label.strip()

    match = _WINNER_MATCH.match(label)
    if match:
        return WinnerOf(int(match.group(1)))

    match = _LOSER_MATCH.match(label)
    if match:
        return LoserOf(int(match.group(1)))

    match = _WINNER_GROUP.match(label)
    if match:
        return GroupPlace(match.group(1), 1)

    match = _RUNNER_UP_GROUP.match(label)
    if match:
        return GroupPlace(match.group(1), 2)

    match = _THIRD_GROUP.match(label)
    if match:
        return GroupPlace(match.group(1), 3)

    match = _PLACE_GROUP.match(label)
    if match:
        return GroupPlace(match.group(2), int(match.group(1)))

    match = _POOLED_THIRD.match(label)
    if match:
        return PooledThird(tuple(match.group(1).split("/")))

    match = _QUALIFIER_RANK.match(label)
    if match:
        pool = {"Winner": "winner", "Runner-up": "runner-up", "3rd": "third"}[match.group(1)]
        return QualifierRank(pool, int(match.group(2)))

    return TeamRef(label)


def upstream_slot(reference: SlotReference):
    """WinnerOf/LoserOf면 상위 슬롯 번호, 아니면 None"""
    if isinstance(reference, (WinnerOf, LoserOf)):
        return reference.slot
    return None
