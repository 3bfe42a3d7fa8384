# app/core/exceptions.py
"""
도메인 예외

모든 실패는 요청 단위로 복구 가능하다. status_code는 HTTP 계층에서
그대로 응답 코드로 사용한다.
"""
from typing import Optional


class PoolError(Exception):
    """모든 도메인 예외의 부모"""
    status_code = 400

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


# 입력 검증
class InvalidResult(PoolError):
    """골 수가 음수이거나 정수가 아님"""

    def __init__(self, home_goals, away_goals):
        self.home_goals = home_goals
        self.away_goals = away_goals
        super().__init__(
            f"유효하지 않은 스코어입니다: {home_goals!r}-{away_goals!r} (0 이상의 정수만 가능)"
        )


class UnresolvedSlotReference(PoolError):
    """아직 TBD인 쪽이 있는 슬롯에 승자를 기록하려 함"""
    status_code = 409

    def __init__(self, slot: int, home: str, away: str):
        self.slot = slot
        self.home = home
        self.away = away
        super().__init__(
            f"M{slot} 대진이 아직 확정되지 않았습니다 ({home} vs {away})"
        )


class UnknownWinnerChoice(PoolError):
    """선택한 승자가 슬롯의 두 팀 중 하나가 아님"""

    def __init__(self, slot: int, team: str, home: str, away: str):
        self.slot = slot
        self.team = team
        super().__init__(
            f"{team}은(는) M{slot} 참가 팀이 아닙니다 ({home} vs {away})"
        )


class IncompleteGroupData(PoolError):
    """조별 경기 결과가 모두 입력되지 않음 (부분 순위)"""
    status_code = 409

    def __init__(self, group: str, played: int, expected: int):
        self.group = group
        self.played = played
        self.expected = expected
        super().__init__(
            f"{group}조 결과가 부족합니다 ({played}/{expected})"
        )


class PredictionsLocked(PoolError):
    """예측 마감 이후 수정 시도"""
    status_code = 403


class TournamentConfigError(PoolError):
    """대회 포맷 설정 오류"""
    status_code = 500


# 조회 실패
class NotFoundError(PoolError):
    status_code = 404


class UnknownMatch(NotFoundError):
    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"경기를 찾을 수 없습니다: {match_id}")


class UnknownSlot(NotFoundError):
    def __init__(self, slot: int):
        self.slot = slot
        super().__init__(f"토너먼트 슬롯을 찾을 수 없습니다: M{slot}")


class UnknownRound(NotFoundError):
    def __init__(self, round_key: str):
        self.round_key = round_key
        super().__init__(f"라운드를 찾을 수 없습니다: {round_key}")


class UnknownParticipant(NotFoundError):
    def __init__(self, participant_id: Optional[str]):
        self.participant_id = participant_id
        super().__init__(f"참가자를 찾을 수 없습니다: {participant_id}")
