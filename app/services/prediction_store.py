# app/services/prediction_store.py
"""
예측 저장소 어댑터

코어 로직은 저장 기술을 모른다. scope(참가자 id 또는 "official") 단위의
key-value 인터페이스만 사용한다.

    match:<경기 id>   -> {"home_goals": 2, "away_goals": 1}
    slot:<경기 번호>   -> {"home": "Brazil", "away": "Spain", "winner": "Spain"}

읽기는 snapshot() 한 번으로 일관된 상태를 보고, 쓰기는 key 단위 락으로 직렬화한다.
"""
import threading
from contextlib import contextmanager
from typing import ContextManager, Dict, Iterator, Mapping, NamedTuple, Optional, Protocol, Tuple, Union

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from app.core.exceptions import InvalidResult
from app.core.logger import logger
from app.models.prediction import PredictionRecord

MATCH_PREFIX = "match:"
SLOT_PREFIX = "slot:"


def match_key(fixture_id: str) -> str:
    return f"{MATCH_PREFIX}{fixture_id}"


def slot_key(number: int) -> str:
    return f"{SLOT_PREFIX}{number}"


def parse_key(key: str) -> Tuple[str, Union[str, int]]:
    """("match", 경기 id) 또는 ("slot", 경기 번호)"""
    if key.startswith(MATCH_PREFIX):
        return "match", key[len(MATCH_PREFIX):]
    if key.startswith(SLOT_PREFIX):
        return "slot", int(key[len(SLOT_PREFIX):])
    raise ValueError(f"알 수 없는 key 형식: {key}")


class GroupResult(NamedTuple):
    """조별 경기 스코어"""
    home_goals: int
    away_goals: int

    @classmethod
    def create(cls, home_goals, away_goals) -> "GroupResult":
        """검증 후 생성 (음수, 정수 아님 -> InvalidResult)"""
        for goals in (home_goals, away_goals):
            if isinstance(goals, bool) or not isinstance(goals, int) or goals < 0:
                raise InvalidResult(home_goals, away_goals)
        return cls(home_goals, away_goals)

    def to_payload(self) -> dict:
        return {"home_goals": self.home_goals, "away_goals": self.away_goals}


class SlotPick(NamedTuple):
    """토너먼트 승자 선택 (선택 당시의 대진을 함께 보관)"""
    home: str
    away: str
    winner: Optional[str] = None

    def to_payload(self) -> dict:
        return {"home": self.home, "away": self.away, "winner": self.winner}


def read_result(records: Mapping[str, dict], fixture_id: str) -> Optional[GroupResult]:
    payload = records.get(match_key(fixture_id))
    if not payload:
        return None
    try:
        return GroupResult.create(payload.get("home_goals"), payload.get("away_goals"))
    except InvalidResult as e:
        # 손상된 레코드는 미입력 경기로 본다
        logger.warning(f"저장된 스코어 무시 ({fixture_id}): {e.detail}")
        return None


def read_pick(records: Mapping[str, dict], number: int) -> Optional[SlotPick]:
    payload = records.get(slot_key(number))
    if not payload or not payload.get("home") or not payload.get("away"):
        return None
    return SlotPick(payload["home"], payload["away"], payload.get("winner"))


class KeyedLock:
    """key별 threading.Lock (같은 key의 read-modify-write 직렬화)

    사용 중인 key만 보관하고, 마지막 사용자가 놓으면 항목을 지운다.
    """

    def __init__(self):
        self._locks: Dict[tuple, list] = {}   # key -> [lock, 사용자 수]
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, *key) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


# 프로세스 전역 락 (요청마다 store 객체가 새로 만들어져도 공유)
_KEY_LOCKS = KeyedLock()


class PredictionStore(Protocol):
    scope: str

    def get(self, key: str) -> Optional[dict]: ...

    def set(self, key: str, value: dict) -> None: ...

    def delete(self, key: str) -> bool: ...

    def snapshot(self) -> Dict[str, dict]: ...

    def clear(self) -> int: ...

    def lock(self, key: str) -> ContextManager[None]: ...


class InMemoryPredictionStore:
    """메모리 저장소 (테스트, 일회성 계산용)"""

    def __init__(self, scope: str, records: Optional[Mapping[str, dict]] = None):
        self.scope = scope
        self._records: Dict[str, dict] = {k: dict(v) for k, v in (records or {}).items()}
        self._mutex = threading.Lock()
        self._locks = KeyedLock()

    def get(self, key: str) -> Optional[dict]:
        with self._mutex:
            value = self._records.get(key)
            return dict(value) if value is not None else None

    def set(self, key: str, value: dict) -> None:
        with self._mutex:
            self._records[key] = dict(value)

    def delete(self, key: str) -> bool:
        with self._mutex:
            return self._records.pop(key, None) is not None

    def snapshot(self) -> Dict[str, dict]:
        with self._mutex:
            return {k: dict(v) for k, v in self._records.items()}

    def clear(self) -> int:
        with self._mutex:
            count = len(self._records)
            self._records.clear()
            return count

    def lock(self, key: str) -> ContextManager[None]:
        return self._locks.hold(key)


# DB I/O 재시도 정책 (저장소 경계에서만 적용)
_store_retry = retry(
    stop=stop_after_attempt(3),  # 3번 재시도
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception_type(OperationalError),
    reraise=True
)


class SqlPredictionStore:
    """SQLAlchemy 저장소 (prediction_records 테이블)"""

    def __init__(self, db: Session, scope: str):
        self.db = db
        self.scope = scope

    def _query(self):
        return self.db.query(PredictionRecord).filter(PredictionRecord.scope == self.scope)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except OperationalError:
            self.db.rollback()
            logger.warning(f"저장소 I/O 실패, 재시도 (scope={self.scope})")
            raise
        except Exception:
            self.db.rollback()
            raise

    @_store_retry
    def get(self, key: str) -> Optional[dict]:
        record = self._query().filter(PredictionRecord.key == key).first()
        return dict(record.payload) if record else None

    @_store_retry
    def set(self, key: str, value: dict) -> None:
        with self._transaction():
            record = self._query()\
                .filter(PredictionRecord.key == key)\
                .with_for_update()\
                .first()
            if record:
                record.payload = dict(value)
            else:
                self.db.add(PredictionRecord(scope=self.scope, key=key, payload=dict(value)))

    @_store_retry
    def delete(self, key: str) -> bool:
        with self._transaction():
            deleted = self._query()\
                .filter(PredictionRecord.key == key)\
                .delete(synchronize_session=False)
        return deleted > 0

    @_store_retry
    def snapshot(self) -> Dict[str, dict]:
        return {record.key: dict(record.payload) for record in self._query().all()}

    @_store_retry
    def clear(self) -> int:
        with self._transaction():
            deleted = self._query().delete(synchronize_session=False)
        logger.info(f"예측 초기화: scope={self.scope}, {deleted}건 삭제")
        return deleted

    def lock(self, key: str) -> ContextManager[None]:
        return _KEY_LOCKS.hold(self.scope, key)
