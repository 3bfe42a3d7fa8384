# app/services/tournament_service.py
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from app.config import settings
from app.core.exceptions import TournamentConfigError
from app.core.logger import logger
from app.schemas.tournament import TournamentConfig
from app.services.bracket_service import BracketGraph

DEFAULT_TOURNAMENT_FILE = Path(__file__).resolve().parent.parent / "data" / "worldcup_2026.json"


def load_tournament(path: Optional[Union[str, Path]] = None) -> TournamentConfig:
    """대회 포맷 JSON 로딩 + 검증"""
    path = Path(path) if path else DEFAULT_TOURNAMENT_FILE
    if not path.exists():
        raise TournamentConfigError(f"대회 포맷 파일이 없습니다: {path}")

    try:
        tournament = TournamentConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise TournamentConfigError(f"대회 포맷 파일 오류 ({path.name}): {e}") from e

    logger.info(
        f"대회 포맷 로딩: {tournament.name} "
        f"({len(tournament.groups)}개 조, 조별 {tournament.expected_results}경기, "
        f"토너먼트 {sum(len(r.slots) for r in tournament.rounds)}경기)"
    )
    return tournament


@lru_cache
def get_tournament() -> TournamentConfig:
    """설정된 대회 포맷 (프로세스당 한 번 로딩)"""
    return load_tournament(settings.tournament_file)


@lru_cache
def get_bracket() -> BracketGraph:
    return BracketGraph(get_tournament())
