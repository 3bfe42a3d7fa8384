# main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import settings
from app.api.routes import leaderboard, participants, predictions, tournament
from app.core.exceptions import PoolError
from app.core.logging_middleware import log_requests
from app.core.logger import logger
from app.database import create_tables
from app.services.tournament_service import get_bracket

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug
)

# ===== 로깅 미들웨어 (가장 먼저) =====
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    return await log_requests(request, call_next)
# =====================================

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 도메인 예외 -> HTTP 응답
@app.exception_handler(PoolError)
async def pool_error_handler(request: Request, exc: PoolError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": type(exc).__name__}
    )

# 라우터 등록
app.include_router(tournament.router)
app.include_router(participants.router)
app.include_router(predictions.router)
app.include_router(leaderboard.router)

# ===== 시작/종료 =====
@app.on_event("startup")
async def startup_event():
    create_tables()
    graph = get_bracket()  # 대회 포맷 오류는 여기서 바로 실패
    logger.info(f"{settings.app_name} 서버 시작 ({graph.tournament.name})")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"{settings.app_name} 서버 종료")
# =====================

@app.get("/health")
def health_check():
    """헬스체크"""
    return {
        "status": "healthy",
        "service": settings.app_name
    }
