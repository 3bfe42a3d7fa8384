# app/core/logging_middleware.py
from fastapi import Request
from app.core.logger import logger
import time

async def log_requests(request: Request, call_next):
    """모든 요청/응답 로깅 (4xx는 WARNING, 5xx는 ERROR)"""

    start_time = time.perf_counter()
    client = request.client.host if request.client else "-"

    logger.info(f"➡️  {request.method} {request.url.path} from {client}")

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = (time.perf_counter() - start_time) * 1000

        logger.error(
            f"❌ {request.method} {request.url.path} "
            f"- Error: {str(e)} "
            f"- Time: {process_time:.2f}ms"
        )
        logger.exception("Exception details:")
        raise

    process_time = (time.perf_counter() - start_time) * 1000  # ms
    message = (
        f"⬅️  {request.method} {request.url.path} "
        f"- Status: {response.status_code} "
        f"- Time: {process_time:.2f}ms"
    )

    if response.status_code >= 500:
        logger.error(message)
    elif response.status_code >= 400:
        logger.warning(message)
    else:
        logger.info(message)

    response.headers["X-Process-Time"] = f"{process_time:.2f}"
    return response
