"""错误响应 -- AusdauerError 统一转换为 {"error": {"code", "message"}}"""

import structlog
from ausdauer.core.errors import AusdauerError, StoreFailure
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()


class Unauthenticated(AusdauerError):
    """缺少或无法识别请求者身份"""

    code = "UNAUTHENTICATED"
    status_code = 401


def error_response(exc: AusdauerError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


async def handle_ausdauer_error(request: Request, exc: AusdauerError) -> JSONResponse:
    if isinstance(exc, StoreFailure):
        log.error(
            "store_failure",
            operation=exc.operation,
            error_type=type(exc.original_error).__name__,
        )
    return error_response(exc)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AusdauerError, handle_ausdauer_error)
