"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + ConnectionHub + 邮件协作方 + 后台任务 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from ausdauer.core.config import get_db_path, get_hub_queue_maxsize
from ausdauer.core.store import create_store_group
from fastapi import FastAPI

from .config import load_mail_config
from .errors import install_error_handlers
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, operatives, schedule, stream, tasks, ws
from .services.background import BackgroundRunner
from .services.hub import ConnectionHub
from .services.mailer import EchoMailer

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 与连接管理器，关闭时清理"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    # 连接管理器：进程内存，生命周期与 app 一致
    app.state.hub = ConnectionHub(queue_maxsize=get_hub_queue_maxsize())
    app.state.background = BackgroundRunner()

    mail_config = load_mail_config()
    app.state.mailer = EchoMailer(mail_config)
    log.info(
        "gateway_started",
        db_path=db_path,
        mail_enabled=mail_config.enabled,
    )

    yield

    # 关闭：等待未完成的邮件任务，再关闭数据库连接
    await app.state.background.wait()
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Ausdauer Gateway",
        version="0.1.0",
        description="Ausdauer 任务指挥 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    install_error_handlers(app)

    # 初始化日志
    setup_logging()
    setup_logfire()

    # 注册路由
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(operatives.router, tags=["operatives"])
    app.include_router(schedule.router, tags=["schedule"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(ws.router, tags=["ws"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
