"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出，供日志采集使用
Logfire APM：LOGFIRE_SEND_TO_LOGFIRE=true 时启用，初始化失败降级为纯本地日志。
"""

import logging
import os

import structlog

# 第三方库的 INFO 日志过于嘈杂，统一提升到 WARNING
_QUIET_LOGGERS = ("aiosqlite", "sse_starlette", "uvicorn.access")


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    参数优先于环境变量：
    - AUSDAUER_LOG_FORMAT: "json" | "dev"（默认）
    - AUSDAUER_LOG_LEVEL: 标准 logging 级别名，默认 INFO
    """
    log_format = log_format or os.environ.get("AUSDAUER_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("AUSDAUER_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logfire() -> bool:
    """Logfire 可选初始化

    Returns:
        True 表示 Logfire 已启用
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name="ausdauer-gateway")
        logfire.instrument_fastapi()
    except Exception:
        structlog.get_logger().warning(
            "logfire_init_failed",
            message="Logfire 初始化失败，降级为纯本地日志",
        )
        return False
    return True
