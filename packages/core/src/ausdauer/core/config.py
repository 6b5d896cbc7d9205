"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、连接队列上限、SSE 心跳间隔、截止提醒窗口等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("AUSDAUER_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "AUSDAUER_DB_PATH",
        str(_get_base_dir() / "sqlite" / "ausdauer.db"),
    )


def get_hub_queue_maxsize() -> int:
    """单个连接待推送事件队列上限，超过即视为失联连接"""
    return int(os.environ.get("AUSDAUER_HUB_QUEUE_MAXSIZE", "100"))


# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("AUSDAUER_SSE_HEARTBEAT_INTERVAL", "15")
)

# 截止提醒默认窗口（小时）
DEADLINE_WINDOW_HOURS: int = int(
    os.environ.get("AUSDAUER_DEADLINE_WINDOW_HOURS", "24")
)

# 评论预览截断长度（用于日志）
COMMENT_PREVIEW_LENGTH: int = 80
