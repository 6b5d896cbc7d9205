"""Ausdauer Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .operative_store import SqliteOperativeStore
from .protocols import OperativeStore, TaskStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import (
    append_comment_to_task,
    apply_task_change,
    locked_read,
    translate_store_errors,
    write_transaction,
)


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        conn.row_factory = aiosqlite.Row
        self.conn = conn
        self.task_store: TaskStore = SqliteTaskStore(conn)
        self.operative_store: OperativeStore = SqliteOperativeStore(conn)
        # 共享连接上的写事务串行化
        self.write_lock = asyncio.Lock()

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteOperativeStore",
    "TaskStore",
    "OperativeStore",
    "init_db",
    "apply_task_change",
    "append_comment_to_task",
    "locked_read",
    "translate_store_errors",
    "write_transaction",
]
