"""写事务封装

- 同一共享连接上的写事务通过 StoreGroup.write_lock 串行，避免事务交错
- 状态变更与分数变化在同一事务内原子提交
- 影响决策的读取同样持有写锁，只读到已提交的状态
- aiosqlite 异常统一转换为 StoreFailure
"""

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any

import aiosqlite

from ..errors import Conflict, StoreFailure
from ..models.task import Comment

if TYPE_CHECKING:
    from . import StoreGroup


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """将 aiosqlite 异常转换为 StoreFailure"""
    try:
        yield
    except aiosqlite.Error as e:
        raise StoreFailure(operation, e) from e


@asynccontextmanager
async def write_transaction(
    store_group: "StoreGroup",
    operation: str,
) -> AsyncIterator[None]:
    """持有写锁执行一个事务，成功提交，失败回滚

    Raises:
        StoreFailure: 数据库错误
        Exception: 事务体内抛出的其他异常（已回滚）
    """
    conn = store_group.conn
    async with store_group.write_lock:
        with translate_store_errors(operation):
            try:
                yield
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise


@asynccontextmanager
async def locked_read(
    store_group: "StoreGroup",
    operation: str,
) -> AsyncIterator[None]:
    """持有写锁读取

    共享连接上未提交的写入对同一连接可见，读取须等待进行中的写事务结束。
    """
    async with store_group.write_lock:
        with translate_store_errors(operation):
            yield


async def apply_task_change(
    store_group: "StoreGroup",
    task_id: str,
    expected_version: int,
    fields: dict[str, Any],
    updated_at: datetime,
    operative_id: str | None = None,
    score_delta: int = 0,
) -> bool:
    """在同一事务内提交任务字段更新和执行人分数变化

    Args:
        store_group: Store 实例组
        task_id: 任务 ID
        expected_version: 读取时的 version
        fields: 要更新的任务字段
        updated_at: 写入时刻
        operative_id: 需要调整分数的执行人
        score_delta: 分数变化（0 表示不调整）

    Returns:
        True 如果分数已调整

    Raises:
        Conflict: version 已被其他写入者推进（整个事务回滚）
    """
    async with write_transaction(store_group, "update_task"):
        matched = await store_group.task_store.update_task_fields(
            task_id, expected_version, fields, updated_at
        )
        if not matched:
            raise Conflict(task_id, expected_version)

        if operative_id is None or score_delta == 0:
            return False
        return await store_group.operative_store.adjust_score(operative_id, score_delta)


async def append_comment_to_task(
    store_group: "StoreGroup",
    task_id: str,
    comment: Comment,
) -> bool:
    """追加评论

    Returns:
        False 如果任务在读取后已被删除
    """
    async with write_transaction(store_group, "append_comment"):
        return await store_group.task_store.append_comment(task_id, comment)
