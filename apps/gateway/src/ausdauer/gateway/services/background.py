"""BackgroundRunner -- 后台任务的持有者

保留任务强引用直到结束，关闭时可等待全部完成。
每个 app 在 lifespan 中创建一个实例，经 app.state 注入。
"""

import asyncio
from collections.abc import Coroutine
from typing import Any


class BackgroundRunner:
    """持有 asyncio.Task 强引用，避免被 GC 提前回收"""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait(self) -> None:
        """等待当前所有后台任务结束，异常已由任务自身处理"""
        pending = list(self._tasks)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
