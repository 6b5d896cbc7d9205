"""ScheduleHooks -- 周期任务调用的查询/命令入口

核心层不持有时钟调度，外部调度器按周期调用：
- find_tasks_due_within: 查询窗口内即将到期且未完成的任务（不影响分数）
- reset_all_employee_scores: 月度排行榜清零
调用方负责在之后广播通知。
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from .lifecycle import CommandResult, utc_now
from .models import OperativeRole, Task, TaskStatus
from .roster import Roster
from .store import StoreGroup
from .store.transaction import translate_store_errors


class ScheduleHooks:
    """调度器使用的入口"""

    def __init__(
        self,
        store_group: StoreGroup,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._stores = store_group
        self._clock = clock

    async def find_tasks_due_within(
        self,
        window: timedelta,
        exclude_status: TaskStatus | None = TaskStatus.COMPLETED,
    ) -> list[Task]:
        """查询 [now, now + window] 内到期的任务"""
        now = self._clock()
        with translate_store_errors("find_due_between"):
            return await self._stores.task_store.find_due_between(
                now,
                now + window,
                exclude_status=exclude_status.value if exclude_status else None,
            )

    async def reset_all_employee_scores(self) -> CommandResult[int]:
        """月度清零：仅 Employee"""
        roster = Roster(self._stores, clock=self._clock)
        return await roster.reset_scores(requester=None, role=OperativeRole.EMPLOYEE)
