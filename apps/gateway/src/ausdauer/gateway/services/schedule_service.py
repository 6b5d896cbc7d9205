"""ScheduleService -- 周期任务入口

由外部调度器（cron 等）通过 HTTP 触发：
- 截止提醒：查询窗口内未完成任务，逐个邮件提醒执行人，再广播 deadline_reminder
- 月度清零：清零 Employee 分数，广播 scores_reset
"""

from collections.abc import Callable
from datetime import datetime, timedelta

import structlog
from ausdauer.core.errors import Forbidden
from ausdauer.core.lifecycle import utc_now
from ausdauer.core.models import (
    DeadlineReminderPayload,
    DomainEvent,
    EventType,
    Requester,
    Task,
)
from ausdauer.core.policy import AccessPolicy
from ausdauer.core.schedule import ScheduleHooks
from ausdauer.core.store import StoreGroup

from .dispatcher import EventDispatcher
from .hub import ConnectionHub
from .mailer import DeadlineMailer
from .task_service import TaskService

log = structlog.get_logger()


class ScheduleService:
    """调度入口服务（仅 Chair 可触发）"""

    def __init__(
        self,
        store_group: StoreGroup,
        hub: ConnectionHub | None = None,
        mailer: DeadlineMailer | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._hooks = ScheduleHooks(store_group, clock=clock)
        self._tasks = TaskService(store_group, hub, mailer, clock=clock)
        self._dispatcher = EventDispatcher(hub)

    async def send_deadline_reminders(
        self, requester: Requester, window_hours: int
    ) -> tuple[list[Task], int]:
        """截止提醒

        Returns:
            (窗口内的任务, 成功交付给邮件协作方的数量)
        """
        self._check(requester)
        tasks = await self._hooks.find_tasks_due_within(timedelta(hours=window_hours))

        mailed = 0
        for task in tasks:
            sent = await self._tasks.send_deadline_notice(
                task,
                subject=f"[DEADLINE WARNING] Due Tomorrow: {task.title}",
                body=(
                    f"This is a reminder that your task is due in less than "
                    f"{window_hours} hours. Please prioritize."
                ),
            )
            if sent:
                mailed += 1

        log.info(
            "deadline_reminders_sent",
            task_count=len(tasks),
            mailed=mailed,
            window_hours=window_hours,
        )
        await self._dispatcher.dispatch(
            [
                DomainEvent.broadcast(
                    EventType.DEADLINE_REMINDER,
                    DeadlineReminderPayload(
                        task_count=len(tasks), window_hours=window_hours
                    ),
                )
            ]
        )
        return tasks, mailed

    async def monthly_reset(self, requester: Requester) -> int:
        """月度排行榜清零（仅 Employee）"""
        self._check(requester)
        result = await self._hooks.reset_all_employee_scores()
        await self._dispatcher.dispatch(result.events)
        return result.value

    @staticmethod
    def _check(requester: Requester) -> None:
        if not AccessPolicy(requester).can_run_schedule():
            raise Forbidden("Access denied. Chair only.")
