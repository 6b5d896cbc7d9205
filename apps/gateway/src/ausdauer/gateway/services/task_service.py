"""TaskService -- 任务命令的网关侧编排

每个命令的流程：
1. 调用 TaskLifecycleEngine 完成授权、校验与持久化
2. 把返回的领域事件交给 EventDispatcher 投递
3. 新建任务时异步发送截止提醒邮件（失败只记日志，不影响命令结果）
"""

from collections.abc import Callable
from datetime import datetime

import structlog
from ausdauer.core.lifecycle import TaskDraft, TaskLifecycleEngine, utc_now
from ausdauer.core.models import Requester, Task
from ausdauer.core.store import StoreGroup

from .background import BackgroundRunner
from .dispatcher import EventDispatcher
from .hub import ConnectionHub
from .mailer import DeadlineMailer

log = structlog.get_logger()


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        hub: ConnectionHub | None = None,
        mailer: DeadlineMailer | None = None,
        clock: Callable[[], datetime] = utc_now,
        background: BackgroundRunner | None = None,
    ) -> None:
        self._stores = store_group
        self._background = background if background is not None else BackgroundRunner()
        self._engine = TaskLifecycleEngine(store_group, clock=clock)
        self._dispatcher = EventDispatcher(hub)
        self._mailer = mailer

    async def create_task(self, draft: TaskDraft, requester: Requester) -> Task:
        """创建任务，广播 task_created 并通知执行人"""
        result = await self._engine.create_task(draft, requester)
        await self._dispatcher.dispatch(result.events)
        self._schedule_deadline_notice(result.value)
        return result.value

    async def list_tasks(self, requester: Requester) -> list[Task]:
        return await self._engine.list_tasks(requester)

    async def get_task(self, task_id: str, requester: Requester) -> Task:
        return await self._engine.get_task(task_id, requester)

    async def update_task(
        self,
        task_id: str,
        requester: Requester,
        status: str | None = None,
        priority: str | None = None,
        expected_version: int | None = None,
    ) -> Task:
        result = await self._engine.update_task(
            task_id,
            requester,
            status=status,
            priority=priority,
            expected_version=expected_version,
        )
        await self._dispatcher.dispatch(result.events)
        return result.value

    async def add_comment(
        self, task_id: str, requester: Requester, text: str | None
    ) -> Task:
        result = await self._engine.add_comment(task_id, requester, text)
        await self._dispatcher.dispatch(result.events)
        return result.value

    async def delete_task(self, task_id: str, requester: Requester) -> None:
        result = await self._engine.delete_task(task_id, requester)
        await self._dispatcher.dispatch(result.events)

    async def wait_for_background(self) -> None:
        """等待本服务所属 runner 上的后台邮件任务结束"""
        await self._background.wait()

    def _schedule_deadline_notice(self, task: Task) -> None:
        if self._mailer is None:
            return
        self._background.spawn(self.send_deadline_notice(task))

    async def send_deadline_notice(
        self,
        task: Task,
        subject: str | None = None,
        body: str | None = None,
    ) -> bool:
        """向执行人发送截止提醒

        Returns:
            True 表示邮件已交给邮件协作方；失败或无邮箱时返回 False
        """
        if self._mailer is None:
            return False
        try:
            assignee = await self._stores.operative_store.get_operative(task.assigned_to)
            if assignee is None or not assignee.email:
                log.info(
                    "deadline_notice_skipped",
                    task_id=task.task_id,
                    reason="no_email",
                )
                return False
            await self._mailer.send_deadline_notice(
                assignee.email, task, subject=subject, body=body
            )
            return True
        except Exception as e:
            log.error(
                "deadline_notice_failed",
                task_id=task.task_id,
                error_type=type(e).__name__,
            )
            return False
