"""TaskLifecycleEngine -- 任务状态机与命令处理

每个命令的流程：
1. 通过 AccessPolicy 做授权判定、检查任务是否存在（均在任何写入之前）
2. 状态变化时先调用评分引擎计算分数变化
3. 任务写入与分数变化在同一事务内提交（version 比较防止丢失更新）
4. 返回结果与待投递的领域事件，由调用方交给分发器

引擎本身不持有连接注册表，也不发送邮件。
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel
from ulid import ULID

from .comments import build_comment
from .config import COMMENT_PREVIEW_LENGTH
from .errors import Conflict, Forbidden, InvalidInput, NotFound
from .models import (
    CommentAddedPayload,
    DomainEvent,
    EventType,
    PriorityChangedPayload,
    Requester,
    Task,
    TaskCreatedPayload,
    TaskDeletedPayload,
    TaskPriority,
    TaskStatus,
    TaskSyncPayload,
    priority_weight,
)
from .policy import AccessPolicy
from .scoring import score_delta
from .store import StoreGroup
from .store.transaction import (
    append_comment_to_task,
    apply_task_change,
    locked_read,
    write_transaction,
)

log = structlog.get_logger()

T = TypeVar("T")


@dataclass
class CommandResult(Generic[T]):
    """命令结果 + 待投递的领域事件"""

    value: T
    events: list[DomainEvent] = field(default_factory=list)


class TaskDraft(BaseModel):
    """创建任务的输入，字段校验由引擎完成"""

    title: str | None = None
    description: str | None = None
    assigned_to: str | None = None
    priority: str | None = None
    deadline: datetime | str | None = None


def utc_now() -> datetime:
    return datetime.now(UTC)


def sort_for_display(tasks: list[Task]) -> list[Task]:
    """优先级权重倒序，同权重按截止时间正序（越近越靠前）"""
    return sorted(
        tasks,
        key=lambda t: (-priority_weight(t.priority), _utc(t.deadline)),
    )


def priority_changed_event(task: Task, priority: TaskPriority) -> DomainEvent:
    """发给执行人 room 的定向优先级通知"""
    return DomainEvent.targeted(
        EventType.PRIORITY_CHANGED,
        task.assigned_to,
        PriorityChangedPayload(
            task_id=task.task_id,
            title=task.title,
            new_priority=priority,
            urgent=priority == TaskPriority.EMERGENCY,
        ),
    )


class TaskLifecycleEngine:
    """任务生命周期引擎"""

    def __init__(
        self,
        store_group: StoreGroup,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._stores = store_group
        self._clock = clock

    async def create_task(
        self, draft: TaskDraft, requester: Requester
    ) -> CommandResult[Task]:
        """创建任务（仅 Chair）

        Raises:
            Forbidden: 请求者不是 Chair
            InvalidInput: 必填字段缺失或格式错误
            NotFound: assigned_to 指向的人员不存在
        """
        if not AccessPolicy(requester).can_create_task():
            raise Forbidden("Access denied. Chair only.")

        title = _required(draft.title, "title")
        description = _required(draft.description, "description")
        assigned_to = _required(draft.assigned_to, "assigned_to")
        if draft.deadline is None or draft.deadline == "":
            raise InvalidInput("Missing required field: deadline")
        deadline = _parse_deadline(draft.deadline)
        priority = (
            _parse_priority(draft.priority) if draft.priority else TaskPriority.MEDIUM
        )

        async with locked_read(self._stores, "get_operative"):
            assignee = await self._stores.operative_store.get_operative(assigned_to)
        if assignee is None:
            raise NotFound(f"Operative with id {assigned_to} does not exist")

        now = self._clock()
        task = Task(
            task_id=str(ULID()),
            title=title,
            description=description,
            assigned_to=assigned_to,
            assigned_by=requester.id,
            priority=priority,
            deadline=deadline,
            status=TaskStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

        async with write_transaction(self._stores, "create_task"):
            await self._stores.task_store.create_task(task)

        log.info(
            "task_created",
            task_id=task.task_id,
            assigned_to=assigned_to,
            priority=priority.value,
        )

        events = [
            DomainEvent.broadcast(
                EventType.TASK_CREATED,
                TaskCreatedPayload(task_id=task.task_id, title=task.title),
            ),
            priority_changed_event(task, priority),
        ]
        return CommandResult(task, events)

    async def list_tasks(self, requester: Requester) -> list[Task]:
        """Chair 查看全部，Employee 只看分配给自己的任务"""
        assigned_to = None if AccessPolicy(requester).can_view_all() else requester.id
        async with locked_read(self._stores, "list_tasks"):
            tasks = await self._stores.task_store.list_tasks(assigned_to=assigned_to)
        return sort_for_display(tasks)

    async def get_task(self, task_id: str, requester: Requester) -> Task:
        """查询单个任务

        Raises:
            NotFound: 任务不存在
            Forbidden: 既不是 Chair 也不是执行人
        """
        task = await self._load(task_id)
        if not AccessPolicy(requester).can_view_task(task):
            raise Forbidden("Not authorized to view this task")
        return task

    async def update_task(
        self,
        task_id: str,
        requester: Requester,
        status: str | None = None,
        priority: str | None = None,
        expected_version: int | None = None,
    ) -> CommandResult[Task]:
        """修改状态和/或优先级

        无论哪些字段变化，写入后总会广播一次 task_sync。

        Raises:
            NotFound: 任务不存在
            Forbidden: 既不是 Chair 也不是执行人；或执行人尝试修改优先级
            InvalidInput: 状态或优先级取值非法
            Conflict: expected_version 与当前 version 不符，或写入时被并发修改
        """
        task = await self._load(task_id)
        policy = AccessPolicy(requester)
        if not policy.can_mutate_task(task):
            raise Forbidden("Not authorized")

        new_status = _parse_status(status) if status else None
        new_priority = _parse_priority(priority) if priority else None

        if expected_version is not None and expected_version != task.version:
            raise Conflict(task_id, expected_version)

        status_changed = new_status is not None and new_status != task.status
        priority_changed = new_priority is not None and new_priority != task.priority
        if priority_changed and not policy.can_change_priority(task):
            raise Forbidden("Only the Chair may change priority")

        now = self._clock()
        fields: dict[str, Any] = {}
        delta = 0

        if status_changed:
            delta = await self._score_delta_for(task, new_status, now)
            fields["status"] = new_status
            if new_status == TaskStatus.COMPLETED:
                # 完成时刻固定，用于按时判定与冻结历史
                fields["completed_at"] = now
            elif task.status == TaskStatus.COMPLETED:
                fields["completed_at"] = None

        if priority_changed:
            fields["priority"] = new_priority

        if fields:
            score_applied = await apply_task_change(
                self._stores,
                task_id,
                task.version,
                fields,
                now,
                operative_id=task.assigned_to,
                score_delta=delta,
            )
            log.info(
                "task_updated",
                task_id=task_id,
                requester=requester.id,
                from_status=task.status.value,
                to_status=fields.get("status", task.status).value,
                priority=fields.get("priority", task.priority).value,
                score_delta=delta if score_applied else 0,
            )
            if delta < 0 and not score_applied:
                log.info(
                    "score_floor_guard_skip",
                    task_id=task_id,
                    operative_id=task.assigned_to,
                )
            updated = await self._load(task_id)
        else:
            updated = task

        events: list[DomainEvent] = []
        if priority_changed:
            events.append(priority_changed_event(updated, new_priority))
        events.append(
            DomainEvent.broadcast(
                EventType.TASK_SYNC,
                TaskSyncPayload(task_id=task_id),
            )
        )
        return CommandResult(updated, events)

    async def add_comment(
        self, task_id: str, requester: Requester, text: str | None
    ) -> CommandResult[Task]:
        """追加评论，广播 comment_added（所有连接都刷新）

        Raises:
            NotFound: 任务不存在
            InvalidInput: 正文为空
        """
        task = await self._load(task_id)
        comment = build_comment(requester, text, self._clock())

        appended = await append_comment_to_task(self._stores, task_id, comment)
        if not appended:
            raise NotFound(f"Task with id {task_id} does not exist")

        log.info(
            "comment_added",
            task_id=task_id,
            author_id=requester.id,
            preview=comment.text[:COMMENT_PREVIEW_LENGTH],
        )

        updated = await self._load(task_id)
        events = [
            DomainEvent.broadcast(
                EventType.COMMENT_ADDED,
                CommentAddedPayload(
                    task_id=task_id,
                    title=task.title,
                    message=f"New transmission: {task.title}",
                ),
            )
        ]
        return CommandResult(updated, events)

    async def delete_task(
        self, task_id: str, requester: Requester
    ) -> CommandResult[str]:
        """删除任务（仅 Chair），评论随任务一起删除

        Raises:
            Forbidden: 请求者不是 Chair（先于存在性检查）
            NotFound: 任务不存在
        """
        if not AccessPolicy(requester).can_delete_task():
            raise Forbidden("Access Denied.")

        await self._load(task_id)

        async with write_transaction(self._stores, "delete_task"):
            deleted = await self._stores.task_store.delete_task(task_id)
        if not deleted:
            raise NotFound(f"Task with id {task_id} does not exist")

        log.info("task_deleted", task_id=task_id, requester=requester.id)

        events = [
            DomainEvent.broadcast(
                EventType.TASK_DELETED,
                TaskDeletedPayload(task_id=task_id),
            )
        ]
        return CommandResult(task_id, events)

    async def _load(self, task_id: str) -> Task:
        async with locked_read(self._stores, "get_task"):
            task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise NotFound(f"Task with id {task_id} does not exist")
        return task

    async def _score_delta_for(
        self, task: Task, new_status: TaskStatus, now: datetime
    ) -> int:
        async with locked_read(self._stores, "get_operative"):
            assignee = await self._stores.operative_store.get_operative(task.assigned_to)
        if assignee is None:
            log.warning(
                "assignee_missing_skip_scoring",
                task_id=task.task_id,
                operative_id=task.assigned_to,
            )
            return 0
        return score_delta(task.status, new_status, task.deadline, now, assignee.score)


def _required(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise InvalidInput(f"Missing required field: {name}")
    return value.strip()


def _parse_status(value: str) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise InvalidInput(f"Unknown status: {value}") from None


def _parse_priority(value: str) -> TaskPriority:
    try:
        return TaskPriority(value)
    except ValueError:
        raise InvalidInput(f"Unknown priority: {value}") from None


def _parse_deadline(value: datetime | str) -> datetime:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise InvalidInput(f"Malformed deadline: {value}") from None
    return _utc(value)


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
