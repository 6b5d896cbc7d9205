"""Ausdauer Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    PRIORITY_WEIGHT,
    STATUS_PROGRESS,
    Delivery,
    EventType,
    OperativeRole,
    TaskPriority,
    TaskStatus,
    priority_weight,
    progress_for,
)
from .event import DomainEvent
from .operative import Operative, Requester
from .payloads import (
    CommentAddedPayload,
    DeadlineReminderPayload,
    OperativeRemovedPayload,
    OperativeUpdatedPayload,
    PriorityChangedPayload,
    ScoresResetPayload,
    ScoreUpdatedPayload,
    TaskCreatedPayload,
    TaskDeletedPayload,
    TaskSyncPayload,
)
from .task import Comment, Task

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "OperativeRole",
    "EventType",
    "Delivery",
    # 派生规则
    "PRIORITY_WEIGHT",
    "STATUS_PROGRESS",
    "priority_weight",
    "progress_for",
    # Task
    "Task",
    "Comment",
    # Operative
    "Operative",
    "Requester",
    # Event
    "DomainEvent",
    # Payloads
    "TaskCreatedPayload",
    "PriorityChangedPayload",
    "TaskSyncPayload",
    "CommentAddedPayload",
    "TaskDeletedPayload",
    "ScoreUpdatedPayload",
    "ScoresResetPayload",
    "DeadlineReminderPayload",
    "OperativeUpdatedPayload",
    "OperativeRemovedPayload",
]
