"""枚举定义 -- 任务状态、优先级、角色与事件类型

包含 TaskStatus 状态集合、TaskPriority 优先级权重、OperativeRole 角色、
EventType 事件类型和 Delivery 投递类别，以及 progress 派生规则。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """任务状态 -- 无流转表，任意状态可互相到达，无终态"""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class TaskPriority(StrEnum):
    """任务优先级"""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    EMERGENCY = "Emergency"


class OperativeRole(StrEnum):
    """操作员角色：Chair 负责分配，Employee 负责执行"""

    CHAIR = "Chair"
    EMPLOYEE = "Employee"


class EventType(StrEnum):
    """实时事件名称"""

    TASK_CREATED = "task_created"
    PRIORITY_CHANGED = "priority_changed"
    TASK_SYNC = "task_sync"
    COMMENT_ADDED = "comment_added"
    TASK_DELETED = "task_deleted"
    SCORE_UPDATED = "score_updated"
    SCORES_RESET = "scores_reset"
    DEADLINE_REMINDER = "deadline_reminder"
    OPERATIVE_UPDATED = "operative_updated"
    OPERATIVE_REMOVED = "operative_removed"


class Delivery(StrEnum):
    """投递类别"""

    BROADCAST = "broadcast"
    TARGETED = "targeted"


# 列表排序权重：数值越大越靠前
PRIORITY_WEIGHT: dict[TaskPriority, int] = {
    TaskPriority.EMERGENCY: 4,
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
}

# progress 完全由 status 派生
STATUS_PROGRESS: dict[TaskStatus, int] = {
    TaskStatus.PENDING: 0,
    TaskStatus.IN_PROGRESS: 50,
    TaskStatus.COMPLETED: 100,
}


def progress_for(status: TaskStatus | str) -> int:
    """根据状态计算 progress

    Args:
        status: 任务状态（未识别的值视为 0）

    Returns:
        0 / 50 / 100
    """
    try:
        return STATUS_PROGRESS[TaskStatus(status)]
    except ValueError:
        return 0


def priority_weight(priority: TaskPriority | str) -> int:
    """优先级权重，未识别的值为 0"""
    try:
        return PRIORITY_WEIGHT[TaskPriority(priority)]
    except ValueError:
        return 0
