"""Event Payload 子类型

所有实时事件的结构化 payload 定义。
"""

from pydantic import BaseModel, Field

from .enums import OperativeRole, TaskPriority


class TaskCreatedPayload(BaseModel):
    """task_created 事件 payload"""

    task_id: str
    title: str
    message: str = Field(default="New Mission Assigned")


class PriorityChangedPayload(BaseModel):
    """priority_changed 事件 payload（定向投递给执行人）"""

    task_id: str
    title: str
    new_priority: TaskPriority
    urgent: bool = Field(description="new_priority 为 Emergency 时为 True")


class TaskSyncPayload(BaseModel):
    """task_sync 事件 payload -- 通用的重新拉取信号"""

    task_id: str
    message: str = Field(default="System Sync Triggered")


class CommentAddedPayload(BaseModel):
    """comment_added 事件 payload"""

    task_id: str
    title: str
    message: str


class TaskDeletedPayload(BaseModel):
    """task_deleted 事件 payload"""

    task_id: str


class ScoreUpdatedPayload(BaseModel):
    """score_updated 事件 payload（管理员覆盖）"""

    operative_id: str
    score: int


class ScoresResetPayload(BaseModel):
    """scores_reset 事件 payload"""

    affected: int
    message: str = Field(default="Leaderboard Reset")


class DeadlineReminderPayload(BaseModel):
    """deadline_reminder 事件 payload"""

    task_count: int
    window_hours: int


class OperativeUpdatedPayload(BaseModel):
    """operative_updated 事件 payload"""

    operative_id: str
    name: str
    role: OperativeRole


class OperativeRemovedPayload(BaseModel):
    """operative_removed 事件 payload（指派给此人的任务一并删除）"""

    operative_id: str
    purged_task_ids: list[str] = Field(default_factory=list)
