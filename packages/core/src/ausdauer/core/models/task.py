"""Task Domain Model

任务文档：评论内嵌在任务中，随任务一起删除。
progress 是 status 的派生字段，不允许独立设置。
"""

from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from .enums import OperativeRole, TaskPriority, TaskStatus, progress_for


class Comment(BaseModel):
    """任务评论 -- 写入时快照作者名称与角色，追加后不可修改"""

    model_config = {"frozen": True}

    comment_id: str = Field(description="唯一标识，ULID 格式")
    author_id: str = Field(description="作者 operative_id")
    author_name: str = Field(description="写入时的作者显示名")
    author_role: OperativeRole = Field(description="写入时的作者角色")
    text: str = Field(description="评论正文")
    created_at: datetime = Field(description="创建时间")


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    description: str = Field(description="任务描述")
    assigned_to: str = Field(description="执行人 operative_id，创建后不可变")
    assigned_by: str = Field(description="分配人 operative_id，创建后不可变")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    deadline: datetime = Field(description="截止时间")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    comments: list[Comment] = Field(default_factory=list, description="评论日志，按追加顺序")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="最后写入时间")
    completed_at: datetime | None = Field(
        default=None,
        description="流转到 Completed 的时刻，撤销完成时清空",
    )
    version: int = Field(default=1, description="乐观并发版本号，每次写入 +1")

    @computed_field
    @property
    def progress(self) -> int:
        """由 status 派生的进度"""
        return progress_for(self.status)
