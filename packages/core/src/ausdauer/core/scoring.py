"""评分引擎 -- 分数变化仅由状态流转与截止时间决定

- 首次流转到 Completed：按时（now <= deadline）+10，逾期不加不减
- 从 Completed 撤回：当前分数 >= 10 时 -10，否则跳过（不截断到 0）
- 其他流转：无影响
"""

from datetime import UTC, datetime

from .models.enums import TaskStatus

ON_TIME_AWARD: int = 10
UNCOMPLETE_PENALTY: int = 10


def is_on_time(deadline: datetime, now: datetime) -> bool:
    """完成时刻是否不晚于截止时间（naive 时间按 UTC 处理）"""
    return _as_utc(now) <= _as_utc(deadline)


def score_delta(
    previous: TaskStatus,
    new: TaskStatus,
    deadline: datetime,
    now: datetime,
    current_score: int,
) -> int:
    """计算一次状态流转带来的分数变化

    Args:
        previous: 流转前状态
        new: 流转后状态
        deadline: 任务截止时间
        now: 流转生效时刻
        current_score: 执行人当前分数

    Returns:
        +ON_TIME_AWARD / -UNCOMPLETE_PENALTY / 0
    """
    if previous == new:
        return 0

    if new == TaskStatus.COMPLETED:
        return ON_TIME_AWARD if is_on_time(deadline, now) else 0

    if previous == TaskStatus.COMPLETED:
        return -UNCOMPLETE_PENALTY if current_score >= UNCOMPLETE_PENALTY else 0

    return 0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
