"""邮件协作方 -- 截止提醒

DeadlineMailer 是核心层消费的接口；EchoMailer 是默认实现，
渲染邮件（含 .ics 日历邀请）后写日志并留存在内存中，不真正发信。
发送失败由调用方记录日志并吞掉，不影响原命令。
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

import structlog
from ausdauer.core.models import Task

from ..config import MailConfig

log = structlog.get_logger()


class DeadlineMailer(Protocol):
    """截止提醒邮件接口"""

    async def send_deadline_notice(
        self,
        email: str,
        task: Task,
        subject: str | None = None,
        body: str | None = None,
    ) -> None:
        """向执行人发送截止提醒"""
        ...


@dataclass
class MailMessage:
    """渲染后的邮件"""

    sender: str
    to: str
    subject: str
    text: str
    calendar: str


def _ics_ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y%m%dT%H%M%SZ")


def build_calendar_invite(task: Task, now: datetime | None = None) -> str:
    """生成截止时间的 iCalendar 邀请（CRLF 换行）"""
    stamp = now or datetime.now(UTC)
    return "\r\n".join(
        [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//Ausdauer//Missions v1.0//EN",
            "METHOD:REQUEST",
            "BEGIN:VEVENT",
            f"UID:{task.task_id}@ausdauer",
            f"DTSTAMP:{_ics_ts(stamp)}",
            f"DTSTART:{_ics_ts(task.deadline)}",
            f"DTEND:{_ics_ts(task.deadline)}",
            f"SUMMARY:Mission Deadline: {task.title}",
            f"DESCRIPTION:{task.description}",
            "STATUS:CONFIRMED",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )


class EchoMailer:
    """不发信的邮件实现：渲染、记录日志、留存"""

    def __init__(self, config: MailConfig | None = None) -> None:
        self._config = config or MailConfig()
        self.sent: list[MailMessage] = []

    async def send_deadline_notice(
        self,
        email: str,
        task: Task,
        subject: str | None = None,
        body: str | None = None,
    ) -> None:
        if not self._config.enabled:
            log.debug("mail_disabled_skip", task_id=task.task_id)
            return

        deadline = task.deadline.astimezone(UTC).strftime("%Y-%m-%d %H:%M UTC")
        message = MailMessage(
            sender=self._config.sender,
            to=email,
            subject=subject or f"New Mission Assigned: {task.title}",
            text=body
            or (
                f"You have received a new assignment: {task.title}.\n"
                f"Target Completion: {deadline}"
            ),
            calendar=build_calendar_invite(task),
        )
        self.sent.append(message)
        log.info(
            "deadline_notice_sent",
            task_id=task.task_id,
            to=email,
            subject=message.subject,
        )
