"""Gateway 配置 -- 邮件协作方配置加载

从环境变量加载配置，非法值降级为默认值并记录警告。
"""

import os

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


class MailConfig(BaseModel):
    """邮件配置

    环境变量:
        AUSDAUER_MAIL_SENDER: 发件人
        AUSDAUER_MAIL_ENABLED: 是否发送（true/false）
    """

    sender: str = Field(
        default="Ausdauer Command <no-reply@ausdauer.local>",
        description="发件人",
    )
    enabled: bool = Field(default=True, description="是否发送截止提醒")


def load_mail_config() -> MailConfig:
    """从环境变量加载邮件配置"""
    kwargs: dict = {}

    if val := os.environ.get("AUSDAUER_MAIL_SENDER"):
        kwargs["sender"] = val

    if val := os.environ.get("AUSDAUER_MAIL_ENABLED"):
        lowered = val.lower()
        if lowered in ("true", "1", "yes"):
            kwargs["enabled"] = True
        elif lowered in ("false", "0", "no"):
            kwargs["enabled"] = False
        else:
            log.warning(
                "invalid_mail_config",
                env_var="AUSDAUER_MAIL_ENABLED",
                value=val,
                fallback=True,
            )

    return MailConfig(**kwargs)
