"""DomainEvent -- 生命周期引擎产生、分发器消费的实时事件

事件不落盘：通知流不保证持久化或重放，客户端重连后应重新拉取任务列表。
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field
from ulid import ULID

from .enums import Delivery, EventType


class DomainEvent(BaseModel):
    """领域事件

    delivery=broadcast 时投递给所有连接；
    delivery=targeted 时仅投递给加入 room 的连接。
    """

    event_id: str = Field(default_factory=lambda: str(ULID()), description="ULID")
    type: EventType = Field(description="事件名称")
    delivery: Delivery = Field(default=Delivery.BROADCAST, description="投递类别")
    room: str | None = Field(default=None, description="定向投递的 room（operative_id）")
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC), description="产生时间")
    payload: dict[str, Any] = Field(default_factory=dict, description="结构化 payload")

    @classmethod
    def broadcast(cls, type: EventType, payload: BaseModel) -> "DomainEvent":
        return cls(type=type, delivery=Delivery.BROADCAST, payload=payload.model_dump(mode="json"))

    @classmethod
    def targeted(cls, type: EventType, room: str, payload: BaseModel) -> "DomainEvent":
        return cls(
            type=type,
            delivery=Delivery.TARGETED,
            room=room,
            payload=payload.model_dump(mode="json"),
        )

    def to_wire(self) -> dict[str, Any]:
        """推送给客户端的 JSON 结构"""
        return {
            "event": self.type.value,
            "event_id": self.event_id,
            "ts": self.ts.isoformat(),
            "data": self.payload,
        }
