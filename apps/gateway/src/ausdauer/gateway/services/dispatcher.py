"""EventDispatcher -- 消费引擎返回的领域事件并投递到连接

投递失败只记录日志，永远不会影响命令本身的结果。
"""

from collections.abc import Iterable

import structlog
from ausdauer.core.models import Delivery, DomainEvent

from .hub import ConnectionHub

log = structlog.get_logger()


class EventDispatcher:
    """按 delivery 类别把事件路由到 ConnectionHub"""

    def __init__(self, hub: ConnectionHub | None) -> None:
        self._hub = hub

    async def dispatch(self, events: Iterable[DomainEvent]) -> None:
        if self._hub is None:
            return
        for event in events:
            try:
                if event.delivery == Delivery.TARGETED:
                    if not event.room:
                        log.warning("targeted_event_without_room", event_type=event.type.value)
                        continue
                    delivered = await self._hub.send_to_room(event.room, event)
                else:
                    delivered = await self._hub.broadcast(event)
                log.debug(
                    "event_dispatched",
                    event_type=event.type.value,
                    delivery=event.delivery.value,
                    room=event.room,
                    delivered=delivered,
                )
            except Exception as e:
                log.error(
                    "event_dispatch_failed",
                    event_type=event.type.value,
                    error_type=type(e).__name__,
                )
