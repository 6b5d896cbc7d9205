"""ConnectionHub -- 内存中的连接与 room 管理

每个连接持有一个 asyncio.Queue，支持 connect/disconnect/join/leave/
broadcast/send_to_room。room 成员关系只存在于进程内存中，断开即丢失，
客户端重连后需要重新发送加入 room 的命令。

投递是 fire-and-forget：不确认、不重试、不为离线连接排队。
队列积压的连接会被移除并标记为关闭，消费端据此结束传输，促使客户端重连。
"""

import asyncio
from collections import defaultdict

import structlog
from ausdauer.core.models import DomainEvent
from ulid import ULID

log = structlog.get_logger()


class Connection:
    """单个连接句柄"""

    def __init__(self, connection_id: str, queue: asyncio.Queue) -> None:
        self.connection_id = connection_id
        self.queue = queue
        self.rooms: set[str] = set()
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """标记关闭，唤醒正在等待事件的消费端"""
        self._closed.set()

    async def next_event(self, timeout: float | None = None) -> DomainEvent | None:
        """等待下一个事件

        Returns:
            事件；连接已被关闭时返回 None

        Raises:
            TimeoutError: timeout 内既无事件也未关闭
        """
        if self.closed:
            return None
        getter = asyncio.ensure_future(self.queue.get())
        closer = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait(
                {getter, closer},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            closer.cancel()
            if not getter.done():
                getter.cancel()
        if getter in done:
            return getter.result()
        if closer in done:
            return None
        raise TimeoutError


class ConnectionHub:
    """连接管理器 -- 基于 asyncio.Queue 的发布/订阅模式"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        # connection_id -> Connection
        self._connections: dict[str, Connection] = {}
        # room_id -> set of connection_id
        self._rooms: dict[str, set[str]] = defaultdict(set)
        self._queue_maxsize = queue_maxsize

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self) -> Connection:
        """注册新连接（不自动加入任何 room）

        Returns:
            Connection 句柄，新事件会被推送到 connection.queue
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        connection = Connection(str(ULID()), queue)
        self._connections[connection.connection_id] = connection
        log.info(
            "connection_opened",
            connection_id=connection.connection_id,
            total=len(self._connections),
        )
        return connection

    async def disconnect(self, connection: Connection) -> None:
        """注销连接并清理其 room 成员关系"""
        self._drop(connection.connection_id)
        log.info(
            "connection_closed",
            connection_id=connection.connection_id,
            total=len(self._connections),
        )

    async def join(self, connection_id: str, room_id: str) -> bool:
        """连接加入 room

        Returns:
            False 如果连接不存在
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        connection.rooms.add(room_id)
        self._rooms[room_id].add(connection_id)
        log.debug("room_joined", connection_id=connection_id, room=room_id)
        return True

    async def leave(self, connection_id: str, room_id: str) -> bool:
        """连接离开 room

        Returns:
            False 如果连接不存在
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        connection.rooms.discard(room_id)
        self._discard_member(room_id, connection_id)
        return True

    def rooms_of(self, connection_id: str) -> set[str]:
        connection = self._connections.get(connection_id)
        return set(connection.rooms) if connection else set()

    async def broadcast(self, event: DomainEvent) -> int:
        """向所有连接广播事件

        Returns:
            成功入队的连接数
        """
        return self._deliver(list(self._connections.values()), event)

    async def send_to_room(self, room_id: str, event: DomainEvent) -> int:
        """仅向加入 room 的连接投递事件

        Returns:
            成功入队的连接数
        """
        targets = [
            self._connections[cid]
            for cid in self._rooms.get(room_id, set())
            if cid in self._connections
        ]
        return self._deliver(targets, event)

    def _deliver(self, targets: list[Connection], event: DomainEvent) -> int:
        delivered = 0
        dead: list[Connection] = []
        for connection in targets:
            try:
                connection.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                dead.append(connection)

        # 队列已满视为失联，移除连接
        for connection in dead:
            self._drop(connection.connection_id)
        if dead:
            log.warning(
                "dropped_stalled_connections",
                count=len(dead),
                event_type=event.type.value,
            )
        return delivered

    def _drop(self, connection_id: str) -> None:
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return
        connection.close()
        for room_id in connection.rooms:
            self._discard_member(room_id, connection_id)

    def _discard_member(self, room_id: str, connection_id: str) -> None:
        members = self._rooms.get(room_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room_id]
