#app/services/realtime.py
"""
Real-time рассылка событий шаблона.

Обработчики запросов (в том числе синхронные, из пула потоков) только кладут
событие в outbox. Отдельная задача-публикатор, запущенная при старте
приложения, разбирает очередь и рассылает события подписчикам комнаты
template_{id}. Медленный или отвалившийся сокет не влияет на HTTP-ответ.
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger("FormBuilder.Realtime")

EVENT_NEW_COMMENT = "newComment"
EVENT_COMMENT_DELETED = "commentDeleted"
EVENT_LIKE_UPDATED = "likeUpdated"


def room_name(template_id: int) -> str:
    return f"template_{template_id}"


class ConnectionManager:
    """Комнаты подписчиков: room -> множество сокетов."""

    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = {}

    def join(self, websocket: WebSocket, template_id: int) -> None:
        self.rooms.setdefault(room_name(template_id), set()).add(websocket)

    def leave(self, websocket: WebSocket, template_id: int) -> None:
        room = self.rooms.get(room_name(template_id))
        if room is None:
            return
        room.discard(websocket)
        if not room:
            del self.rooms[room_name(template_id)]

    def disconnect(self, websocket: WebSocket) -> None:
        for name in list(self.rooms):
            self.rooms[name].discard(websocket)
            if not self.rooms[name]:
                del self.rooms[name]

    def subscribers(self, template_id: int) -> Set[WebSocket]:
        return set(self.rooms.get(room_name(template_id), ()))

    async def broadcast(self, template_id: int, message: Dict[str, Any]) -> int:
        """Разослать сообщение комнате; сокеты с ошибкой отправки отключаются."""
        delivered = 0
        for websocket in self.subscribers(template_id):
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping subscriber of {room_name(template_id)}: {e}")
                self.disconnect(websocket)
        return delivered


class EventOutbox:
    """
    Outbox событий: publish() потокобезопасен и не блокирует, run() рассылает
    события по мере поступления.
    """

    def __init__(self, manager: ConnectionManager):
        self.manager = manager
        self._queue: Optional[asyncio.Queue] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def publish(self, template_id: int, event: str, data: Any) -> None:
        if not self.running or self._loop is None or self._loop.is_closed():
            logger.debug(f"No publisher running, dropped {event} for {room_name(template_id)}")
            return
        item = (template_id, {"event": event, "data": jsonable_encoder(data)})
        self._loop.call_soon_threadsafe(self._queue.put_nowait, item)

    async def run(self) -> None:
        while True:
            template_id, message = await self._queue.get()
            try:
                await self.manager.broadcast(template_id, message)
            except Exception as e:
                logger.error(f"Failed to publish {message.get('event')} to {room_name(template_id)}: {e}")
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._task = self._loop.create_task(self.run())
        logger.info("Event publisher started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self._loop = None
        self._queue = None
        logger.info("Event publisher stopped")


manager = ConnectionManager()
outbox = EventOutbox(manager)
