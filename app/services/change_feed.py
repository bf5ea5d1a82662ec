import asyncio
import logging
import threading
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ChangeFeed:
    """
    Difusión en vivo de cambios de asientos a los clientes conectados.

    Es solo informativa: los clientes vuelven a consultar las asignaciones si
    una operación falla. Las publicaciones llegan desde handlers síncronos
    (threadpool), por eso se entregan con call_soon_threadsafe.
    """

    def __init__(self):
        self._subscribers: Dict[int, List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, template_id: int) -> asyncio.Queue:
        queue = asyncio.Queue()
        loop = asyncio.get_running_loop()
        with self._lock:
            self._subscribers.setdefault(template_id, []).append((loop, queue))
        logger.info(f"Nuevo suscriptor para el evento {template_id}")
        return queue

    def unsubscribe(self, template_id: int, queue: asyncio.Queue) -> None:
        with self._lock:
            entries = self._subscribers.get(template_id, [])
            self._subscribers[template_id] = [e for e in entries if e[1] is not queue]
            if not self._subscribers[template_id]:
                del self._subscribers[template_id]

    def subscriber_count(self, template_id: int) -> int:
        with self._lock:
            return len(self._subscribers.get(template_id, []))

    def publish(self, template_id: int, event: dict) -> int:
        """Entrega el evento a cada suscriptor. Devuelve cuántos lo recibieron."""
        with self._lock:
            entries = list(self._subscribers.get(template_id, []))

        delivered = 0
        for loop, queue in entries:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, event)
                delivered += 1
            except RuntimeError:
                # El loop del suscriptor ya se cerró
                self.unsubscribe(template_id, queue)
        return delivered

    def publish_assignment(
        self, template_id: int, seat_id: str, row: Optional[dict]
    ) -> int:
        return self.publish(
            template_id,
            {
                "type": "assignment",
                "action": "upsert" if row is not None else "delete",
                "seat_id": seat_id,
                "row": row,
            },
        )


change_feed = ChangeFeed()
