# transport.py
import asyncio
import logging

from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

logger = logging.getLogger(__name__)


class Connection:
    """One WebSocket client with a bounded outbox.

    `send` never blocks: it queues the frame and returns False when the
    connection is closing or the outbox is full. `pump` drains the outbox
    onto the socket and runs as its own task for the connection's lifetime.
    """

    def __init__(self, websocket, outbox_limit=1024):
        self.websocket = websocket
        self.outbox = asyncio.Queue(maxsize=outbox_limit)

    @property
    def address(self):
        return getattr(self.websocket, "remote_address", None)

    @property
    def writable(self):
        return self.websocket.state is State.OPEN

    def send(self, text: str) -> bool:
        if not self.writable:
            return False
        try:
            self.outbox.put_nowait(text)
        except asyncio.QueueFull:
            logger.warning("[SEND] outbox full for %s, dropping frame", self.address)
            return False
        return True

    async def pump(self):
        while True:
            text = await self.outbox.get()
            try:
                await self.websocket.send(text)
            except ConnectionClosed:
                return
            except Exception:
                logger.exception("[SEND] Writer for %s failed", self.address)
                return
