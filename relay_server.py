# relay_server.py
import argparse
import asyncio
import json
import logging
import signal
from contextlib import suppress

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosedError

import config
from admin_service import WorldAdminService, start_admin_server
from handlers import chat as chat_handlers
from handlers import player as player_handlers
from handlers import world as world_handlers
from packet_factory import PacketFactory
from packets import parse_raw_packet
from peer_registry import PeerRegistry
from persistence import PersistenceGateway
from protocol import DEFAULT_ROOM, MessageType
from rooms import RoomMultiplexer
from transport import Connection
from world_store import WorldStore

logger = logging.getLogger(__name__)

HANDLERS = {
    MessageType.JOIN: player_handlers.handle_join,
    MessageType.PLAYER_STATE: player_handlers.handle_player_state,
    MessageType.CHAT: chat_handlers.handle_chat,
    MessageType.BLOCK: world_handlers.handle_block,
    MessageType.CHUNK_REQUEST: world_handlers.handle_chunk_request,
}


class RelayServer:
    def __init__(self, settings=None):
        self.settings = settings or config.Settings()
        self.registry = PeerRegistry()
        self.rooms = RoomMultiplexer()
        self.world = WorldStore()
        self.persistence = PersistenceGateway(
            self.world, self.settings.world_path, debounce=self.settings.persist_debounce
        )

    # --- connection lifecycle ---

    def connect(self, conn):
        peer = self.registry.register(conn)
        self.rooms.join(peer, DEFAULT_ROOM)
        return peer

    def disconnect(self, peer):
        if self.registry.get(peer.conn) is None:
            return
        player_handlers.handle_disconnect(self, peer)

    async def handle_client(self, websocket):
        conn = Connection(websocket, outbox_limit=config.OUTBOX_LIMIT)
        peer = self.connect(conn)
        logger.info("[CONNECT] %s as %s", conn.address, peer.id)
        writer = asyncio.create_task(conn.pump())
        try:
            async for raw in websocket:
                self.handle_message(peer, raw)
        except ConnectionClosedError as e:
            logger.info("[DISCONNECT] %s closed abnormally: %s", peer.id, e)
        finally:
            self.disconnect(peer)
            writer.cancel()
            with suppress(asyncio.CancelledError):
                await writer

    # --- dispatch ---

    def handle_message(self, peer, raw):
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                logger.debug("[RECV] Non UTF-8 frame from %s dropped", peer.id)
                return
        try:
            decoded = json.loads(raw)
        except ValueError:
            logger.debug("[RECV] Malformed JSON from %s dropped", peer.id)
            return

        packet = parse_raw_packet(decoded)
        if packet is None:
            logger.debug("[RECV] Invalid message from %s dropped", peer.id)
            return

        handler = HANDLERS.get(packet.message_type)
        try:
            handler(self, peer, packet)
        except Exception:
            logger.exception("[ERROR] Failed to process %s from %s", packet.message_type, peer.id)

    def send(self, peer, message: dict) -> bool:
        return peer.conn.send(PacketFactory.encode(message))

    # --- lifecycle ---

    def start(self):
        self.persistence.load_on_startup()

    def shutdown(self):
        if self.persistence.flush_now():
            logger.info("[SERVER] World flushed to %s", self.persistence.path)

    def stats(self):
        return {
            "peers": len(self.registry),
            "rooms": len(self.rooms.room_keys()),
            **self.world.stats(),
            "pendingWrite": self.persistence.pending,
        }


async def run(settings):
    server = RelayServer(settings)
    # hydrate before accepting any connection
    server.start()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows may not support SIGTERM
            pass

    admin = None
    if settings.admin_port:
        admin, _ = await start_admin_server(WorldAdminService(server), settings.admin_port)

    try:
        async with serve(
            server.handle_client,
            settings.host,
            settings.port,
            ping_interval=settings.ping_interval,
            max_size=config.MAX_MESSAGE_SIZE,
        ):
            logger.info("[SERVER] Listening on %s:%s", settings.host, settings.port)
            await stop.wait()
    finally:
        if admin is not None:
            await admin.stop(grace=1.0)
        server.shutdown()
        logger.info("[SERVER] Shutdown complete")


def main(argv=None):
    settings = config.Settings.from_env()

    parser = argparse.ArgumentParser(description="Voxel room relay server")
    parser.add_argument("--host", default=settings.host, help="Listen address")
    parser.add_argument("--port", type=int, default=settings.port, help="WebSocket listen port")
    parser.add_argument("--data-dir", default=settings.data_dir, help="Directory for world.json")
    parser.add_argument("--admin-port", type=int, default=settings.admin_port,
                        help="gRPC admin port (0 disables)")
    args = parser.parse_args(argv)

    settings.host = args.host
    settings.port = args.port
    settings.data_dir = args.data_dir
    settings.admin_port = args.admin_port or None

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    logger.info("[SERVER] Starting with %r", settings)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
