import logging

from packet_factory import PacketFactory

logger = logging.getLogger(__name__)


def handle_chat(server, peer, packet):
    logger.debug("[CHAT] %s@%s: %s", peer.name, peer.room, packet.text)
    # sender included, so clients render their own line from the echo
    server.rooms.broadcast(peer.room, PacketFactory.chat(peer.name, packet.text))
