import logging

from packet_factory import PacketFactory

logger = logging.getLogger(__name__)


def handle_block(server, peer, packet):
    x, y, z, block_id = packet.x, packet.y, packet.z, packet.id
    server.world.set_block(peer.room, x, y, z, block_id)
    logger.debug("[WORLD] %s set %s (%d, %d, %d) = %d", peer.id, peer.room, x, y, z, block_id)
    server.rooms.broadcast(peer.room, PacketFactory.block(x, y, z, block_id), exclude=peer)


def handle_chunk_request(server, peer, packet):
    blocks = server.world.get_chunk_blocks(peer.room, packet.cx, packet.cz)
    server.send(peer, PacketFactory.chunk_data(packet.cx, packet.cz, blocks))
