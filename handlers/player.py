import logging

from packet_factory import PacketFactory
from rooms import normalize_room

logger = logging.getLogger(__name__)


def handle_join(server, peer, packet):
    room = normalize_room(packet.room)
    server.registry.update_identity(peer, packet.name, packet.skin)
    previous = server.rooms.join(peer, room)

    if previous != room:
        # let the old room drop this avatar
        server.rooms.broadcast(previous, PacketFactory.player_leave(peer))

    logger.info("[JOIN] %s (%s) -> room %s", peer.id, peer.name, room)
    server.send(peer, PacketFactory.system(f"Joined room {room}"))
    server.send(peer, PacketFactory.room_snapshot(server.rooms.snapshot(room, exclude=peer)))
    server.send(peer, PacketFactory.self_id(peer))
    server.rooms.broadcast(room, PacketFactory.player_join(peer), exclude=peer)
    server.rooms.broadcast(room, PacketFactory.system(f"{peer.name} joined."), exclude=peer)


def handle_player_state(server, peer, packet):
    if not server.registry.update_state(peer, packet.to_data()):
        logger.debug("[STATE] Rejected state from %s", peer.id)
        return
    server.rooms.broadcast(peer.room, PacketFactory.player_state(peer), exclude=peer)


def handle_disconnect(server, peer):
    room = peer.room
    server.rooms.leave(peer)
    server.rooms.broadcast(room, PacketFactory.player_leave(peer), exclude=peer)
    server.rooms.broadcast(room, PacketFactory.system(f"{peer.name} left."), exclude=peer)
    server.registry.unregister(peer)
    logger.info("[DISCONNECT] %s (%s) left room %s", peer.id, peer.name, room)
