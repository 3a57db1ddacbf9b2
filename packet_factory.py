import json
from protocol import MessageType


class PacketFactory:
    @staticmethod
    def encode(message: dict) -> str:
        """Serialize an outbound message dict to a JSON text frame."""
        return json.dumps(message, separators=(",", ":"))

    @staticmethod
    def build(message_type: str, data: dict = None) -> dict:
        message = {"type": message_type}
        if data:
            message.update(data)
        return message

    @staticmethod
    def system(text: str) -> dict:
        return PacketFactory.build(MessageType.SYSTEM, {"text": text})

    @staticmethod
    def self_id(peer) -> dict:
        return PacketFactory.build(MessageType.SELF, {"id": peer.id})

    @staticmethod
    def room_snapshot(peers: list) -> dict:
        return PacketFactory.build(MessageType.ROOM_SNAPSHOT, {"peers": peers})

    @staticmethod
    def player_join(peer) -> dict:
        return PacketFactory.build(MessageType.PLAYER_JOIN, {
            "id": peer.id,
            "name": peer.name,
            "skin": peer.skin,
        })

    @staticmethod
    def player_leave(peer) -> dict:
        return PacketFactory.build(MessageType.PLAYER_LEAVE, {"id": peer.id})

    @staticmethod
    def chat(name: str, text: str) -> dict:
        return PacketFactory.build(MessageType.CHAT, {"name": name, "text": text})

    @staticmethod
    def block(x, y, z, block_id) -> dict:
        return PacketFactory.build(MessageType.BLOCK, {"x": x, "y": y, "z": z, "id": block_id})

    @staticmethod
    def chunk_data(cx, cz, blocks) -> dict:
        return PacketFactory.build(MessageType.CHUNK_DATA, {"cx": cx, "cz": cz, "blocks": blocks})

    @staticmethod
    def player_state(peer) -> dict:
        return PacketFactory.build(MessageType.PLAYER_STATE, peer.summary())
