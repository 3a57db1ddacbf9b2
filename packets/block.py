from protocol import MessageType, to_int
from . import BasePacket
from .registry import register_packet


def _ints(data, keys):
    values = {k: to_int(data.get(k)) for k in keys}
    if any(v is None for v in values.values()):
        return None
    return values


@register_packet
class BlockPacket(BasePacket):
    message_type = MessageType.BLOCK

    @classmethod
    def validate(cls, data):
        return _ints(data, ("x", "y", "z", "id"))


@register_packet
class ChunkRequestPacket(BasePacket):
    message_type = MessageType.CHUNK_REQUEST

    @classmethod
    def validate(cls, data):
        return _ints(data, ("cx", "cz"))
