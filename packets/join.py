from protocol import MessageType
from . import BasePacket
from .registry import register_packet


@register_packet
class JoinPacket(BasePacket):
    message_type = MessageType.JOIN

    @classmethod
    def validate(cls, data):
        # every field is optional; defaults are applied by the registry and rooms
        return {
            "room": data.get("room"),
            "name": data.get("name"),
            "skin": data.get("skin"),
        }
