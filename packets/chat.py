from protocol import CHAT_MAX, MessageType
from . import BasePacket
from .registry import register_packet


@register_packet
class ChatPacket(BasePacket):
    message_type = MessageType.CHAT

    @classmethod
    def validate(cls, data):
        text = data.get("text")
        return {"text": text[:CHAT_MAX] if isinstance(text, str) else ""}
