from protocol import MessageType, to_finite
from . import BasePacket
from .registry import register_packet

STATE_FIELDS = ("x", "y", "z", "yaw", "pitch", "moving", "crouching",
                "punchAnim", "placeAnim", "heldBlock")
REQUIRED_FINITE = ("x", "y", "z", "yaw", "pitch")


@register_packet
class PlayerStatePacket(BasePacket):
    message_type = MessageType.PLAYER_STATE

    @classmethod
    def validate(cls, data):
        if any(to_finite(data.get(k)) is None for k in REQUIRED_FINITE):
            return None
        # optional fields are clamped/defaulted by PeerRegistry.update_state
        return {k: data.get(k) for k in STATE_FIELDS}
