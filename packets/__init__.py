from typing import Any, Dict, Optional
from .registry import register_packet, _registry


class BasePacket:
    """An inbound message that passed validation.

    Subclasses implement `validate(data)`, returning the cleaned field dict
    or None when the message must be dropped.
    """

    message_type: str = None

    def __init__(self, **kwargs):
        self._data = dict(kwargs)

    @classmethod
    def validate(cls, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return {}

    @classmethod
    def from_data(cls, data: Dict[str, Any]):
        fields = cls.validate(data)
        if fields is None:
            return None
        return cls(**fields)

    def to_data(self) -> Dict[str, Any]:
        return dict(self._data)

    def __getattr__(self, item):
        # fallback to data keys for convenience
        if item in self.__dict__.get("_data", {}):
            return self._data[item]
        raise AttributeError(item)

    def __repr__(self):
        return f"<{type(self).__name__} {self._data}>"


def parse_raw_packet(raw: Any) -> Optional[BasePacket]:
    """Turn a decoded JSON value into a packet object.

    Returns None for non-objects, unknown or missing `type`, and messages
    whose fields fail validation.
    """
    if not isinstance(raw, dict):
        return None
    cls = _registry.get(raw.get("type"))
    if cls is None:
        return None
    return cls.from_data(raw)


__all__ = [
    "BasePacket",
    "parse_raw_packet",
    "register_packet",
]

# Import concrete packet modules so they register themselves on package import
from . import join  # noqa: F401,E402
from . import chat as chat_packets  # noqa: F401,E402
from . import block as block_packets  # noqa: F401,E402
from . import player_state  # noqa: F401,E402
