from typing import Dict, Type


_registry: Dict[str, Type] = {}


def register_packet(cls: Type):
    message_type = getattr(cls, "message_type", None)
    if message_type is None:
        raise ValueError("packet class must define message_type")
    _registry[message_type] = cls
    return cls
