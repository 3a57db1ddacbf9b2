"""Handlers package for message logic.
Each module exposes handler functions with signature:
    def handle_xxx(server, peer, packet)

Handlers run to completion without suspending, so state mutations from one
message never interleave with another's.
"""

__all__ = ["player", "chat", "world"]
