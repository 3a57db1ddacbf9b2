# admin_service.py
import json
import logging

import grpc

from protocol import to_int
from rooms import normalize_room

logger = logging.getLogger(__name__)

SERVICE_NAME = "voxelrelay.WorldAdmin"


def encode_message(obj) -> bytes:
    return json.dumps(obj, separators=(",", ":")).encode("utf-8")


def decode_message(raw: bytes):
    if not raw:
        return {}
    return json.loads(raw.decode("utf-8"))


class WorldAdminService:
    """Operator RPCs against a running RelayServer.

    Messages are JSON objects rather than protobufs, so the service is
    registered through a generic handler and needs no generated code.
    """

    def __init__(self, relay_server):
        self.relay = relay_server

    async def Flush(self, request, context):
        ok = self.relay.persistence.flush_now()
        logger.info("[ADMIN] Flush requested, success=%s", ok)
        return {"success": ok}

    async def Stats(self, request, context):
        return self.relay.stats()

    async def GetChunk(self, request, context):
        room = request.get("room") if isinstance(request, dict) else None
        cx = to_int(request.get("cx")) if isinstance(request, dict) else None
        cz = to_int(request.get("cz")) if isinstance(request, dict) else None
        if not isinstance(room, str) or cx is None or cz is None:
            await context.abort(grpc.StatusCode.INVALID_ARGUMENT, "room, cx and cz are required")
        # same key a client gets from JOIN
        room = normalize_room(room)
        return {
            "room": room,
            "cx": cx,
            "cz": cz,
            "blocks": self.relay.world.get_chunk_blocks(room, cx, cz),
        }


def build_handler(service):
    methods = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(service, name),
            request_deserializer=decode_message,
            response_serializer=encode_message,
        )
        for name in ("Flush", "Stats", "GetChunk")
    }
    return grpc.method_handlers_generic_handler(SERVICE_NAME, methods)


async def start_admin_server(service, port, host="127.0.0.1"):
    """Start the gRPC admin service; returns the grpc.aio server and its bound port."""
    server = grpc.aio.server()
    server.add_generic_rpc_handlers((build_handler(service),))
    bound = server.add_insecure_port(f"{host}:{port}")
    await server.start()
    logger.info("[ADMIN] gRPC WorldAdmin running on %s:%s", host, bound)
    return server, bound


class AdminClient:
    """Thin client for WorldAdmin, used by operators and tests."""

    def __init__(self, target):
        self.channel = grpc.aio.insecure_channel(target)

    def _call(self, name):
        return self.channel.unary_unary(
            f"/{SERVICE_NAME}/{name}",
            request_serializer=encode_message,
            response_deserializer=decode_message,
        )

    async def flush(self):
        return await self._call("Flush")({})

    async def stats(self):
        return await self._call("Stats")({})

    async def get_chunk(self, room, cx, cz):
        return await self._call("GetChunk")({"room": room, "cx": cx, "cz": cz})

    async def close(self):
        await self.channel.close()
