import asyncio
import logging
from typing import Any, Dict, Optional

from async_timeout import timeout as atimeout
from redis.asyncio.connection import Connection

from aioredis_trib.structs import Address
from aioredis_trib.util import parse_info


__all__ = (
    "NodeConnection",
    "create_connection",
)


logger = logging.getLogger(__name__)


class NodeConnection:
    """Single connection to a cluster node.

    Wraps ``redis.asyncio.Connection`` and returns raw decoded replies,
    so no redis-py response callbacks are involved.
    """

    def __init__(
        self,
        conn: Connection,
        address: Address,
        *,
        command_timeout: Optional[float] = None,
    ) -> None:
        self._conn = conn
        self._address = address
        self._command_timeout = command_timeout
        self._closed = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} address:{self._address} closed:{self._closed}>"

    @property
    def address(self) -> Address:
        return self._address

    @property
    def closed(self) -> bool:
        return self._closed

    async def execute(self, *args: Any) -> Any:
        """Send command and wait for reply. Error replies are raised."""

        if self._closed:
            raise ConnectionError(f"Connection to {self._address} is closed")

        async with atimeout(self._command_timeout):
            await self._conn.send_command(*args)
            return await self._conn.read_response()

    async def ping(self) -> str:
        return await self.execute("PING")

    async def info(self) -> Dict[str, str]:
        return parse_info(await self.execute("INFO"))

    async def cluster_info(self) -> Dict[str, str]:
        return parse_info(await self.execute("CLUSTER", "INFO"))

    async def cluster_nodes(self) -> str:
        return await self.execute("CLUSTER", "NODES")

    async def cluster_replicate(self, node_id: str) -> None:
        """Reconfigure a node as a slave of the specified master node."""
        await self.execute("CLUSTER", "REPLICATE", node_id)

    async def cluster_add_slots(self, slot: int, *slots: int) -> None:
        """Assign new hash slots to receiving node."""

        slots_set = set((slot,)) | set(slots)
        if not all(isinstance(s, int) for s in slots_set):
            raise TypeError("All parameters must be of type int")

        await self.execute("CLUSTER", "ADDSLOTS", *sorted(slots_set))

    async def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        await self._conn.disconnect()


async def create_connection(
    address: Address,
    *,
    username: Optional[str] = None,
    password: Optional[str] = None,
    connect_timeout: Optional[float] = None,
    command_timeout: Optional[float] = None,
) -> NodeConnection:
    """Creates connection to cluster node.

    Replies are decoded to str. If ``hiredis`` is installed
    redis-py uses it for reply parsing.

    This function is a coroutine.
    """

    if connect_timeout is not None and connect_timeout <= 0:
        raise ValueError("Timeout has to be None or a number greater than 0")

    conn = Connection(
        host=address.host,
        port=address.port,
        username=username,
        password=password,
        socket_connect_timeout=connect_timeout,
        decode_responses=True,
        encoding="utf-8",
    )

    logger.debug("Creating tcp connection to %s", address)
    try:
        async with atimeout(connect_timeout):
            await conn.connect()
    except (asyncio.CancelledError, Exception):
        await conn.disconnect()
        raise

    return NodeConnection(conn, address, command_timeout=command_timeout)
