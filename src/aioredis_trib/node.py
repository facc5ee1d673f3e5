import asyncio
import dataclasses
import logging
from typing import Iterable, List, Optional, Set

from aioredis_trib.connection import create_connection
from aioredis_trib.errors import NodeConnectionError, TopologyError
from aioredis_trib.log import logger
from aioredis_trib.structs import (
    CLUSTER_SLOTS,
    Address,
    FlushResult,
    NodeInfo,
    parse_address,
)
from aioredis_trib.typedef import ConnectionFactory, PNodeConnection
from aioredis_trib.util import config_signature, parse_cluster_nodes, slots_summary


__all__ = ("ClusterNodeHandle",)


PONG_REPLY = "PONG"


class ClusterNodeHandle:
    """Handle to one node of Redis Cluster.

    Used by cluster management tools (create, reshard, fix) to inspect
    and change cluster membership of exactly one node. Handle is not
    safe for sharing between concurrently running tasks.
    """

    CONNECT_TIMEOUT = 10.0
    COMMAND_TIMEOUT = 60.0

    def __init__(
        self,
        host_and_port: str,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        connect_timeout: Optional[float] = None,
        command_timeout: Optional[float] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self._address = parse_address(host_and_port)
        self._host_and_port = host_and_port

        if connect_timeout is None:
            connect_timeout = self.CONNECT_TIMEOUT
        elif connect_timeout < 0:
            raise ValueError("connect_timeout cannot be negative")
        self._connect_timeout = connect_timeout

        if command_timeout is None:
            command_timeout = self.COMMAND_TIMEOUT
        elif command_timeout < 0:
            raise ValueError("command_timeout cannot be negative")
        self._command_timeout = command_timeout

        self._username = username
        self._password = password

        if connection_factory is None:
            connection_factory = self._create_default_connection
        self._connection_factory = connection_factory

        self._conn: Optional[PNodeConnection] = None
        self._info = NodeInfo(address=host_and_port)
        self._friends: List[NodeInfo] = []
        self._pending_slots: Set[int] = set()
        self._pending_replica_of: Optional[str] = None
        self._dirty = False

    def __str__(self) -> str:
        return self._host_and_port

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self._host_and_port}"
            f" node_id:{self._info.node_id or '-'}"
            f" connected:{self.connected} dirty:{self._dirty}>"
        )

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, ClusterNodeHandle):
            return NotImplemented
        return self._host_and_port == other._host_and_port

    def __hash__(self) -> int:
        return hash(self._host_and_port)

    async def __aenter__(self) -> "ClusterNodeHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def address(self) -> Address:
        return self._address

    @property
    def info(self) -> NodeInfo:
        return self._info

    @property
    def friends(self) -> List[NodeInfo]:
        return self._friends

    @property
    def served_slots(self) -> str:
        return self._info.served_slots

    @property
    def pending_slots(self) -> List[int]:
        return sorted(self._pending_slots)

    @property
    def pending_replica_of(self) -> Optional[str]:
        return self._pending_replica_of

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def connected(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> Optional[PNodeConnection]:
        return self._conn

    def has_flag(self, flag: str) -> bool:
        return self._info.has_flag(flag)

    async def connect(self, abort_on_failure: bool = False) -> None:
        """Open connection to node and check it with PING.

        Without ``abort_on_failure`` failed attempt leaves handle
        disconnected and the caller may try again later.
        """

        if self._conn is not None:
            return

        conn: Optional[PNodeConnection] = None
        try:
            conn = await self._connection_factory(self._address)
            reply = await conn.ping()
            if not isinstance(reply, str) or reply.upper() != PONG_REPLY:
                raise NodeConnectionError(f"Invalid PONG-message: {reply!r}", str(self))
        except asyncio.CancelledError:
            if conn is not None:
                await self._close_quietly(conn)
            raise
        except Exception as e:
            logger.error("Failed to connect to node %s: %r", self, e)
            if conn is not None:
                await self._close_quietly(conn)
            if abort_on_failure:
                if isinstance(e, NodeConnectionError):
                    raise
                raise NodeConnectionError(f"Failed to connect to node {self}", str(self)) from e
            return

        self._conn = conn
        logger.info("Connected to node %s", self)

    async def assert_cluster(self) -> None:
        conn = self._require_connection()
        info = await conn.info()
        cluster_enabled = info.get("cluster_enabled", "").strip()
        logger.debug("Node %s cluster_enabled=%r", self, cluster_enabled)
        if not cluster_enabled or cluster_enabled == "0":
            raise TopologyError(f"{self} is not configured as a cluster node.", str(self))

    async def assert_empty(self) -> None:
        conn = self._require_connection()
        info = await conn.info()
        cluster_info = await conn.cluster_info()
        logger.debug("Node %s cluster info: %r", self, cluster_info)
        if "db0" in info or cluster_info.get("cluster_known_nodes") != "1":
            raise TopologyError(
                f"{self} is not empty. Either the node already knows other nodes "
                "(check with CLUSTER NODES) or contains some key in database 0.",
                str(self),
            )

    async def load_info(self, include_friends: bool = False) -> NodeInfo:
        """Load node view of cluster from CLUSTER NODES.

        ``myself`` row replaces current node info, other rows are
        appended to ``friends`` if ``include_friends`` is set.
        """

        await self.connect()
        conn = self._require_connection()

        raw_nodes = await conn.cluster_nodes()
        nodes = parse_cluster_nodes(raw_nodes, self._host_and_port)

        myself_found = False
        for node in nodes:
            if node.is_myself:
                myself_found = True
                self._info = dataclasses.replace(node, address=self._host_and_port)
            elif include_friends:
                self._friends.append(node)

        if not myself_found:
            logger.warning("Node %s reply has no myself entry (%d nodes)", self, len(nodes))

        if logger.isEnabledFor(logging.INFO):
            logger.info(
                "Loaded node %s: id:%s flags:%s slots:%d friends:%d",
                self,
                self._info.node_id,
                ",".join(sorted(self._info.flags)),
                self._info.slots_count,
                len(self._friends),
            )

        return self._info

    def add_tmp_slots(self, slots: Iterable[int]) -> None:
        """Stage slots for assignment. Empty input changes nothing."""

        new_slots = set(slots)
        if not new_slots:
            return

        if not all(isinstance(s, int) for s in new_slots):
            raise TypeError("All slots must be of type int")
        invalid = [s for s in new_slots if not 0 <= s < CLUSTER_SLOTS]
        if invalid:
            raise ValueError(f"Slots out of range 0-{CLUSTER_SLOTS - 1}: {sorted(invalid)}")

        self._pending_slots |= new_slots
        self._dirty = True

    def set_as_replica(self, master_node_id: str) -> None:
        if not master_node_id:
            raise ValueError("master_node_id must not be empty")
        self._pending_replica_of = master_node_id
        self._dirty = True

    async def flush_node_config(self) -> FlushResult:
        """Apply staged replica target or staged slots to the node.

        Staged replica target wins over staged slots, and slots staged
        for a replica are dropped once it replicates. Replicate errors
        (a missing connection included) are not raised: the node may not
        know about its master yet, so handle stays dirty and flush should
        be retried later.
        """

        if not self._dirty:
            return FlushResult.CLEAN

        if self._pending_replica_of is not None:
            master_id = self._pending_replica_of
            try:
                await self._require_connection().cluster_replicate(master_id)
            except Exception as e:
                logger.warning("Node %s unable to replicate %s: %r", self, master_id, e)
                return FlushResult.STILL_DIRTY

            self._info = dataclasses.replace(self._info, master_id=master_id)
            self._pending_replica_of = None
            self._pending_slots.clear()
            logger.info("Node %s now replicates %s", self, master_id)
        else:
            conn = self._require_connection()
            if self._pending_slots:
                slots = sorted(self._pending_slots)
                await conn.cluster_add_slots(*slots)
                logger.info("Node %s assigned slots: %s", self, slots_summary(slots))
            self._pending_slots.clear()

        self._dirty = False
        return FlushResult.FLUSHED

    async def get_config_signature(self) -> str:
        conn = self._require_connection()
        return config_signature(await conn.cluster_nodes())

    async def close(self) -> None:
        conn = self._conn
        self._conn = None
        if conn is not None:
            await self._close_quietly(conn)

    def _require_connection(self) -> PNodeConnection:
        if self._conn is None:
            raise NodeConnectionError(f"Node {self} is not connected", str(self))
        return self._conn

    async def _close_quietly(self, conn: PNodeConnection) -> None:
        try:
            await conn.close()
        except Exception as e:
            logger.debug("Error while closing connection to %s: %r", self, e)

    async def _create_default_connection(self, addr: Address) -> PNodeConnection:
        return await create_connection(
            addr,
            username=self._username,
            password=self._password,
            connect_timeout=self._connect_timeout or None,
            command_timeout=self._command_timeout or None,
        )
