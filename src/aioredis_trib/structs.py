import dataclasses
import enum
from typing import FrozenSet, NamedTuple, Tuple

from aioredis_trib.errors import ConfigError


__all__ = (
    "CLUSTER_SLOTS",
    "Address",
    "SlotMigration",
    "NodeInfo",
    "FlushResult",
    "parse_address",
)


CLUSTER_SLOTS = 16384

FLAG_MYSELF = "myself"
FLAG_MASTER = "master"
FLAG_SLAVE = "slave"


class Address(NamedTuple):
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def parse_address(host_and_port: str) -> Address:
    """Parse ``host:port`` string.

    Host is everything before the last colon, so unbracketed
    IPv6 literals like ``::1:7000`` are accepted too.
    """

    fields = [f for f in host_and_port.split(":") if f]
    if len(fields) < 2:
        raise ConfigError(host_and_port)

    host, raw_port = host_and_port.rsplit(":", 1)
    try:
        port = int(raw_port)
    except ValueError:
        raise ConfigError(host_and_port) from None

    if not 0 < port < 65536:
        raise ConfigError(host_and_port)

    return Address(host, port)


class SlotMigration(NamedTuple):
    slot: int
    node_id: str
    state: str


@dataclasses.dataclass(frozen=True)
class NodeInfo:
    address: str
    node_id: str = ""
    flags: FrozenSet[str] = frozenset()
    master_id: str = ""
    served_slots: str = ""
    ping_sent: int = 0
    pong_recv: int = 0
    config_epoch: int = 0
    link_state: str = ""
    slots: Tuple[Tuple[int, int], ...] = ()
    migrations: Tuple[SlotMigration, ...] = ()

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags

    @property
    def is_myself(self) -> bool:
        return FLAG_MYSELF in self.flags

    @property
    def is_master(self) -> bool:
        return FLAG_MASTER in self.flags

    @property
    def is_replica(self) -> bool:
        return FLAG_SLAVE in self.flags

    @property
    def slots_count(self) -> int:
        return sum(end - begin + 1 for begin, end in self.slots)


@enum.unique
class FlushResult(enum.Enum):
    CLEAN = "clean"
    FLUSHED = "flushed"
    STILL_DIRTY = "still_dirty"
