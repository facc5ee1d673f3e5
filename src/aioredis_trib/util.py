from typing import Dict, Iterable, List, Optional, Tuple

from aioredis_trib.structs import FLAG_MYSELF, NodeInfo, SlotMigration


__all__ = [
    "parse_info",
    "parse_node_slots",
    "parse_cluster_node_line",
    "parse_cluster_nodes",
    "config_signature",
    "slots_summary",
]


# slot tokens start from this column in CLUSTER NODES reply
SLOTS_COLUMN = 8


def parse_info(info: str) -> Dict[str, str]:
    ret: Dict[str, str] = {}
    for line in info.strip().splitlines():
        line = line.strip()
        # skip sections headers like "# Server" and empty lines
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        ret[key] = value
    return ret


def parse_node_slots(raw_slots: Iterable[str]) -> Tuple[Tuple, Tuple]:
    """
    @see: https://redis.io/commands/cluster-nodes#serialization-format
    @see: https://redis.io/commands/cluster-nodes#special-slot-entries
    """

    slots: List[Tuple[int, int]] = []
    migrations: List[SlotMigration] = []
    migration_delimiter = "->-"
    import_delimiter = "-<-"
    range_delimiter = "-"
    migrating_state = "migrating"
    importing_state = "importing"

    for r in raw_slots:
        if migration_delimiter in r:
            slot_id, dst_node_id = r[1:-1].split(migration_delimiter, 1)
            migrations.append(SlotMigration(int(slot_id), dst_node_id, migrating_state))
        elif import_delimiter in r:
            slot_id, src_node_id = r[1:-1].split(import_delimiter, 1)
            migrations.append(SlotMigration(int(slot_id), src_node_id, importing_state))
        elif range_delimiter in r:
            start, end = r.split(range_delimiter)
            slots.append((int(start), int(end)))
        else:
            slots.append((int(r), int(r)))

    return tuple(slots), tuple(migrations)


def _split_node_addr(addr: str) -> Tuple[str, int]:
    # Since 4.0 address has format 192.1.2.3:7001@17001
    # and since 7.0 it may be followed by ",hostname"
    addr = addr.split(",", 1)[0]
    addr = addr.split("@", 1)[0]
    host, _, port = addr.rpartition(":")
    return host, int(port or 0)


def parse_cluster_node_line(line: str, self_address: Optional[str] = None) -> NodeInfo:
    parts = line.split()
    self_id, addr, flags, master_id, ping_sent, pong_recv, config_epoch, link_state = parts[
        :SLOTS_COLUMN
    ]
    slot_tokens = parts[SLOTS_COLUMN:]

    flags_set = frozenset(flags.split(","))
    host, port = _split_node_addr(addr)
    if (not host or port == 0) and self_address and FLAG_MYSELF in flags_set:
        # node does not know own address until it meets someone else
        address = self_address
    else:
        address = f"{host}:{port}"

    slots, migrations = parse_node_slots(slot_tokens)

    return NodeInfo(
        address=address,
        node_id=self_id,
        flags=flags_set,
        master_id=master_id if master_id != "-" else "",
        served_slots=",".join(t for t in slot_tokens if not t.startswith("[")),
        ping_sent=int(ping_sent),
        pong_recv=int(pong_recv),
        config_epoch=int(config_epoch),
        link_state=link_state,
        slots=slots,
        migrations=migrations,
    )


def parse_cluster_nodes(resp: str, self_address: Optional[str] = None) -> List[NodeInfo]:
    """
    @see: https://redis.io/commands/cluster-nodes

    ``self_address`` replaces address of the ``myself`` row
    if node reports it empty.
    """

    return [
        parse_cluster_node_line(line, self_address)
        for line in resp.strip().splitlines()
        if line.strip()
    ]


def config_signature(resp: str) -> str:
    """Canonical form of node -> slots mapping from CLUSTER NODES reply.

    Migration tokens (``[slot->-id]``, ``[slot-<-id]``) are ignored,
    slots are sorted inside a node and nodes are sorted between each other.
    Equal signatures from different nodes mean they agree about slots owners.
    """

    config: List[str] = []
    for line in resp.splitlines():
        parts = line.split()
        if not parts:
            continue

        slots = sorted(t for t in parts[SLOTS_COLUMN:] if not t.startswith("["))
        if slots:
            config.append(f"{parts[0]}:{','.join(slots)}")

    config.sort()
    return "|".join(config)


def slots_summary(slots: Iterable[int]) -> str:
    """Collapse slots to ranges: [0, 1, 2, 5] -> "0-2,5" """

    ranges: List[List[int]] = []
    for slot in sorted(set(slots)):
        if ranges and ranges[-1][1] + 1 == slot:
            ranges[-1][1] = slot
        else:
            ranges.append([slot, slot])

    return ",".join(str(b) if b == e else f"{b}-{e}" for b, e in ranges)
