from ._version import __version__
from .connection import NodeConnection, create_connection
from .errors import ConfigError, NodeConnectionError, TopologyError, TribError
from .node import ClusterNodeHandle
from .structs import Address, FlushResult, NodeInfo, SlotMigration, parse_address
from .util import config_signature, parse_cluster_nodes

__all__ = [
    "__version__",
    # Classes
    "ClusterNodeHandle",
    "NodeConnection",
    # Factories
    "create_connection",
    # Errors
    "TribError",
    "ConfigError",
    "NodeConnectionError",
    "TopologyError",
    # public structs
    "Address",
    "NodeInfo",
    "SlotMigration",
    "FlushResult",
    # helpers
    "parse_address",
    "parse_cluster_nodes",
    "config_signature",
]
