from typing import Optional


__all__ = [
    "TribError",
    "ConfigError",
    "NodeConnectionError",
    "TopologyError",
]


class TribError(Exception):
    """Base exception for cluster node handle errors"""


class ConfigError(TribError, ValueError):
    """Raises than node address can not be parsed"""

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid IP or Port ({address!r}). Use IP:Port format")

        self.address = address


class NodeConnectionError(TribError, ConnectionError):
    """Raises than node is unreachable or does not answer PING properly"""

    def __init__(self, msg: str, address: Optional[str] = None) -> None:
        super().__init__(msg)

        self.address = address


class TopologyError(TribError):
    """Raises than node is not a valid (or not an empty) cluster member"""

    def __init__(self, msg: str, address: Optional[str] = None) -> None:
        super().__init__(msg)

        self.address = address
