import os
import socket
from typing import List

import pytest

from aioredis_trib import ClusterNodeHandle


def get_startup_nodes(nodes_str: str) -> List[str]:
    if not nodes_str:
        return []

    return [node_str.strip() for node_str in nodes_str.split(",") if node_str.strip()]


STARTUP_NODES = tuple(get_startup_nodes(os.environ.get("REDIS_CLUSTER_STARTUP_NODES", "").strip()))


def pytest_runtest_setup(item):
    if not STARTUP_NODES:
        pytest.skip("Environment variable REDIS_CLUSTER_STARTUP_NODES is not defined")


def _unused_port() -> int:
    """Return a port that is unused on the current host."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return int(s.getsockname()[1])


@pytest.fixture
def unused_port():
    return _unused_port


@pytest.fixture
def startup_nodes():
    return STARTUP_NODES


@pytest.fixture
def node_handle():
    def factory(addr: str, **kwargs) -> ClusterNodeHandle:
        return ClusterNodeHandle(addr, **kwargs)

    return factory
