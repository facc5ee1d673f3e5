from typing import Awaitable, Callable, Dict, Protocol

from aioredis_trib.structs import Address


class PNodeConnection(Protocol):
    @property
    def closed(self) -> bool:
        ...

    async def ping(self) -> str:
        ...

    async def info(self) -> Dict[str, str]:
        ...

    async def cluster_info(self) -> Dict[str, str]:
        ...

    async def cluster_nodes(self) -> str:
        ...

    async def cluster_replicate(self, node_id: str) -> None:
        ...

    async def cluster_add_slots(self, slot: int, *slots: int) -> None:
        ...

    async def close(self) -> None:
        ...


ConnectionFactory = Callable[[Address], Awaitable[PNodeConnection]]
