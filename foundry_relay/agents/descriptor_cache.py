"""Process-wide cache of remote agent descriptors."""

from typing import Awaitable, Callable, Dict, Generic, Optional, TypeVar

import structlog


T = TypeVar("T")


class AgentDescriptorCache(Generic[T]):
    """Maps an agent id to the descriptor fetched from the remote service.

    Descriptors are expensive to build and never change for a given agent,
    so entries live until `clear()` or `invalidate()` is called. There is no
    TTL, eviction or size bound.

    Concurrent misses for the same id are not collapsed: each caller issues
    its own fetch. Inserts use `dict.setdefault`, so the first successful
    fetch is stored and every racer gets that stored entry back.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._entries: Dict[str, T] = {}
        self.logger = structlog.get_logger("foundry_relay.agents.descriptor_cache")

    def get(self, agent_id: str) -> Optional[T]:
        """Return the cached descriptor for an agent, or None on a miss."""
        return self._entries.get(agent_id)

    async def get_or_fetch(
        self,
        agent_id: str,
        fetch: Callable[[str], Awaitable[T]],
        on_miss: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> T:
        """Return the descriptor for an agent, fetching it on a miss.

        Args:
            agent_id: Identifier of the remote agent
            fetch: Coroutine function retrieving the descriptor remotely
            on_miss: Optional hook awaited before the fetch starts

        Returns:
            The cached descriptor

        Raises:
            Exception: Whatever `fetch` raises. Nothing is cached then.
        """
        cached = self._entries.get(agent_id)
        if cached is not None:
            return cached

        self.logger.info("descriptor_cache.miss", agent_id=agent_id)
        if on_miss is not None:
            await on_miss()

        descriptor = await fetch(agent_id)
        return self._entries.setdefault(agent_id, descriptor)

    def invalidate(self, agent_id: str) -> None:
        """Drop a single entry so the next lookup fetches it again."""
        self._entries.pop(agent_id, None)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        self.logger.info("descriptor_cache.cleared")

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
