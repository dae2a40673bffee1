"""Pool snapshot source.

Holds the latest pool snapshot for the router. The snapshot is replaced
wholesale on refresh; readers get the current list and must not mutate it.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

import httpx
import structlog
from pydantic import ValidationError

from sor.models.pools import PoolSnapshot, SubgraphPool

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30.0


class PoolSource(Protocol):
    """Interface the router uses to read pools."""

    def get_pools(self) -> list[SubgraphPool]: ...

    def is_ready(self) -> bool: ...

    async def refresh(
        self,
        use_live_data: bool = True,
        seed_data: list[SubgraphPool] | None = None,
    ) -> bool: ...


def load_pools(entries: Iterable[SubgraphPool | dict[str, Any]]) -> list[SubgraphPool]:
    """Validate raw pool entries one at a time.

    Entries that fail validation are logged and dropped so one malformed
    pool does not discard the snapshot.
    """
    pools: list[SubgraphPool] = []
    skipped = 0
    for entry in entries:
        if isinstance(entry, SubgraphPool):
            pools.append(entry)
            continue
        try:
            pools.append(SubgraphPool.model_validate(entry))
        except ValidationError as e:
            skipped += 1
            pool_id = entry.get("id") if isinstance(entry, dict) else None
            logger.warning("invalid_pool_entry", pool_id=pool_id, errors=e.error_count())
    if skipped:
        logger.warning("pool_entries_skipped", skipped=skipped, loaded=len(pools))
    return pools


class PoolFetcher:
    """Pool source backed by seed data or a JSON endpoint.

    The endpoint must return {"pools": [...]} in subgraph format.
    is_ready() stays False until the first successful refresh.
    """

    def __init__(
        self,
        url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.url = url
        self.client = client
        self.timeout = timeout
        self._pools: list[SubgraphPool] = []
        self._ready = False

    def get_pools(self) -> list[SubgraphPool]:
        return self._pools

    def is_ready(self) -> bool:
        return self._ready

    async def _fetch(self, url: str) -> list[dict[str, Any]]:
        if self.client is not None:
            response = await self.client.get(url, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url)
        response.raise_for_status()
        return PoolSnapshot.model_validate(response.json()).pools

    async def refresh(
        self,
        use_live_data: bool = True,
        seed_data: list[SubgraphPool] | None = None,
    ) -> bool:
        """Replace the snapshot.

        Args:
            use_live_data: Fetch from the endpoint; when False use seed_data
            seed_data: Pools to load directly

        Returns:
            True on success. On failure the previous snapshot and readiness are kept.
        """
        if not use_live_data or self.url is None:
            if seed_data is None:
                logger.warning("pool_refresh_without_data", use_live_data=use_live_data)
                return False
            self._pools = load_pools(seed_data)
            self._ready = True
            logger.info("pools_loaded", source="seed", pool_count=len(self._pools))
            return True

        try:
            entries = await self._fetch(self.url)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("pool_fetch_failed", url=self.url, error=str(e))
            return False

        self._pools = load_pools(entries)
        self._ready = True
        logger.info("pools_loaded", source="http", pool_count=len(self._pools))
        return True


__all__ = ["PoolSource", "PoolFetcher", "load_pools"]
