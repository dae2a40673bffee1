"""Router configuration.

Settings load from environment variables (SOR_*) with defaults suitable
for mainnet, or are passed in directly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from sor.constants import DEFAULT_MAX_ROUTES, SWAP_GAS_COST, ChainId
from sor.errors import InvalidConfigError
from sor.models.swap import DisabledOptions, DisabledToken
from sor.routing.cache import DEFAULT_CACHE_SIZE


@dataclass(frozen=True)
class RouterConfig:
    """Router settings.

    Attributes:
        chain_id: Chain the pools live on; selects the wrapped native token
        max_routes: Most routes one result may use (>= 1)
        swap_gas_units: Gas charged per route when pricing route cost
        gas_price: Gas price in wei
        disabled_options: Tokens excluded from routing
        pool_source_url: JSON endpoint for live pools (None = seed data only)
        price_oracle_url: JSON endpoint for token prices (None = no oracle)
        cache_size: Max query cache entries
        cache_ttl_seconds: Expire query cache entries after this long (None = LRU only)
    """

    chain_id: int = ChainId.MAINNET
    max_routes: int = DEFAULT_MAX_ROUTES
    swap_gas_units: int = SWAP_GAS_COST
    gas_price: Decimal = Decimal(0)
    disabled_options: DisabledOptions = field(default_factory=DisabledOptions)
    pool_source_url: str | None = None
    price_oracle_url: str | None = None
    cache_size: int = DEFAULT_CACHE_SIZE
    cache_ttl_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.max_routes < 1:
            raise InvalidConfigError(f"max_routes must be >= 1, got {self.max_routes}")
        if self.swap_gas_units < 0:
            raise InvalidConfigError(f"swap_gas_units cannot be negative: {self.swap_gas_units}")
        if self.gas_price < 0:
            raise InvalidConfigError(f"gas_price cannot be negative: {self.gas_price}")
        if self.cache_size < 1:
            raise InvalidConfigError(f"cache_size must be >= 1, got {self.cache_size}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RouterConfig:
        """Build a config from SOR_* environment variables.

        - SOR_CHAIN_ID: Chain id (default: 1)
        - SOR_MAX_ROUTES: Route cap (default: 4)
        - SOR_SWAP_GAS: Gas units per route (default: 100000)
        - SOR_GAS_PRICE: Gas price in wei (default: 0)
        - SOR_DISABLED_TOKENS: Comma-separated token addresses
        - SOR_DISABLED_OVERRIDE: Ignore the disabled list (default: false)
        - SOR_POOLS_URL: Live pool endpoint
        - SOR_PRICE_ORACLE_URL: Token price endpoint
        - SOR_CACHE_SIZE: Query cache entries (default: 1024)
        - SOR_CACHE_TTL: Query cache TTL in seconds

        Raises:
            InvalidConfigError: If a variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        try:
            disabled = [
                DisabledToken(address=addr.strip())
                for addr in env.get("SOR_DISABLED_TOKENS", "").split(",")
                if addr.strip()
            ]
            ttl = env.get("SOR_CACHE_TTL")
            return cls(
                chain_id=int(env.get("SOR_CHAIN_ID", str(ChainId.MAINNET))),
                max_routes=int(env.get("SOR_MAX_ROUTES", str(DEFAULT_MAX_ROUTES))),
                swap_gas_units=int(env.get("SOR_SWAP_GAS", str(SWAP_GAS_COST))),
                gas_price=Decimal(env.get("SOR_GAS_PRICE", "0")),
                disabled_options=DisabledOptions(
                    is_override=env.get("SOR_DISABLED_OVERRIDE", "false").lower()
                    in ("true", "1", "yes"),
                    disabled_tokens=disabled,
                ),
                pool_source_url=env.get("SOR_POOLS_URL") or None,
                price_oracle_url=env.get("SOR_PRICE_ORACLE_URL") or None,
                cache_size=int(env.get("SOR_CACHE_SIZE", str(DEFAULT_CACHE_SIZE))),
                cache_ttl_seconds=float(ttl) if ttl else None,
            )
        except (ValueError, InvalidOperation) as e:
            raise InvalidConfigError(f"Invalid router configuration: {e}") from e


__all__ = ["RouterConfig"]
