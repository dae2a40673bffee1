"""Smart order router orchestrator.

SOR is the public entry point. One instance owns its query cache and
route-cost cache; both live as long as the instance and are emptied
explicitly (clear_cache(), or implicitly when pools are refreshed).

Query flow:
1. Return the no-route result if pools are not loaded yet
2. Apply the pool-type filter
3. Resolve native/wrapped tokens for routing
4. Fixed-rate pairs go to the static route builder
5. Otherwise: cached discovery + limits, then the optimizer
6. A zero return is handed back as-is
7. Otherwise the result is mapped back to the query tokens
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from sor.amm.errors import PoolMathError
from sor.config import RouterConfig
from sor.fees.cost import CostEstimator
from sor.fees.oracle import HttpCostOracle
from sor.math.decimal_math import to_decimal
from sor.models.pools import PoolFilter, SubgraphPool, matches_filter
from sor.models.swap import NoRouteReason, SwapInfo, SwapOptions, SwapTypes
from sor.models.types import normalize_address
from sor.pools.source import PoolFetcher, PoolSource
from sor.routing.cache import QueryCache, make_cache_key
from sor.routing.discovery import discover_routes
from sor.routing.formatting import format_swaps
from sor.routing.limits import compute_limits
from sor.routing.optimizer import optimize
from sor.routing.types import CandidateRoutes
from sor.static_routes import FixedRateRouteBuilder, StaticRouteBuilder
from sor.wrapping import NativeWrapper, TokenWrapper

logger = structlog.get_logger()


class SOR:
    """Routes swaps across a pool snapshot.

    Collaborators default to implementations built from config and can be
    injected for testing or alternative data sources.

    Args:
        config: Router settings (default: RouterConfig())
        pool_source: Provides the pool snapshot
        cost_estimator: Per-route cost in a given token
        wrapper: Native/wrapped token resolution
        fixed_rate_builder: Handles pairs that bypass general routing
        cache: Query cache for candidate routes
    """

    def __init__(
        self,
        config: RouterConfig | None = None,
        pool_source: PoolSource | None = None,
        cost_estimator: CostEstimator | None = None,
        wrapper: TokenWrapper | None = None,
        fixed_rate_builder: FixedRateRouteBuilder | None = None,
        cache: QueryCache | None = None,
    ) -> None:
        self.config = config if config is not None else RouterConfig()
        cfg = self.config

        self.pool_source: PoolSource = (
            pool_source if pool_source is not None else PoolFetcher(url=cfg.pool_source_url)
        )
        if cost_estimator is None:
            oracle = HttpCostOracle(cfg.price_oracle_url) if cfg.price_oracle_url else None
            cost_estimator = CostEstimator(
                gas_price=cfg.gas_price,
                swap_gas_units=cfg.swap_gas_units,
                chain_id=cfg.chain_id,
                oracle=oracle,
            )
        self.cost_estimator = cost_estimator
        self.wrapper: TokenWrapper = wrapper if wrapper is not None else NativeWrapper(cfg.chain_id)
        self.fixed_rate_builder: FixedRateRouteBuilder = (
            fixed_rate_builder
            if fixed_rate_builder is not None
            else StaticRouteBuilder.for_chain(cfg.chain_id)
        )
        if cache is None:
            cache = (
                QueryCache.ttl(cfg.cache_size, cfg.cache_ttl_seconds)
                if cfg.cache_ttl_seconds
                else QueryCache.lru(cfg.cache_size)
            )
        self.cache = cache

    # ------------------------------------------------------------------
    # Pools and costs
    # ------------------------------------------------------------------

    def is_ready(self) -> bool:
        """Return True once the pool source has loaded a snapshot."""
        return self.pool_source.is_ready()

    async def fetch_pools(
        self,
        use_live_data: bool = True,
        seed_pools: list[SubgraphPool] | None = None,
    ) -> bool:
        """Refresh the pool snapshot.

        Cached routes describe the old snapshot, so a successful refresh
        clears the query cache.
        """
        refreshed = await self.pool_source.refresh(use_live_data, seed_pools)
        if refreshed:
            self.cache.clear()
        return refreshed

    async def set_cost_output_token(
        self, token: str, decimals: int, cost: Decimal | None = None
    ) -> Decimal:
        """Compute, or set manually, the per-route cost in token.

        Raises:
            CostOracleFailure: If the price oracle fails
        """
        return await self.cost_estimator.set_cost_output_token(token, decimals, cost)

    def get_cost_output_token(self, token: str) -> Decimal:
        """Cached per-route cost in token (zero if never set)."""
        return self.cost_estimator.get_cost_output_token(token)

    def clear_cache(self) -> None:
        """Drop all cached candidate routes."""
        self.cache.clear()

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def get_swaps(
        self,
        token_in: str,
        token_out: str,
        swap_type: SwapTypes | str,
        amount: Decimal | str | int,
        options: SwapOptions | None = None,
    ) -> SwapInfo:
        """Find the best split for a swap.

        Args:
            token_in: Token sold (the zero address means the native asset)
            token_out: Token bought
            swap_type: ExactIn (amount is input) or ExactOut (amount is output)
            amount: Amount in token units
            options: Pool filter, timestamp, per-query route cap, cache bypass

        Returns:
            SwapInfo; SwapInfo.empty() with a reason when no route exists

        Raises:
            ValueError: If amount is negative or not a number
            CostOracleFailure: If the wrapping or cost collaborators fail with it
        """
        options = options if options is not None else SwapOptions()
        swap_type = SwapTypes(swap_type)
        amount = to_decimal(amount)
        if amount < 0:
            raise ValueError(f"Swap amount cannot be negative: {amount}")

        if not self.is_ready():
            logger.info("pools_not_ready", token_in=token_in, token_out=token_out)
            return SwapInfo.empty(NoRouteReason.POOLS_NOT_READY)

        pools = [
            p for p in self.pool_source.get_pools() if matches_filter(p, options.pool_type_filter)
        ]

        wrapped = await self.wrapper.resolve_for_routing(swap_type, token_in, token_out, amount)
        routing_in = wrapped.token_in.for_routing
        routing_out = wrapped.token_out.for_routing

        try:
            if self.fixed_rate_builder.is_fixed_rate_pair(routing_in, routing_out):
                swap_info = self.fixed_rate_builder.build_static_swap(
                    pools, routing_in, routing_out, swap_type, wrapped.swap_amount_for_swaps
                )
            else:
                swap_info = self.process_swaps(
                    routing_in,
                    routing_out,
                    swap_type,
                    wrapped.swap_amount_for_swaps,
                    pools,
                    use_process_cache=not options.force_refresh,
                    timestamp=options.as_of_timestamp,
                    max_routes=options.max_routes,
                    pool_filter=options.pool_type_filter,
                )
        except (PoolMathError, ArithmeticError) as e:
            logger.warning(
                "swap_computation_failed", token_in=token_in, token_out=token_out, error=str(e)
            )
            swap_info = SwapInfo.empty(NoRouteReason.COMPUTATION_FAILED)

        if swap_info.return_amount == 0:
            return swap_info

        return self.wrapper.restore(swap_info, wrapped)

    def get_candidate_routes(
        self,
        token_in: str,
        token_out: str,
        swap_type: SwapTypes,
        pools: list[SubgraphPool],
        timestamp: int = 0,
        use_cache: bool = True,
        pool_filter: PoolFilter = PoolFilter.ALL,
    ) -> CandidateRoutes:
        """Cached discovery + limit calculation for one query key.

        Discovery runs on a deep copy of the snapshot so nothing downstream
        can alias the caller's pool data.
        """
        token_in = normalize_address(token_in)
        token_out = normalize_address(token_out)
        filter_suffix = "" if pool_filter == PoolFilter.ALL else pool_filter.value
        key = make_cache_key(token_in, token_out, swap_type, timestamp, filter_suffix)

        def compute() -> CandidateRoutes:
            snapshot = [p.model_copy(deep=True) for p in pools]
            discovered = discover_routes(
                snapshot,
                token_in,
                token_out,
                self.config.max_routes,
                self.config.disabled_options,
                timestamp,
            )
            return compute_limits(discovered, swap_type)

        return self.cache.get_or_compute(key, compute, use_cache)

    def process_swaps(
        self,
        token_in: str,
        token_out: str,
        swap_type: SwapTypes,
        amount: Decimal,
        pools: list[SubgraphPool],
        use_process_cache: bool = True,
        timestamp: int = 0,
        max_routes: int | None = None,
        pool_filter: PoolFilter = PoolFilter.ALL,
    ) -> SwapInfo:
        """General routing for tokens that are already routable.

        The route cost is read from the cost cache: output token for ExactIn,
        input token for ExactOut.
        """
        token_in = normalize_address(token_in)
        token_out = normalize_address(token_out)
        if amount <= 0:
            return SwapInfo.empty(NoRouteReason.ZERO_AMOUNT)

        candidates = self.get_candidate_routes(
            token_in, token_out, swap_type, pools, timestamp, use_process_cache, pool_filter
        )
        if candidates.is_empty:
            logger.info("no_liquidity_path", token_in=token_in, token_out=token_out)
            return SwapInfo.empty(NoRouteReason.NO_LIQUIDITY_PATH)

        cost_token = token_out if swap_type == SwapTypes.EXACT_IN else token_in
        route_cost = self.cost_estimator.get_cost_output_token(cost_token)

        result = optimize(
            candidates.pools,
            candidates.routes,
            amount,
            swap_type,
            max_routes if max_routes is not None else self.config.max_routes,
            route_cost,
        )
        swap_info = format_swaps(result, token_in, token_out, amount)

        logger.info(
            "swap_routed",
            token_in=token_in,
            token_out=token_out,
            swap_type=swap_type.value,
            amount=str(amount),
            routes=swap_info.route_count,
            return_amount=str(swap_info.return_amount),
            no_route_reason=swap_info.no_route_reason,
        )
        return swap_info


_default_router: SOR | None = None


def get_default_router() -> SOR:
    """Return the process-wide router configured from the environment."""
    global _default_router
    if _default_router is None:
        _default_router = SOR(RouterConfig.from_env())
    return _default_router


__all__ = ["SOR", "get_default_router"]
