"""End-to-end tests for SOR.get_swaps."""

import asyncio
import decimal
from decimal import Decimal

import pytest

from sor.config import RouterConfig
from sor.constants import ChainId
from sor.errors import CostOracleFailure
from sor.math.decimal_math import DECIMAL_CONTEXT
from sor.models.pools import PoolFilter
from sor.models.swap import (
    DisabledOptions,
    DisabledToken,
    NoRouteReason,
    SwapOptions,
    SwapTypes,
)
from sor.routing.optimizer import RoutePricer
from sor.sor import SOR
from sor.static_routes import LIDO_PAIRS
from tests.conftest import MockCostOracle, MockPoolSource
from tests.helpers import (
    NATIVE,
    STETH,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    USDC,
    WETH,
    WSTETH,
    make_cp_pool,
    make_router,
    make_stable_pool,
    make_weighted_pool,
)


def get_swaps(sor: SOR, token_in, token_out, swap_type, amount, **options):
    return asyncio.run(
        sor.get_swaps(token_in, token_out, swap_type, amount, SwapOptions(**options))
    )


def cp_in(balance_in: str, balance_out: str, amount: Decimal) -> Decimal:
    with decimal.localcontext(DECIMAL_CONTEXT):
        return (
            Decimal(balance_in) * amount
            / ((Decimal(balance_out) - amount) * (1 - Decimal("0.003")))
        )


class TestSplitRouting:
    """The reference two-pool scenario."""

    def test_two_routes_beat_one(self, two_equal_pools):
        sor = make_router(two_equal_pools, max_routes=2)

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")

        assert info.route_count == 2
        assert abs(info.return_amount - Decimal("94.966")) < Decimal("0.001")
        assert info.return_amount_considering_fees == info.return_amount
        assert info.swap_amount == Decimal(100)
        assert info.token_addresses == [TOKEN_A, TOKEN_B]
        assert info.no_route_reason is None

    def test_single_route_cap(self, two_equal_pools):
        sor = make_router(two_equal_pools, max_routes=1)

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")

        assert info.route_count == 1
        assert abs(info.return_amount - Decimal("90.661")) < Decimal("0.001")

    def test_per_query_route_cap(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        info = get_swaps(sor, TOKEN_A, TOKEN_B, SwapTypes.EXACT_IN, Decimal(100), max_routes=1)
        assert info.route_count == 1

    def test_exact_out(self, two_equal_pools):
        sor = make_router(two_equal_pools)

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactOut", "100")

        assert info.route_count == 2
        with decimal.localcontext(DECIMAL_CONTEXT):
            expected = 2 * cp_in("1000", "1000", Decimal(50))
        assert abs(info.return_amount - expected) < Decimal("1e-30")
        given = sum(legs[0].swap_amount for legs in info.swaps)
        assert abs(given - Decimal(100)) < Decimal("1e-40")

    def test_hop_route(self):
        sor = make_router(
            [make_cp_pool("ac", TOKEN_A, TOKEN_C), make_cp_pool("cb", TOKEN_C, TOKEN_B)]
        )

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "10")

        assert info.token_addresses == [TOKEN_A, TOKEN_C, TOKEN_B]
        hop1, hop2 = info.swaps[0]
        assert (hop1.token_in_index, hop1.token_out_index) == (0, 1)
        assert (hop2.token_in_index, hop2.token_out_index) == (1, 2)
        assert hop2.return_amount == info.return_amount

    def test_repeated_query_is_identical(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        first = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")
        second = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")
        assert first == second


def three_token_pools() -> list:
    """Weighted A/B/C pool beside a C/B pool, 1000 of everything."""
    return [
        make_weighted_pool(
            "p", {TOKEN_A: ("1000", "1"), TOKEN_B: ("1000", "1"), TOKEN_C: ("1000", "1")}
        ),
        make_cp_pool("q", TOKEN_C, TOKEN_B),
    ]


def sold_into(info, pool_id: str, token: str) -> Decimal:
    legs = [leg for route_legs in info.swaps for leg in route_legs]
    return sum(
        (leg.swap_amount for leg in legs if leg.pool_id == pool_id and leg.token_in == token),
        Decimal(0),
    )


class TestMultiTokenPools:
    """A pool holding both query tokens and a hop token carries one route."""

    def test_direct_pool_is_not_reused_as_hop_leg(self):
        sor = make_router(three_token_pools(), max_routes=2)

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "500")

        assert info.route_count == 0
        assert info.no_route_reason == NoRouteReason.INSUFFICIENT_LIQUIDITY

    def test_pool_safety_bound_holds(self):
        sor = make_router(three_token_pools(), max_routes=2)

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "250")

        assert info.route_count == 1
        assert [leg.pool_id for leg in info.swaps[0]] == ["p"]
        assert sold_into(info, "p", TOKEN_A) <= Decimal(300)

    def test_delivered_amount_matches_route_pricing(self):
        """Each route returns what it was priced at on the untouched snapshot."""
        pools = [*three_token_pools(), make_cp_pool("ac", TOKEN_A, TOKEN_C)]
        sor = make_router(pools, max_routes=2)

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "500")

        assert info.route_count == 2
        assert sold_into(info, "p", TOKEN_A) <= Decimal(300)
        assert sold_into(info, "ac", TOKEN_A) <= Decimal(300)
        candidates = sor.get_candidate_routes(
            TOKEN_A, TOKEN_B, SwapTypes.EXACT_IN, sor.pool_source.get_pools()
        )
        routes = {route.pool_ids: route for route in candidates.routes}
        for legs in info.swaps:
            route = routes[tuple(leg.pool_id for leg in legs)]
            pricer = RoutePricer(candidates.pools, route, SwapTypes.EXACT_IN)
            priced = pricer.amount(legs[0].swap_amount)
            assert abs(priced - legs[-1].return_amount) < Decimal("1e-40")


class TestNoRoute:
    """Queries answered with the no-route result."""

    def test_pools_not_ready(self):
        sor = SOR(pool_source=MockPoolSource(ready=False))

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")

        assert info.no_route_reason == NoRouteReason.POOLS_NOT_READY
        assert info.swaps == []

    def test_empty_snapshot(self):
        sor = make_router([])

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")

        assert info.no_route_reason == NoRouteReason.NO_LIQUIDITY_PATH
        assert info.return_amount == 0
        assert info.token_addresses == []

    def test_zero_amount(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "0")
        assert info.no_route_reason == NoRouteReason.ZERO_AMOUNT

    def test_amount_beyond_limits(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "5000")
        assert info.no_route_reason == NoRouteReason.INSUFFICIENT_LIQUIDITY

    def test_negative_amount_raises(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        with pytest.raises(ValueError):
            get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "-1")

    def test_computation_failure_is_contained(self):
        class BrokenBuilder:
            def is_fixed_rate_pair(self, token_in, token_out):
                return True

            def build_static_swap(self, pools, token_in, token_out, swap_type, amount):
                raise decimal.DivisionByZero("rate")

        sor = SOR(pool_source=MockPoolSource([]), fixed_rate_builder=BrokenBuilder())

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "1")

        assert info.no_route_reason == NoRouteReason.COMPUTATION_FAILED


class TestRouteCost:
    def test_cost_in_output_token_for_exact_in(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        asyncio.run(sor.set_cost_output_token(TOKEN_B, 18, Decimal(5)))

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")

        assert info.route_count == 1
        with decimal.localcontext(DECIMAL_CONTEXT):
            assert info.return_amount_considering_fees == info.return_amount - 5

    def test_cost_in_input_token_for_exact_out(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        asyncio.run(sor.set_cost_output_token(TOKEN_A, 18, Decimal(1)))

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactOut", "100")

        with decimal.localcontext(DECIMAL_CONTEXT):
            assert info.return_amount_considering_fees == info.return_amount + info.route_count

    def test_oracle_failure_propagates(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        sor.cost_estimator.oracle = MockCostOracle(error=TimeoutError("slow"))

        with pytest.raises(CostOracleFailure):
            asyncio.run(sor.set_cost_output_token(TOKEN_B, 18))
        assert sor.get_cost_output_token(TOKEN_B) == 0


class TestQueryCache:
    def test_cache_hit_returns_same_entry(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        pools = sor.pool_source.get_pools()

        first = sor.get_candidate_routes(TOKEN_A, TOKEN_B, SwapTypes.EXACT_IN, pools)
        second = sor.get_candidate_routes(TOKEN_A, TOKEN_B, SwapTypes.EXACT_IN, pools)

        assert first is second

    def test_force_refresh_bypasses_cache(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        pools = sor.pool_source.get_pools()

        cached = sor.get_candidate_routes(TOKEN_A, TOKEN_B, SwapTypes.EXACT_IN, pools)
        fresh = sor.get_candidate_routes(
            TOKEN_A, TOKEN_B, SwapTypes.EXACT_IN, pools, use_cache=False
        )

        assert fresh is not cached
        assert [r.limit for r in fresh.routes] == [r.limit for r in cached.routes]

    def test_queries_do_not_mutate_cached_pools(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")

        entry = sor.get_candidate_routes(
            TOKEN_A, TOKEN_B, SwapTypes.EXACT_IN, sor.pool_source.get_pools()
        )

        assert all(p.balances[TOKEN_A] == Decimal(1000) for p in entry.pools.values())

    def test_refresh_clears_cache(self, two_equal_pools):
        sor = make_router(two_equal_pools)
        get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")
        assert len(sor.cache) == 1

        asyncio.run(sor.fetch_pools(use_live_data=False, seed_pools=two_equal_pools[:1]))

        assert len(sor.cache) == 0
        assert get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100").route_count == 1

    def test_stale_cache_is_served_until_cleared(self, two_equal_pools):
        """The cache key does not include pool state."""
        source = MockPoolSource(list(two_equal_pools))
        sor = SOR(pool_source=source)
        get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")

        source.pools = two_equal_pools[:1]
        stale = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")
        sor.clear_cache()
        fresh = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100")

        assert stale.route_count == 2
        assert fresh.route_count == 1


class TestQueryOptions:
    def test_pool_type_filter(self):
        sor = make_router(
            [
                make_cp_pool("cp", TOKEN_A, TOKEN_B),
                make_stable_pool("st", {TOKEN_A: "1000", TOKEN_B: "1000"}),
            ]
        )

        info = get_swaps(
            sor, TOKEN_A, TOKEN_B, "ExactIn", "10", pool_type_filter=PoolFilter.STABLE
        )

        assert [legs[0].pool_id for legs in info.swaps] == ["st"]

    def test_timestamp_skips_expired_pools(self, two_equal_pools):
        expired = make_cp_pool("expired", TOKEN_A, TOKEN_B, "5000", "5000", endTime=100)
        sor = make_router([*two_equal_pools, expired])

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "100", as_of_timestamp=1000)

        assert "expired" not in {legs[0].pool_id for legs in info.swaps}

    def test_disabled_tokens(self):
        disabled = DisabledOptions(disabled_tokens=[DisabledToken(address=TOKEN_C)])
        sor = make_router(
            [make_cp_pool("ac", TOKEN_A, TOKEN_C), make_cp_pool("cb", TOKEN_C, TOKEN_B)],
            disabled_options=disabled,
        )

        info = get_swaps(sor, TOKEN_A, TOKEN_B, "ExactIn", "10")

        assert info.no_route_reason == NoRouteReason.NO_LIQUIDITY_PATH


class TestTokenHandling:
    def test_native_token_routes_through_wrapped(self):
        sor = make_router([make_cp_pool("weth-usdc", WETH, USDC, "1000", "2000000")])

        info = get_swaps(sor, NATIVE, USDC, "ExactIn", "1")

        assert info.token_in == NATIVE
        assert info.token_addresses == [NATIVE, USDC]
        assert info.swaps[0][0].token_in == WETH
        assert info.return_amount > 0

    def test_native_out_exact_out(self):
        sor = make_router([make_cp_pool("weth-usdc", WETH, USDC, "1000", "2000000")])

        info = get_swaps(sor, USDC, NATIVE, "ExactOut", "1")

        assert info.token_out == NATIVE
        assert info.token_addresses == [USDC, NATIVE]
        assert info.swap_amount == Decimal(1)

    def test_fixed_rate_pair_bypasses_routing(self):
        lido = make_stable_pool(
            "lido",
            {WSTETH: "1000", WETH: "1000"},
            price_rates={WSTETH: "1.1"},
            pool_type="MetaStable",
        ).model_copy(update={"id": LIDO_PAIRS[ChainId.MAINNET][0].pool_id})
        sor = make_router([lido], chain_id=ChainId.MAINNET)

        info = get_swaps(sor, WSTETH, STETH, "ExactIn", "10")

        assert info.return_amount == Decimal(11)
        assert info.route_count == 1
        assert len(sor.cache) == 0


class TestConfigWiring:
    def test_default_collaborators(self):
        sor = SOR(RouterConfig(chain_id=ChainId.POLYGON, cache_ttl_seconds=60))
        assert not sor.is_ready()
        assert sor.cost_estimator.chain_id == ChainId.POLYGON
        assert sor.cost_estimator.oracle is None
