"""Tests for fixed-rate liquid-staking routes."""

from decimal import Decimal

from sor.constants import ChainId
from sor.models.swap import NoRouteReason, SwapTypes
from sor.static_routes import LIDO_PAIRS, FixedRatePair, StaticRouteBuilder
from tests.helpers import STETH, TOKEN_A, TOKEN_B, WETH, WSTETH, make_stable_pool

LIDO_POOL_ID = LIDO_PAIRS[ChainId.MAINNET][0].pool_id


def lido_pool(rate: str = "1.1"):
    pool = make_stable_pool(
        "lido",
        {WSTETH: "1000", WETH: "1000"},
        price_rates={WSTETH: rate},
        pool_type="MetaStable",
    )
    return pool.model_copy(update={"id": LIDO_POOL_ID})


class TestPairDetection:
    def test_mainnet_lido_pair(self):
        builder = StaticRouteBuilder.for_chain(ChainId.MAINNET)
        assert builder.is_fixed_rate_pair(WSTETH, STETH)
        assert builder.is_fixed_rate_pair(STETH.upper().replace("0X", "0x"), WSTETH)
        assert not builder.is_fixed_rate_pair(WSTETH, WETH)
        assert not builder.is_fixed_rate_pair(STETH, STETH)

    def test_other_chains_have_no_pairs(self):
        assert not StaticRouteBuilder.for_chain(ChainId.POLYGON).is_fixed_rate_pair(WSTETH, STETH)


class TestBuildStaticSwap:
    def test_wrapped_to_unwrapped_exact_in(self):
        builder = StaticRouteBuilder.for_chain(ChainId.MAINNET)

        info = builder.build_static_swap(
            [lido_pool()], WSTETH, STETH, SwapTypes.EXACT_IN, Decimal(10)
        )

        assert info.return_amount == Decimal(11)
        assert info.token_addresses == [WSTETH, STETH]
        assert len(info.swaps) == 1
        leg = info.swaps[0][0]
        assert leg.pool_id == LIDO_POOL_ID
        assert (leg.token_in_index, leg.token_out_index) == (0, 1)

    def test_unwrapped_to_wrapped_exact_out(self):
        """Buying 10 wstETH costs 11 stETH."""
        builder = StaticRouteBuilder.for_chain(ChainId.MAINNET)

        info = builder.build_static_swap(
            [lido_pool()], STETH, WSTETH, SwapTypes.EXACT_OUT, Decimal(10)
        )

        assert abs(info.return_amount - Decimal(11)) < Decimal("1e-50")
        assert info.token_in == STETH

    def test_missing_pool(self):
        builder = StaticRouteBuilder.for_chain(ChainId.MAINNET)
        info = builder.build_static_swap([], WSTETH, STETH, SwapTypes.EXACT_IN, Decimal(1))
        assert not info.has_route
        assert info.no_route_reason == NoRouteReason.NO_LIQUIDITY_PATH

    def test_bad_rate(self):
        builder = StaticRouteBuilder.for_chain(ChainId.MAINNET)
        info = builder.build_static_swap(
            [lido_pool(rate="0")], WSTETH, STETH, SwapTypes.EXACT_IN, Decimal(1)
        )
        assert not info.has_route

    def test_zero_amount(self):
        builder = StaticRouteBuilder.for_chain(ChainId.MAINNET)
        info = builder.build_static_swap(
            [lido_pool()], WSTETH, STETH, SwapTypes.EXACT_IN, Decimal(0)
        )
        assert info.no_route_reason == NoRouteReason.ZERO_AMOUNT

    def test_custom_pair_with_both_rates(self):
        pool = make_stable_pool(
            "ab", {TOKEN_A: "1", TOKEN_B: "1"}, price_rates={TOKEN_A: "2", TOKEN_B: "4"}
        )
        builder = StaticRouteBuilder([FixedRatePair(TOKEN_A, TOKEN_B, "ab")])

        info = builder.build_static_swap([pool], TOKEN_B, TOKEN_A, SwapTypes.EXACT_IN, Decimal(3))

        assert info.return_amount == Decimal(6)
        assert info.market_sp == Decimal("0.5")
