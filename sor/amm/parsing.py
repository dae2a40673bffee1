"""Parse raw snapshot pools into routable pool variants.

Malformed entries raise InvalidPoolDataError. Callers skip the offending
pool, count it and keep going; one bad pool never aborts a query.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from sor.amm.base import PoolKind, RoutablePool
from sor.amm.constant_product import ConstantProductPool
from sor.amm.errors import InvalidPoolDataError
from sor.amm.stable import StablePool
from sor.amm.weighted import WeightedPool
from sor.math.decimal_math import ONE, ZERO, high_precision, to_decimal
from sor.models.pools import SubgraphPool
from sor.models.types import is_valid_address, normalize_address

logger = structlog.get_logger()

# Snapshot poolType -> variant tag
POOL_TYPE_KINDS: dict[str, PoolKind] = {
    "ConstantProduct": PoolKind.CONSTANT_PRODUCT,
    "Weighted": PoolKind.WEIGHTED,
    "LiquidityBootstrapping": PoolKind.WEIGHTED,
    "Investment": PoolKind.WEIGHTED,
    "Stable": PoolKind.STABLE,
    "MetaStable": PoolKind.STABLE,
}


@dataclass
class ParseReport:
    """Outcome of parsing a batch of snapshot pools."""

    pools: dict[str, RoutablePool] = field(default_factory=dict)
    invalid: list[InvalidPoolDataError] = field(default_factory=list)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid)


def _parse_amount(pool_id: str, name: str, value: str | None) -> Decimal:
    if value is None:
        raise InvalidPoolDataError(pool_id, f"missing {name}")
    try:
        amount = to_decimal(value)
    except ValueError:
        raise InvalidPoolDataError(pool_id, f"{name} is not a number: {value!r}") from None
    if amount < 0:
        raise InvalidPoolDataError(pool_id, f"negative {name}: {value}")
    return amount


@high_precision
def parse_pool(raw: SubgraphPool) -> RoutablePool:
    """Convert one snapshot pool into its routable variant.

    Args:
        raw: Pool entry from the snapshot

    Returns:
        ConstantProductPool, WeightedPool or StablePool

    Raises:
        InvalidPoolDataError: If the entry is missing data or holds invalid values
    """
    pool_id = raw.id
    kind = POOL_TYPE_KINDS.get(raw.pool_type)
    if kind is None:
        raise InvalidPoolDataError(pool_id, f"unsupported pool type {raw.pool_type!r}")

    if len(raw.tokens) < 2:
        raise InvalidPoolDataError(pool_id, "pool needs at least two tokens")

    balances: dict[str, Decimal] = {}
    for token in raw.tokens:
        if not is_valid_address(normalize_address(token.address)):
            raise InvalidPoolDataError(pool_id, f"invalid token address {token.address!r}")
        address = normalize_address(token.address)
        if address in balances:
            raise InvalidPoolDataError(pool_id, f"duplicate token {address}")
        balances[address] = _parse_amount(pool_id, "balance", token.balance)

    swap_fee = _parse_amount(pool_id, "swapFee", raw.swap_fee)
    if swap_fee >= ONE:
        raise InvalidPoolDataError(pool_id, f"swapFee must be below 1, got {raw.swap_fee}")

    window = {"start_time": raw.start_time, "end_time": raw.window_end}

    if kind == PoolKind.CONSTANT_PRODUCT:
        if len(balances) != 2:
            raise InvalidPoolDataError(pool_id, "constant product pools hold exactly two tokens")
        return ConstantProductPool(pool_id, balances, swap_fee, **window)

    if kind == PoolKind.WEIGHTED:
        weights = {
            normalize_address(t.address): _parse_amount(pool_id, "weight", t.weight)
            for t in raw.tokens
        }
        if any(w == ZERO for w in weights.values()):
            raise InvalidPoolDataError(pool_id, "token weight must be positive")
        total_weight = sum(weights.values(), ZERO)
        normalized = {token: w / total_weight for token, w in weights.items()}
        return WeightedPool(pool_id, balances, swap_fee, normalized, **window)

    amp = _parse_amount(pool_id, "amp", raw.amp)
    if amp == ZERO:
        raise InvalidPoolDataError(pool_id, "amp must be positive")
    price_rates = {
        normalize_address(t.address): _parse_amount(pool_id, "priceRate", t.price_rate)
        for t in raw.tokens
    }
    if any(rate == ZERO for rate in price_rates.values()):
        raise InvalidPoolDataError(pool_id, "priceRate must be positive")
    return StablePool(pool_id, balances, swap_fee, amp, price_rates, **window)


def parse_pools(raw_pools: list[SubgraphPool]) -> ParseReport:
    """Parse a batch of pools, skipping and logging malformed entries."""
    report = ParseReport()
    for raw in raw_pools:
        try:
            report.pools[raw.id] = parse_pool(raw)
        except InvalidPoolDataError as e:
            report.invalid.append(e)
            logger.warning("invalid_pool_data", pool_id=e.pool_id, reason=e.reason)
    return report


__all__ = ["POOL_TYPE_KINDS", "ParseReport", "parse_pool", "parse_pools"]
