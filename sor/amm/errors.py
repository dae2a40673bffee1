"""Pool math and pool data error classes."""


class PoolMathError(Exception):
    """Base error for pool pricing math."""

    pass


class ZeroBalanceError(PoolMathError):
    """Token balance must be positive for swaps."""

    pass


class InsufficientLiquidityError(PoolMathError):
    """Requested output is not available in the pool."""

    pass


class StableInvariantDidNotConverge(PoolMathError):
    """Newton-Raphson iteration for stable invariant D did not converge."""

    pass


class StableGetBalanceDidNotConverge(PoolMathError):
    """Newton-Raphson iteration for stable balance Y did not converge."""

    pass


class InvalidPoolDataError(ValueError):
    """A snapshot pool entry is malformed and cannot be routed through."""

    def __init__(self, pool_id: str, reason: str) -> None:
        self.pool_id = pool_id
        self.reason = reason
        super().__init__(f"Invalid pool {pool_id}: {reason}")
