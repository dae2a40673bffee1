"""Router error classes.

"No viable route" is not an error: those queries return SwapInfo.empty().
Only failures the caller must act on are raised.
"""


class SORError(Exception):
    """Base error for router operations."""

    pass


class CostOracleFailure(SORError):
    """The price oracle failed or returned an unusable value.

    Propagated instead of defaulting the route cost to zero, which would
    bias route selection toward splitting across too many routes.
    """

    def __init__(self, token: str, reason: str) -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"Cost oracle failed for {token}: {reason}")


class InvalidConfigError(SORError, ValueError):
    """Router configuration value is out of range."""

    pass
