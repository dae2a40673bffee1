"""Native and wrapped token resolution.

Pools only hold the wrapped native token. A query for the native asset
(the zero address) is routed with the wrapped token, and the result is
mapped back so the caller sees the token it asked for.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from sor.constants import WRAPPED_NATIVE, ZERO_ADDRESS, ChainId
from sor.models.swap import SwapInfo, SwapTypes
from sor.models.types import normalize_address


@dataclass(frozen=True)
class WrappedToken:
    """A query token and the address routing uses for it."""

    original: str
    for_routing: str

    @property
    def is_wrapped(self) -> bool:
        return self.original != self.for_routing


@dataclass(frozen=True)
class WrappedInfo:
    """Routing view of a query."""

    token_in: WrappedToken
    token_out: WrappedToken
    swap_amount: Decimal
    swap_amount_for_swaps: Decimal


class TokenWrapper(Protocol):
    """Maps query tokens to routable tokens and results back."""

    async def resolve_for_routing(
        self, swap_type: SwapTypes, token_in: str, token_out: str, amount: Decimal
    ) -> WrappedInfo: ...

    def restore(self, swap_info: SwapInfo, wrapped: WrappedInfo) -> SwapInfo: ...


class NativeWrapper:
    """Swaps the zero address for the chain's wrapped native token.

    Wrapping is 1:1, so amounts pass through unchanged.
    """

    def __init__(self, chain_id: int = ChainId.MAINNET) -> None:
        self.chain_id = chain_id
        self.wrapped_native = WRAPPED_NATIVE.get(chain_id)

    def _wrap(self, token: str) -> WrappedToken:
        token_norm = normalize_address(token)
        if token_norm == ZERO_ADDRESS and self.wrapped_native is not None:
            return WrappedToken(original=token_norm, for_routing=self.wrapped_native)
        return WrappedToken(original=token_norm, for_routing=token_norm)

    async def resolve_for_routing(
        self, swap_type: SwapTypes, token_in: str, token_out: str, amount: Decimal
    ) -> WrappedInfo:
        return WrappedInfo(
            token_in=self._wrap(token_in),
            token_out=self._wrap(token_out),
            swap_amount=amount,
            swap_amount_for_swaps=amount,
        )

    def restore(self, swap_info: SwapInfo, wrapped: WrappedInfo) -> SwapInfo:
        """Rewrite a routed result in terms of the query tokens.

        Swap legs keep the pool-level (wrapped) tokens; tokenAddresses,
        tokenIn and tokenOut use the originals.
        """
        mapping = {
            t.for_routing: t.original
            for t in (wrapped.token_in, wrapped.token_out)
            if t.is_wrapped
        }
        return swap_info.model_copy(
            update={
                "token_in": wrapped.token_in.original,
                "token_out": wrapped.token_out.original,
                "token_addresses": [mapping.get(t, t) for t in swap_info.token_addresses],
                "swap_amount": wrapped.swap_amount,
                "swap_amount_for_swaps": wrapped.swap_amount_for_swaps,
                "return_amount": swap_info.return_amount_from_swaps,
            }
        )


__all__ = ["WrappedToken", "WrappedInfo", "TokenWrapper", "NativeWrapper"]
