"""HTTP price oracle for route costs."""

from __future__ import annotations

from decimal import Decimal

import httpx
import structlog

from sor.constants import NATIVE_DECIMALS
from sor.math.decimal_math import DECIMAL_CONTEXT
from sor.models.types import normalize_address

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 10.0


class HttpCostOracle:
    """Reads native prices from a JSON endpoint.

    GET {base_url}/{token} must answer {"price": "<decimal>"}, where price is
    the amount of the token, in raw units, worth one whole native unit (1e18
    wei). The gas cost in token units is gas_price * gas_units * price / 1e18.

    A client can be injected for connection reuse; otherwise one is opened
    per request.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.timeout = timeout

    async def _get_price(self, client: httpx.AsyncClient, token: str) -> Decimal:
        response = await client.get(f"{self.base_url}/{token}", timeout=self.timeout)
        response.raise_for_status()
        data = response.json()
        if "price" not in data:
            raise ValueError(f"price missing from oracle response for {token}")
        return Decimal(str(data["price"]))

    async def price_in_native(self, token: str, gas_price: Decimal, gas_units: int) -> Decimal:
        token_norm = normalize_address(token)
        if self.client is not None:
            price = await self._get_price(self.client, token_norm)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                price = await self._get_price(client, token_norm)

        logger.debug("oracle_price_fetched", token=token_norm, price=str(price))
        wei_cost = DECIMAL_CONTEXT.multiply(gas_price, Decimal(gas_units))
        return DECIMAL_CONTEXT.divide(
            DECIMAL_CONTEXT.multiply(wei_cost, price), Decimal(10) ** NATIVE_DECIMALS
        )


__all__ = ["HttpCostOracle"]
