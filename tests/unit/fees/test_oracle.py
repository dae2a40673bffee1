"""Tests for the HTTP price oracle."""

import asyncio
from decimal import Decimal

import httpx
import pytest

from sor.fees.oracle import HttpCostOracle
from tests.helpers import USDC


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def query(oracle: HttpCostOracle, client: httpx.AsyncClient) -> Decimal:
    async with client:
        return await oracle.price_in_native(USDC, Decimal(30 * 10**9), 100_000)


class TestHttpCostOracle:
    def test_cost_from_price(self):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            # 2000 USDC (raw, 6 decimals) per ETH
            return httpx.Response(200, json={"price": "2000000000"})

        client = make_client(handler)
        oracle = HttpCostOracle("https://prices.example/native/", client=client)

        cost = asyncio.run(query(oracle, client))

        # 0.003 ETH of gas at 2000 USDC/ETH = 6 USDC = 6_000_000 raw
        assert cost == Decimal(6_000_000)
        assert seen == [f"https://prices.example/native/{USDC}"]

    def test_http_error_raises(self):
        client = make_client(lambda request: httpx.Response(503))
        oracle = HttpCostOracle("https://prices.example", client=client)

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(query(oracle, client))

    def test_missing_price_raises(self):
        client = make_client(lambda request: httpx.Response(200, json={"rate": "1"}))
        oracle = HttpCostOracle("https://prices.example", client=client)

        with pytest.raises(ValueError, match="price missing"):
            asyncio.run(query(oracle, client))
