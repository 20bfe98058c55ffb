"""Read-only MCP resources: a market overview and per-asset details."""

from __future__ import annotations

import asyncio
import logging

from mcp.server.fastmcp import FastMCP

from src.services.types import MarketDataService, WalletService

from . import formatting

logger = logging.getLogger(__name__)

OVERVIEW_PAIRS = 5


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.resource("coinbase://market/overview", name="market-overview", mime_type="text/plain")
    async def market_overview() -> str:
        """Spot prices of the most popular trading pairs."""
        pairs = market.get_popular_pairs()[:OVERVIEW_PAIRS]
        results = await asyncio.gather(
            *(asyncio.to_thread(market.get_spot_price, pair) for pair in pairs), return_exceptions=True
        )
        lines = []
        for pair, result in zip(pairs, results):
            if isinstance(result, BaseException):
                logger.warning("market overview: skipping %s: %s", pair, result)
                continue
            lines.append(f"{pair}: ${result['data']['amount']} {result['data']['currency']}")
        return "Coinbase Market Overview\n\nTop Cryptocurrency Prices:\n" + "\n".join(lines)

    @mcp.resource("coinbase://assets/{asset_id}", name="asset-info", mime_type="text/plain")
    async def asset_info(asset_id: str) -> str:
        """Detailed information about a cryptocurrency or fiat asset."""
        asset = await asyncio.to_thread(market.get_asset_details, asset_id)
        if asset is None:
            return f'Asset "{asset_id}" not found'
        return formatting.asset_details(asset)
