import asyncio

from mcp.server.fastmcp import FastMCP

from src.mcp_server import formatting
from src.services.types import MarketDataService, WalletService
from src.wallet.currency import normalize_pair


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def get_market_stats(currency_pair: str) -> str:
        """Get 24-hour market statistics for a currency pair."""
        pair = normalize_pair(currency_pair)
        payload = await asyncio.to_thread(market.get_stats, pair)
        return formatting.market_stats(pair, payload)
