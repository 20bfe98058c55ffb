import asyncio

from mcp.server.fastmcp import FastMCP

from src.mcp_server import formatting
from src.services.types import MarketDataService, WalletService
from src.wallet.currency import normalize_pair


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def get_spot_price(currency_pair: str) -> str:
        """Get the current spot price for a cryptocurrency pair such as BTC-USD."""
        pair = normalize_pair(currency_pair)
        payload = await asyncio.to_thread(market.get_spot_price, pair)
        return formatting.spot_price(pair, payload)
