import asyncio
from typing import Literal, Optional

from mcp.server.fastmcp import FastMCP

from src.mcp_server import formatting
from src.services.types import MarketDataService, WalletService
from src.wallet.currency import normalize_pair


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def get_historical_prices(
        currency_pair: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
        period: Literal["hour", "day"] = "day",
    ) -> str:
        """Get historical price data for a pair; start/end are YYYY-MM-DD dates."""
        pair = normalize_pair(currency_pair)
        payload = await asyncio.to_thread(market.get_historical_prices, pair, start, end, period)
        return formatting.historical_prices(pair, payload)
