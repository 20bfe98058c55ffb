import asyncio
from typing import List, Literal, Optional

from mcp.server.fastmcp import FastMCP

from src.mcp_server import formatting
from src.services.types import MarketDataService, WalletService
from src.wallet.currency import normalize_pair

Metric = Literal["volatility", "trend", "support_resistance", "volume"]


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def analyze_price_data(
        currency_pair: str,
        period: Literal["1d", "7d", "30d", "1y"] = "1d",
        metrics: Optional[List[Metric]] = None,
    ) -> str:
        """Technical analysis (volatility, trend, support/resistance, volume) on 24h data."""
        pair = normalize_pair(currency_pair)
        analysis = await asyncio.to_thread(market.analyze_price_data, pair, period, metrics)
        return formatting.price_analysis(pair, period, analysis)
