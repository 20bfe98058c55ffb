from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def calculate_beer_cost(currency: str = "BTC", beer_count: int = 1, price_per_beer: float = 5.0) -> Dict[str, Any]:
        """How much crypto the price of N beers buys right now (no wallet change)."""
        calculation = await wallet.calculate_beer_cost(currency, beer_count, price_per_beer)
        return calculation.to_dict()
