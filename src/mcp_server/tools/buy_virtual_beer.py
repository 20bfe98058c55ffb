from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def buy_virtual_beer(quantity: int = 1, currency: str = "BTC", price_per_beer: float = 5.0) -> Dict[str, Any]:
        """Spend crypto from the demo wallet on virtual beers; reports when more crypto is needed."""
        result = await wallet.buy_virtual_beer(quantity, currency, price_per_beer)
        return result.to_dict()
