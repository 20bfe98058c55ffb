from mcp.server.fastmcp import FastMCP

from src.mcp_server import formatting
from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def get_popular_pairs() -> str:
        """List popular cryptocurrency trading pairs."""
        return formatting.popular_pairs(market.get_popular_pairs())
