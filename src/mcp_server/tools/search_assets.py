import asyncio

from mcp.server.fastmcp import FastMCP

from src.mcp_server import formatting
from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def search_assets(query: str, limit: int = 10) -> str:
        """Search cryptocurrency and fiat assets by name or symbol."""
        assets = await asyncio.to_thread(market.search_assets, query, limit)
        return formatting.asset_search(query, assets)
