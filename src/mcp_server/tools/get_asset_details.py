import asyncio

from mcp.server.fastmcp import FastMCP

from src.mcp_server import formatting
from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def get_asset_details(asset_id: str) -> str:
        """Get detailed information about an asset by ID or symbol (e.g. BTC)."""
        asset = await asyncio.to_thread(market.get_asset_details, asset_id)
        if asset is None:
            return f'Asset "{asset_id}" not found'
        return formatting.asset_details(asset)
