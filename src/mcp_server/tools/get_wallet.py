from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def get_wallet() -> Dict[str, Any]:
        """Demo wallet balances, inventory and recent transactions."""
        return wallet.get_wallet().to_dict()
