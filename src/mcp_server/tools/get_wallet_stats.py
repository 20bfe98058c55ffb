from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def get_wallet_stats() -> Dict[str, Any]:
        """Totals over the transaction log plus the current portfolio value in USD."""
        stats = await wallet.get_wallet_stats()
        return stats.to_dict()
