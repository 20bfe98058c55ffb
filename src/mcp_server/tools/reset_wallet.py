from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def reset_wallet() -> Dict[str, Any]:
        """Reset the demo wallet to its starting balances."""
        wallet.reset_wallet()
        return {"message": "Wallet reset to initial state", "data": wallet.get_wallet().to_dict()}
