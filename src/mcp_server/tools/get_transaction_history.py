from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def get_transaction_history(limit: int = 10, currency: Optional[str] = None) -> List[Dict[str, Any]]:
        """Most recent demo wallet transactions, optionally filtered by currency."""
        return [tx.to_dict() for tx in wallet.get_transaction_history(limit, currency)]
