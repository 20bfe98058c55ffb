from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def simulate_purchase(
        to_currency: str, amount: float, from_currency: str = "USD", description: Optional[str] = None
    ) -> Dict[str, Any]:
        """Simulate buying crypto with USD (or selling it for USD) in the demo wallet."""
        tx = await wallet.simulate_purchase(from_currency, to_currency, amount, description)
        return tx.to_dict()
