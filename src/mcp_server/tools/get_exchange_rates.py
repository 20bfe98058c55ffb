import asyncio

from mcp.server.fastmcp import FastMCP

from src.mcp_server import formatting
from src.services.types import MarketDataService, WalletService
from src.wallet.currency import normalize_currency


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.tool()
    async def get_exchange_rates(currency: str) -> str:
        """Get exchange rates for a base currency (e.g. USD, EUR, BTC)."""
        code = normalize_currency(currency)
        payload = await asyncio.to_thread(market.get_exchange_rates, code)
        return formatting.exchange_rates(code, payload)
