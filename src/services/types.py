"""Service interfaces the adapters (REST, MCP tools, agent) depend on."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence

from src.coinbase.analysis import PriceAnalysis
from src.wallet.models import (
    BeerPurchaseResult,
    Inventory,
    PurchaseCalculation,
    Transaction,
    Wallet,
    WalletStats,
)


class PriceSource(Protocol):
    def get_spot_price(self, currency_pair: str) -> Dict[str, Any]:
        """Return ``{"data": {"amount": "...", "base": ..., "currency": ...}}``."""
        ...


class MarketDataService(PriceSource, Protocol):
    def get_historical_prices(
        self, currency_pair: str, start: Optional[str] = None, end: Optional[str] = None, period: str = "day"
    ) -> Dict[str, Any]: ...

    def get_exchange_rates(self, currency: str) -> Dict[str, Any]: ...

    def get_currencies(self) -> Dict[str, Any]: ...

    def get_stats(self, currency_pair: str) -> Dict[str, Any]: ...

    def search_assets(self, query: str, limit: int = 10) -> List[Dict[str, Any]]: ...

    def get_asset_details(self, asset_id: str) -> Optional[Dict[str, Any]]: ...

    def analyze_price_data(
        self, currency_pair: str, period: str = "1d", metrics: Optional[Sequence[str]] = None
    ) -> PriceAnalysis: ...

    def get_popular_pairs(self) -> List[str]: ...


class WalletService(Protocol):
    def get_wallet(self) -> Wallet: ...

    def get_balance(self, currency: str) -> float: ...

    async def calculate_beer_cost(
        self, currency: str = "BTC", beer_count: int = 1, price_per_beer: float = 5.0
    ) -> PurchaseCalculation: ...

    async def simulate_purchase(
        self, from_currency: str, to_currency: str, amount: float, description: Optional[str] = None
    ) -> Transaction: ...

    async def buy_virtual_beer(
        self, quantity: int = 1, currency: str = "BTC", price_per_beer: float = 5.0
    ) -> BeerPurchaseResult: ...

    def get_transaction_history(self, limit: int = 10, currency: Optional[str] = None) -> List[Transaction]: ...

    def add_funds(self, currency: str, amount: float) -> None: ...

    def reset_wallet(self) -> None: ...

    async def get_wallet_stats(self) -> WalletStats: ...

    def get_inventory(self) -> Inventory: ...
