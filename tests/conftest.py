# tests/conftest.py
import threading

import pytest

from src.coinbase.analysis import analyze_price
from src.wallet.ledger import DemoWallet


class FakePriceSource:
    """Stands in for the Coinbase client: fixed spot prices, optional failures."""

    def __init__(self, prices=None):
        self.prices = dict(prices or {"BTC-USD": 50000.0, "ETH-USD": 2500.0, "USDC-USD": 1.0})
        self.failing = set()
        self.calls = []
        self._lock = threading.Lock()

    def set_price(self, pair, amount):
        self.prices[pair] = amount

    def fail(self, pair):
        self.failing.add(pair)

    def get_spot_price(self, currency_pair):
        with self._lock:
            self.calls.append(currency_pair)
        if currency_pair in self.failing or currency_pair not in self.prices:
            raise RuntimeError(f"price unavailable for {currency_pair}")
        base, currency = currency_pair.split("-")
        return {"data": {"amount": str(self.prices[currency_pair]), "base": base, "currency": currency}}


class FakeMarket(FakePriceSource):
    """Enough of the market data service for the REST, MCP and agent layers."""

    currencies = [
        {"id": "BTC", "code": "BTC", "name": "Bitcoin", "type": "crypto", "exponent": 8},
        {"id": "ETH", "code": "ETH", "name": "Ethereum", "type": "crypto", "exponent": 8},
        {"id": "USD", "code": "USD", "name": "US Dollar", "type": "fiat"},
    ]

    def get_historical_prices(self, currency_pair, start=None, end=None, period="day"):
        return {"data": {"base": currency_pair.split("-")[0], "currency": "USD", "prices": [
            {"time": "2024-01-02T00:00:00Z", "price": "51000.00"},
            {"time": "2024-01-01T00:00:00Z", "price": "50000.00"},
        ]}}

    def get_exchange_rates(self, currency):
        return {"data": {"currency": currency, "rates": {"BTC": "0.00002", "ETH": "0.0004", "EUR": "0.92"}}}

    def get_currencies(self):
        return {"data": list(self.currencies)}

    def get_stats(self, currency_pair):
        return {"data": {"open": "48000", "high": "51000", "low": "47000", "volume": "1234.5", "last": "50000"}}

    def search_assets(self, query, limit=10):
        term = query.lower()
        return [a for a in self.currencies if term in a["name"].lower() or term in a["code"].lower()][:limit]

    def get_asset_details(self, asset_id):
        return next((a for a in self.currencies if a["id"].lower() == asset_id.lower()), None)

    def analyze_price_data(self, currency_pair, period="1d", metrics=None):
        spot = float(self.get_spot_price(currency_pair)["data"]["amount"])
        return analyze_price(spot, self.get_stats(currency_pair)["data"], metrics)

    def get_popular_pairs(self):
        return ["BTC-USD", "ETH-USD", "SOL-USD", "ADA-USD", "DOT-USD", "UNI-USD"]


@pytest.fixture
def prices():
    return FakePriceSource()


@pytest.fixture
def wallet(prices):
    return DemoWallet(prices)


@pytest.fixture
def market():
    return FakeMarket()


@pytest.fixture
def market_wallet(market):
    return DemoWallet(market)
