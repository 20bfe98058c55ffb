"""Tool schemas exposed to the LLM and an in-process caller that serves them.

The names and argument names match the MCP server's tools, so the agent can
switch between ``make_tool_caller`` (in-process) and
``src.mcp_client.client.make_mcp_tool_caller`` (over MCP) without changes.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List

from src.mcp_server import formatting
from src.services.types import MarketDataService, WalletService
from src.utils.telemetry import span
from src.wallet.currency import normalize_currency, normalize_pair

logger = logging.getLogger(__name__)

ToolCaller = Callable[..., Any]

_PAIR = {"type": "string", "description": "Currency pair (e.g., BTC-USD, ETH-USD)"}


def _function(name: str, description: str, properties: Dict[str, Any], required: List[str] | None = None) -> Dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {"type": "object", "properties": properties, "required": required or []},
        },
    }


TOOL_SPECS: List[Dict[str, Any]] = [
    _function("get_spot_price", "Get current spot price for a cryptocurrency pair", {"currency_pair": _PAIR}, ["currency_pair"]),
    _function(
        "get_market_stats", "Get 24-hour market statistics for a cryptocurrency pair", {"currency_pair": _PAIR}, ["currency_pair"]
    ),
    _function(
        "analyze_price_data",
        "Perform technical analysis on cryptocurrency price data",
        {
            "currency_pair": _PAIR,
            "period": {"type": "string", "enum": ["1d", "7d", "30d", "1y"], "description": "Analysis period"},
            "metrics": {
                "type": "array",
                "items": {"type": "string", "enum": ["volatility", "trend", "support_resistance", "volume"]},
                "description": "Analysis metrics to include",
            },
        },
        ["currency_pair"],
    ),
    _function(
        "get_historical_prices",
        "Get historical prices for a cryptocurrency pair",
        {
            "currency_pair": _PAIR,
            "start": {"type": "string", "description": "Start date (ISO 8601)"},
            "end": {"type": "string", "description": "End date (ISO 8601)"},
            "period": {"type": "string", "enum": ["hour", "day"]},
        },
        ["currency_pair"],
    ),
    _function("get_popular_pairs", "Get a list of popular cryptocurrency trading pairs", {}),
    _function(
        "search_assets",
        "Search for cryptocurrency assets by name or symbol",
        {
            "query": {"type": "string", "description": "Search query for asset name or symbol"},
            "limit": {"type": "integer", "description": "Maximum number of results"},
        },
        ["query"],
    ),
    _function(
        "get_asset_details",
        "Get detailed information about a specific asset",
        {"asset_id": {"type": "string", "description": "Asset ID or code (e.g., BTC)"}},
        ["asset_id"],
    ),
    _function(
        "get_exchange_rates",
        "Get exchange rates for a base currency",
        {"currency": {"type": "string", "description": "Base currency code (e.g., USD, EUR)"}},
        ["currency"],
    ),
    _function(
        "calculate_beer_cost",
        "Calculate how much cryptocurrency the price of beer(s) buys. Use when the user asks about beer and crypto.",
        {
            "currency": {"type": "string", "description": "Cryptocurrency (e.g., BTC, ETH, SOL)", "default": "BTC"},
            "beer_count": {"type": "integer", "description": "Number of beers", "default": 1},
            "price_per_beer": {"type": "number", "description": "Price per beer in USD", "default": 5},
        },
    ),
    _function(
        "simulate_purchase",
        "Simulate buying cryptocurrency with USD in the demo wallet. Use when the user wants to buy or invest.",
        {
            "to_currency": {"type": "string", "description": "Currency to receive (e.g., BTC, ETH, SOL)"},
            "amount": {"type": "number", "description": "Amount of from_currency to spend"},
            "from_currency": {"type": "string", "description": "Currency to spend (usually USD)", "default": "USD"},
            "description": {"type": "string", "description": "Optional purchase description"},
        },
        ["to_currency", "amount"],
    ),
    _function(
        "buy_virtual_beer",
        "Spend crypto from the demo wallet on virtual beers",
        {
            "quantity": {"type": "integer", "default": 1},
            "currency": {"type": "string", "default": "BTC"},
            "price_per_beer": {"type": "number", "default": 5},
        },
    ),
    _function("get_wallet", "Get the demo wallet balances, inventory and transactions", {}),
    _function("get_wallet_stats", "Get demo wallet statistics including portfolio value in USD", {}),
    _function(
        "get_transaction_history",
        "Get the demo wallet transaction history",
        {
            "limit": {"type": "integer", "description": "Maximum number of transactions", "default": 10},
            "currency": {"type": "string", "description": "Optional currency filter"},
        },
    ),
]

TOOL_NAMES = [spec["function"]["name"] for spec in TOOL_SPECS]


def _plain(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def make_tool_caller(market: MarketDataService, wallet: WalletService) -> ToolCaller:
    """Serve the tool names in TOOL_SPECS directly from in-process services."""

    def spot(currency_pair: str) -> str:
        pair = normalize_pair(currency_pair)
        return formatting.spot_price(pair, market.get_spot_price(pair))

    def stats(currency_pair: str) -> str:
        pair = normalize_pair(currency_pair)
        return formatting.market_stats(pair, market.get_stats(pair))

    def analysis(currency_pair: str, period: str = "1d", metrics: List[str] | None = None) -> str:
        pair = normalize_pair(currency_pair)
        return formatting.price_analysis(pair, period, market.analyze_price_data(pair, period, metrics))

    def historical(currency_pair: str, start: str | None = None, end: str | None = None, period: str = "day") -> str:
        pair = normalize_pair(currency_pair)
        return formatting.historical_prices(pair, market.get_historical_prices(pair, start, end, period))

    def search(query: str, limit: int = 10) -> str:
        return formatting.asset_search(query, market.search_assets(query, limit))

    def details(asset_id: str) -> str:
        asset = market.get_asset_details(asset_id)
        return formatting.asset_details(asset) if asset else f'Asset "{asset_id}" not found'

    def rates(currency: str) -> str:
        code = normalize_currency(currency)
        return formatting.exchange_rates(code, market.get_exchange_rates(code))

    handlers: Dict[str, Callable[..., Any]] = {
        "get_spot_price": spot,
        "get_market_stats": stats,
        "analyze_price_data": analysis,
        "get_historical_prices": historical,
        "get_popular_pairs": lambda: formatting.popular_pairs(market.get_popular_pairs()),
        "search_assets": search,
        "get_asset_details": details,
        "get_exchange_rates": rates,
        "calculate_beer_cost": wallet.calculate_beer_cost,
        "simulate_purchase": lambda to_currency, amount, from_currency="USD", description=None: wallet.simulate_purchase(
            from_currency, to_currency, amount, description
        ),
        "buy_virtual_beer": wallet.buy_virtual_beer,
        "get_wallet": wallet.get_wallet,
        "get_wallet_stats": wallet.get_wallet_stats,
        "get_transaction_history": wallet.get_transaction_history,
    }

    def call(name: str, **kwargs: Any) -> Any:
        handler = handlers.get(name)
        if handler is None:
            raise ValueError(f"Tool {name} not found in local registry.")
        with span(f"tool_call:{name}", {"transport": "local"}):
            logger.info("local call_tool start: %s args=%s", name, kwargs)
            result = handler(**kwargs)
            if inspect.isawaitable(result):
                result = asyncio.run(result)
        return _plain(result)

    return call
