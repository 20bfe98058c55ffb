# tests/test_mcp_server.py
import json

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from src.mcp_server.server import TOOL_MODULES, build_server

EXPECTED_TOOLS = {
    "get_spot_price", "get_historical_prices", "get_exchange_rates", "search_assets",
    "get_asset_details", "get_market_stats", "get_popular_pairs", "analyze_price_data",
    "calculate_beer_cost", "simulate_purchase", "get_wallet", "get_transaction_history",
    "buy_virtual_beer", "reset_wallet", "get_wallet_stats",
}


@pytest.fixture
def mcp(market, market_wallet):
    return build_server(market, market_wallet)


async def call(mcp, name, **args):
    """Return the text blocks of a tool result (FastMCP may also return structured output)."""
    result = await mcp.call_tool(name, args)
    content = result[0] if isinstance(result, tuple) else result
    return [block.text for block in content]


async def call_json(mcp, name, **args):
    texts = await call(mcp, name, **args)
    return json.loads(texts[0])


@pytest.mark.asyncio
async def test_all_tools_registered(mcp):
    tools = await mcp.list_tools()
    assert {tool.name for tool in tools} == EXPECTED_TOOLS
    assert len(TOOL_MODULES) == len(EXPECTED_TOOLS) + 2


@pytest.mark.asyncio
async def test_market_tools_return_text(mcp):
    spot = await call(mcp, "get_spot_price", currency_pair="btc-usd")
    assert spot[0] == "Current BTC-USD price: $50000.0 USD\nBase: BTC"

    stats = (await call(mcp, "get_market_stats", currency_pair="BTC-USD"))[0]
    assert "24-Hour Statistics for BTC-USD" in stats
    assert "High: $51000" in stats

    history = (await call(mcp, "get_historical_prices", currency_pair="ETH-USD"))[0]
    assert "2024-01-02: $51000.00" in history

    rates = (await call(mcp, "get_exchange_rates", currency="usd"))[0]
    assert rates.startswith("Exchange rates for USD:")
    assert "EUR: 0.92" in rates

    pairs = (await call(mcp, "get_popular_pairs"))[0]
    assert pairs.splitlines()[1] == "BTC-USD"


@pytest.mark.asyncio
async def test_asset_tools(mcp):
    found = (await call(mcp, "search_assets", query="bit"))[0]
    assert "Bitcoin (BTC) - Type: crypto" in found
    none = (await call(mcp, "search_assets", query="zzz"))[0]
    assert none == 'No assets found matching "zzz"'
    details = (await call(mcp, "get_asset_details", asset_id="ETH"))[0]
    assert details.startswith("Asset Information: Ethereum")
    missing = (await call(mcp, "get_asset_details", asset_id="DOGE"))[0]
    assert missing == 'Asset "DOGE" not found'


@pytest.mark.asyncio
async def test_analysis_tool(mcp):
    text = (await call(mcp, "analyze_price_data", currency_pair="BTC-USD", metrics=["support_resistance"]))[0]
    assert "Price Analysis for BTC-USD (1d):" in text
    assert "Trend: bullish" in text
    assert "Support Level: $46,060.00" in text


@pytest.mark.asyncio
async def test_wallet_tools_round_trip(mcp):
    calc = await call_json(mcp, "calculate_beer_cost", currency="BTC", beer_count=2)
    assert calc["usdAmount"] == 10
    assert calc["cryptoAmount"] == pytest.approx(0.0002)

    tx = await call_json(mcp, "simulate_purchase", to_currency="BTC", amount=100)
    assert tx["type"] == "buy"
    assert tx["fromCurrency"] == "USD"

    wallet = await call_json(mcp, "get_wallet")
    assert wallet["balances"]["USD"] == pytest.approx(900)

    history = [json.loads(t) for t in await call(mcp, "get_transaction_history", limit=5)]
    assert [h["id"] for h in history] == [tx["id"]]

    beer = await call_json(mcp, "buy_virtual_beer", quantity=1, currency="BTC")
    assert beer["success"] is True
    assert beer["data"]["toCurrency"] == "BEER"

    stats = await call_json(mcp, "get_wallet_stats")
    assert stats["totalTransactions"] == 2
    assert stats["totalCryptoBought"]["BTC"] == pytest.approx(0.002)

    reset = await call_json(mcp, "reset_wallet")
    assert reset["message"] == "Wallet reset to initial state"
    assert reset["data"]["balances"]["USD"] == 1000


@pytest.mark.asyncio
async def test_tool_errors_surface(mcp):
    with pytest.raises(ToolError, match="Insufficient USD balance"):
        await mcp.call_tool("simulate_purchase", {"to_currency": "BTC", "amount": 5000})
    with pytest.raises(ToolError, match="Invalid currency pair"):
        await mcp.call_tool("get_spot_price", {"currency_pair": "BTCUSD"})


@pytest.mark.asyncio
async def test_resources(mcp):
    overview = list(await mcp.read_resource("coinbase://market/overview"))[0].content
    assert overview.startswith("Coinbase Market Overview")
    assert "BTC-USD: $50000.0 USD" in overview
    # SOL-USD has no fake price; it is skipped rather than failing the resource.
    assert "SOL-USD" not in overview

    asset = list(await mcp.read_resource("coinbase://assets/BTC"))[0].content
    assert "Asset Information: Bitcoin" in asset


@pytest.mark.asyncio
async def test_prompts(mcp):
    names = {prompt.name for prompt in await mcp.list_prompts()}
    assert names == {"analyze-crypto-price", "compare-cryptocurrencies", "portfolio-diversification-advice"}
    result = await mcp.get_prompt("compare-cryptocurrencies", {"currencies": "BTC-USD, ETH-USD"})
    assert "BTC-USD, ETH-USD" in result.messages[0].content.text
