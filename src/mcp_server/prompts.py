"""Canned MCP prompts that steer an agent through the market tools."""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from src.services.types import MarketDataService, WalletService


def register(mcp: FastMCP, market: MarketDataService, wallet: WalletService) -> None:
    @mcp.prompt(name="analyze-crypto-price", description="Analyze the price movement and trends of a cryptocurrency")
    def analyze_crypto_price(currency_pair: str, timeframe: str = "1d") -> str:
        return (
            f"Please analyze the price movement of {currency_pair} over the {timeframe} timeframe.\n\n"
            "Use the following tools to gather data:\n"
            "1. get_spot_price - current price\n"
            "2. get_market_stats - 24h statistics\n"
            "3. analyze_price_data - technical analysis\n\n"
            "Cover the current price level and recent change, volatility and trend direction, "
            "support and resistance levels, and overall market sentiment. "
            "Keep the write-up readable for technical and non-technical users."
        )

    @mcp.prompt(name="compare-cryptocurrencies", description="Compare multiple cryptocurrencies across various metrics")
    def compare_cryptocurrencies(currencies: str) -> str:
        pairs = ", ".join(p.strip() for p in currencies.split(",") if p.strip())
        return (
            f"Please compare the following cryptocurrencies: {pairs}\n\n"
            "For each one gather the spot price, the 24-hour market statistics and a price analysis. "
            "Then compare price performance and volatility, trading volume, technical trend and risk. "
            "Present the comparison as a table where possible, followed by a short analysis."
        )

    @mcp.prompt(
        name="portfolio-diversification-advice",
        description="Get advice on cryptocurrency portfolio diversification",
    )
    def portfolio_diversification_advice(risk_tolerance: str, investment_amount: str) -> str:
        return (
            "Please provide cryptocurrency portfolio diversification advice for:\n"
            f"- Risk tolerance: {risk_tolerance}\n"
            f"- Investment amount: ${investment_amount}\n\n"
            "Use get_popular_pairs, analyze_price_data and get_market_stats to ground the advice. "
            "Recommend allocation percentages, candidate assets, and risk management for the given tolerance. "
            "You may use calculate_beer_cost and simulate_purchase to illustrate amounts with the demo wallet."
        )
