"""Plain-text renderings of Coinbase payloads for agent-facing tool output."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping

from src.coinbase.analysis import PriceAnalysis


def spot_price(currency_pair: str, payload: Mapping[str, Any]) -> str:
    data = payload["data"]
    return f"Current {currency_pair} price: ${data['amount']} {data['currency']}\nBase: {data['base']}"


def _price_point(point: Any) -> tuple[str, str]:
    # Coinbase has shipped both [time, price] pairs and {"time", "price"} records.
    if isinstance(point, Mapping):
        when, price = point.get("time", ""), point.get("price", "")
    else:
        when, price = point[0], point[1]
    try:
        when = datetime.fromisoformat(str(when).replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        when = str(when)
    return when, str(price)


def historical_prices(currency_pair: str, payload: Mapping[str, Any], limit: int = 10) -> str:
    points = payload.get("data", {}).get("prices", [])[:limit]
    lines = [f"{when}: ${price}" for when, price in map(_price_point, points)]
    body = "\n".join(lines) if lines else "(no data)"
    return f"Historical prices for {currency_pair}:\n{body}\n\n(Showing up to {limit} data points)"


def exchange_rates(currency: str, payload: Mapping[str, Any], limit: int = 15) -> str:
    rates = list(payload.get("data", {}).get("rates", {}).items())[:limit]
    body = "\n".join(f"{code}: {rate}" for code, rate in rates)
    return f"Exchange rates for {currency}:\n{body}\n\n(Showing top {limit} rates)"


def asset_line(asset: Mapping[str, Any]) -> str:
    code = asset.get("code") or asset.get("id")
    kind = asset.get("type") or "unknown"
    return f"{asset.get('name')} ({code}) - Type: {kind}"


def asset_search(query: str, assets: List[Dict[str, Any]]) -> str:
    if not assets:
        return f'No assets found matching "{query}"'
    return f'Assets matching "{query}":\n' + "\n".join(asset_line(a) for a in assets)


def asset_details(asset: Mapping[str, Any]) -> str:
    lines = [
        f"Asset Information: {asset.get('name')}",
        "",
        f"Code: {asset.get('code') or asset.get('id')}",
        f"Type: {asset.get('type') or 'unknown'}",
        f"ID: {asset.get('id')}",
    ]
    for key, label in (("slug", "Slug"), ("exponent", "Exponent"), ("color", "Color")):
        if asset.get(key):
            lines.append(f"{label}: {asset[key]}")
    return "\n".join(lines)


def market_stats(currency_pair: str, payload: Mapping[str, Any]) -> str:
    data = payload["data"]
    return (
        f"24-Hour Statistics for {currency_pair}:\n"
        f"Open: ${data['open']}\n"
        f"High: ${data['high']}\n"
        f"Low: ${data['low']}\n"
        f"Volume: {data['volume']}\n"
        f"Last: ${data['last']}"
    )


def popular_pairs(pairs: Iterable[str]) -> str:
    return "Popular Trading Pairs:\n" + "\n".join(pairs)


def _signed(value: float, prefix: str = "", suffix: str = "") -> str:
    sign = "+" if value >= 0 else "-"
    return f"{sign}{prefix}{abs(value):,.2f}{suffix}"


def price_analysis(currency_pair: str, period: str, analysis: PriceAnalysis) -> str:
    lines = [
        f"Price Analysis for {currency_pair} ({period}):",
        "",
        f"Current Price: ${analysis.current_price:,.2f}",
        f"Volatility: {analysis.volatility:.2f}%",
        f"Trend: {analysis.trend}",
    ]
    if analysis.volume_24h is not None:
        lines.append(f"Volume: {analysis.volume_24h:,.2f}")
    if analysis.support_level is not None:
        lines.append(f"Support Level: ${analysis.support_level:,.2f}")
    if analysis.resistance_level is not None:
        lines.append(f"Resistance Level: ${analysis.resistance_level:,.2f}")
    lines += [
        "",
        f"Price Change: {_signed(analysis.price_change_24h, prefix='$')}",
        f"Price Change %: {_signed(analysis.price_change_percent_24h, suffix='%')}",
    ]
    return "\n".join(lines)
