"""24-hour price analysis computed from a spot price and the market stats."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Literal, Mapping, Optional

Trend = Literal["bullish", "bearish", "sideways"]

METRICS = ("volatility", "trend", "support_resistance", "volume")
DEFAULT_METRICS = ("volatility", "trend")
PERIODS = ("1d", "7d", "30d", "1y")

# Percent move over 24h that counts as a trend.
TREND_THRESHOLD = 2.0


@dataclass(frozen=True)
class PriceAnalysis:
    current_price: float
    volatility: float
    trend: Trend
    price_change_24h: float
    price_change_percent_24h: float
    support_level: Optional[float] = None
    resistance_level: Optional[float] = None
    volume_24h: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentPrice": self.current_price,
            "volatility": self.volatility,
            "trend": self.trend,
            "supportLevel": self.support_level,
            "resistanceLevel": self.resistance_level,
            "volume24h": self.volume_24h,
            "priceChange24h": self.price_change_24h,
            "priceChangePercent24h": self.price_change_percent_24h,
        }


def filter_metrics(metrics: Iterable[str] | None) -> list[str]:
    """Keep known metric names; ``None`` or an empty selection means the defaults."""
    if not metrics:
        return list(DEFAULT_METRICS)
    selected = [m.strip() for m in metrics if m and m.strip() in METRICS]
    return selected or list(DEFAULT_METRICS)


def analyze_price(current_price: float, stats: Mapping[str, Any], metrics: Iterable[str] | None = None) -> PriceAnalysis:
    selected = set(filter_metrics(metrics))
    open_ = float(stats["open"])
    high = float(stats["high"])
    low = float(stats["low"])

    change = current_price - open_
    change_pct = (change / open_) * 100 if open_ else 0.0
    volatility = ((high - low) / open_) * 100 if open_ else 0.0

    trend: Trend = "sideways"
    if change_pct > TREND_THRESHOLD:
        trend = "bullish"
    elif change_pct < -TREND_THRESHOLD:
        trend = "bearish"

    with_levels = "support_resistance" in selected
    return PriceAnalysis(
        current_price=current_price,
        volatility=volatility,
        trend=trend,
        price_change_24h=change,
        price_change_percent_24h=change_pct,
        support_level=low * 0.98 if with_levels else None,
        resistance_level=high * 1.02 if with_levels else None,
        volume_24h=float(stats.get("volume", 0.0)) if "volume" in selected else None,
    )
