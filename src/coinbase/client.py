"""Blocking client for the public (unauthenticated) Coinbase ``/v2`` endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from src.utils.telemetry import span

from .analysis import PriceAnalysis, analyze_price
from .errors import CoinbaseAPIError, CoinbaseError
from .rate_limit import RateLimiter

DEFAULT_API_URL = "https://api.coinbase.com/v2"
USER_AGENT = "coinbase-beer-wallet/1.0"

POPULAR_PAIRS: List[str] = [
    "BTC-USD", "ETH-USD", "LTC-USD", "BCH-USD", "ADA-USD",
    "DOT-USD", "UNI-USD", "LINK-USD", "XLM-USD", "USDC-USD",
    "AAVE-USD", "SOL-USD", "MATIC-USD", "AVAX-USD", "ALGO-USD",
]

logger = logging.getLogger(__name__)


def _error_message(response: requests.Response) -> tuple[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or "Coinbase API error", None
    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"]), body
        errors = body.get("errors") or []
        if errors and isinstance(errors[0], dict) and errors[0].get("message"):
            return str(errors[0]["message"]), body
    return response.reason or "Coinbase API error", body


class CoinbaseClient:
    """Thin wrapper over ``requests`` with a client-side rate limit and typed errors.

    Methods return the decoded JSON payloads unchanged so the REST layer can pass
    them straight through.
    """

    def __init__(
        self,
        api_url: str | None = None,
        timeout: float = 10.0,
        rate_limiter: RateLimiter | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (api_url or DEFAULT_API_URL).rstrip("/")
        self.timeout = timeout
        self.rate_limiter = rate_limiter or RateLimiter(max_requests=100, window_seconds=60)
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})

    def _get(self, path: str, action: str, params: Dict[str, Any] | None = None) -> Any:
        self.rate_limiter.acquire("coinbase")
        url = f"{self.base_url}{path}"
        logger.debug("GET %s params=%s", url, params)
        try:
            with span("coinbase_get", {"path": path}):
                resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CoinbaseError(f"{action}: {exc}") from exc
        if resp.status_code >= 400:
            message, body = _error_message(resp)
            logger.warning("Coinbase %s -> %s: %s", path, resp.status_code, message)
            raise CoinbaseAPIError(message, resp.status_code, body)
        try:
            return resp.json()
        except ValueError as exc:
            raise CoinbaseError(f"{action}: invalid JSON response") from exc

    def get_spot_price(self, currency_pair: str) -> Dict[str, Any]:
        return self._get(f"/prices/{currency_pair}/spot", "Failed to fetch spot price")

    def get_historical_prices(
        self, currency_pair: str, start: Optional[str] = None, end: Optional[str] = None, period: str = "day"
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"period": period}
        if start:
            params["start"] = start
        if end:
            params["end"] = end
        return self._get(f"/prices/{currency_pair}/historic", "Failed to fetch historical prices", params)

    def get_exchange_rates(self, currency: str) -> Dict[str, Any]:
        return self._get("/exchange-rates", "Failed to fetch exchange rates", {"currency": currency})

    def get_currencies(self) -> Dict[str, Any]:
        return self._get("/currencies", "Failed to fetch currencies")

    def get_stats(self, currency_pair: str) -> Dict[str, Any]:
        return self._get(f"/prices/{currency_pair}/stats", "Failed to fetch market stats")

    def get_time(self) -> Dict[str, Any]:
        return self._get("/time", "Failed to fetch server time")

    def search_assets(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        term = query.lower()
        matches = [
            asset
            for asset in self.get_currencies().get("data", [])
            if any(term in str(asset.get(key) or "").lower() for key in ("name", "code", "id"))
        ]
        return matches[: max(limit, 0)]

    def get_asset_details(self, asset_id: str) -> Optional[Dict[str, Any]]:
        wanted = asset_id.lower()
        for asset in self.get_currencies().get("data", []):
            if wanted in (str(asset.get("id") or "").lower(), str(asset.get("code") or "").lower()):
                return asset
        return None

    def analyze_price_data(
        self, currency_pair: str, period: str = "1d", metrics: Optional[Sequence[str]] = None
    ) -> PriceAnalysis:
        # Only 24h stats are available publicly; ``period`` is informational.
        spot = self.get_spot_price(currency_pair)
        stats = self.get_stats(currency_pair)
        logger.debug("analyze_price_data pair=%s period=%s metrics=%s", currency_pair, period, metrics)
        return analyze_price(float(spot["data"]["amount"]), stats["data"], metrics)

    def get_popular_pairs(self) -> List[str]:
        return list(POPULAR_PAIRS)
