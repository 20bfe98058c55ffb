"""Build the Coinbase client and demo wallet from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from src.coinbase.client import CoinbaseClient
from src.coinbase.rate_limit import RateLimiter
from src.wallet.ledger import DEFAULT_BALANCES, DemoWallet

logger = logging.getLogger(__name__)


@dataclass
class Services:
    market: CoinbaseClient
    wallet: DemoWallet


def make_coinbase_client() -> CoinbaseClient:
    api_url = os.getenv("COINBASE_API_URL")
    timeout = float(os.getenv("COINBASE_TIMEOUT", "10"))
    per_minute = int(os.getenv("COINBASE_MAX_REQUESTS_PER_MINUTE", "100"))
    return CoinbaseClient(
        api_url=api_url,
        timeout=timeout,
        rate_limiter=RateLimiter(max_requests=per_minute, window_seconds=60),
    )


def make_wallet(price_source: CoinbaseClient) -> DemoWallet:
    balances = dict(DEFAULT_BALANCES)
    start_usd = os.getenv("WALLET_START_USD")
    if start_usd:
        balances["USD"] = float(start_usd)
    return DemoWallet(price_source, starting_balances=balances)


def build_services() -> Services:
    market = make_coinbase_client()
    wallet = make_wallet(market)
    logger.info("Services ready: coinbase=%s wallet_usd=%s", market.base_url, wallet.get_balance("USD"))
    return Services(market=market, wallet=wallet)
