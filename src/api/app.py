"""REST front-door: pass-through Coinbase market data plus the demo wallet endpoints."""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.coinbase.errors import RateLimitError
from src.coinbase.rate_limit import RateLimiter
from src.services.types import MarketDataService, WalletService
from src.utils.telemetry import new_trace_id, set_trace_id
from src.wallet.currency import normalize_currency, normalize_pair
from src.wallet.errors import PriceFetchError, WalletError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class PurchaseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_currency: Optional[str] = Field(None, alias="fromCurrency")
    to_currency: Optional[str] = Field(None, alias="toCurrency")
    amount: Optional[float] = None
    description: Optional[str] = None


class BeerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quantity: int = 1
    currency: str = "BTC"
    price_per_beer: float = Field(5.0, alias="pricePerBeer")


def _status_for(exc: Exception) -> int:
    if isinstance(exc, RateLimitError) or isinstance(exc.__cause__, RateLimitError):
        return 429
    if isinstance(exc, WalletError) and not isinstance(exc, PriceFetchError):
        return 400
    return 500


def _failure(action: str, exc: Exception) -> JSONResponse:
    status = _status_for(exc)
    if status >= 500:
        logger.error("%s: %s", action, exc, exc_info=exc)
    else:
        logger.info("%s: %s", action, exc)
    content: dict = {"error": action, "message": str(exc)}
    retry_after = getattr(exc, "retry_after", None) or getattr(exc.__cause__, "retry_after", None)
    if status == 429 and retry_after is not None:
        content["retryAfter"] = retry_after
    return JSONResponse(status_code=status, content=content)


def guarded(action: str) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Turn any exception raised by a route into the ``{"error", "message"}`` envelope."""

    def decorator(fn: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await fn(*args, **kwargs)
            except StarletteHTTPException:
                raise
            except Exception as exc:  # noqa: BLE001
                return _failure(action, exc)

        return wrapper

    return decorator


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def _split_metrics(metrics: Optional[List[str]]) -> Optional[List[str]]:
    # Accept both ?metrics=a&metrics=b and ?metrics=a,b
    if not metrics:
        return None
    return [m.strip() for item in metrics for m in item.split(",") if m.strip()]


def create_app(
    market: MarketDataService,
    wallet: WalletService,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Coinbase Chat MCP API",
        description="REST API for Coinbase public cryptocurrency data and a simulated demo wallet",
        version="1.0.0",
    )
    app.state.started = time.monotonic()
    app.state.market = market
    app.state.wallet = wallet
    limiter = rate_limiter or RateLimiter(
        max_requests=int(os.getenv("API_RATE_LIMIT", "100")),
        window_seconds=float(os.getenv("API_RATE_WINDOW_SECONDS", str(15 * 60))),
        message="Too many requests from this IP, please try again later.",
    )

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(CORSMiddleware, allow_origins=origins, allow_methods=["*"], allow_headers=["*"])

    @app.middleware("http")
    async def trace_and_limit(request: Request, call_next):
        trace_id = request.headers.get("X-Trace-Id") or new_trace_id()
        set_trace_id(trace_id)
        if request.url.path.startswith("/api/"):
            client = request.client.host if request.client else "anonymous"
            try:
                limiter.acquire(client)
            except RateLimitError as exc:
                response = JSONResponse(
                    status_code=429,
                    content={"error": str(exc), "retryAfter": exc.retry_after},
                )
                response.headers["X-Trace-Id"] = trace_id
                return response
        response = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            label = "API route not found" if request.url.path.startswith("/api/") else "Route not found"
            return JSONResponse(status_code=404, content={"error": label, "path": request.url.path})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request", "message": str(exc.errors())})

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "uptime": round(time.monotonic() - app.state.started, 3),
        }

    # ---------- market data ----------
    @app.get(f"{API_PREFIX}/prices/{{currency_pair}}/spot")
    @app.get(f"{API_PREFIX}/prices/{{currency_pair}}")
    @guarded("Failed to fetch spot price")
    async def spot_price(currency_pair: str):
        return await asyncio.to_thread(market.get_spot_price, normalize_pair(currency_pair))

    @app.get(f"{API_PREFIX}/prices/{{currency_pair}}/historic")
    @app.get(f"{API_PREFIX}/prices/{{currency_pair}}/historical")
    @guarded("Failed to fetch historical prices")
    async def historical_prices(
        currency_pair: str, start: Optional[str] = None, end: Optional[str] = None, period: str = "day"
    ):
        if period not in ("hour", "day"):
            return _bad_request("period must be 'hour' or 'day'")
        return await asyncio.to_thread(
            market.get_historical_prices, normalize_pair(currency_pair), start, end, period
        )

    @app.get(f"{API_PREFIX}/exchange-rates")
    @guarded("Failed to fetch exchange rates")
    async def exchange_rates(currency: Optional[str] = None):
        if not currency:
            return _bad_request("Currency parameter is required")
        return await asyncio.to_thread(market.get_exchange_rates, normalize_currency(currency))

    @app.get(f"{API_PREFIX}/assets/search")
    @guarded("Failed to search assets")
    async def search_assets(query: Optional[str] = None, limit: int = 50):
        if not query:
            return _bad_request("Query parameter is required")
        return {"data": await asyncio.to_thread(market.search_assets, query, limit)}

    @app.get(f"{API_PREFIX}/assets")
    @guarded("Failed to fetch assets")
    async def list_assets(search: Optional[str] = None, limit: int = 50):
        if search:
            return {"data": await asyncio.to_thread(market.search_assets, search, limit)}
        payload = await asyncio.to_thread(market.get_currencies)
        return {**payload, "data": payload.get("data", [])[:limit]}

    @app.get(f"{API_PREFIX}/assets/{{asset_id}}")
    @guarded("Failed to fetch asset details")
    async def asset_details(asset_id: str):
        asset = await asyncio.to_thread(market.get_asset_details, asset_id)
        if asset is None:
            return JSONResponse(status_code=404, content={"error": "Asset not found"})
        return {"data": asset}

    @app.get(f"{API_PREFIX}/markets/{{currency_pair}}/stats")
    @guarded("Failed to fetch market stats")
    async def market_stats(currency_pair: str):
        return await asyncio.to_thread(market.get_stats, normalize_pair(currency_pair))

    @app.get(f"{API_PREFIX}/popular-pairs")
    @guarded("Failed to fetch popular pairs")
    async def popular_pairs():
        return {"data": market.get_popular_pairs()}

    @app.get(f"{API_PREFIX}/analysis/{{currency_pair}}")
    @guarded("Failed to analyze price data")
    async def analysis(currency_pair: str, period: str = "1d", metrics: Optional[List[str]] = Query(None)):
        result = await asyncio.to_thread(
            market.analyze_price_data, normalize_pair(currency_pair), period, _split_metrics(metrics)
        )
        return {"data": result.to_dict()}

    # ---------- demo wallet ----------
    @app.get(f"{API_PREFIX}/wallet/calculate-beer-cost")
    @guarded("Failed to calculate beer cost")
    async def calculate_beer_cost(
        currency: str = "BTC",
        beer_count: int = Query(1, alias="beerCount"),
        price_per_beer: float = Query(5.0, alias="pricePerBeer"),
    ):
        calculation = await wallet.calculate_beer_cost(currency, beer_count, price_per_beer)
        return {"data": calculation.to_dict()}

    @app.post(f"{API_PREFIX}/wallet/purchase")
    @guarded("Failed to simulate purchase")
    async def purchase(body: PurchaseRequest):
        if not body.from_currency or not body.to_currency or not body.amount:
            return _bad_request("Missing required fields: fromCurrency, toCurrency, amount")
        tx = await wallet.simulate_purchase(body.from_currency, body.to_currency, body.amount, body.description)
        return {"data": tx.to_dict()}

    @app.get(f"{API_PREFIX}/wallet")
    @guarded("Failed to fetch wallet")
    async def get_wallet():
        snapshot = wallet.get_wallet()
        stats = await wallet.get_wallet_stats()
        return {"data": {"wallet": snapshot.to_dict(), "stats": stats.to_dict()}}

    @app.get(f"{API_PREFIX}/wallet/transactions")
    @guarded("Failed to fetch transactions")
    async def transactions(limit: int = 10, currency: Optional[str] = None):
        return {"data": [tx.to_dict() for tx in wallet.get_transaction_history(limit, currency)]}

    @app.get(f"{API_PREFIX}/wallet/inventory")
    @guarded("Failed to fetch inventory")
    async def inventory():
        return {"data": wallet.get_inventory().to_dict()}

    @app.post(f"{API_PREFIX}/wallet/reset")
    @guarded("Failed to reset wallet")
    async def reset():
        wallet.reset_wallet()
        return {"data": wallet.get_wallet().to_dict(), "message": "Wallet reset to initial state"}

    @app.post(f"{API_PREFIX}/wallet/buy-beer")
    @guarded("Failed to buy virtual beer")
    async def buy_beer(body: Optional[BeerRequest] = None):
        body = body or BeerRequest()
        result = await wallet.buy_virtual_beer(body.quantity, body.currency, body.price_per_beer)
        return result.to_dict()

    return app
