"""In-memory demo wallet: simulated balances, a transaction log, and price-based conversion."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from src.utils.telemetry import span

from .currency import QUOTE_CURRENCY, normalize_currency, usd_pair
from .errors import (
    InsufficientFundsError,
    InvalidAmountError,
    PriceFetchError,
    UnsupportedPairError,
    WalletResetError,
)
from .models import (
    BeerPurchaseResult,
    Inventory,
    PurchaseCalculation,
    Transaction,
    VirtualItem,
    Wallet,
    WalletStats,
    utcnow,
)

logger = logging.getLogger(__name__)

DEFAULT_BALANCES: Dict[str, float] = {"USD": 1000.0, "BTC": 0.0, "ETH": 0.0, "USDC": 0.0}
BEER = "BEER"


def _new_tx_id() -> str:
    return f"tx_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def _plural(count: int) -> str:
    return "s" if count != 1 else ""


def _require_positive(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidAmountError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmountError(f"{name} must be positive, got {value!r}")
    return float(value)


def _spot_amount(payload: Mapping[str, Any]) -> float:
    # Accept both the Coinbase envelope and a bare {"amount": ...} record.
    data = payload.get("data", payload) if isinstance(payload, Mapping) else None
    if not isinstance(data, Mapping) or "amount" not in data:
        raise ValueError(f"unexpected spot price payload: {payload!r}")
    price = float(data["amount"])
    if not math.isfinite(price) or price <= 0:
        raise ValueError(f"non-positive spot price {data['amount']!r}")
    return price


class DemoWallet:
    """Simulated wallet for demos like "buy a beer's worth of Bitcoin".

    The price source is any object with ``get_spot_price(pair)``; it is called
    off the event loop, which makes the fetch the only suspension point of a
    mutating operation. Mutations run under ``self._lock`` and re-validate
    balances after the fetch.
    """

    def __init__(self, price_source: Any, starting_balances: Mapping[str, float] | None = None):
        self.price_source = price_source
        seed = DEFAULT_BALANCES if starting_balances is None else starting_balances
        self._seed = {normalize_currency(code): float(amount) for code, amount in seed.items()}
        self._lock = asyncio.Lock()
        self._generation = 0
        self._wallet = self._initial_wallet()

    def _initial_wallet(self) -> Wallet:
        now = utcnow()
        return Wallet(balances=dict(self._seed), created_at=now, last_updated=now)

    # ---------- reads ----------
    def get_wallet(self) -> Wallet:
        return self._wallet.snapshot()

    def get_balance(self, currency: str) -> float:
        return self._wallet.balances.get(normalize_currency(currency), 0.0)

    def get_inventory(self) -> Inventory:
        return self._wallet.inventory.copy()

    def get_transaction_history(self, limit: int = 10, currency: Optional[str] = None) -> List[Transaction]:
        transactions = self._wallet.transactions
        if currency:
            code = normalize_currency(currency)
            transactions = [tx for tx in transactions if tx.involves(code)]
        return list(transactions[: max(limit, 0)])

    # ---------- prices ----------
    async def _fetch_price(self, currency: str) -> float:
        pair = usd_pair(currency)
        with span("price_fetch", {"pair": pair}):
            payload = await asyncio.to_thread(self.price_source.get_spot_price, pair)
        return _spot_amount(payload)

    async def calculate_beer_cost(
        self, currency: str = "BTC", beer_count: int = 1, price_per_beer: float = 5.0
    ) -> PurchaseCalculation:
        code = normalize_currency(currency)
        usd_amount = _require_positive("beer_count", beer_count) * _require_positive("price_per_beer", price_per_beer)
        try:
            price = await self._fetch_price(code)
        except Exception as exc:  # noqa: BLE001
            raise PriceFetchError(f"Failed to calculate beer cost: {exc}") from exc
        crypto_amount = usd_amount / price
        logger.debug("calculate_beer_cost currency=%s beers=%s usd=%s price=%s", code, beer_count, usd_amount, price)
        return PurchaseCalculation(
            usd_amount=usd_amount,
            crypto_amount=crypto_amount,
            crypto_currency=code,
            current_price=price,
            description=f"{beer_count:g} beer{_plural(beer_count)} 🍺 = {crypto_amount:.8f} {code}",
        )

    # ---------- mutations ----------
    def _check_generation(self, generation: int) -> None:
        if generation != self._generation:
            raise WalletResetError("Wallet was reset while the purchase was in progress")

    def _check_funds(self, currency: str, amount: float) -> None:
        available = self._wallet.balances.get(currency, 0.0)
        if amount > available:
            raise InsufficientFundsError(currency, available, amount)

    async def simulate_purchase(
        self, from_currency: str, to_currency: str, amount: float, description: Optional[str] = None
    ) -> Transaction:
        src = normalize_currency(from_currency)
        dst = normalize_currency(to_currency)
        amount = _require_positive("amount", amount)
        if (src == QUOTE_CURRENCY) == (dst == QUOTE_CURRENCY):
            raise UnsupportedPairError(
                f"Exactly one currency must be {QUOTE_CURRENCY} for demo transactions (got {src}->{dst})"
            )
        generation = self._generation
        self._check_funds(src, amount)

        is_buy = src == QUOTE_CURRENCY
        crypto = dst if is_buy else src
        try:
            price = await self._fetch_price(crypto)
        except Exception as exc:  # noqa: BLE001
            raise PriceFetchError(f"Failed to get price for {usd_pair(crypto)}: {exc}") from exc
        received = amount / price if is_buy else amount * price

        async with self._lock:
            # Balance may have moved while the price was in flight.
            self._check_generation(generation)
            self._check_funds(src, amount)
            tx = Transaction(
                id=_new_tx_id(),
                type="buy" if is_buy else "sell",
                from_currency=src,
                to_currency=dst,
                from_amount=amount,
                to_amount=received,
                price=price,
                description=description or (f"Bought {dst} with {src}" if is_buy else f"Sold {src} for {dst}"),
                timestamp=utcnow(),
            )
            balances = self._wallet.balances
            balances[src] = balances.get(src, 0.0) - amount
            balances[dst] = balances.get(dst, 0.0) + received
            self._wallet.transactions.insert(0, tx)
            self._wallet.last_updated = tx.timestamp
        logger.info("simulate_purchase %s %s->%s received=%s price=%s id=%s", amount, src, dst, received, price, tx.id)
        return tx

    async def buy_virtual_beer(
        self, quantity: int = 1, currency: str = "BTC", price_per_beer: float = 5.0
    ) -> BeerPurchaseResult:
        """Pay for beers directly out of the crypto balance.

        Not having enough crypto is an expected outcome and comes back as
        ``success=False`` with a suggested USD top-up; only price failures raise.
        """
        code = normalize_currency(currency)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidAmountError(f"quantity must be a positive integer, got {quantity!r}")
        total_usd = quantity * _require_positive("price_per_beer", price_per_beer)
        generation = self._generation
        try:
            price = await self._fetch_price(code)
        except Exception as exc:  # noqa: BLE001
            raise PriceFetchError(f"Failed to buy virtual beer: {exc}") from exc
        needed = total_usd / price

        async with self._lock:
            self._check_generation(generation)
            available = self._wallet.balances.get(code, 0.0)
            if available < needed:
                logger.info("buy_virtual_beer short of %s: need=%s have=%s", code, needed, available)
                return BeerPurchaseResult(
                    success=False,
                    needs_more_crypto=True,
                    suggested_amount=total_usd,
                    message=(
                        f"Insufficient {code} balance!\n\n"
                        f"You need: {needed:.8f} {code}\n"
                        f"You have: {available:.8f} {code}\n\n"
                        f"Suggestion: first buy ${total_usd:.2f} worth of {code}, then try again."
                    ),
                )
            tx = Transaction(
                id=_new_tx_id(),
                type="transfer",
                from_currency=code,
                to_currency=BEER,
                from_amount=needed,
                to_amount=float(quantity),
                price=price,
                description=f"🍺 Bought {quantity} virtual beer{_plural(quantity)} with {code}",
                timestamp=utcnow(),
            )
            self._wallet.balances[code] = available - needed
            inventory = self._wallet.inventory
            inventory.beers += quantity
            inventory.items.append(
                VirtualItem(
                    id=tx.id,
                    name="Beer",
                    emoji="🍺",
                    quantity=quantity,
                    purchase_price=needed,
                    purchase_currency=code,
                    purchase_date=tx.timestamp,
                )
            )
            self._wallet.transactions.insert(0, tx)
            self._wallet.last_updated = tx.timestamp
            remaining = self._wallet.balances[code]
            beers = inventory.beers
        logger.info("buy_virtual_beer quantity=%s paid=%s %s id=%s", quantity, needed, code, tx.id)
        return BeerPurchaseResult(
            success=True,
            transaction=tx,
            message=(
                f"🍺 Beer purchase successful!\n\n"
                f"You bought {quantity} virtual beer{_plural(quantity)} for {needed:.8f} {code}\n"
                f"Price: ${price:,.2f} per {code}\n\n"
                f"Total beers in inventory: {beers}\n"
                f"Remaining {code}: {remaining:.8f}"
            ),
        )

    def add_funds(self, currency: str, amount: float) -> None:
        """Credit a balance without a transaction record (seeding and tests only)."""
        code = normalize_currency(currency)
        self._wallet.balances[code] = self._wallet.balances.get(code, 0.0) + float(amount)
        self._wallet.last_updated = utcnow()
        logger.info("add_funds currency=%s amount=%s", code, amount)

    def reset_wallet(self) -> None:
        """Restore the seed balances. Purchases still waiting on a price are abandoned."""
        self._generation += 1
        self._wallet = self._initial_wallet()
        logger.info("reset_wallet balances=%s", self._seed)

    # ---------- stats ----------
    async def get_wallet_stats(self) -> WalletStats:
        transactions = list(self._wallet.transactions)
        total_spent = sum(tx.from_amount for tx in transactions if tx.from_currency == QUOTE_CURRENCY)
        bought: Dict[str, float] = {}
        for tx in transactions:
            if tx.type == "buy" and tx.to_currency != QUOTE_CURRENCY:
                bought[tx.to_currency] = bought.get(tx.to_currency, 0.0) + tx.to_amount
        return WalletStats(
            total_transactions=len(transactions),
            total_spent_usd=total_spent,
            total_crypto_bought=bought,
            portfolio_value=await self._portfolio_value(),
        )

    async def _portfolio_value(self) -> float:
        balances = dict(self._wallet.balances)
        holdings = [(code, amount) for code, amount in balances.items() if code != QUOTE_CURRENCY and amount > 0]
        prices = await asyncio.gather(*(self._fetch_price(code) for code, _ in holdings), return_exceptions=True)
        total = balances.get(QUOTE_CURRENCY, 0.0)
        for (code, amount), price in zip(holdings, prices):
            if isinstance(price, BaseException):
                logger.warning("Could not get price for %s, excluded from portfolio value: %s", code, price)
                continue
            total += amount * price
        return total
