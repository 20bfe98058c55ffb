# tests/test_ledger.py
import asyncio
from collections import defaultdict

import pytest

from src.wallet.errors import (
    InsufficientFundsError,
    InvalidAmountError,
    InvalidCurrencyError,
    PriceFetchError,
    UnsupportedPairError,
    WalletResetError,
)
from src.wallet.ledger import DEFAULT_BALANCES, DemoWallet
from src.wallet.models import Transaction, utcnow


def test_fresh_wallet_has_seed_balances(wallet):
    snapshot = wallet.get_wallet()
    assert snapshot.balances == {"USD": 1000.0, "BTC": 0.0, "ETH": 0.0, "USDC": 0.0}
    assert snapshot.transactions == []
    assert snapshot.inventory.beers == 0
    assert wallet.get_balance("usd") == 1000.0
    assert wallet.get_balance("DOGE") == 0.0


def test_snapshot_is_detached(wallet):
    snapshot = wallet.get_wallet()
    snapshot.balances["USD"] = 0.0
    snapshot.transactions.append("junk")
    assert wallet.get_balance("USD") == 1000.0
    assert wallet.get_transaction_history() == []


@pytest.mark.asyncio
async def test_basic_purchase(wallet):
    tx = await wallet.simulate_purchase("USD", "BTC", 100)
    assert tx.type == "buy"
    assert tx.from_amount == 100
    assert tx.to_amount == pytest.approx(0.002)
    assert tx.price == 50000
    assert tx.status == "completed"
    assert tx.id.startswith("tx_")
    assert wallet.get_balance("USD") == pytest.approx(900)
    assert wallet.get_balance("BTC") == pytest.approx(0.002)
    assert wallet.get_transaction_history()[0] == tx


@pytest.mark.asyncio
async def test_purchase_normalizes_codes_and_keeps_description(wallet):
    tx = await wallet.simulate_purchase(" usd", "eth ", 50, description="lunch money")
    assert (tx.from_currency, tx.to_currency) == ("USD", "ETH")
    assert tx.description == "lunch money"


@pytest.mark.asyncio
async def test_sell_credits_usd(wallet):
    wallet.add_funds("BTC", 0.01)
    tx = await wallet.simulate_purchase("BTC", "USD", 0.004)
    assert tx.type == "sell"
    assert tx.to_amount == pytest.approx(200)
    assert wallet.get_balance("USD") == pytest.approx(1200)
    assert wallet.get_balance("BTC") == pytest.approx(0.006)
    assert tx.description == "Sold BTC for USD"


@pytest.mark.asyncio
async def test_round_trip_returns_usd(wallet):
    before = wallet.get_balance("USD")
    bought = await wallet.simulate_purchase("USD", "BTC", 123.45)
    await wallet.simulate_purchase("BTC", "USD", bought.to_amount)
    assert wallet.get_balance("USD") == pytest.approx(before)
    assert wallet.get_balance("BTC") == pytest.approx(0.0, abs=1e-12)


@pytest.mark.asyncio
async def test_balance_conservation(wallet, prices):
    wallet.add_funds("ETH", 1.0)
    trades = [("USD", "BTC", 100), ("USD", "ETH", 250), ("ETH", "USD", 0.5), ("USD", "BTC", 40)]
    start = dict(wallet.get_wallet().balances)
    debits = defaultdict(float)
    credits = defaultdict(float)
    for src, dst, amount in trades:
        prices.set_price("BTC-USD", prices.prices["BTC-USD"] * 1.01)
        tx = await wallet.simulate_purchase(src, dst, amount)
        debits[tx.from_currency] += tx.from_amount
        credits[tx.to_currency] += tx.to_amount
    end = wallet.get_wallet().balances
    for code in set(start) | set(end):
        assert end.get(code, 0.0) == pytest.approx(start.get(code, 0.0) - debits[code] + credits[code])


@pytest.mark.asyncio
async def test_unsupported_pair_rejected_without_mutation(wallet, prices):
    wallet.add_funds("BTC", 1.0)
    before = wallet.get_wallet()
    with pytest.raises(UnsupportedPairError):
        await wallet.simulate_purchase("BTC", "ETH", 1)
    with pytest.raises(UnsupportedPairError):
        await wallet.simulate_purchase("USD", "USD", 1)
    assert wallet.get_wallet() == before
    assert prices.calls == []


@pytest.mark.asyncio
async def test_insufficient_funds_rejected_without_mutation(wallet, prices):
    before = wallet.get_wallet()
    with pytest.raises(InsufficientFundsError) as excinfo:
        await wallet.simulate_purchase("USD", "BTC", 999999)
    assert "Insufficient USD balance" in str(excinfo.value)
    assert excinfo.value.available == 1000.0
    assert wallet.get_wallet() == before
    assert prices.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5, float("nan"), float("inf"), "100", True])
async def test_invalid_amounts_rejected(wallet, amount):
    with pytest.raises(InvalidAmountError):
        await wallet.simulate_purchase("USD", "BTC", amount)


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["", "B", "BT-C", None, "WAYTOOLONGCODE"])
async def test_invalid_currency_rejected(wallet, code):
    with pytest.raises(InvalidCurrencyError):
        await wallet.simulate_purchase("USD", code, 10)


@pytest.mark.asyncio
async def test_price_failure_leaves_wallet_untouched(wallet, prices):
    prices.fail("BTC-USD")
    before = wallet.get_wallet()
    with pytest.raises(PriceFetchError) as excinfo:
        await wallet.simulate_purchase("USD", "BTC", 100)
    assert "Failed to get price for BTC-USD" in str(excinfo.value)
    assert wallet.get_wallet() == before


@pytest.mark.asyncio
async def test_non_positive_price_is_a_fetch_error(wallet, prices):
    prices.set_price("BTC-USD", 0)
    with pytest.raises(PriceFetchError):
        await wallet.simulate_purchase("USD", "BTC", 100)


@pytest.mark.asyncio
async def test_concurrent_purchases_cannot_overdraw(wallet):
    results = await asyncio.gather(
        wallet.simulate_purchase("USD", "BTC", 600),
        wallet.simulate_purchase("USD", "ETH", 600),
        return_exceptions=True,
    )
    applied = [r for r in results if not isinstance(r, BaseException)]
    failed = [r for r in results if isinstance(r, BaseException)]
    assert len(applied) == 1
    assert len(failed) == 1 and isinstance(failed[0], InsufficientFundsError)
    assert wallet.get_balance("USD") == pytest.approx(400)
    assert len(wallet.get_transaction_history()) == 1


@pytest.mark.asyncio
async def test_beer_cost_calculator(wallet):
    calc = await wallet.calculate_beer_cost("BTC", 2, 5)
    assert calc.usd_amount == 10
    assert calc.crypto_amount == pytest.approx(0.0002)
    assert calc.crypto_currency == "BTC"
    assert calc.current_price == 50000
    assert calc.description == "2 beers 🍺 = 0.00020000 BTC"
    assert wallet.get_transaction_history() == []


@pytest.mark.asyncio
async def test_beer_cost_singular_and_fetch_failure(wallet, prices):
    calc = await wallet.calculate_beer_cost("eth")
    assert calc.description.startswith("1 beer 🍺")
    prices.fail("BTC-USD")
    with pytest.raises(PriceFetchError, match="Failed to calculate beer cost"):
        await wallet.calculate_beer_cost("BTC")


@pytest.mark.asyncio
async def test_buy_beer_without_crypto_is_a_negative_result(wallet):
    before = wallet.get_wallet()
    result = await wallet.buy_virtual_beer(1, "BTC", 5)
    assert result.success is False
    assert result.needs_more_crypto is True
    assert result.suggested_amount == 5
    assert "Insufficient BTC balance" in result.message
    assert wallet.get_wallet() == before
    assert result.to_dict()["needsMoreCrypto"] is True


@pytest.mark.asyncio
async def test_buy_beer_debits_crypto_and_fills_inventory(wallet):
    wallet.add_funds("BTC", 0.001)
    result = await wallet.buy_virtual_beer(2, "btc", 5)
    assert result.success is True
    tx = result.transaction
    assert tx.type == "transfer"
    assert (tx.from_currency, tx.to_currency) == ("BTC", "BEER")
    assert tx.from_amount == pytest.approx(0.0002)
    assert tx.to_amount == 2
    assert wallet.get_balance("BTC") == pytest.approx(0.0008)
    inventory = wallet.get_inventory()
    assert inventory.beers == 2
    assert inventory.items[0].purchase_currency == "BTC"
    assert inventory.items[0].purchase_price == pytest.approx(0.0002)
    assert result.to_dict()["data"]["id"] == tx.id


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
async def test_buy_beer_rejects_bad_quantity(wallet, quantity):
    with pytest.raises(InvalidAmountError):
        await wallet.buy_virtual_beer(quantity)


@pytest.mark.asyncio
async def test_buy_beer_price_failure_raises(wallet, prices):
    wallet.add_funds("BTC", 1)
    prices.fail("BTC-USD")
    with pytest.raises(PriceFetchError, match="Failed to buy virtual beer"):
        await wallet.buy_virtual_beer()
    assert wallet.get_inventory().beers == 0


@pytest.mark.asyncio
async def test_history_filter_and_limit(wallet):
    order = ["BTC", "ETH", "BTC", "ETH", "BTC"]
    txs = [await wallet.simulate_purchase("USD", code, 10) for code in order]
    eth = wallet.get_transaction_history(2, "eth")
    assert eth == [txs[3], txs[1]]
    assert wallet.get_transaction_history(3) == [txs[4], txs[3], txs[2]]
    assert wallet.get_transaction_history(0) == []
    assert len(wallet.get_transaction_history()) == 5


@pytest.mark.asyncio
async def test_reads_are_idempotent(wallet):
    await wallet.simulate_purchase("USD", "BTC", 100)
    assert wallet.get_wallet() == wallet.get_wallet()
    assert wallet.get_balance("BTC") == wallet.get_balance("BTC")
    assert wallet.get_transaction_history() == wallet.get_transaction_history()


@pytest.mark.asyncio
async def test_reset_restores_seed(wallet):
    wallet.add_funds("BTC", 1)
    await wallet.simulate_purchase("USD", "ETH", 100)
    await wallet.buy_virtual_beer(1, "BTC")
    wallet.reset_wallet()
    snapshot = wallet.get_wallet()
    assert snapshot.balances == DEFAULT_BALANCES
    assert snapshot.transactions == []
    assert snapshot.inventory.beers == 0
    assert snapshot.inventory.items == []


def test_custom_starting_balances(prices):
    custom = DemoWallet(prices, starting_balances={"usd": 50})
    assert custom.get_wallet().balances == {"USD": 50.0}
    custom.add_funds("BTC", 1)
    custom.reset_wallet()
    assert custom.get_wallet().balances == {"USD": 50.0}


@pytest.mark.asyncio
async def test_stats_and_best_effort_valuation(wallet, prices):
    await wallet.simulate_purchase("USD", "BTC", 100)
    await wallet.simulate_purchase("USD", "ETH", 50)
    stats = await wallet.get_wallet_stats()
    assert stats.total_transactions == 2
    assert stats.total_spent_usd == pytest.approx(150)
    assert stats.total_crypto_bought == pytest.approx({"BTC": 0.002, "ETH": 0.02})
    assert stats.portfolio_value == pytest.approx(1000)

    prices.fail("BTC-USD")
    stats = await wallet.get_wallet_stats()
    assert stats.portfolio_value == pytest.approx(850 + 0.02 * 2500)
    assert stats.to_dict()["totalSpentUSD"] == pytest.approx(150)


@pytest.mark.asyncio
async def test_beer_transfers_not_counted_as_crypto_bought(wallet):
    wallet.add_funds("BTC", 1)
    await wallet.buy_virtual_beer(3, "BTC")
    stats = await wallet.get_wallet_stats()
    assert stats.total_crypto_bought == {}
    assert stats.total_spent_usd == 0
    assert stats.total_transactions == 1


def test_transaction_dict_shape():
    tx = Transaction("tx_1", "buy", "USD", "BTC", 10.0, 0.0002, 50000.0, "d", utcnow())
    payload = tx.to_dict()
    assert set(payload) == {
        "id", "type", "fromCurrency", "toCurrency", "fromAmount", "toAmount",
        "price", "description", "timestamp", "status",
    }
    assert payload["timestamp"].endswith("Z")


class ResettingPriceSource:
    """Resets the wallet while the price request is in flight."""

    def __init__(self, inner):
        self.inner = inner
        self.wallet = None

    def get_spot_price(self, currency_pair):
        self.wallet.reset_wallet()
        return self.inner.get_spot_price(currency_pair)


@pytest.mark.asyncio
async def test_reset_during_price_fetch_abandons_purchase(prices):
    source = ResettingPriceSource(prices)
    wallet = DemoWallet(source)
    source.wallet = wallet
    with pytest.raises(WalletResetError):
        await wallet.simulate_purchase("USD", "BTC", 100)
    assert wallet.get_balance("USD") == 1000
    assert wallet.get_transaction_history() == []


@pytest.mark.asyncio
async def test_reset_during_beer_price_fetch_abandons_purchase(prices):
    source = ResettingPriceSource(prices)
    wallet = DemoWallet(source, starting_balances={"USD": 1000, "BTC": 1})
    source.wallet = wallet
    with pytest.raises(WalletResetError):
        await wallet.buy_virtual_beer(1, "BTC")
    assert wallet.get_balance("BTC") == 1
    assert wallet.get_inventory().beers == 0


@pytest.mark.asyncio
async def test_purchase_after_reset_still_applies(wallet):
    wallet.reset_wallet()
    tx = await wallet.simulate_purchase("USD", "BTC", 100)
    assert tx.description == "Bought BTC with USD"
    assert wallet.get_balance("USD") == pytest.approx(900)
