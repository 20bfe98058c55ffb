# tests/test_currency.py
import pytest

from src.wallet.currency import normalize_currency, normalize_pair, split_pair, usd_pair
from src.wallet.errors import InvalidCurrencyError, WalletError


@pytest.mark.parametrize("raw,expected", [("btc", "BTC"), (" Eth ", "ETH"), ("usdc", "USDC"), ("1inch", "1INCH")])
def test_normalize_currency(raw, expected):
    assert normalize_currency(raw) == expected


@pytest.mark.parametrize("raw", ["", " ", "b", "BTC!", "BTC USD", None, 42])
def test_normalize_currency_rejects(raw):
    with pytest.raises(InvalidCurrencyError):
        normalize_currency(raw)


def test_invalid_currency_is_value_error():
    # Adapters map ValueError-style wallet errors to bad-request responses.
    with pytest.raises(ValueError):
        normalize_currency("")
    assert issubclass(InvalidCurrencyError, WalletError)


def test_pairs():
    assert usd_pair("sol") == "SOL-USD"
    assert split_pair("btc-eur") == ("BTC", "EUR")
    assert normalize_pair(" eth-usd ") == "ETH-USD"


@pytest.mark.parametrize("pair", ["BTCUSD", "BTC-USD-EUR", "-USD", "BTC-", None])
def test_malformed_pairs(pair):
    with pytest.raises(InvalidCurrencyError):
        normalize_pair(pair)
