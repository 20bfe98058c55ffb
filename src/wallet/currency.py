"""Currency code canonicalization shared by the ledger and the adapters."""

from __future__ import annotations

import re
from typing import Tuple

from .errors import InvalidCurrencyError

QUOTE_CURRENCY = "USD"

_CODE_RE = re.compile(r"^[A-Z0-9]{2,10}$")


def normalize_currency(code: str | None) -> str:
    """Uppercase and validate a currency code such as ``btc`` -> ``BTC``."""
    if not isinstance(code, str):
        raise InvalidCurrencyError(f"Currency code must be a string, got {code!r}")
    normalized = code.strip().upper()
    if not _CODE_RE.match(normalized):
        raise InvalidCurrencyError(f"Invalid currency code: {code!r}")
    return normalized


def usd_pair(code: str) -> str:
    return f"{normalize_currency(code)}-{QUOTE_CURRENCY}"


def split_pair(pair: str | None) -> Tuple[str, str]:
    if not isinstance(pair, str) or pair.count("-") != 1:
        raise InvalidCurrencyError(f"Invalid currency pair: {pair!r} (expected BASE-QUOTE, e.g. BTC-USD)")
    base, quote = pair.split("-")
    return normalize_currency(base), normalize_currency(quote)


def normalize_pair(pair: str | None) -> str:
    base, quote = split_pair(pair)
    return f"{base}-{quote}"
