"""Exceptions raised by the demo wallet ledger."""

from __future__ import annotations


class WalletError(Exception):
    """Base class for demo wallet failures."""


class InvalidCurrencyError(WalletError, ValueError):
    """Currency code is empty or malformed."""


class InvalidAmountError(WalletError, ValueError):
    """Amount, quantity or unit price is not a positive finite number."""


class UnsupportedPairError(WalletError, ValueError):
    """Exactly one side of a demo trade must be USD."""


class InsufficientFundsError(WalletError, ValueError):
    """Debit would exceed the available balance."""

    def __init__(self, currency: str, available: float, required: float):
        super().__init__(
            f"Insufficient {currency} balance. Available: {available:.2f}, Required: {required:.2f}"
        )
        self.currency = currency
        self.available = available
        self.required = required


class PriceFetchError(WalletError):
    """The price source failed or returned an unusable price."""


class WalletResetError(WalletError):
    """The wallet was reset while a purchase was waiting on its price."""
