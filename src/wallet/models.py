"""Value objects for the demo wallet.

``to_dict`` renders the camelCase JSON shape that the HTTP and agent
clients consume.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

TransactionType = Literal["buy", "sell", "transfer"]
TransactionStatus = Literal["completed", "pending", "failed"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(ts: datetime) -> str:
    return ts.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Transaction:
    id: str
    type: TransactionType
    from_currency: str
    to_currency: str
    from_amount: float
    to_amount: float
    price: float
    description: str
    timestamp: datetime
    status: TransactionStatus = "completed"

    def involves(self, currency: str) -> bool:
        return currency in (self.from_currency, self.to_currency)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "fromCurrency": self.from_currency,
            "toCurrency": self.to_currency,
            "fromAmount": self.from_amount,
            "toAmount": self.to_amount,
            "price": self.price,
            "description": self.description,
            "timestamp": _iso(self.timestamp),
            "status": self.status,
        }


@dataclass(frozen=True)
class VirtualItem:
    id: str
    name: str
    emoji: str
    quantity: int
    purchase_price: float
    purchase_currency: str
    purchase_date: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "quantity": self.quantity,
            "purchasePrice": self.purchase_price,
            "purchaseCurrency": self.purchase_currency,
            "purchaseDate": _iso(self.purchase_date),
        }


@dataclass
class Inventory:
    beers: int = 0
    items: List[VirtualItem] = field(default_factory=list)

    def copy(self) -> "Inventory":
        return Inventory(beers=self.beers, items=list(self.items))

    def to_dict(self) -> Dict[str, Any]:
        return {"beers": self.beers, "items": [item.to_dict() for item in self.items]}


@dataclass
class Wallet:
    balances: Dict[str, float]
    transactions: List[Transaction] = field(default_factory=list)
    inventory: Inventory = field(default_factory=Inventory)
    created_at: datetime = field(default_factory=utcnow)
    last_updated: datetime = field(default_factory=utcnow)

    def snapshot(self) -> "Wallet":
        # Transactions and items are frozen, so shallow list copies are enough.
        return replace(
            self,
            balances=dict(self.balances),
            transactions=list(self.transactions),
            inventory=self.inventory.copy(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balances": dict(self.balances),
            "transactions": [tx.to_dict() for tx in self.transactions],
            "inventory": self.inventory.to_dict(),
            "createdAt": _iso(self.created_at),
            "lastUpdated": _iso(self.last_updated),
        }


@dataclass(frozen=True)
class PurchaseCalculation:
    usd_amount: float
    crypto_amount: float
    crypto_currency: str
    current_price: float
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "usdAmount": self.usd_amount,
            "cryptoAmount": self.crypto_amount,
            "cryptoCurrency": self.crypto_currency,
            "currentPrice": self.current_price,
            "description": self.description,
        }


@dataclass(frozen=True)
class BeerPurchaseResult:
    success: bool
    message: str
    transaction: Optional[Transaction] = None
    needs_more_crypto: Optional[bool] = None
    suggested_amount: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.transaction is not None:
            payload["data"] = self.transaction.to_dict()
        if self.needs_more_crypto is not None:
            payload["needsMoreCrypto"] = self.needs_more_crypto
        if self.suggested_amount is not None:
            payload["suggestedAmount"] = self.suggested_amount
        return payload


@dataclass(frozen=True)
class WalletStats:
    total_transactions: int
    total_spent_usd: float
    total_crypto_bought: Dict[str, float]
    portfolio_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTransactions": self.total_transactions,
            "totalSpentUSD": self.total_spent_usd,
            "totalCryptoBought": dict(self.total_crypto_bought),
            "portfolioValue": self.portfolio_value,
        }
