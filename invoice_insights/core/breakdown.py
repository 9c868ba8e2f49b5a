"""
Status and payment-method distributions.

The record store has no payment-method column, so method figures are
estimates produced by a pluggable strategy rather than observed data.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from .currency import percentage
from invoice_insights.storage.models import InvoiceRecord, InvoiceStatus

COMPLETED = "Completed"
IN_PROGRESS = "In Progress"
PENDING = "Pending"

# Ordered status taxonomy; PENDING has no schema status mapped to it.
STATUS_COLORS: Tuple[Tuple[str, str], ...] = (
    (COMPLETED, "#10b981"),
    (IN_PROGRESS, "#3b82f6"),
    (PENDING, "#f59e0b"),
)

STATUS_LABELS: Dict[InvoiceStatus, str] = {
    InvoiceStatus.PAID: COMPLETED,
    InvoiceStatus.UNPAID: IN_PROGRESS,
}

BANK_TRANSFER = "Bank Transfer"
CREDIT_CARD = "Credit Card"
E_WALLET = "E-Wallet"


@dataclass(frozen=True)
class StatusSlice:
    status: str
    count: int
    color: str

    def to_dict(self) -> Dict[str, object]:
        return {"status": self.status, "count": self.count, "color": self.color}


@dataclass(frozen=True)
class MethodSlice:
    """Estimated transactions and amount for one payment method."""
    method: str
    count: int
    amount: float
    success_rate: Optional[float] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "method": self.method,
            "count": self.count,
            "amount": self.amount,
        }
        if self.success_rate is not None:
            data["successRate"] = self.success_rate
        return data


def project_status(invoices: Sequence[InvoiceRecord]) -> List[StatusSlice]:
    """Invoice status distribution; zero-count slices are dropped."""
    counts: Dict[str, int] = {}
    for invoice in invoices:
        label = STATUS_LABELS.get(invoice.status, PENDING)
        counts[label] = counts.get(label, 0) + 1

    return [
        StatusSlice(status=label, count=counts[label], color=color)
        for label, color in STATUS_COLORS
        if counts.get(label, 0) > 0
    ]


class PaymentMethodStrategy(Protocol):
    """Produces a payment-method distribution for a set of invoices."""

    name: str

    def breakdown(self, invoices: Sequence[InvoiceRecord]) -> List[MethodSlice]:
        ...


@dataclass(frozen=True)
class MethodShare:
    method: str
    count_share: float
    amount_share: float


DEFAULT_SHARES: Tuple[MethodShare, ...] = (
    MethodShare(BANK_TRANSFER, 0.6, 0.7),
    MethodShare(CREDIT_CARD, 0.3, 0.25),
    MethodShare(E_WALLET, 0.1, 0.05),
)


class FixedShareStrategy:
    """Split paid invoices across methods by fixed proportions.

    Counts are floor-truncated, so they may sum to less than the paid
    count. Emits nothing when no invoice is paid.
    """

    name = "fixed_share"

    def __init__(self, shares: Sequence[MethodShare] = DEFAULT_SHARES):
        for share in shares:
            if not 0 <= share.count_share <= 1 or not 0 <= share.amount_share <= 1:
                raise ValueError(f"Shares for {share.method} must be between 0 and 1")
        self.shares = tuple(shares)

    def breakdown(self, invoices: Sequence[InvoiceRecord]) -> List[MethodSlice]:
        paid = [invoice for invoice in invoices if invoice.is_paid]
        if not paid:
            return []
        revenue = sum(invoice.amount for invoice in paid)
        return [
            MethodSlice(
                method=share.method,
                count=math.floor(len(paid) * share.count_share),
                amount=revenue * share.amount_share,
            )
            for share in self.shares
        ]


class AmountTierStrategy:
    """Guess each invoice's method from its total.

    Large totals count as card payments, small ones as e-wallet, the rest
    as bank transfer. Every invoice is counted regardless of status.
    """

    name = "amount_tier"

    def __init__(self, card_above: int = 10_000_000, wallet_below: int = 1_000_000):
        if wallet_below > card_above:
            raise ValueError("wallet_below must not exceed card_above")
        self.card_above = card_above
        self.wallet_below = wallet_below

    def classify(self, invoice: InvoiceRecord) -> str:
        if invoice.total and invoice.total > self.card_above:
            return CREDIT_CARD
        if invoice.total and invoice.total < self.wallet_below:
            return E_WALLET
        return BANK_TRANSFER

    def breakdown(self, invoices: Sequence[InvoiceRecord]) -> List[MethodSlice]:
        tallies: Dict[str, List[int]] = {}
        for invoice in invoices:
            tally = tallies.setdefault(self.classify(invoice), [0, 0, 0])
            tally[0] += 1
            tally[1] += invoice.amount
            if invoice.is_paid:
                tally[2] += 1

        return [
            MethodSlice(
                method=method,
                count=count,
                amount=amount,
                success_rate=percentage(succeeded, count, places=1),
            )
            for method, (count, amount, succeeded) in tallies.items()
        ]


STRATEGIES = {
    FixedShareStrategy.name: FixedShareStrategy,
    AmountTierStrategy.name: AmountTierStrategy,
}


def get_strategy(name: str) -> PaymentMethodStrategy:
    """Build a payment-method strategy by name.

    Raises:
        ValueError: If the name is not a known strategy
    """
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown payment method strategy: {name}. Use one of: {sorted(STRATEGIES)}")
