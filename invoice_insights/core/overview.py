"""
Overview metrics for the dashboard headline cards.

Reduces an already window-filtered snapshot to a single summary.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from .currency import percentage, round_half_up
from .trends import monthly_buckets
from invoice_insights.storage.models import ClientRecord, InvoiceRecord, as_utc

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class OverviewMetrics:
    """Headline totals for the analytics and dashboard pages."""
    total_revenue: int = 0
    new_clients: int = 0
    total_invoices: int = 0
    paid_invoices: int = 0
    unpaid_invoices: int = 0
    completion_rate: int = 0
    average_payment_time: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalRevenue": self.total_revenue,
            "newClients": self.new_clients,
            "totalInvoices": self.total_invoices,
            "paidInvoices": self.paid_invoices,
            "completionRate": self.completion_rate,
            "averagePaymentTime": self.average_payment_time,
        }


@dataclass(frozen=True)
class PaymentOverview:
    """Headline totals for the payments page.

    The schema has no failed or refunded state, so those stay zero.
    """
    total_revenue: int = 0
    pending_payments: int = 0
    failed_payments: int = 0
    refund_amount: int = 0
    average_transaction_value: int = 0
    success_rate: float = 0

    def to_dict(self) -> Dict[str, float]:
        return {
            "totalRevenue": self.total_revenue,
            "pendingPayments": self.pending_payments,
            "failedPayments": self.failed_payments,
            "refundAmount": self.refund_amount,
            "averageTransactionValue": self.average_transaction_value,
            "successRate": self.success_rate,
        }


def paid_revenue(invoices: Iterable[InvoiceRecord]) -> int:
    """Sum of totals over paid invoices."""
    return sum(invoice.amount for invoice in invoices if invoice.is_paid)


def payment_days(invoice: InvoiceRecord) -> Optional[int]:
    """Whole days from creation to payment, partial days rounded up.

    Returns None when the invoice is unpaid or a timestamp is missing.
    """
    if not invoice.is_paid or invoice.paid_at is None or invoice.created_at is None:
        return None
    elapsed = as_utc(invoice.paid_at) - as_utc(invoice.created_at)
    return math.ceil(elapsed.total_seconds() / SECONDS_PER_DAY)


def average_payment_time(invoices: Iterable[InvoiceRecord]) -> int:
    """Mean of per-invoice payment days, rounded; 0 when nothing qualifies."""
    durations: List[int] = [
        days for days in (payment_days(invoice) for invoice in invoices)
        if days is not None
    ]
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations))


def compute_overview(
    invoices: Sequence[InvoiceRecord],
    clients: Sequence[ClientRecord],
) -> OverviewMetrics:
    """Compute overview metrics for a window-filtered snapshot.

    Args:
        invoices: Invoices already restricted to the caller's window
        clients: Clients already restricted to the caller's window

    Returns:
        OverviewMetrics; all zeros for an empty snapshot
    """
    paid_count = sum(1 for invoice in invoices if invoice.is_paid)
    total_count = len(invoices)

    return OverviewMetrics(
        total_revenue=paid_revenue(invoices),
        new_clients=len(clients),
        total_invoices=total_count,
        paid_invoices=paid_count,
        unpaid_invoices=total_count - paid_count,
        completion_rate=percentage(paid_count, total_count, places=0),
        average_payment_time=average_payment_time(invoices),
    )


def compute_payment_overview(invoices: Sequence[InvoiceRecord]) -> PaymentOverview:
    """Compute payments-page totals for a window-filtered snapshot."""
    paid_count = sum(1 for invoice in invoices if invoice.is_paid)
    revenue = paid_revenue(invoices)
    average_value = round_half_up(revenue / paid_count) if paid_count else 0

    return PaymentOverview(
        total_revenue=revenue,
        pending_payments=len(invoices) - paid_count,
        average_transaction_value=average_value,
        success_rate=percentage(paid_count, len(invoices), places=1),
    )


@dataclass(frozen=True)
class DashboardStats:
    """All-time headline cards for the admin dashboard.

    Unlike the analytics overview, ``total_revenue`` counts every invoice
    regardless of status; paid and unpaid shares are reported separately.
    """
    total_revenue: int = 0
    paid_revenue: int = 0
    unpaid_revenue: int = 0
    total_invoices: int = 0
    paid_invoices: int = 0
    unpaid_invoices: int = 0
    total_clients: int = 0
    completion_rate: int = 0
    average_invoice_value: int = 0
    monthly_growth: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalRevenue": self.total_revenue,
            "paidRevenue": self.paid_revenue,
            "unpaidRevenue": self.unpaid_revenue,
            "totalInvoices": self.total_invoices,
            "paidInvoices": self.paid_invoices,
            "unpaidInvoices": self.unpaid_invoices,
            "totalClients": self.total_clients,
            "completionRate": self.completion_rate,
            "averageInvoiceValue": self.average_invoice_value,
            "monthlyGrowth": self.monthly_growth,
        }


def newest_first(invoices: Iterable[InvoiceRecord]) -> List[InvoiceRecord]:
    """Invoices ordered by creation time, most recent first."""
    return sorted(invoices, key=lambda invoice: as_utc(invoice.created_at), reverse=True)


def monthly_growth(invoices: Sequence[InvoiceRecord], now: Optional[datetime] = None) -> int:
    """Percent change in paid revenue from last calendar month to this one.

    Months are bucketed by invoice creation date, whole last day included.
    Returns 0 when the previous month has no paid revenue.
    """
    previous, current = monthly_buckets(now, count=2)
    previous_revenue = paid_revenue(
        invoice for invoice in invoices if previous.contains(invoice.created_at)
    )
    if previous_revenue <= 0:
        return 0
    current_revenue = paid_revenue(
        invoice for invoice in invoices if current.contains(invoice.created_at)
    )
    change = Decimal(current_revenue - previous_revenue) * 100 / Decimal(previous_revenue)
    return round_half_up(change)


def compute_dashboard_stats(
    invoices: Sequence[InvoiceRecord],
    clients: Sequence[ClientRecord],
    now: Optional[datetime] = None,
) -> DashboardStats:
    """Compute dashboard cards over the full, unfiltered snapshot.

    Args:
        invoices: Every invoice in the store
        clients: Every client in the store
        now: Reference time for the month-over-month growth

    Returns:
        DashboardStats; all zeros for an empty snapshot
    """
    total_count = len(invoices)
    paid_count = sum(1 for invoice in invoices if invoice.is_paid)
    total = sum(invoice.amount for invoice in invoices)
    paid = paid_revenue(invoices)

    return DashboardStats(
        total_revenue=total,
        paid_revenue=paid,
        unpaid_revenue=total - paid,
        total_invoices=total_count,
        paid_invoices=paid_count,
        unpaid_invoices=total_count - paid_count,
        total_clients=len(clients),
        completion_rate=percentage(paid_count, total_count, places=0),
        average_invoice_value=round_half_up(Decimal(total) / total_count) if total_count else 0,
        monthly_growth=monthly_growth(invoices, now),
    )
