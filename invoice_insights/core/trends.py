"""
Fixed-length trend series for dashboard charts.

Buckets always span a lookback ending at ``now`` regardless of the caller's
date filter, so chart axes keep a constant length.

Boundary rules differ by granularity and both are kept as-is:
monthly buckets include their whole last calendar day (``[first, last]``
compared by date) while daily buckets are half-open instants
(``[start, end)``).
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from .currency import percentage
from invoice_insights.storage.models import ClientRecord, InvoiceRecord, as_utc

MONTHLY_BUCKETS = 6
DAILY_BUCKETS = 30


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _shift_month(year: int, month: int, offset: int) -> date:
    index = year * 12 + (month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)


@dataclass(frozen=True)
class MonthBucket:
    """One calendar month, inclusive of its last day."""
    first_day: date
    last_day: date

    @property
    def label(self) -> str:
        return self.first_day.strftime("%Y-%m")

    def contains(self, timestamp: datetime) -> bool:
        return self.first_day <= as_utc(timestamp).date() <= self.last_day


@dataclass(frozen=True)
class DayBucket:
    """One calendar day as a half-open interval of instants."""
    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return self.start.strftime("%Y-%m-%d")

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= as_utc(timestamp) < self.end


def monthly_buckets(now: Optional[datetime] = None, count: int = MONTHLY_BUCKETS) -> List[MonthBucket]:
    """Calendar months ending with the current one, oldest first."""
    current = as_utc(now or _utc_now())
    buckets = []
    for offset in range(count - 1, -1, -1):
        first_day = _shift_month(current.year, current.month, -offset)
        next_first = _shift_month(first_day.year, first_day.month, 1)
        buckets.append(MonthBucket(first_day=first_day, last_day=next_first - timedelta(days=1)))
    return buckets


def daily_buckets(now: Optional[datetime] = None, count: int = DAILY_BUCKETS) -> List[DayBucket]:
    """Calendar days ending with today, oldest first."""
    today = as_utc(now or _utc_now()).date()
    buckets = []
    for offset in range(count - 1, -1, -1):
        day = today - timedelta(days=offset)
        start = datetime.combine(day, time.min, tzinfo=timezone.utc)
        buckets.append(DayBucket(start=start, end=start + timedelta(days=1)))
    return buckets


@dataclass(frozen=True)
class MonthlyTrendPoint:
    """Revenue, invoice and client totals for one month."""
    month: str
    revenue: int = 0
    invoices: int = 0
    clients: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "month": self.month,
            "revenue": self.revenue,
            "invoices": self.invoices,
            "clients": self.clients,
        }


@dataclass(frozen=True)
class DailyTrendPoint:
    """Revenue, transaction count and success rate for one day."""
    date: str
    revenue: int = 0
    transactions: int = 0
    success_rate: float = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "date": self.date,
            "revenue": self.revenue,
            "transactions": self.transactions,
            "successRate": self.success_rate,
        }


def _in_bucket(records: Iterable, bucket) -> list:
    return [record for record in records if record.created_at is not None and bucket.contains(record.created_at)]


def monthly_trend(
    invoices: Sequence[InvoiceRecord],
    clients: Sequence[ClientRecord],
    now: Optional[datetime] = None,
) -> List[MonthlyTrendPoint]:
    """Six-month revenue trend over the unfiltered snapshot.

    Returns:
        Exactly six points, oldest first, zero-filled for empty months
    """
    points = []
    for bucket in monthly_buckets(now):
        month_invoices = _in_bucket(invoices, bucket)
        points.append(MonthlyTrendPoint(
            month=bucket.label,
            revenue=sum(invoice.amount for invoice in month_invoices if invoice.is_paid),
            invoices=len(month_invoices),
            clients=len(_in_bucket(clients, bucket)),
        ))
    return points


def daily_trend(
    invoices: Sequence[InvoiceRecord],
    now: Optional[datetime] = None,
) -> List[DailyTrendPoint]:
    """Thirty-day payment trend over the unfiltered snapshot.

    Returns:
        Exactly thirty points, oldest first, zero-filled for empty days
    """
    points = []
    for bucket in daily_buckets(now):
        day_invoices = _in_bucket(invoices, bucket)
        paid = [invoice for invoice in day_invoices if invoice.is_paid]
        points.append(DailyTrendPoint(
            date=bucket.label,
            revenue=sum(invoice.amount for invoice in paid),
            transactions=len(day_invoices),
            success_rate=percentage(len(paid), len(day_invoices), places=1),
        ))
    return points


def client_acquisition(trend: Sequence[MonthlyTrendPoint]) -> List[Dict[str, object]]:
    """New clients per month, derived from the monthly trend."""
    return [{"month": point.month, "newClients": point.clients} for point in trend]
