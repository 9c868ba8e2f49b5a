"""
Report assembly for the analytics, payments and dashboard pages.

Combines overview, trend and breakdown calculations into the payloads
consumed by charts and exports. Assembly is pure; the service at the
bottom is the only part that talks to the record store.

Report shapes:
- analytics: {overview, revenueTrend, projectStatus, clientAcquisition, paymentMethods}
- payments:  {overview, paymentTrend, paymentMethods}
- dashboard: {stats, recentInvoices}
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Union

from .breakdown import (
    AmountTierStrategy,
    FixedShareStrategy,
    MethodSlice,
    PaymentMethodStrategy,
    StatusSlice,
    project_status,
)
from .overview import (
    DashboardStats,
    OverviewMetrics,
    PaymentOverview,
    compute_dashboard_stats,
    compute_overview,
    compute_payment_overview,
    newest_first,
)
from .trends import (
    DailyTrendPoint,
    MonthlyTrendPoint,
    client_acquisition,
    daily_trend,
    monthly_trend,
)
from invoice_insights.storage.models import ClientRecord, DateWindow, InvoiceRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyticsReport:
    """Aggregated metrics for the analytics and dashboard pages."""
    overview: OverviewMetrics
    revenue_trend: List[MonthlyTrendPoint]
    project_status: List[StatusSlice] = field(default_factory=list)
    payment_methods: List[MethodSlice] = field(default_factory=list)

    @property
    def client_acquisition(self) -> List[Dict[str, object]]:
        return client_acquisition(self.revenue_trend)

    def to_dict(self) -> Dict[str, object]:
        return {
            "overview": self.overview.to_dict(),
            "revenueTrend": [point.to_dict() for point in self.revenue_trend],
            "projectStatus": [item.to_dict() for item in self.project_status],
            "clientAcquisition": self.client_acquisition,
            "paymentMethods": [item.to_dict() for item in self.payment_methods],
        }


@dataclass(frozen=True)
class PaymentsReport:
    """Aggregated metrics for the payments page."""
    overview: PaymentOverview
    payment_trend: List[DailyTrendPoint]
    payment_methods: List[MethodSlice] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "overview": self.overview.to_dict(),
            "paymentTrend": [point.to_dict() for point in self.payment_trend],
            "paymentMethods": [item.to_dict() for item in self.payment_methods],
        }


RECENT_INVOICES = 5


@dataclass(frozen=True)
class DashboardReport:
    """All-time stats and the latest invoices for the admin dashboard."""
    stats: DashboardStats
    recent_invoices: List[InvoiceRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "stats": self.stats.to_dict(),
            "recentInvoices": [_recent_invoice(invoice) for invoice in self.recent_invoices],
        }


def _recent_invoice(invoice: InvoiceRecord) -> Dict[str, object]:
    return {
        "id": invoice.id,
        "number": f"INV-{invoice.id[:8]}",
        "clientName": invoice.client_name or "Unknown Client",
        "total": invoice.amount,
        "status": invoice.status.value,
        "createdAt": invoice.created_at.isoformat(),
    }


Report = Union[AnalyticsReport, PaymentsReport, DashboardReport]


def build_analytics_report(
    invoices: Sequence[InvoiceRecord],
    clients: Sequence[ClientRecord],
    *,
    trend_invoices: Optional[Sequence[InvoiceRecord]] = None,
    trend_clients: Optional[Sequence[ClientRecord]] = None,
    method_strategy: Optional[PaymentMethodStrategy] = None,
    now: Optional[datetime] = None,
) -> AnalyticsReport:
    """Build the analytics report from a snapshot.

    Args:
        invoices: Invoices filtered to the caller's window
        clients: Clients filtered to the caller's window
        trend_invoices: Unfiltered invoices for the trend (defaults to ``invoices``)
        trend_clients: Unfiltered clients for the trend (defaults to ``clients``)
        method_strategy: Payment-method estimator (defaults to fixed shares)
        now: End of the trend lookback

    Returns:
        AnalyticsReport
    """
    strategy = method_strategy or FixedShareStrategy()
    return AnalyticsReport(
        overview=compute_overview(invoices, clients),
        revenue_trend=monthly_trend(
            invoices if trend_invoices is None else trend_invoices,
            clients if trend_clients is None else trend_clients,
            now=now,
        ),
        project_status=project_status(invoices),
        payment_methods=strategy.breakdown(invoices),
    )


def build_payments_report(
    invoices: Sequence[InvoiceRecord],
    *,
    trend_invoices: Optional[Sequence[InvoiceRecord]] = None,
    method_strategy: Optional[PaymentMethodStrategy] = None,
    now: Optional[datetime] = None,
) -> PaymentsReport:
    """Build the payments report from a snapshot.

    Method slices are listed in the order their newest invoice appears.

    Args:
        invoices: Invoices filtered to the caller's window
        trend_invoices: Unfiltered invoices for the trend (defaults to ``invoices``)
        method_strategy: Payment-method estimator (defaults to amount tiers)
        now: End of the trend lookback

    Returns:
        PaymentsReport
    """
    strategy = method_strategy or AmountTierStrategy()
    return PaymentsReport(
        overview=compute_payment_overview(invoices),
        payment_trend=daily_trend(
            invoices if trend_invoices is None else trend_invoices,
            now=now,
        ),
        payment_methods=strategy.breakdown(newest_first(invoices)),
    )


def empty_analytics_report(now: Optional[datetime] = None) -> AnalyticsReport:
    """All-zero analytics report with full-length trends."""
    return build_analytics_report([], [], now=now)


def empty_payments_report(now: Optional[datetime] = None) -> PaymentsReport:
    """All-zero payments report with full-length trends."""
    return build_payments_report([], now=now)


def build_dashboard_report(
    invoices: Sequence[InvoiceRecord],
    clients: Sequence[ClientRecord],
    now: Optional[datetime] = None,
) -> DashboardReport:
    """Build the dashboard report from the full snapshot."""
    return DashboardReport(
        stats=compute_dashboard_stats(invoices, clients, now=now),
        recent_invoices=newest_first(invoices)[:RECENT_INVOICES],
    )


def empty_dashboard_report(now: Optional[datetime] = None) -> DashboardReport:
    """All-zero dashboard report with no recent invoices."""
    return build_dashboard_report([], [], now=now)


class ReportState(Enum):
    """Lifecycle of a report shown on a page."""
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ReportView:
    """A report together with the state it was produced in.

    LOADING carries no report. FAILED carries the all-zero report and the
    error message. READY carries the computed report.
    """
    state: ReportState
    report: Optional[Report] = None
    error: Optional[str] = None

    @classmethod
    def loading(cls) -> "ReportView":
        return cls(state=ReportState.LOADING)

    @property
    def is_ready(self) -> bool:
        return self.state == ReportState.READY

    def to_dict(self) -> Optional[Dict[str, object]]:
        return self.report.to_dict() if self.report is not None else None


class AnalyticsService:
    """Fetches snapshots from the record store and aggregates them.

    Store failures are logged and turned into FAILED views; nothing is
    retried and each call recomputes from scratch.
    """

    def __init__(
        self,
        repository,
        method_strategy: Optional[PaymentMethodStrategy] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.repository = repository
        self.method_strategy = method_strategy
        self.clock = clock

    def analytics(self, window: DateWindow) -> ReportView:
        """Analytics report for a window, trends over all-time rows."""
        now = self.clock()
        try:
            invoices = self.repository.fetch_invoices(window)
            clients = self.repository.fetch_clients(window)
            all_invoices = self.repository.fetch_invoices()
            all_clients = self.repository.fetch_clients()
        except sqlite3.Error as e:
            logger.error("Failed to fetch analytics data: %s", e)
            return ReportView(
                state=ReportState.FAILED,
                report=empty_analytics_report(now),
                error=str(e),
            )

        report = build_analytics_report(
            invoices,
            clients,
            trend_invoices=all_invoices,
            trend_clients=all_clients,
            method_strategy=self.method_strategy,
            now=now,
        )
        logger.info(
            "Analytics generated: %d invoices, %d clients, revenue %d",
            report.overview.total_invoices,
            report.overview.new_clients,
            report.overview.total_revenue,
        )
        return ReportView(state=ReportState.READY, report=report)

    def payments(self, window: DateWindow) -> ReportView:
        """Payments report for a window, trend over all-time rows."""
        now = self.clock()
        try:
            invoices = self.repository.fetch_invoices(window)
            all_invoices = self.repository.fetch_invoices()
        except sqlite3.Error as e:
            logger.error("Failed to fetch payment data: %s", e)
            return ReportView(
                state=ReportState.FAILED,
                report=empty_payments_report(now),
                error=str(e),
            )

        report = build_payments_report(
            invoices,
            trend_invoices=all_invoices,
            method_strategy=self.method_strategy,
            now=now,
        )
        logger.info(
            "Payment analytics generated: %d invoices, revenue %d",
            len(invoices),
            report.overview.total_revenue,
        )
        return ReportView(state=ReportState.READY, report=report)

    def dashboard(self) -> ReportView:
        """Dashboard report over every invoice and client in the store."""
        now = self.clock()
        try:
            invoices = self.repository.fetch_invoices()
            clients = self.repository.fetch_clients()
        except sqlite3.Error as e:
            logger.error("Failed to fetch dashboard data: %s", e)
            return ReportView(
                state=ReportState.FAILED,
                report=empty_dashboard_report(now),
                error=str(e),
            )

        report = build_dashboard_report(invoices, clients, now=now)
        logger.info(
            "Dashboard stats calculated: %d invoices, %d clients, revenue %d, paid %d",
            report.stats.total_invoices,
            report.stats.total_clients,
            report.stats.total_revenue,
            report.stats.paid_revenue,
        )
        return ReportView(state=ReportState.READY, report=report)
