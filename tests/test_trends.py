"""
Unit tests for trend buckets.

Tests fixed-length monthly and daily series and their boundary rules.
"""

from datetime import datetime, timedelta, timezone

from invoice_insights.core.trends import (
    DAILY_BUCKETS,
    MONTHLY_BUCKETS,
    client_acquisition,
    daily_buckets,
    daily_trend,
    monthly_buckets,
    monthly_trend,
)
from invoice_insights.storage.models import ClientRecord, InvoiceRecord, InvoiceStatus

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def make_invoice(created_at, total=100000, status=InvoiceStatus.PAID):
    """Create a test invoice."""
    return InvoiceRecord(
        id=f"inv-{created_at.isoformat()}-{total}",
        client_id="c1",
        total=total,
        status=status,
        created_at=created_at,
    )


class TestBuckets:
    """Test bucket generation."""

    def test_monthly_labels_oldest_first(self):
        """Six months ending with the current one."""
        labels = [bucket.label for bucket in monthly_buckets(NOW)]

        assert labels == ["2026-05", "2026-06", "2026-07", "2026-08", "2026-09", "2026-10"]

    def test_monthly_buckets_cross_year(self):
        """Lookback wraps into the previous year."""
        labels = [bucket.label for bucket in monthly_buckets(utc(2026, 2, 10))]

        assert labels == ["2025-09", "2025-10", "2025-11", "2025-12", "2026-01", "2026-02"]

    def test_month_last_day(self):
        """Month buckets end on their last calendar day."""
        buckets = monthly_buckets(utc(2024, 3, 5))

        assert buckets[-2].label == "2024-02"
        assert buckets[-2].last_day.day == 29

    def test_daily_labels(self):
        """Thirty days ending today."""
        buckets = daily_buckets(NOW)

        assert len(buckets) == DAILY_BUCKETS
        assert buckets[0].label == "2026-09-20"
        assert buckets[-1].label == "2026-10-19"

    def test_monthly_includes_whole_last_day(self):
        """Late on the month's last day still belongs to that month."""
        september = monthly_buckets(NOW)[-2]

        assert september.contains(utc(2026, 9, 30, 23, 30))
        assert not september.contains(utc(2026, 10, 1, 0, 0))

    def test_daily_is_half_open(self):
        """A day bucket excludes the next midnight."""
        yesterday = daily_buckets(NOW)[-2]

        assert yesterday.contains(utc(2026, 10, 18, 0, 0))
        assert yesterday.contains(utc(2026, 10, 18, 23, 59, 59))
        assert not yesterday.contains(utc(2026, 10, 19, 0, 0))


class TestMonthlyTrend:
    """Test the six-month revenue trend."""

    def test_empty_input_is_full_length(self):
        """No records still yields six zero points."""
        trend = monthly_trend([], [], now=NOW)

        assert len(trend) == MONTHLY_BUCKETS
        assert all(point.revenue == 0 and point.invoices == 0 and point.clients == 0 for point in trend)

    def test_revenue_counts_only_paid(self):
        """Unpaid invoices count toward invoices but not revenue."""
        invoices = [
            make_invoice(utc(2026, 10, 2), 300000),
            make_invoice(utc(2026, 10, 3), 50000, status=InvoiceStatus.UNPAID),
        ]

        october = monthly_trend(invoices, [], now=NOW)[-1]

        assert october.month == "2026-10"
        assert october.revenue == 300000
        assert october.invoices == 2

    def test_last_day_of_month_lands_in_that_month(self):
        """An invoice late on 30 September counts for September."""
        trend = monthly_trend([make_invoice(utc(2026, 9, 30, 22, 0))], [], now=NOW)

        assert trend[-2].invoices == 1
        assert trend[-1].invoices == 0

    def test_clients_per_month(self):
        """New clients are bucketed by creation time."""
        clients = [
            ClientRecord(id="a", name="A", created_at=utc(2026, 8, 15)),
            ClientRecord(id="b", name="B", created_at=utc(2026, 8, 31, 18, 0)),
            ClientRecord(id="c", name="C", created_at=utc(2026, 10, 1)),
        ]

        trend = monthly_trend([], clients, now=NOW)

        assert [point.clients for point in trend] == [0, 0, 0, 2, 0, 1]

    def test_revenue_sum_matches_lookback(self):
        """Bucket revenue adds up to paid revenue inside the lookback."""
        invoices = [
            make_invoice(utc(2026, 4, 30, 23, 0), 999),
            make_invoice(utc(2026, 5, 1), 100),
            make_invoice(utc(2026, 6, 30, 23, 59, 59), 200),
            make_invoice(utc(2026, 7, 1), 300),
            make_invoice(utc(2026, 10, 19, 8, 0), 400),
        ]

        trend = monthly_trend(invoices, [], now=NOW)

        assert sum(point.revenue for point in trend) == 1000

    def test_client_acquisition_follows_trend(self):
        """Client acquisition mirrors the monthly client counts."""
        clients = [ClientRecord(id="a", name="A", created_at=utc(2026, 10, 5))]
        trend = monthly_trend([], clients, now=NOW)

        acquisition = client_acquisition(trend)

        assert len(acquisition) == MONTHLY_BUCKETS
        assert acquisition[-1] == {"month": "2026-10", "newClients": 1}
        assert acquisition[0] == {"month": "2026-05", "newClients": 0}


class TestDailyTrend:
    """Test the thirty-day payment trend."""

    def test_empty_input_is_full_length(self):
        """No invoices still yields thirty zero points."""
        trend = daily_trend([], now=NOW)

        assert len(trend) == DAILY_BUCKETS
        assert all(point.to_dict()["successRate"] == 0 for point in trend)

    def test_success_rate_one_decimal(self):
        """One of three paid is 33.3%."""
        day = utc(2026, 10, 10, 9, 0)
        invoices = [
            make_invoice(day, 100),
            make_invoice(day, 200, status=InvoiceStatus.UNPAID),
            make_invoice(day, 300, status=InvoiceStatus.UNPAID),
        ]

        point = next(p for p in daily_trend(invoices, now=NOW) if p.date == "2026-10-10")

        assert point.transactions == 3
        assert point.revenue == 100
        assert point.success_rate == 33.3

    def test_midnight_goes_to_next_day(self):
        """An invoice at midnight belongs to the day that starts then."""
        trend = daily_trend([make_invoice(utc(2026, 10, 19, 0, 0))], now=NOW)

        assert trend[-1].transactions == 1
        assert trend[-2].transactions == 0

    def test_old_invoices_excluded(self):
        """Invoices before the lookback are ignored."""
        trend = daily_trend([make_invoice(NOW - timedelta(days=45))], now=NOW)

        assert sum(point.transactions for point in trend) == 0

    def test_to_dict_keys(self):
        """Serialized keys match the payments chart contract."""
        assert set(daily_trend([], now=NOW)[0].to_dict()) == {
            "date", "revenue", "transactions", "successRate",
        }
